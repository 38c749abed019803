"""
Database file export/import and JSON data transfer.

Qt-dependent pieces (service.ExportJob) are imported by the desktop shell only,
so the HTTP server can import this package without touching PySide6.
"""

"""Desktop shell: hosts the HTTP server and owns database file locations."""

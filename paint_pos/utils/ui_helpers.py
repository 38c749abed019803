from PySide6.QtWidgets import QMessageBox, QWidget


def info(parent: QWidget, title: str, text: str):
    QMessageBox.information(parent, title, text)


def error(parent: QWidget, title: str, text: str):
    QMessageBox.critical(parent, title, text)


def confirm(parent: QWidget, title: str, text: str) -> bool:
    choice = QMessageBox.question(parent, title, text, QMessageBox.Yes | QMessageBox.No, QMessageBox.No)
    return choice == QMessageBox.Yes

"""
User interface for the Lockbox password vault.

Key derivation takes tens of milliseconds and tens of megabytes, so load and
save run on a VaultWorker thread. While one is in flight the window disables
every action that touches the vault.
"""

import os
import logging
from typing import Optional

from PyQt5.QtWidgets import (
    QMainWindow, QDialog, QWidget, QVBoxLayout, QHBoxLayout, QGridLayout,
    QLabel, QLineEdit, QPushButton, QListWidget, QListWidgetItem,
    QMessageBox, QFileDialog, QGroupBox, QCheckBox, QSpinBox, QTextEdit,
    QDialogButtonBox, QFormLayout, QApplication, QSplitter
)
from PyQt5.QtCore import Qt, QTimer, pyqtSignal, QThread
from PyQt5.QtGui import QFont

from .storage import StorageManager, PasswordEntry, LoadStatus, SaveStatus, new_entry_id
from .secure_buffer import SecretBuffer
from .generator import generate_password
from . import config

logger = logging.getLogger(__name__)


class VaultWorker(QThread):
    """Worker thread running a blocking load or save."""

    completed = pyqtSignal(object)
    error = pyqtSignal(str)

    LOAD = "load"
    SAVE = "save"

    def __init__(self, storage: StorageManager, operation: str, path: str, session: SecretBuffer):
        super().__init__()
        self.storage = storage
        self.operation = operation
        self.path = path
        self.session = session

    def run(self):
        """Run the operation and report its status."""
        try:
            if self.operation == self.LOAD:
                status = self.storage.load(self.path, self.session.reveal())
            else:
                status = self.storage.save(self.path, self.session.reveal())
            self.completed.emit(status)
        except Exception as e:
            logger.error(f"Vault worker: unexpected error during {self.operation}: {e}", exc_info=True)
            self.error.emit(str(e))


class LoginDialog(QDialog):
    """Asks for the master password and the vault file, then loads it."""

    def __init__(self, storage: StorageManager, session: SecretBuffer, vault_path: str, parent=None):
        super().__init__(parent)
        self.storage = storage
        self.session = session
        self.vault_path = vault_path
        self.worker: Optional[VaultWorker] = None
        self.init_ui()

    def init_ui(self):
        """Initialize the user interface."""
        self.setWindowTitle(f"{config.APP_TITLE_PREFIX} - Login")
        self.setMinimumSize(420, 180)
        self.setModal(True)

        layout = QVBoxLayout()

        title = QLabel(config.APP_NAME)
        title.setAlignment(Qt.AlignCenter)
        font = title.font()
        font.setPointSize(16)
        font.setBold(True)
        title.setFont(font)
        layout.addWidget(title)

        layout.addWidget(QLabel("Enter Master Password:"))
        self.password_input = QLineEdit()
        self.password_input.setEchoMode(QLineEdit.Password)
        self.password_input.returnPressed.connect(self.unlock)
        layout.addWidget(self.password_input)

        layout.addWidget(QLabel("Vault File:"))
        path_layout = QHBoxLayout()
        self.path_input = QLineEdit(self.vault_path)
        path_layout.addWidget(self.path_input)
        self.browse_button = QPushButton("Browse...")
        self.browse_button.clicked.connect(self.browse)
        path_layout.addWidget(self.browse_button)
        layout.addLayout(path_layout)

        self.unlock_button = QPushButton("Unlock")
        self.unlock_button.clicked.connect(self.unlock)
        layout.addWidget(self.unlock_button)

        self.status_label = QLabel("")
        self.status_label.setStyleSheet("color: red")
        self.status_label.setWordWrap(True)
        layout.addWidget(self.status_label)

        layout.addStretch()
        self.setLayout(layout)
        self.password_input.setFocus()

    def browse(self):
        """Pick an existing vault or a location for a new one."""
        path, _ = QFileDialog.getSaveFileName(
            self, "Select Vault File", self.path_input.text(),
            "Vault Files (*.db);;All Files (*)",
            options=QFileDialog.DontConfirmOverwrite
        )
        if path:
            self.path_input.setText(path)

    def set_busy(self, busy: bool):
        self.unlock_button.setEnabled(not busy)
        self.browse_button.setEnabled(not busy)
        self.password_input.setEnabled(not busy)
        self.path_input.setEnabled(not busy)

    def _release_worker(self):
        # run() may still be returning after it emitted; join before dropping it
        self.worker.wait()
        self.worker = None

    def unlock(self):
        """Start loading the vault with the entered password."""
        if self.worker is not None:
            return
        path = self.path_input.text().strip()
        if not path:
            self.status_label.setText("Please choose a vault file.")
            return

        self.vault_path = path
        self.session.set(self.password_input.text())
        self.password_input.clear()
        self.status_label.setStyleSheet("color: gray")
        self.status_label.setText("Unlocking...")
        self.set_busy(True)

        self.worker = VaultWorker(self.storage, VaultWorker.LOAD, path, self.session)
        self.worker.completed.connect(self._handle_load_finished)
        self.worker.error.connect(self._handle_load_error)
        self.worker.start()

    def _handle_load_finished(self, status: LoadStatus):
        self._release_worker()
        self.set_busy(False)
        if status is LoadStatus.OK:
            self.accept()
        elif status is LoadStatus.NOT_FOUND:
            QMessageBox.information(self, "New Vault", f"{status.message}\nClick 'Save Vault' to protect it.")
            self.accept()
        else:
            self.session.clear()
            self.status_label.setStyleSheet("color: red")
            self.status_label.setText(status.message)

    def _handle_load_error(self, error: str):
        self._release_worker()
        self.set_busy(False)
        self.session.clear()
        self.status_label.setStyleSheet("color: red")
        self.status_label.setText(f"Failed to unlock vault: {error}")

    def reject(self):
        if self.worker is not None:
            return
        self.session.clear()
        super().reject()


class PasswordGeneratorDialog(QDialog):
    """Dialog for generating passwords."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.generated_password = ""
        self.init_ui()

    def init_ui(self):
        """Initialize the user interface."""
        self.setWindowTitle("Password Generator")
        self.setModal(True)

        layout = QVBoxLayout()

        options_group = QGroupBox("Password Options")
        options_layout = QGridLayout()

        options_layout.addWidget(QLabel("Length:"), 0, 0)
        self.length_spin = QSpinBox()
        self.length_spin.setMinimum(config.PASSWORD_GENERATOR_MIN_LENGTH)
        self.length_spin.setMaximum(config.PASSWORD_GENERATOR_MAX_LENGTH)
        self.length_spin.setValue(config.PASSWORD_GENERATOR_DEFAULT_LENGTH)
        self.length_spin.valueChanged.connect(self.generate_password)
        options_layout.addWidget(self.length_spin, 0, 1)

        self.uppercase_check = QCheckBox("Uppercase (A-Z)")
        self.lowercase_check = QCheckBox("Lowercase (a-z)")
        self.digits_check = QCheckBox("Numbers (0-9)")
        self.symbols_check = QCheckBox("Symbols (!@#...)")
        for i, check in enumerate((self.uppercase_check, self.lowercase_check,
                                   self.digits_check, self.symbols_check)):
            check.setChecked(True)
            check.toggled.connect(self.generate_password)
            options_layout.addWidget(check, 1 + i // 2, i % 2)

        self.exclude_ambiguous_check = QCheckBox(f"Exclude ambiguous ({config.PASSWORD_GENERATOR_AMBIGUOUS_CHARS})")
        self.exclude_ambiguous_check.toggled.connect(self.generate_password)
        options_layout.addWidget(self.exclude_ambiguous_check, 3, 0, 1, 2)

        options_group.setLayout(options_layout)
        layout.addWidget(options_group)

        self.password_display = QLineEdit()
        self.password_display.setReadOnly(True)
        self.password_display.setFont(QFont("Consolas", 12))
        layout.addWidget(self.password_display)

        self.regenerate_button = QPushButton("Regenerate")
        self.regenerate_button.clicked.connect(self.generate_password)
        layout.addWidget(self.regenerate_button)

        self.buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        self.buttons.button(QDialogButtonBox.Ok).setText("Generate && Use")
        self.buttons.accepted.connect(self.accept)
        self.buttons.rejected.connect(self.reject)
        layout.addWidget(self.buttons)

        self.setLayout(layout)
        self.generate_password()

    def generate_password(self):
        """Generate a new password based on selected options."""
        try:
            self.generated_password = generate_password(
                self.length_spin.value(),
                use_upper=self.uppercase_check.isChecked(),
                use_lower=self.lowercase_check.isChecked(),
                use_digits=self.digits_check.isChecked(),
                use_symbols=self.symbols_check.isChecked(),
                exclude_ambiguous=self.exclude_ambiguous_check.isChecked()
            )
        except ValueError as e:
            self.generated_password = ""
            self.password_display.setText(str(e))
            self.buttons.button(QDialogButtonBox.Ok).setEnabled(False)
            return
        self.password_display.setText(self.generated_password)
        self.buttons.button(QDialogButtonBox.Ok).setEnabled(True)

    def get_password(self) -> str:
        """Get the generated password."""
        return self.generated_password


class PasswordEntryDialog(QDialog):
    """Dialog for adding/editing password entries."""

    def __init__(self, entry: Optional[PasswordEntry] = None, parent=None):
        super().__init__(parent)
        self.entry = entry
        self.init_ui()

    def init_ui(self):
        """Initialize the user interface."""
        self.setWindowTitle("Edit Entry" if self.entry else "Add Entry")
        self.setModal(True)
        self.setMinimumWidth(400)

        layout = QFormLayout()

        self.title_input = QLineEdit(self.entry.title if self.entry else "")
        layout.addRow("Title:", self.title_input)

        self.username_input = QLineEdit(self.entry.username if self.entry else "")
        layout.addRow("Username:", self.username_input)

        password_layout = QHBoxLayout()
        self.password_input = QLineEdit(self.entry.password if self.entry else "")
        self.password_input.setEchoMode(QLineEdit.Password)
        password_layout.addWidget(self.password_input)

        self.show_password_button = QPushButton("Show")
        self.show_password_button.setCheckable(True)
        self.show_password_button.toggled.connect(self.toggle_password_visibility)
        password_layout.addWidget(self.show_password_button)

        self.generate_button = QPushButton("Generate")
        self.generate_button.clicked.connect(self.generate_password)
        password_layout.addWidget(self.generate_button)
        layout.addRow("Password:", password_layout)

        self.url_input = QLineEdit(self.entry.url if self.entry else "")
        layout.addRow("URL:", self.url_input)

        self.notes_input = QTextEdit()
        self.notes_input.setMaximumHeight(100)
        if self.entry:
            self.notes_input.setPlainText(self.entry.notes)
        layout.addRow("Notes:", self.notes_input)

        buttons = QDialogButtonBox(QDialogButtonBox.Save | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self.validate_and_accept)
        buttons.rejected.connect(self.reject)
        layout.addRow(buttons)

        self.setLayout(layout)

    def toggle_password_visibility(self, checked: bool):
        """Toggle password visibility."""
        self.password_input.setEchoMode(QLineEdit.Normal if checked else QLineEdit.Password)
        self.show_password_button.setText("Hide" if checked else "Show")

    def generate_password(self):
        """Open password generator dialog."""
        dialog = PasswordGeneratorDialog(self)
        if dialog.exec_() and dialog.get_password():
            self.password_input.setText(dialog.get_password())

    def validate_and_accept(self):
        """Validate input and accept dialog."""
        if not self.title_input.text().strip():
            QMessageBox.warning(self, "Validation Error", "Title is required")
            return
        self.accept()

    def get_entry(self) -> PasswordEntry:
        """Build the entry from the dialog. Edits keep the original id."""
        return PasswordEntry(
            id=self.entry.id if self.entry else new_entry_id(),
            title=self.title_input.text().strip(),
            username=self.username_input.text(),
            password=self.password_input.text(),
            url=self.url_input.text().strip(),
            notes=self.notes_input.toPlainText()
        )


class MainWindow(QMainWindow):
    """Vault window: entry list on the left, details on the right."""

    def __init__(self, storage: StorageManager, session: SecretBuffer, vault_path: str):
        super().__init__()
        self.storage = storage
        self.session = session
        self.vault_path = vault_path
        self.locked_by_user = False
        self.worker: Optional[VaultWorker] = None
        self.clipboard_timer = QTimer()
        self.clipboard_timer.setSingleShot(True)
        self.clipboard_timer.timeout.connect(self.clear_clipboard)
        self.init_ui()
        self.load_entries()

    def init_ui(self):
        """Initialize the user interface."""
        self.setWindowTitle(f"{config.APP_TITLE_PREFIX} - {os.path.basename(self.vault_path)}")
        self.setGeometry(100, 100, 700, 500)

        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        layout = QVBoxLayout()
        central_widget.setLayout(layout)

        toolbar_layout = QHBoxLayout()
        self.lock_button = QPushButton("Lock Vault")
        self.lock_button.clicked.connect(self.lock_vault)
        toolbar_layout.addWidget(self.lock_button)

        self.save_button = QPushButton("Save Vault")
        self.save_button.clicked.connect(self.save_vault)
        toolbar_layout.addWidget(self.save_button)

        self.add_button = QPushButton("Add New Entry")
        self.add_button.clicked.connect(self.add_entry)
        toolbar_layout.addWidget(self.add_button)
        toolbar_layout.addStretch()
        layout.addLayout(toolbar_layout)

        self.filter_input = QLineEdit()
        self.filter_input.setPlaceholderText(config.FILTER_PLACEHOLDER_TEXT)
        self.filter_input.textChanged.connect(self.filter_entries)
        layout.addWidget(self.filter_input)

        splitter = QSplitter(Qt.Horizontal)

        self.entry_list = QListWidget()
        self.entry_list.currentItemChanged.connect(self.show_selected_entry)
        splitter.addWidget(self.entry_list)

        details = QWidget()
        details_layout = QVBoxLayout()
        details.setLayout(details_layout)

        self.title_label = QLabel("Select an entry to view details.")
        font = self.title_label.font()
        font.setBold(True)
        self.title_label.setFont(font)
        details_layout.addWidget(self.title_label)

        details_layout.addWidget(QLabel("Username:"))
        username_layout = QHBoxLayout()
        self.username_display = QLineEdit()
        self.username_display.setReadOnly(True)
        username_layout.addWidget(self.username_display)
        self.copy_username_button = QPushButton("Copy")
        self.copy_username_button.clicked.connect(self.copy_username)
        username_layout.addWidget(self.copy_username_button)
        details_layout.addLayout(username_layout)

        details_layout.addWidget(QLabel("Password:"))
        password_layout = QHBoxLayout()
        self.password_display = QLineEdit()
        self.password_display.setReadOnly(True)
        self.password_display.setEchoMode(QLineEdit.Password)
        password_layout.addWidget(self.password_display)
        self.copy_password_button = QPushButton("Copy")
        self.copy_password_button.clicked.connect(self.copy_password)
        password_layout.addWidget(self.copy_password_button)
        details_layout.addLayout(password_layout)

        self.url_label = QLabel("")
        self.url_label.setTextInteractionFlags(Qt.TextSelectableByMouse)
        details_layout.addWidget(self.url_label)

        details_layout.addWidget(QLabel("Notes:"))
        self.notes_display = QTextEdit()
        self.notes_display.setReadOnly(True)
        details_layout.addWidget(self.notes_display)

        actions_layout = QHBoxLayout()
        self.edit_button = QPushButton("Edit")
        self.edit_button.clicked.connect(self.edit_entry)
        actions_layout.addWidget(self.edit_button)
        self.delete_button = QPushButton("Delete")
        self.delete_button.clicked.connect(self.delete_entry)
        actions_layout.addWidget(self.delete_button)
        details_layout.addLayout(actions_layout)

        splitter.addWidget(details)
        splitter.setSizes([200, 500])
        layout.addWidget(splitter)

        self.statusBar().showMessage("Vault unlocked")
        self.show_selected_entry(None, None)

    def load_entries(self):
        """Reload the entry list from storage, keeping the selection if possible."""
        selected_id = self.selected_entry_id()
        self.entry_list.clear()
        for entry in self.storage.get_entries():
            item = QListWidgetItem(entry.title)
            # ids can exceed the signed 64-bit range of a QVariant
            item.setData(Qt.UserRole, str(entry.id))
            self.entry_list.addItem(item)
            if entry.id == selected_id:
                self.entry_list.setCurrentItem(item)
        self.filter_entries()

    def filter_entries(self):
        """Hide entries whose title does not contain the filter text."""
        search_text = self.filter_input.text().lower()
        for row in range(self.entry_list.count()):
            item = self.entry_list.item(row)
            item.setHidden(bool(search_text) and search_text not in item.text().lower())

    def selected_entry_id(self) -> Optional[int]:
        item = self.entry_list.currentItem()
        if item is None:
            return None
        return int(item.data(Qt.UserRole))

    def show_selected_entry(self, current, previous):
        """Show the details of the selected entry."""
        entry = None
        if current is not None:
            entry = self.storage.get_entry_for_edit(int(current.data(Qt.UserRole)))

        has_entry = entry is not None
        for widget in (self.copy_username_button, self.copy_password_button,
                       self.edit_button, self.delete_button):
            widget.setEnabled(has_entry and self.worker is None)

        if not has_entry:
            self.title_label.setText("Select an entry to view details.")
            self.username_display.clear()
            self.password_display.clear()
            self.url_label.clear()
            self.notes_display.clear()
            return

        self.title_label.setText(f"Title: {entry.title}")
        self.username_display.setText(entry.username)
        self.password_display.setText(entry.password)
        self.url_label.setText(f"URL: {entry.url}")
        self.notes_display.setPlainText(entry.notes)

    def set_busy(self, busy: bool):
        """Disable vault actions while a load/save is running."""
        for widget in (self.lock_button, self.save_button, self.add_button, self.entry_list):
            widget.setEnabled(not busy)
        self.show_selected_entry(self.entry_list.currentItem(), None)

    def _release_worker(self):
        self.worker.wait()
        self.worker = None

    def add_entry(self):
        """Add a new password entry."""
        dialog = PasswordEntryDialog(parent=self)
        if dialog.exec_():
            self.storage.upsert_entry(dialog.get_entry())
            self.load_entries()
            self.statusBar().showMessage("Entry added (not saved yet)", 2000)

    def edit_entry(self):
        """Edit the selected entry through a copy, committed back by id."""
        entry_id = self.selected_entry_id()
        if entry_id is None:
            return
        entry = self.storage.get_entry_for_edit(entry_id)
        if entry is None:
            return

        dialog = PasswordEntryDialog(entry, parent=self)
        if dialog.exec_():
            if self.storage.commit_entry(dialog.get_entry()):
                self.load_entries()
                self.statusBar().showMessage("Entry updated (not saved yet)", 2000)
            else:
                QMessageBox.warning(self, "Edit Failed", "The entry no longer exists.")
                self.load_entries()

    def delete_entry(self):
        """Delete the selected entry."""
        entry_id = self.selected_entry_id()
        if entry_id is None:
            return
        reply = QMessageBox.question(
            self, "Confirm Delete",
            "Are you sure you want to delete this entry?",
            QMessageBox.Yes | QMessageBox.No
        )
        if reply == QMessageBox.Yes:
            self.storage.delete_entry(entry_id)
            self.load_entries()
            self.statusBar().showMessage("Entry deleted (not saved yet)", 2000)

    def save_vault(self):
        """Encrypt and write the vault on a worker thread."""
        if self.worker is not None:
            return
        self.statusBar().showMessage("Saving...")
        self.worker = VaultWorker(self.storage, VaultWorker.SAVE, self.vault_path, self.session)
        self.worker.completed.connect(self._handle_save_finished)
        self.worker.error.connect(self._handle_save_error)
        self.set_busy(True)
        self.worker.start()

    def _handle_save_finished(self, status: SaveStatus):
        self._release_worker()
        self.set_busy(False)
        self.statusBar().showMessage(status.message)
        if not status.ok:
            QMessageBox.critical(self, "Save Failed", status.message)

    def _handle_save_error(self, error: str):
        self._release_worker()
        self.set_busy(False)
        QMessageBox.critical(self, "Save Failed", f"Failed to save vault: {error}")

    def copy_username(self):
        """Copy username to clipboard."""
        entry_id = self.selected_entry_id()
        entry = self.storage.get_entry_for_edit(entry_id) if entry_id is not None else None
        if entry:
            QApplication.clipboard().setText(entry.username)
            self.statusBar().showMessage("Username copied to clipboard", 2000)

    def copy_password(self):
        """Copy password to clipboard with auto-clear."""
        entry_id = self.selected_entry_id()
        entry = self.storage.get_entry_for_edit(entry_id) if entry_id is not None else None
        if entry:
            QApplication.clipboard().setText(entry.password)
            self.clipboard_timer.start(config.CLIPBOARD_CLEAR_TIMEOUT_DEFAULT)
            self.statusBar().showMessage(
                f"Password copied to clipboard (auto-clear in {config.CLIPBOARD_CLEAR_TIMEOUT_DEFAULT_SECONDS}s)", 2000
            )

    def clear_clipboard(self):
        """Clear the clipboard."""
        QApplication.clipboard().clear()
        self.statusBar().showMessage("Clipboard cleared", 2000)

    def lock_vault(self):
        """Forget the entries and the master password, then return to login."""
        if self.worker is not None:
            return
        self.locked_by_user = True
        self.close()

    def _wipe(self):
        self.clipboard_timer.stop()
        self.clear_clipboard()
        self.password_display.clear()
        self.storage.clear()
        self.session.clear()

    def closeEvent(self, event):
        """Refuse to close mid-save; otherwise wipe secrets on every exit path."""
        if self.worker is not None:
            QMessageBox.information(self, "Please Wait", "The vault is being saved.")
            self.locked_by_user = False
            event.ignore()
            return
        self._wipe()
        event.accept()

"""
Main entry point for the Lockbox password vault.
"""

import sys
import os
import signal
import logging
from typing import Optional

from PyQt5.QtWidgets import QApplication
from PyQt5.QtCore import Qt

from lockbox.ui import MainWindow, LoginDialog
from lockbox.storage import StorageManager
from lockbox.secure_buffer import SecretBuffer
from lockbox import config


class LockboxApp:
    """Main application class: alternates between the login dialog and the vault window."""

    def __init__(self):
        """Initialize the application."""
        self.app = QApplication(sys.argv)
        self.app.setApplicationName(config.APP_NAME)
        self.app.setOrganizationName(config.APP_NAME)
        self.app.setStyle(config.APP_STYLE)

        self.vault_path = self._get_default_vault_path()
        self.storage = StorageManager()
        self.session = SecretBuffer()
        self.main_window: Optional[MainWindow] = None

        # Handle Ctrl+C gracefully
        signal.signal(signal.SIGINT, signal.SIG_DFL)

    def _get_default_vault_path(self) -> str:
        """Get the default path for the encrypted vault file."""
        home = os.path.expanduser("~")
        app_dir = os.path.join(home, config.CONFIG_DIR_NAME)
        os.makedirs(app_dir, exist_ok=True)
        return os.path.join(app_dir, config.DEFAULT_VAULT_FILE)

    def run(self) -> int:
        """Run the application."""
        current_state = config.STATE_LOCKED

        while current_state != config.STATE_EXIT:
            if current_state == config.STATE_LOCKED:
                login_dialog = LoginDialog(self.storage, self.session, self.vault_path)
                if login_dialog.exec_():
                    self.vault_path = login_dialog.vault_path
                    current_state = config.STATE_UNLOCKED
                else:
                    current_state = config.STATE_EXIT

            elif current_state == config.STATE_UNLOCKED:
                self.main_window = MainWindow(self.storage, self.session, self.vault_path)
                self.main_window.show()
                self.app.exec_()

                # Window closed: "Lock Vault" goes back to login, anything else exits
                if self.main_window.locked_by_user:
                    current_state = config.STATE_LOCKED
                else:
                    current_state = config.STATE_EXIT
                self.main_window = None

        return 0

    def cleanup(self):
        """Clean up resources."""
        self.storage.clear()
        self.session.clear()


def main():
    """Main entry point."""
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
    # Enable high DPI scaling
    if hasattr(Qt, 'AA_EnableHighDpiScaling'):
        QApplication.setAttribute(Qt.AA_EnableHighDpiScaling, True)
    if hasattr(Qt, 'AA_UseHighDpiPixmaps'):
        QApplication.setAttribute(Qt.AA_UseHighDpiPixmaps, True)

    app = LockboxApp()

    try:
        return app.run()
    finally:
        app.cleanup()


if __name__ == "__main__":
    sys.exit(main())

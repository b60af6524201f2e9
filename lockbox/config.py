"""
Configuration constants for the Lockbox application.
"""

import os

# Application Metadata
APP_VERSION = "1.0"  # Use: Current version of the application. Type: str. Range: Semantic versioning string (e.g., "1.0.0")
APP_NAME = "Lockbox Password Vault"  # Use: Full name of the application. Type: str. Range: Any valid string.
APP_TITLE_PREFIX = f"{APP_NAME} v{APP_VERSION}"  # Use: Prefix for the application window titles, combining name and version. Type: str (f-string). Range: Derived from APP_NAME and APP_VERSION.

# Security Settings (on-disk format: changing any of these makes existing vaults unreadable)
SALT_SIZE = 16  # Use: Size of the Argon2id salt in bytes, stored at the start of the vault file. Type: int. Range: Fixed at 16 bytes.
KEY_SIZE = 32  # Use: Size of the derived encryption key in bytes. Corresponds to AES-256. Type: int. Range: Fixed at 32 bytes.
NONCE_SIZE = 12  # Use: Size of the AES-GCM nonce in bytes, stored after the salt. Type: int. Range: Fixed at 12 bytes (96 bits).
TAG_SIZE = 16  # Use: Size of the AES-GCM authentication tag in bytes, appended to the ciphertext. Type: int. Range: Fixed at 16 bytes (128 bits).
ARGON2_TIME_COST = 2  # Use: Argon2id time cost (passes over memory), "interactive" profile. Type: int. Range: Fixed at 2.
ARGON2_MEMORY_COST = 65536  # Use: Argon2id memory cost in KiB, "interactive" profile (64 MiB). Type: int. Range: Fixed at 65536.
ARGON2_PARALLELISM = 1  # Use: Argon2id lanes. Part of the derived key, so it is fixed. Type: int. Range: Fixed at 1.

# Password Generator Settings
PASSWORD_GENERATOR_DEFAULT_LENGTH = 16  # Use: Default length for generated passwords. Type: int. Range: PASSWORD_GENERATOR_MIN_LENGTH to PASSWORD_GENERATOR_MAX_LENGTH.
PASSWORD_GENERATOR_MIN_LENGTH = 8  # Use: Minimum allowed length for generated passwords. Type: int. Range: Positive integer.
PASSWORD_GENERATOR_MAX_LENGTH = 128  # Use: Maximum allowed length for generated passwords. Type: int. Range: Positive integer.
PASSWORD_GENERATOR_SYMBOLS = "!@#$%^&*()_+-=[]{};:,.<>/?"  # Use: Symbol characters offered by the generator. Type: str. Range: Any string of printable characters.
PASSWORD_GENERATOR_AMBIGUOUS_CHARS = "0O1lI"  # Use: Characters considered ambiguous and can be excluded from generated passwords. Type: str. Range: Any string of characters.

# UI Settings
CLIPBOARD_CLEAR_TIMEOUT_DEFAULT_SECONDS = 30  # Use: Timeout in seconds after which a copied password is cleared from the clipboard. Type: int. Range: Positive integer.
CLIPBOARD_CLEAR_TIMEOUT_DEFAULT = CLIPBOARD_CLEAR_TIMEOUT_DEFAULT_SECONDS * 1000  # Use: Clipboard clear timeout in milliseconds. Derived from CLIPBOARD_CLEAR_TIMEOUT_DEFAULT_SECONDS. Type: int. Range: Derived value.
FILTER_PLACEHOLDER_TEXT = "Filter by title..."  # Use: Placeholder text of the entry filter box. Type: str. Range: Any string.
APP_STYLE = 'Fusion'  # Use: PyQt5 application style. Type: str. Range: Valid PyQt5 style names (e.g., 'Fusion', 'Windows', 'Macintosh').

# File and Directory Names
CONFIG_DIR_NAME = ".lockbox"  # Use: Name of the hidden directory within the user's home directory where the default vault lives. Type: str. Range: Any valid directory name.
DEFAULT_VAULT_FILE = "vault.db"  # Use: Default filename for the encrypted vault. Type: str. Range: Any valid filename.
TEMP_FILE_SUFFIX = ".tmp"  # Use: Suffix of the temporary file written before it replaces the vault. Type: str. Range: Any valid filename suffix.
JSON_INDENT = 4  # Use: Indentation of the JSON plaintext inside the vault. Type: int. Range: Non-negative integer.

# Logging
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'  # Use: Format string passed to logging.basicConfig. Type: str. Range: Any valid logging format.
LOG_LEVEL = os.environ.get("LOCKBOX_LOG_LEVEL", "INFO").upper()  # Use: Root log level, overridable through the LOCKBOX_LOG_LEVEL environment variable. Type: str. Range: DEBUG, INFO, WARNING, ERROR, CRITICAL.

# Application State Machine States
STATE_LOCKED = "LOCKED"  # Use: The login dialog is shown and no vault is in memory. Type: str. Range: Any string.
STATE_UNLOCKED = "UNLOCKED"  # Use: The vault window is shown with entries in memory. Type: str. Range: Any string.
STATE_EXIT = "EXIT"  # Use: Represents the application's exit state. Type: str. Range: Any string.

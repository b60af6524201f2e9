"""
Storage management for the password vault.

The vault is kept in memory as an ordered list of PasswordEntry records. On
save the whole list is serialized to indented JSON, sealed by CryptoManager
and written over the vault file; on load the inverse happens and the list is
replaced in one step only if every stage succeeds.

LEGAL NOTICE:
This module handles secure storage of passwords. All data is encrypted locally
and never transmitted. Use only on devices you own or administer.
"""

import os
import json
import stat
import time
import logging
import platform
import threading
from enum import Enum
from dataclasses import dataclass, asdict, fields, replace
from typing import Any, Dict, List, Optional, Union

from .crypto import CryptoManager, KeyDerivationError, Secret
from . import config

logger = logging.getLogger(__name__)

MAX_ENTRY_ID = 2 ** 64 - 1

PathLike = Union[str, os.PathLike]


@dataclass
class PasswordEntry:
    """Represents a single credential record."""
    id: int
    title: str
    username: str
    password: str
    url: str = ""
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PasswordEntry':
        """
        Create from dictionary.

        Every field is mandatory. Unknown keys are ignored.

        Raises:
            ValueError: If a field is missing or out of range
            TypeError: If a field has the wrong type
        """
        if not isinstance(data, dict):
            raise TypeError(f"Entry must be an object, got {type(data).__name__}")

        values = {}
        for field in fields(cls):
            if field.name not in data:
                raise ValueError(f"Entry is missing field '{field.name}'")
            values[field.name] = data[field.name]

        entry_id = values['id']
        if isinstance(entry_id, bool) or not isinstance(entry_id, int):
            raise TypeError(f"Entry id must be an integer, got {type(entry_id).__name__}")
        if not 0 <= entry_id <= MAX_ENTRY_ID:
            raise ValueError(f"Entry id {entry_id} is outside the unsigned 64-bit range")

        for name, value in values.items():
            if name != 'id' and not isinstance(value, str):
                raise TypeError(f"Entry field '{name}' must be a string, got {type(value).__name__}")

        return cls(**values)

    def copy(self) -> 'PasswordEntry':
        """Return an independent copy of this entry."""
        return replace(self)


_id_lock = threading.Lock()
_last_id = 0


def new_entry_id() -> int:
    """
    Return a fresh entry id: the current time in milliseconds, bumped so that
    ids handed out by this process are strictly increasing.
    """
    global _last_id
    with _id_lock:
        candidate = time.time_ns() // 1_000_000
        if candidate <= _last_id:
            candidate = _last_id + 1
        _last_id = candidate
        return candidate


class LoadStatus(Enum):
    """Outcome of StorageManager.load(). The value is the user-facing message."""
    OK = "Vault unlocked."
    NOT_FOUND = "No existing vault, one will be created on save."
    EMPTY_FILE = "Vault file is empty or corrupt."
    READ_ERROR = "Failed to read the vault file."
    DECRYPT_FAILED = "Wrong password or corrupt vault file."
    PARSE_FAILED = "Vault data is corrupt."

    @property
    def ok(self) -> bool:
        return self is LoadStatus.OK

    @property
    def message(self) -> str:
        return self.value


class SaveStatus(Enum):
    """Outcome of StorageManager.save(). The value is the user-facing message."""
    OK = "Vault saved successfully."
    KEY_DERIVATION_FAILED = "Could not derive the encryption key (not enough memory?)."
    WRITE_ERROR = "Failed to save vault!"

    @property
    def ok(self) -> bool:
        return self is SaveStatus.OK

    @property
    def message(self) -> str:
        return self.value


class StorageManager:
    """Owns the in-memory vault and its encrypted file representation."""

    def __init__(self, crypto: Optional[CryptoManager] = None):
        """
        Initialize storage manager.
        Args:
            crypto: Envelope used for sealing the vault (a default one if omitted)
        """
        self.crypto = crypto or CryptoManager()
        self._lock = threading.Lock()
        self._entries: List[PasswordEntry] = []

    def load(self, path: PathLike, password: Secret) -> LoadStatus:
        """
        Read, decrypt and parse the vault file.

        The in-memory entries are only replaced when the status is OK.
        """
        path = os.fspath(path)
        with self._lock:
            try:
                with open(path, 'rb') as f:
                    blob = f.read()
            except FileNotFoundError:
                logger.info(f"Load: no vault file at {path}, a new one will be created on save")
                return LoadStatus.NOT_FOUND
            except OSError as e:
                logger.error(f"Load: cannot read vault file {path}: {e}")
                return LoadStatus.READ_ERROR

            if not blob:
                logger.warning(f"Load: vault file {path} is empty")
                return LoadStatus.EMPTY_FILE

            plaintext = self.crypto.decrypt(blob, password)
            if plaintext is None:
                logger.warning(f"Load: failed to decrypt vault {path} (wrong password or corrupt file)")
                return LoadStatus.DECRYPT_FAILED

            try:
                entries = self._parse(plaintext)
            except (ValueError, TypeError, RecursionError) as e:
                logger.error(f"Load: failed to parse vault data (file corrupt): {e}")
                return LoadStatus.PARSE_FAILED

            self._entries = entries
            logger.info(f"Load: unlocked vault {path} with {len(entries)} entries")
            return LoadStatus.OK

    def save(self, path: PathLike, password: Secret) -> SaveStatus:
        """
        Encrypt the whole vault and write it over the file at path.

        The blob is written to a temporary file first and moved into place, so
        a failed write leaves the previous vault file intact.
        """
        path = os.fspath(path)
        with self._lock:
            plaintext = self._serialize(self._entries)

            try:
                blob = self.crypto.encrypt(plaintext, password)
            except KeyDerivationError as e:
                logger.error(f"Save: {e}")
                return SaveStatus.KEY_DERIVATION_FAILED

            tmp_path = path + config.TEMP_FILE_SUFFIX
            try:
                with open(tmp_path, 'wb') as f:
                    f.write(blob)
                    f.flush()
                    os.fsync(f.fileno())
                self._set_file_permissions(tmp_path)
                os.replace(tmp_path, path)
            except OSError as e:
                logger.error(f"Save: error writing vault file {path}: {e}", exc_info=True)
                self._remove_temp_file(tmp_path)
                return SaveStatus.WRITE_ERROR

            logger.info(f"Save: wrote vault {path}")
            return SaveStatus.OK

    def clear(self) -> None:
        """Remove all entries from memory. Used when locking the vault."""
        with self._lock:
            self._entries = []

    def get_entries(self) -> List[PasswordEntry]:
        """Get copies of all entries, in insertion order."""
        with self._lock:
            return [entry.copy() for entry in self._entries]

    def add_entry(self, entry: PasswordEntry) -> None:
        """Append a new entry."""
        with self._lock:
            self._entries.append(entry.copy())

    def delete_entry(self, entry_id: int) -> bool:
        """
        Delete every entry with the given id.

        Returns:
            True if anything was removed. Unknown ids are a no-op.
        """
        with self._lock:
            original_count = len(self._entries)
            self._entries = [e for e in self._entries if e.id != entry_id]
            return len(self._entries) < original_count

    def get_entry_for_edit(self, entry_id: int) -> Optional[PasswordEntry]:
        """
        Fetch a copy of the first entry with the given id.

        Changes to the copy take effect only through commit_entry().
        """
        with self._lock:
            index = self._find(entry_id)
            if index is None:
                return None
            return self._entries[index].copy()

    def commit_entry(self, entry: PasswordEntry) -> bool:
        """
        Replace the first entry whose id matches entry.id.

        Returns:
            False if no entry with that id exists any more.
        """
        with self._lock:
            index = self._find(entry.id)
            if index is None:
                return False
            self._entries[index] = entry.copy()
            return True

    def upsert_entry(self, entry: PasswordEntry) -> None:
        """Commit an edited entry, or append it if its id is not present."""
        with self._lock:
            index = self._find(entry.id)
            if index is None:
                self._entries.append(entry.copy())
            else:
                self._entries[index] = entry.copy()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _find(self, entry_id: int) -> Optional[int]:
        for i, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return i
        return None

    @staticmethod
    def _serialize(entries: List[PasswordEntry]) -> bytes:
        data = [e.to_dict() for e in entries]
        return json.dumps(data, indent=config.JSON_INDENT, ensure_ascii=False).encode('utf-8')

    @staticmethod
    def _parse(plaintext: bytes) -> List[PasswordEntry]:
        # UnicodeDecodeError and JSONDecodeError are both ValueErrors
        data = json.loads(plaintext.decode('utf-8'))
        if not isinstance(data, list):
            raise TypeError(f"Vault data must be a list of entries, got {type(data).__name__}")
        return [PasswordEntry.from_dict(e) for e in data]

    @staticmethod
    def _set_file_permissions(filepath: str) -> None:
        """Set file to be readable/writable by owner only."""
        if platform.system() == 'Windows':
            return
        os.chmod(filepath, stat.S_IRUSR | stat.S_IWUSR)  # 600

    @staticmethod
    def _remove_temp_file(tmp_path: str) -> None:
        try:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
        except OSError as e:
            logger.warning(f"Save: could not remove temporary file {tmp_path}: {e}")

"""
Scoped holder for the master password.

The secret lives in a private bytearray so it can be overwritten in place when
the vault is locked instead of waiting for garbage collection.
"""

from typing import Optional

from .crypto import Secret


class SecretBuffer:
    """Mutable secret that is zeroed on clear() and on leaving a with-block."""

    def __init__(self, value: Optional[Secret] = None):
        self._data = bytearray()
        if value is not None:
            self.set(value)

    def set(self, value: Secret) -> None:
        """Replace the held secret, wiping the previous one first."""
        self.clear()
        if isinstance(value, str):
            self._data = bytearray(value.encode('utf-8'))
        else:
            self._data = bytearray(value)

    def reveal(self) -> bytes:
        """Return the secret for a single call site. Do not keep the result."""
        return bytes(self._data)

    def clear(self) -> None:
        """Overwrite the secret with zeros and empty the buffer."""
        for i in range(len(self._data)):
            self._data[i] = 0
        self._data = bytearray()

    def __len__(self) -> int:
        return len(self._data)

    def __bool__(self) -> bool:
        return len(self._data) > 0

    def __repr__(self) -> str:
        return f"SecretBuffer(<{len(self._data)} bytes hidden>)"

    def __enter__(self) -> 'SecretBuffer':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.clear()

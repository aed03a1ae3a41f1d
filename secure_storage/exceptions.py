"""
Secure Storage Exceptions.

Every failure of the storage facility surfaces as one of these types.
``DecryptionError`` is not a ``CryptoError``: a failed
authentication tag means tampering or a wrong key, not a usage bug.
"""


class SecureStorageError(Exception):
    """Base class for all secure storage errors."""


class StorageError(SecureStorageError):
    """Connection or transaction failure at the persistence layer."""


class NotFoundError(SecureStorageError, KeyError):
    """No record is stored under the requested identifier."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No record stored under {key!r}")

    def __str__(self) -> str:
        return self.args[0]


class CryptoError(SecureStorageError):
    """Malformed key or nonce, or a key used outside its allowed usage."""


class DecryptionError(SecureStorageError):
    """Authentication tag did not verify."""


class SerializationError(SecureStorageError):
    """Stored data does not have the expected shape."""


class TransportError(SecureStorageError):
    """Raw network transfer failed."""

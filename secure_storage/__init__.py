"""Secure Storage.

Encrypted keyed storage for sensitive byte blobs, with a plain JSON
companion store and a raw HTTP passthrough.
"""
from .version import __version__
from .exceptions import (
    SecureStorageError,
    StorageError,
    NotFoundError,
    CryptoError,
    DecryptionError,
    SerializationError,
    TransportError,
)
from .vault import SecureStorageService, StorageConfig
from .raw import PlainStore
from .transport import HttpTransport

__all__ = [
    "__version__",
    "SecureStorageService",
    "StorageConfig",
    "PlainStore",
    "HttpTransport",
    "SecureStorageError",
    "StorageError",
    "NotFoundError",
    "CryptoError",
    "DecryptionError",
    "SerializationError",
    "TransportError",
]

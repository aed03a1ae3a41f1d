"""Vault — Encrypted keyed storage of sensitive byte blobs.

Security Note (Threat Model):
    With the default ``KeyManager`` every record carries the key that
    decrypts it, so anyone able to read the database can read the secrets.
    Use ``DerivedKeyManager`` (``key_strategy="derived"``) to keep record
    keys out of the store.
"""

from .service import SecureStorageService
from .store import Record, RecordStore
from .keys import KeyManager, DerivedKeyManager
from .crypto import Cipher, SymmetricKey
from .config import StorageConfig, load_master_key, generate_master_key

__all__ = [
    "SecureStorageService",
    "Record",
    "RecordStore",
    "KeyManager",
    "DerivedKeyManager",
    "Cipher",
    "SymmetricKey",
    "StorageConfig",
    "load_master_key",
    "generate_master_key",
]

"""
SecureStorageService — encrypted save/load of byte blobs by identifier.

Provides the public API of the vault:
- ``save(key, value)`` — encrypt under a fresh key and persist the record
- ``load(key)`` — fetch, verify and decrypt a record
- ``delete(key)`` / ``exists(key)`` — remove or probe a record

Each call is one logical transaction against one identifier; the
service keeps no cached copies of records.

Security Note:
    Never log plaintext, ciphertext or key material. Only log key names
    and operations.
"""
import asyncio
import logging
from typing import Optional

from .config import StorageConfig
from .crypto import BytesLike, Cipher, generate_nonce
from .keys import DerivedKeyManager, KeyManager
from .store import Record, RecordStore, validate_key
from ..exceptions import NotFoundError

logger = logging.getLogger("secure_storage.vault")


class SecureStorageService:
    """Encrypted keyed storage composed from a key manager, a cipher and a store.

    The key manager decides what is persisted as key material; swap in a
    ``DerivedKeyManager`` to keep record keys out of the store.
    """

    def __init__(
        self,
        store: RecordStore,
        key_manager: Optional[KeyManager] = None,
        cipher: Optional[Cipher] = None,
    ):
        self._store = store
        self._keys = key_manager or KeyManager()
        self._cipher = cipher or Cipher()

    @property
    def store(self) -> RecordStore:
        return self._store

    @classmethod
    def from_config(cls, config: StorageConfig) -> "SecureStorageService":
        """Wire a service from validated configuration."""
        if config.key_strategy == "derived":
            key_manager = DerivedKeyManager(config.master_key)
        else:
            key_manager = KeyManager()
        return cls(
            store=RecordStore(config.database_path),
            key_manager=key_manager,
            cipher=Cipher(config.cipher_backend),
        )

    async def close(self) -> None:
        await self._store.close()

    async def __aenter__(self) -> "SecureStorageService":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    def _seal(self, value: bytes) -> Record:
        record_key = self._keys.generate()
        nonce = generate_nonce()
        ciphertext = self._cipher.encrypt(record_key, nonce, value)
        return Record(
            ciphertext=ciphertext,
            nonce=nonce,
            key_material=self._keys.export(record_key),
        )

    def _open(self, record: Record) -> bytes:
        record_key = self._keys.import_key(record.key_material)
        return self._cipher.decrypt(record_key, record.nonce, record.ciphertext)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def save(self, key: str, value: BytesLike) -> None:
        """Encrypt ``value`` under a fresh key and persist it under ``key``.

        Args:
            key: Record identifier, any string.
            value: Bytes to protect.

        Raises:
            TypeError: If value is not bytes-like.
            SerializationError: If key is not a UTF-8 encodable string.
            CryptoError: If key generation or encryption fails.
            StorageError: If the record cannot be persisted.
        """
        validate_key(key)
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise TypeError(
                f"value must be bytes-like, got {type(value).__name__}"
            )
        record = await asyncio.to_thread(self._seal, bytes(value))
        await self._store.put(key, record)
        logger.debug("Vault save: key=%s", key)

    async def load(self, key: str) -> bytes:
        """Return the plaintext stored under ``key``.

        Raises:
            NotFoundError: If no record is stored under ``key``.
            SerializationError: If key is not a UTF-8 encodable string.
            CryptoError: If the stored key material is malformed.
            DecryptionError: If the record was tampered with.
            StorageError: On persistence failure.
        """
        record = await self._store.get(key)
        if record is None:
            raise NotFoundError(key)
        plaintext = await asyncio.to_thread(self._open, record)
        logger.debug("Vault load: key=%s", key)
        return plaintext

    async def delete(self, key: str) -> None:
        """Remove the record stored under ``key``.

        Raises:
            NotFoundError: If no record is stored under ``key``.
        """
        if not await self._store.delete(key):
            raise NotFoundError(key)
        logger.debug("Vault delete: key=%s", key)

    async def exists(self, key: str) -> bool:
        return await self._store.exists(key)

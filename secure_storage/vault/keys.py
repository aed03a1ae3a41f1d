"""
Vault Key Management — per-record key generation, export and import.

Two strategies share one contract:

- ``KeyManager`` stores the raw record key as key material. Anyone able
  to read the store can decrypt it.
- ``DerivedKeyManager`` stores a random 32-byte seed as key material and
  derives the record key with HKDF from a master key held outside the
  store.
"""
import secrets

from .crypto import KEY_LENGTH, SymmetricKey, derive_key
from ..exceptions import CryptoError


_DERIVATION_CONTEXT = "secure-storage-record"


def _check_material(material: bytes) -> bytes:
    if not isinstance(material, (bytes, bytearray, memoryview)):
        raise CryptoError(
            f"Key material must be bytes, got {type(material).__name__}"
        )
    if len(material) != KEY_LENGTH:
        raise CryptoError(
            f"Key material must be exactly {KEY_LENGTH} bytes, "
            f"got {len(material)}"
        )
    return bytes(material)


class KeyManager:
    """Generates fresh AES-256 keys; key material is the key itself."""

    strategy = "raw"

    def _secret_for(self, material: bytes) -> bytes:
        return material

    def generate(self) -> SymmetricKey:
        """Return a fresh, uniformly random, extractable 256-bit key."""
        material = secrets.token_bytes(KEY_LENGTH)
        return SymmetricKey(
            self._secret_for(material), material, extractable=True,
        )

    def export(self, key: SymmetricKey) -> bytes:
        """Return the 32-byte key material for ``key``.

        Raises:
            CryptoError: If the key is not extractable.
        """
        if not isinstance(key, SymmetricKey) or not key.extractable:
            raise CryptoError("Key is not extractable")
        return key._material

    def import_key(self, material: bytes) -> SymmetricKey:
        """Rebuild a decrypt-only key from stored key material.

        Raises:
            CryptoError: If ``material`` is not exactly 32 bytes.
        """
        material = _check_material(material)
        return SymmetricKey(
            self._secret_for(material), material, extractable=False,
        )


class DerivedKeyManager(KeyManager):
    """Key material is a per-record salt; the key needs the master key."""

    strategy = "derived"

    def __init__(self, master_key: bytes):
        if not isinstance(master_key, bytes) or len(master_key) != KEY_LENGTH:
            raise CryptoError(
                f"Master key must be exactly {KEY_LENGTH} bytes"
            )
        self._master_key = master_key

    def _secret_for(self, material: bytes) -> bytes:
        return derive_key(self._master_key, material, _DERIVATION_CONTEXT)

    def __repr__(self) -> str:
        return "<DerivedKeyManager>"

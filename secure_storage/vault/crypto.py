"""
Vault Crypto Core — AEAD cipher, symmetric key handle and key derivation.

Every record is encrypted under its own 256-bit key with a random 96-bit
nonce. The GCM (or Poly1305) tag is appended to the ciphertext and is
verified before any plaintext leaves ``Cipher.decrypt``.

Security Note:
    Never log plaintext, ciphertext or key material.
    A (key, nonce) pair must never be used for more than one encryption.
"""
import secrets
import logging
from typing import Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from ..exceptions import CryptoError, DecryptionError

logger = logging.getLogger("secure_storage.vault")

NONCE_SIZE = 12  # 96-bit nonce
KEY_LENGTH = 32  # AES-256
TAG_SIZE = 16  # GCM / Poly1305 tag

CIPHER_BACKENDS = {
    "aesgcm": AESGCM,
    "chacha20": ChaCha20Poly1305,
}

BytesLike = Union[bytes, bytearray, memoryview]


class SymmetricKey:
    """Opaque handle around 32 bytes of secret key material.

    ``extractable`` keys come from a key manager's ``generate()`` and may be
    exported and used to encrypt. Imported keys are decrypt-only.
    """

    __slots__ = ("_secret", "_material", "_extractable")

    def __init__(self, secret: bytes, material: bytes, extractable: bool = False):
        self._secret = bytes(secret)
        self._material = bytes(material)
        self._extractable = extractable

    @property
    def extractable(self) -> bool:
        return self._extractable

    @property
    def can_encrypt(self) -> bool:
        return self._extractable

    def __repr__(self) -> str:
        # Never expose key material.
        return f"<SymmetricKey extractable={self._extractable}>"


def generate_nonce() -> bytes:
    """Return a fresh 12-byte nonce from the OS CSPRNG."""
    return secrets.token_bytes(NONCE_SIZE)


def derive_key(seed: bytes, salt: bytes, context: str) -> bytes:
    """Derive a 32-byte encryption key using HKDF-SHA256.

    Args:
        seed: Input key material (a master key).
        salt: Per-record random salt.
        context: Context string for domain separation.

    Returns:
        32-byte derived key.
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        info=context.encode("utf-8"),
    )
    return hkdf.derive(seed)


class Cipher:
    """Stateless authenticated encryption over ``SymmetricKey`` handles.

    Usage:
        cipher = Cipher()
        ct = cipher.encrypt(key, nonce, b"secret")
        pt = cipher.decrypt(key, nonce, ct)
    """

    __slots__ = ("_backend", "_cls")

    def __init__(self, backend: str = "aesgcm"):
        try:
            self._cls = CIPHER_BACKENDS[backend]
        except KeyError:
            raise CryptoError(f"Unsupported cipher backend: {backend}") from None
        self._backend = backend

    @property
    def backend(self) -> str:
        return self._backend

    def _aead(self, key: SymmetricKey, nonce: BytesLike):
        if not isinstance(key, SymmetricKey):
            raise CryptoError(
                f"Expected a SymmetricKey, got {type(key).__name__}"
            )
        if len(key._secret) != KEY_LENGTH:
            raise CryptoError(
                f"Key must be exactly {KEY_LENGTH} bytes, "
                f"got {len(key._secret)}"
            )
        if len(nonce) != NONCE_SIZE:
            raise CryptoError(
                f"Nonce must be exactly {NONCE_SIZE} bytes, got {len(nonce)}"
            )
        return self._cls(key._secret)

    def encrypt(
        self, key: SymmetricKey, nonce: BytesLike, plaintext: BytesLike
    ) -> bytes:
        """Encrypt plaintext and append the authentication tag.

        Raises:
            CryptoError: If key or nonce length is invalid, or the key
                is import-only.
        """
        aead = self._aead(key, nonce)
        if not key.can_encrypt:
            raise CryptoError("Key is not allowed to encrypt")
        return aead.encrypt(bytes(nonce), bytes(plaintext), None)

    def decrypt(
        self, key: SymmetricKey, nonce: BytesLike, ciphertext: BytesLike
    ) -> bytes:
        """Verify the tag and decrypt.

        Raises:
            CryptoError: If key or nonce length is invalid.
            DecryptionError: If the tag does not verify.
        """
        aead = self._aead(key, nonce)
        if len(ciphertext) < TAG_SIZE:
            raise DecryptionError(
                f"Ciphertext too short: {len(ciphertext)} bytes "
                f"(minimum {TAG_SIZE})"
            )
        try:
            return aead.decrypt(bytes(nonce), bytes(ciphertext), None)
        except InvalidTag:
            raise DecryptionError(
                "Authentication tag did not verify "
                "(wrong key, wrong nonce or tampered data)"
            ) from None

"""
Vault Configuration — validated settings and master key loading.

Reads settings from environment variables:
    SECURE_STORAGE_DB_PATH = <path to the SQLite record store>
    SECURE_STORAGE_RAW_PATH = <path to the plain JSON store>
    SECURE_STORAGE_KEY_STRATEGY = raw | derived
    SECURE_STORAGE_MASTER_KEY = <base64-encoded 32-byte key>
    SECURE_STORAGE_CIPHER_BACKEND = aesgcm | chacha20
    SECURE_STORAGE_HTTP_TIMEOUT = <seconds>

Security Note:
    Never log key material. Only log the key strategy in use.
"""
import os
import base64
import binascii
import secrets
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger("secure_storage.vault")

MASTER_KEY_ENV = "SECURE_STORAGE_MASTER_KEY"


def load_master_key(env_var: str = MASTER_KEY_ENV) -> Optional[bytes]:
    """Load the master key from the environment.

    The value must be base64-encoded and decode to exactly 32 bytes.

    Returns:
        Raw 32-byte key, or None if the variable is not set.

    Raises:
        ValueError: If the value is not base64 or not 32 bytes long.
    """
    value = os.environ.get(env_var)
    if not value:
        return None
    try:
        key_bytes = base64.b64decode(value, validate=True)
    except binascii.Error as err:
        raise ValueError(f"{env_var} is not valid base64") from err
    if len(key_bytes) != 32:
        raise ValueError(
            f"{env_var} must decode to exactly 32 bytes, "
            f"got {len(key_bytes)}"
        )
    return key_bytes


def generate_master_key() -> str:
    """Generate a random 32-byte master key and return as base64 string.

    This is a utility for operators to generate new keys.
    """
    return base64.b64encode(secrets.token_bytes(32)).decode("ascii")


class StorageConfig(BaseModel):
    """Validated secure storage configuration."""

    database_path: Path = Field(default=Path("secure_storage.db"))
    raw_path: Path = Field(default=Path("raw_storage.json"))
    key_strategy: str = Field(default="raw")
    master_key: Optional[bytes] = Field(default=None, repr=False)
    cipher_backend: str = Field(default="aesgcm")
    http_timeout: float = Field(default=30.0, gt=0)

    @field_validator("key_strategy")
    @classmethod
    def validate_strategy(cls, v: str) -> str:
        """Validate key strategy is supported."""
        if v not in ("raw", "derived"):
            raise ValueError(f"Unsupported key strategy: {v}")
        return v

    @field_validator("cipher_backend")
    @classmethod
    def validate_cipher(cls, v: str) -> str:
        """Validate cipher backend is supported."""
        if v not in ("aesgcm", "chacha20"):
            raise ValueError(f"Unsupported cipher backend: {v}")
        return v

    @field_validator("master_key")
    @classmethod
    def validate_master_key(cls, v: Optional[bytes]) -> Optional[bytes]:
        if v is not None and len(v) != 32:
            raise ValueError(
                f"master_key must be exactly 32 bytes, got {len(v)}"
            )
        return v

    @model_validator(mode="after")
    def validate_master_key_present(self) -> "StorageConfig":
        """The derived strategy cannot work without a master key."""
        if self.key_strategy == "derived" and self.master_key is None:
            raise ValueError(
                "key_strategy 'derived' requires a master_key "
                f"(set {MASTER_KEY_ENV})"
            )
        return self

    @classmethod
    def from_env(cls) -> "StorageConfig":
        """Create StorageConfig by loading values from environment."""
        values = {
            "key_strategy": os.environ.get(
                "SECURE_STORAGE_KEY_STRATEGY", "raw"
            ).lower(),
            "cipher_backend": os.environ.get(
                "SECURE_STORAGE_CIPHER_BACKEND", "aesgcm"
            ).lower(),
            "master_key": load_master_key(),
        }
        if "SECURE_STORAGE_DB_PATH" in os.environ:
            values["database_path"] = os.environ["SECURE_STORAGE_DB_PATH"]
        if "SECURE_STORAGE_RAW_PATH" in os.environ:
            values["raw_path"] = os.environ["SECURE_STORAGE_RAW_PATH"]
        if "SECURE_STORAGE_HTTP_TIMEOUT" in os.environ:
            values["http_timeout"] = os.environ["SECURE_STORAGE_HTTP_TIMEOUT"]
        config = cls(**values)
        logger.debug(
            "Storage config loaded: strategy=%s cipher=%s",
            config.key_strategy, config.cipher_backend,
        )
        return config

"""
Tests for StorageConfig and master key helpers.
"""
import base64
from pathlib import Path

import pytest
from pydantic import ValidationError

from secure_storage.raw import PlainStore
from secure_storage.transport import HttpTransport
from secure_storage.vault.config import (
    StorageConfig,
    generate_master_key,
    load_master_key,
)

_ENV_VARS = (
    "SECURE_STORAGE_DB_PATH",
    "SECURE_STORAGE_RAW_PATH",
    "SECURE_STORAGE_KEY_STRATEGY",
    "SECURE_STORAGE_MASTER_KEY",
    "SECURE_STORAGE_CIPHER_BACKEND",
    "SECURE_STORAGE_HTTP_TIMEOUT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestMasterKey:
    """Master key helpers."""

    def test_generate_is_32_bytes(self):
        """Test generated master keys decode to 32 bytes."""
        assert len(base64.b64decode(generate_master_key())) == 32

    def test_load_unset(self):
        """Test load_master_key returns None when unset."""
        assert load_master_key() is None

    def test_load(self, monkeypatch):
        """Test load_master_key decodes the environment value."""
        key = generate_master_key()
        monkeypatch.setenv("SECURE_STORAGE_MASTER_KEY", key)
        assert load_master_key() == base64.b64decode(key)

    def test_load_wrong_length(self, monkeypatch):
        """Test a master key of the wrong length raises ValueError."""
        monkeypatch.setenv(
            "SECURE_STORAGE_MASTER_KEY", base64.b64encode(b"x" * 16).decode()
        )
        with pytest.raises(ValueError):
            load_master_key()

    def test_load_not_base64(self, monkeypatch):
        """Test a non-base64 master key raises ValueError."""
        monkeypatch.setenv("SECURE_STORAGE_MASTER_KEY", "***not base64***")
        with pytest.raises(ValueError):
            load_master_key()


class TestStorageConfig:
    """Validated configuration."""

    def test_defaults(self):
        """Test default configuration values."""
        config = StorageConfig()
        assert config.key_strategy == "raw"
        assert config.cipher_backend == "aesgcm"
        assert config.master_key is None
        assert config.database_path == Path("secure_storage.db")

    def test_unknown_strategy(self):
        """Test an unknown key strategy is rejected."""
        with pytest.raises(ValidationError):
            StorageConfig(key_strategy="escrow")

    def test_unknown_cipher(self):
        """Test an unknown cipher backend is rejected."""
        with pytest.raises(ValidationError):
            StorageConfig(cipher_backend="des")

    def test_derived_requires_master_key(self):
        """Test the derived strategy requires a master key."""
        with pytest.raises(ValidationError):
            StorageConfig(key_strategy="derived")

    def test_master_key_length(self):
        """Test a short master key is rejected."""
        with pytest.raises(ValidationError):
            StorageConfig(master_key=b"short")

    def test_master_key_hidden_from_repr(self):
        """Test repr does not show the master key."""
        config = StorageConfig(key_strategy="derived", master_key=b"\x01" * 32)
        assert "master_key" not in repr(config)

    def test_timeout_must_be_positive(self):
        """Test a zero HTTP timeout is rejected."""
        with pytest.raises(ValidationError):
            StorageConfig(http_timeout=0)

    def test_from_env(self, monkeypatch, tmp_path):
        """Test every setting is read from the environment."""
        key = generate_master_key()
        monkeypatch.setenv("SECURE_STORAGE_DB_PATH", str(tmp_path / "v.db"))
        monkeypatch.setenv("SECURE_STORAGE_RAW_PATH", str(tmp_path / "r.json"))
        monkeypatch.setenv("SECURE_STORAGE_KEY_STRATEGY", "DERIVED")
        monkeypatch.setenv("SECURE_STORAGE_MASTER_KEY", key)
        monkeypatch.setenv("SECURE_STORAGE_CIPHER_BACKEND", "chacha20")
        monkeypatch.setenv("SECURE_STORAGE_HTTP_TIMEOUT", "2.5")
        config = StorageConfig.from_env()
        assert config.database_path == tmp_path / "v.db"
        assert config.raw_path == tmp_path / "r.json"
        assert config.key_strategy == "derived"
        assert config.master_key == base64.b64decode(key)
        assert config.cipher_backend == "chacha20"
        assert config.http_timeout == 2.5

    def test_from_env_defaults(self):
        """Test from_env falls back to defaults."""
        config = StorageConfig.from_env()
        assert config.key_strategy == "raw"

    def test_wires_companions(self, tmp_path):
        """Test the plain store and transport are built from config."""
        config = StorageConfig(raw_path=tmp_path / "plain.json", http_timeout=4)
        plain = PlainStore.from_config(config)
        assert plain.path == tmp_path / "plain.json"
        transport = HttpTransport.from_config(config)
        assert transport._timeout.total == 4

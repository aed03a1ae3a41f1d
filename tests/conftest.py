"""Shared fixtures for secure storage tests."""
import pytest
import pytest_asyncio

from secure_storage.vault import (
    DerivedKeyManager,
    RecordStore,
    SecureStorageService,
)


@pytest.fixture
def master_key() -> bytes:
    return bytes(range(32))


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "records.db"


@pytest_asyncio.fixture
async def store(db_path):
    """A record store on a temporary SQLite file."""
    record_store = RecordStore(db_path)
    yield record_store
    await record_store.close()


@pytest_asyncio.fixture
async def vault(store):
    """A service using raw key material."""
    return SecureStorageService(store)


@pytest_asyncio.fixture
async def derived_vault(store, master_key):
    """A service that stores only HKDF seeds."""
    return SecureStorageService(store, key_manager=DerivedKeyManager(master_key))

"""
RecordStore — persistent keyed storage of encrypted records on SQLite.

One row per identifier. ``put`` is a single upsert statement, so a
concurrent reader sees either the previous record or the new one.

The aiosqlite connection is opened lazily on first use and shared by
every later call. Opening happens under an ``asyncio.Lock`` so two
concurrent first callers never create two connections.
"""
import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import aiosqlite

from .crypto import KEY_LENGTH, NONCE_SIZE
from ..exceptions import SerializationError, StorageError

logger = logging.getLogger("secure_storage.vault")

# aiosqlite raises ValueError when the connection is closed under a query.
_DRIVER_ERRORS = (aiosqlite.Error, ValueError)

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS secure_records (
    id TEXT PRIMARY KEY,
    ciphertext BLOB NOT NULL,
    nonce BLOB NOT NULL,
    key_material BLOB NOT NULL,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
)
"""

_UPSERT_RECORD = """
INSERT INTO secure_records (id, ciphertext, nonce, key_material)
VALUES (?, ?, ?, ?)
ON CONFLICT (id)
DO UPDATE SET ciphertext = excluded.ciphertext,
              nonce = excluded.nonce,
              key_material = excluded.key_material,
              updated_at = CURRENT_TIMESTAMP
"""

_SELECT_RECORD = """
SELECT ciphertext, nonce, key_material
FROM secure_records
WHERE id = ?
"""

_DELETE_RECORD = "DELETE FROM secure_records WHERE id = ?"

_SELECT_KEYS = "SELECT id FROM secure_records ORDER BY id"


@dataclass(frozen=True)
class Record:
    """One encrypted entry: ciphertext with tag, nonce and key material."""

    ciphertext: bytes
    nonce: bytes
    key_material: bytes

    def __post_init__(self):
        for name in ("ciphertext", "nonce", "key_material"):
            value = getattr(self, name)
            if not isinstance(value, (bytes, bytearray, memoryview)):
                raise SerializationError(
                    f"Record {name} must be bytes, got {type(value).__name__}"
                )
            object.__setattr__(self, name, bytes(value))
        if len(self.nonce) != NONCE_SIZE:
            raise SerializationError(
                f"Record nonce must be {NONCE_SIZE} bytes, got {len(self.nonce)}"
            )
        if len(self.key_material) != KEY_LENGTH:
            raise SerializationError(
                f"Record key material must be {KEY_LENGTH} bytes, "
                f"got {len(self.key_material)}"
            )

    def __repr__(self) -> str:
        return f"Record(ciphertext_len={len(self.ciphertext)})"


def validate_key(key: str) -> None:
    """Validate a record identifier.

    Any string SQLite can store as UTF-8 text is accepted.

    Raises:
        SerializationError: If key is not a string or is not UTF-8 encodable.
    """
    if not isinstance(key, str):
        raise SerializationError(
            f"Record key must be a string, got {type(key).__name__}"
        )
    try:
        key.encode("utf-8")
    except UnicodeEncodeError as err:
        raise SerializationError(f"Record key is not valid UTF-8: {err}") from err


class RecordStore:
    """Keyed record storage backed by a lazily opened aiosqlite connection.

    Args:
        database: Path to the SQLite file, or ``":memory:"``.
    """

    def __init__(self, database: Union[str, Path] = ":memory:"):
        self._database = str(database)
        self._conn: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()

    @property
    def database(self) -> str:
        return self._database

    @property
    def connected(self) -> bool:
        return self._conn is not None

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def _open(self) -> aiosqlite.Connection:
        if self._database != ":memory:":
            Path(self._database).parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(self._database)
        try:
            await conn.execute(_CREATE_TABLE)
            await conn.commit()
        except aiosqlite.Error:
            await conn.close()
            raise
        return conn

    async def connection(self) -> aiosqlite.Connection:
        """Return the shared connection, opening it exactly once.

        Raises:
            StorageError: If the database cannot be opened.
        """
        conn = self._conn
        if conn is not None:
            return conn
        async with self._lock:
            if self._conn is None:
                try:
                    self._conn = await self._open()
                except (aiosqlite.Error, OSError) as err:
                    raise StorageError(
                        f"Cannot open record store {self._database}: {err}"
                    ) from err
                logger.info("Record store opened: %s", self._database)
            return self._conn

    async def close(self) -> None:
        """Close the connection; the next operation reopens it."""
        async with self._lock:
            if self._conn is not None:
                conn, self._conn = self._conn, None
                await conn.close()
                logger.info("Record store closed: %s", self._database)

    async def __aenter__(self) -> "RecordStore":
        await self.connection()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def put(self, key: str, record: Record) -> None:
        """Persist ``record`` under ``key``, replacing any previous record.

        Raises:
            StorageError: On connection or transaction failure.
            SerializationError: If key is not a UTF-8 encodable string.
        """
        validate_key(key)
        conn = await self.connection()
        try:
            await conn.execute(
                _UPSERT_RECORD,
                (key, record.ciphertext, record.nonce, record.key_material),
            )
            await conn.commit()
        except _DRIVER_ERRORS as err:
            raise StorageError(f"Failed to store record {key!r}: {err}") from err
        logger.debug("Record stored: key=%s", key)

    async def get(self, key: str) -> Optional[Record]:
        """Return the record stored under ``key``, or None if absent.

        Raises:
            StorageError: On connection or transaction failure.
            SerializationError: If the stored row is malformed.
        """
        validate_key(key)
        conn = await self.connection()
        try:
            async with conn.execute(_SELECT_RECORD, (key,)) as cursor:
                row = await cursor.fetchone()
        except _DRIVER_ERRORS as err:
            raise StorageError(f"Failed to read record {key!r}: {err}") from err
        if row is None:
            return None
        return Record(ciphertext=row[0], nonce=row[1], key_material=row[2])

    async def delete(self, key: str) -> bool:
        """Remove the record under ``key``. Returns False if there was none."""
        validate_key(key)
        conn = await self.connection()
        try:
            async with conn.execute(_DELETE_RECORD, (key,)) as cursor:
                deleted = cursor.rowcount > 0
            await conn.commit()
        except _DRIVER_ERRORS as err:
            raise StorageError(f"Failed to delete record {key!r}: {err}") from err
        logger.debug("Record delete: key=%s deleted=%s", key, deleted)
        return deleted

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None

    async def keys(self) -> list[str]:
        """List stored identifiers in sorted order."""
        conn = await self.connection()
        try:
            async with conn.execute(_SELECT_KEYS) as cursor:
                rows = await cursor.fetchall()
        except _DRIVER_ERRORS as err:
            raise StorageError(f"Failed to list records: {err}") from err
        return [row[0] for row in rows]

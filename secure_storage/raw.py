"""PlainStore.

Unencrypted key-value byte storage kept in a single JSON document.
Each value is stored as a JSON-encoded array of byte values, so the
file offers no confidentiality at all.
"""
import os
import logging
from pathlib import Path
from typing import Any, Iterable, Union

import orjson

from .exceptions import NotFoundError, SerializationError, StorageError

logger = logging.getLogger("secure_storage.raw")


def encode_bytes(value: Iterable[int]) -> str:
    """Encode a byte sequence as a JSON array string."""
    if isinstance(value, (int, str)):
        raise SerializationError(
            f"Value is not a byte sequence: {type(value).__name__}"
        )
    try:
        data = bytes(value)
    except (TypeError, ValueError) as err:
        raise SerializationError(f"Value is not a byte sequence: {err}") from err
    return orjson.dumps(list(data)).decode("utf-8")


def _as_byte(item: Any) -> int:
    # bool is an int subclass; true/false are not byte values.
    if isinstance(item, bool) or not isinstance(item, int) or not 0 <= item <= 255:
        raise SerializationError(f"Invalid byte value: {item!r}")
    return item


def decode_bytes(text: Union[str, bytes]) -> bytes:
    """Decode a stored JSON value into bytes.

    Accepts an array of integers 0-255, or an object with keys "0".."n-1"
    as produced by ``JSON.stringify`` on a ``Uint8Array``.

    Raises:
        SerializationError: If the value has any other shape.
    """
    try:
        parsed = orjson.loads(text)
    except orjson.JSONDecodeError as err:
        raise SerializationError(f"Malformed JSON value: {err}") from err
    if isinstance(parsed, list):
        return bytes(_as_byte(item) for item in parsed)
    if isinstance(parsed, dict):
        expected = [str(i) for i in range(len(parsed))]
        if sorted(parsed, key=lambda k: (len(k), k)) != expected:
            raise SerializationError(
                "Indexed byte object must have keys '0'..'n-1'"
            )
        return bytes(_as_byte(parsed[k]) for k in expected)
    raise SerializationError(
        f"Expected a JSON array of bytes, got {type(parsed).__name__}"
    )


def _check_key(key: str) -> None:
    if not isinstance(key, str):
        raise SerializationError(
            f"Plain store key must be a string, got {type(key).__name__}"
        )
    try:
        key.encode("utf-8")
    except UnicodeEncodeError as err:
        raise SerializationError(f"Plain store key is not valid UTF-8: {err}") from err


class PlainStore:
    """Plain byte storage: ``save_raw`` / ``load_raw`` over a JSON file."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @classmethod
    def from_config(cls, config) -> "PlainStore":
        return cls(config.raw_path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict:
        try:
            content = self._path.read_bytes()
        except FileNotFoundError:
            return {}
        except OSError as err:
            raise StorageError(f"Cannot read {self._path}: {err}") from err
        if not content.strip():
            return {}
        try:
            data = orjson.loads(content)
        except orjson.JSONDecodeError as err:
            raise SerializationError(
                f"Plain store {self._path} is not valid JSON: {err}"
            ) from err
        if not isinstance(data, dict):
            raise SerializationError(
                f"Plain store {self._path} must hold a JSON object"
            )
        return data

    def _write(self, data: dict) -> None:
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(orjson.dumps(data))
            os.replace(tmp, self._path)
        except OSError as err:
            raise StorageError(f"Cannot write {self._path}: {err}") from err

    def save_raw(self, key: str, value: Iterable[int]) -> None:
        """Store ``value`` under ``key`` as a JSON byte array."""
        _check_key(key)
        data = self._read()
        data[key] = encode_bytes(value)
        self._write(data)
        logger.debug("Plain save: key=%s", key)

    def load_raw(self, key: str) -> bytes:
        """Return the bytes stored under ``key``.

        Raises:
            NotFoundError: If ``key`` is absent.
            SerializationError: If the stored value is malformed.
        """
        _check_key(key)
        data = self._read()
        try:
            value = data[key]
        except KeyError:
            raise NotFoundError(key) from None
        if not isinstance(value, str):
            raise SerializationError(f"Stored value for {key!r} is not a string")
        return decode_bytes(value)

    def delete_raw(self, key: str) -> None:
        _check_key(key)
        data = self._read()
        if data.pop(key, None) is None:
            raise NotFoundError(key)
        self._write(data)

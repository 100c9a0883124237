"""
Encrypted persistence adapter for state-store middlewares.

Wraps a durable text key-value store (anything behaving like
``MutableMapping[str, str]``) so that every value is JSON-serialized with
orjson and passed through the ``SecretStore`` before it is written.

``get_item`` / ``set_item`` use the synchronous XOR path for hooks that
cannot suspend; ``aget_item`` / ``aset_item`` use the AEAD path.
"""
import base64
import logging
from collections.abc import MutableMapping
from typing import Any

import orjson

from .conf import LOGGER_NAME
from .cipher import SecretStore

logger = logging.getLogger(f"{LOGGER_NAME}.persist")

_BYTES_WRAPPER_KEY = "__guard_bytes_b64__"


def serialize_value(value: Any) -> str:
    """Serialize a Python value to JSON text.

    bytes values are wrapped as {"__guard_bytes_b64__": "<base64>"} for a
    safe JSON round-trip.
    """
    if isinstance(value, bytes):
        value = {_BYTES_WRAPPER_KEY: base64.b64encode(value).decode("ascii")}
    return orjson.dumps(value).decode("utf-8")


def deserialize_value(data: str) -> Any:
    parsed = orjson.loads(data)
    if isinstance(parsed, dict) and _BYTES_WRAPPER_KEY in parsed and len(parsed) == 1:
        return base64.b64decode(parsed[_BYTES_WRAPPER_KEY])
    return parsed


class EncryptedStorage:
    """Durable storage whose values are encrypted at rest."""

    def __init__(self, backend: MutableMapping, store: SecretStore):
        self._backend = backend
        self._store = store

    @property
    def backend(self) -> MutableMapping:
        return self._backend

    def _restore(self, name: str, plaintext: str) -> Any:
        if not plaintext:
            # empty decrypt result means the value is unavailable
            return None
        try:
            return deserialize_value(plaintext)
        except orjson.JSONDecodeError:
            logger.warning("Stored value %r is not valid JSON, ignoring", name)
            return None

    def get_item(self, name: str) -> Any:
        """Return the stored value, or None when missing or unreadable."""
        blob = self._backend.get(name)
        if blob is None:
            return None
        return self._restore(name, self._store.decrypt_sync(blob))

    def set_item(self, name: str, value: Any) -> None:
        self._backend[name] = self._store.encrypt_sync(serialize_value(value))

    def remove_item(self, name: str) -> None:
        self._backend.pop(name, None)

    async def aget_item(self, name: str) -> Any:
        blob = self._backend.get(name)
        if blob is None:
            return None
        return self._restore(name, await self._store.decrypt(blob))

    async def aset_item(self, name: str, value: Any) -> None:
        self._backend[name] = await self._store.encrypt(serialize_value(value))

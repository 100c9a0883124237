"""
Key Manager — session-scoped key lifecycle for every cipher scheme.

Each scheme keeps its own 256-bit key in session storage as base64 text:
- lookup: stored representation is decoded and returned as key material
- miss: fresh key is generated, stored, then returned

Creation is serialized by a lock so concurrent first use ends up with a
single key per scheme. Key material is re-read from storage on every call
and never cached elsewhere.

Security Note:
    Never log key material. Only log schemes and storage names.
"""
import logging
import threading
from enum import Enum
from typing import Optional

from ..conf import LOGGER_NAME
from ..exceptions import DecodeFailure, KeyUnavailable
from ..storage import SessionStorage
from .crypto import KEY_LENGTH, b64decode, b64encode, generate_key

logger = logging.getLogger(f"{LOGGER_NAME}.cipher")


class KeyScheme(str, Enum):
    """Key spaces handled by the KeyManager."""

    AEAD = "aead"  # SessionKey
    XOR = "xor"  # SimpleKey


class KeyManager:
    """Lookup-or-create key material for each scheme."""

    def __init__(self, storage: SessionStorage, names: dict[KeyScheme, str]):
        missing = set(KeyScheme) - set(names)
        if missing:
            raise ValueError(
                f"No storage name for scheme(s): {sorted(s.value for s in missing)}"
            )
        if len(set(names.values())) != len(names):
            raise ValueError("Each key scheme needs its own storage name")
        self._storage = storage
        self._names = dict(names)
        self._lock = threading.Lock()

    def storage_name(self, scheme: KeyScheme) -> str:
        return self._names[scheme]

    def _load(self, scheme: KeyScheme) -> Optional[bytes]:
        name = self._names[scheme]
        try:
            stored = self._storage.get(name)
        except Exception as err:
            raise KeyUnavailable(f"Session storage read failed: {err}") from err
        if stored is None:
            return None
        try:
            key = b64decode(stored)
        except DecodeFailure as err:
            raise KeyUnavailable(
                f"Stored {scheme.value} key under {name!r} is not valid base64"
            ) from err
        if len(key) != KEY_LENGTH:
            raise KeyUnavailable(
                f"Stored {scheme.value} key under {name!r} must be "
                f"{KEY_LENGTH} bytes, got {len(key)}"
            )
        return key

    def get_or_create(self, scheme: KeyScheme) -> bytes:
        """Return the session key for scheme, creating it on first use.

        Args:
            scheme: Which key space to resolve.

        Returns:
            Raw 32-byte key.

        Raises:
            KeyUnavailable: If storage is unusable or holds a corrupt key.
        """
        key = self._load(scheme)
        if key is not None:
            return key
        with self._lock:
            # another caller may have won the race while we waited
            key = self._load(scheme)
            if key is not None:
                return key
            key = generate_key()
            name = self._names[scheme]
            try:
                self._storage.set(name, b64encode(key))
            except Exception as err:
                raise KeyUnavailable(
                    f"Session storage write failed: {err}"
                ) from err
            logger.debug("Created %s session key under %r", scheme.value, name)
            return key

    def forget(self, scheme: KeyScheme) -> None:
        """Remove the stored key; the next call generates a new one.

        Values encrypted under the forgotten key can no longer be decrypted.
        """
        with self._lock:
            self._storage.remove(self._names[scheme])
        logger.info("Forgot %s session key", scheme.value)

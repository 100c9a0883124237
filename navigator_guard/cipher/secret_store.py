"""
SecretStore — protects text values before they reach durable local storage.

Provides the public API of the cipher:
- ``encrypt(text)`` / ``decrypt(blob)`` — authenticated AEAD path (coroutines)
- ``encrypt_sync(text)`` / ``decrypt_sync(blob)`` — XOR obfuscation path for
  synchronous persistence hooks
- ``forget_keys()`` — drop session keys at session end

Both paths fail open by default: when key material or the primitive is not
usable, values are written with the ``plain`` scheme and unreadable blobs
decrypt to an empty string. Callers must treat an empty result as
"value unavailable". Set ``CipherConfig.fail_open = False`` to get
``KeyUnavailable`` / ``DecodeFailure`` raised instead.

Security Note:
    Never log plaintext or ciphertext values. The XOR path is obfuscation
    only and must not be relied on against anyone who can read the code.
"""
import logging
from typing import Optional

from ..conf import LOGGER_NAME
from ..exceptions import DecodeFailure, KeyUnavailable
from ..storage import MemorySessionStorage, SessionStorage
from .config import CipherConfig
from .crypto import (
    Scheme,
    aead_decrypt,
    aead_encrypt,
    b64decode,
    plain_decode,
    plain_encode,
    seal,
    split_blob,
    xor_transform,
)
from .keys import KeyManager, KeyScheme

logger = logging.getLogger(f"{LOGGER_NAME}.cipher")


class SecretStore:
    """Session-scoped cipher for values persisted to local storage.

    Construct one instance per session and pass it to every caller; the
    instance owns the key manager and the degraded-mode flag.
    """

    def __init__(
        self,
        storage: Optional[SessionStorage] = None,
        config: Optional[CipherConfig] = None,
    ):
        self._config = config or CipherConfig()
        self._storage = storage if storage is not None else MemorySessionStorage()
        self._keys = KeyManager(
            self._storage,
            {
                KeyScheme.AEAD: self._config.aead_key_name,
                KeyScheme.XOR: self._config.xor_key_name,
            },
        )
        self._degraded = False

    @property
    def config(self) -> CipherConfig:
        return self._config

    @property
    def keys(self) -> KeyManager:
        return self._keys

    @property
    def degraded(self) -> bool:
        """True once any value has been written unencrypted."""
        return self._degraded

    @staticmethod
    def is_encrypted(blob: str) -> bool:
        """Whether blob carries a real (aead/xor) scheme tag."""
        try:
            scheme, _ = split_blob(blob)
        except DecodeFailure:
            return False
        return scheme in (Scheme.AEAD, Scheme.XOR)

    # ------------------------------------------------------------------
    # Failure policy
    # ------------------------------------------------------------------

    def _encrypt_failed(self, text: str, err: Exception, operation: str) -> str:
        if not self._config.fail_open:
            if isinstance(err, KeyUnavailable):
                raise err
            raise KeyUnavailable(f"{operation} failed: {err}") from err
        logger.warning(
            "%s failed (%s), storing value with plain encoding",
            operation, type(err).__name__,
        )
        self._degraded = True
        return plain_encode(text)

    def _decrypt_failed(self, err: Exception, operation: str) -> str:
        if not self._config.fail_open:
            if isinstance(err, DecodeFailure):
                raise err
            raise DecodeFailure(f"{operation} failed: {err}") from err
        logger.warning(
            "%s failed (%s), value unavailable", operation, type(err).__name__,
        )
        return ""

    # ------------------------------------------------------------------
    # Authenticated path
    # ------------------------------------------------------------------

    def _aead_open(self, body: str) -> str:
        key = self._keys.get_or_create(KeyScheme.AEAD)
        data = aead_decrypt(b64decode(body), key, self._config.backend)
        return data.decode("utf-8")

    async def encrypt(self, plaintext: str) -> str:
        """Encrypt text with the session AEAD key.

        Args:
            plaintext: Arbitrary text, empty string included.

        Returns:
            ``aead:<base64(nonce|ciphertext|tag)>``, or a ``plain:`` blob
            when running fail-open and the key is unavailable.
        """
        if not isinstance(plaintext, str):
            raise TypeError(f"Expected str, got {type(plaintext).__name__}")
        try:
            key = self._keys.get_or_create(KeyScheme.AEAD)
            payload = aead_encrypt(
                plaintext.encode("utf-8"), key, self._config.backend,
            )
        except Exception as err:
            return self._encrypt_failed(plaintext, err, "encrypt")
        return seal(Scheme.AEAD, payload)

    async def decrypt(self, blob: str) -> str:
        """Decrypt a blob produced by ``encrypt``.

        Untagged blobs from older writers are probed: AEAD first, then
        plain base64.

        Returns:
            Original plaintext, or ``""`` when the value is unavailable.
        """
        try:
            scheme, body = split_blob(blob)
            if scheme is Scheme.AEAD:
                return self._aead_open(body)
            if scheme is Scheme.PLAIN:
                return plain_decode(body)
            if scheme is None:
                return self._probe_legacy(body, self._aead_open)
            raise DecodeFailure(
                f"{scheme.value} blobs are not readable by decrypt()"
            )
        except Exception as err:
            return self._decrypt_failed(err, "decrypt")

    # ------------------------------------------------------------------
    # Synchronous obfuscation path
    # ------------------------------------------------------------------

    def _xor_open(self, body: str) -> str:
        key = self._keys.get_or_create(KeyScheme.XOR)
        return xor_transform(b64decode(body), key).decode("utf-8")

    def encrypt_sync(self, plaintext: str) -> str:
        """Obfuscate text with the session XOR key, without suspending.

        Returns:
            ``xor:<base64>``, or a ``plain:`` blob when running fail-open
            and the key is unavailable.
        """
        if not isinstance(plaintext, str):
            raise TypeError(f"Expected str, got {type(plaintext).__name__}")
        try:
            key = self._keys.get_or_create(KeyScheme.XOR)
            payload = xor_transform(plaintext.encode("utf-8"), key)
        except Exception as err:
            return self._encrypt_failed(plaintext, err, "encrypt_sync")
        return seal(Scheme.XOR, payload)

    def decrypt_sync(self, blob: str) -> str:
        """Reverse ``encrypt_sync``.

        Returns:
            Original plaintext, or ``""`` when the value is unavailable.
        """
        try:
            scheme, body = split_blob(blob)
            if scheme is Scheme.XOR:
                return self._xor_open(body)
            if scheme is Scheme.PLAIN:
                return plain_decode(body)
            if scheme is None:
                return self._probe_legacy(body, self._xor_open)
            raise DecodeFailure(
                f"{scheme.value} blobs are not readable by decrypt_sync()"
            )
        except Exception as err:
            return self._decrypt_failed(err, "decrypt_sync")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _probe_legacy(body: str, opener) -> str:
        try:
            return opener(body)
        except Exception as err:
            logger.debug(
                "Untagged blob did not open (%s), trying plain decode",
                type(err).__name__,
            )
        return plain_decode(body)

    def forget_keys(self) -> None:
        """Drop both session keys; previously written values become unreadable."""
        for scheme in KeyScheme:
            self._keys.forget(scheme)

"""
Cipher Crypto Core — primitives, text encoding and envelope tagging.

Two independent transforms are provided:
- AEAD: AES-GCM (or ChaCha20-Poly1305) → [nonce 12B][ciphertext + tag 16B]
- XOR: repeating 256-bit keystream, same operation both ways (obfuscation only)

Every blob leaving this module is tagged as ``<scheme>:<base64>`` so that
decryption can pick the right path without probing.

Security Note:
    Never log plaintext or ciphertext values.
    Nonces are random 96-bit; collision probability negligible under normal usage.
"""
import os
import base64
import binascii
from enum import Enum
from itertools import cycle
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from ..exceptions import DecodeFailure

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # 128-bit authentication tag
KEY_LENGTH = 32  # 256-bit keys for both schemes

SCHEME_SEPARATOR = ":"


class Scheme(str, Enum):
    """Envelope scheme identifiers."""

    AEAD = "aead"
    XOR = "xor"
    PLAIN = "plain"


_CIPHERS = {
    "aesgcm": AESGCM,
    "chacha20": ChaCha20Poly1305,
}


def get_cipher_cls(backend: str = "aesgcm") -> type:
    """Return the AEAD cipher class for a backend name."""
    try:
        return _CIPHERS[backend.lower()]
    except KeyError:
        raise ValueError(f"Unsupported cipher backend: {backend}") from None


def generate_key() -> bytes:
    """Generate fresh 256-bit key material."""
    return os.urandom(KEY_LENGTH)


# ---------------------------------------------------------------------------
# Text encoding
# ---------------------------------------------------------------------------

def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64decode(text: str) -> bytes:
    """Strict base64 decode.

    Raises:
        DecodeFailure: If text is not valid padded base64.
    """
    try:
        return base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError, ValueError) as err:
        raise DecodeFailure(f"Invalid base64 payload: {err}") from err


# ---------------------------------------------------------------------------
# AEAD (authenticated path)
# ---------------------------------------------------------------------------

def aead_encrypt(plaintext: bytes, key: bytes, backend: str = "aesgcm") -> bytes:
    """Encrypt plaintext under key with a fresh random nonce.

    Format: [nonce 12B][encrypted_payload + tag 16B]

    Args:
        plaintext: Data to encrypt.
        key: Raw 32-byte key.
        backend: ``aesgcm`` or ``chacha20``.

    Returns:
        Raw envelope bytes.
    """
    cipher = get_cipher_cls(backend)(key)
    nonce = os.urandom(NONCE_SIZE)
    return nonce + cipher.encrypt(nonce, plaintext, None)


def aead_decrypt(envelope: bytes, key: bytes, backend: str = "aesgcm") -> bytes:
    """Decrypt a raw AEAD envelope.

    Args:
        envelope: Bytes in format [nonce 12B][payload+tag].
        key: Raw 32-byte key.
        backend: ``aesgcm`` or ``chacha20``.

    Returns:
        Decrypted plaintext bytes.

    Raises:
        DecodeFailure: If the envelope is truncated, tampered or was
            produced under another key.
    """
    _min = NONCE_SIZE + TAG_SIZE
    if len(envelope) < _min:
        raise DecodeFailure(
            f"envelope too short: {len(envelope)} bytes (minimum {_min})"
        )
    cipher = get_cipher_cls(backend)(key)
    nonce = envelope[:NONCE_SIZE]
    ct = envelope[NONCE_SIZE:]
    try:
        return cipher.decrypt(nonce, ct, None)
    except InvalidTag as err:
        raise DecodeFailure("Authentication tag mismatch") from err


# ---------------------------------------------------------------------------
# XOR keystream (synchronous obfuscation path)
# ---------------------------------------------------------------------------

def xor_transform(data: bytes, key: bytes) -> bytes:
    """XOR data with the key repeated as a keystream.

    The same call both obfuscates and restores a value.
    """
    if not key:
        raise ValueError("XOR key must not be empty")
    return bytes(b ^ k for b, k in zip(data, cycle(key)))


# ---------------------------------------------------------------------------
# Envelope tagging
# ---------------------------------------------------------------------------

def seal(scheme: Scheme, payload: bytes) -> str:
    """Render payload as a tagged, printable blob."""
    return f"{scheme.value}{SCHEME_SEPARATOR}{b64encode(payload)}"


def split_blob(blob: str) -> tuple[Optional[Scheme], str]:
    """Split a blob into (scheme, base64 text).

    Untagged (legacy) blobs return ``None`` as scheme. Base64 text never
    contains the separator so the split is unambiguous.

    Raises:
        DecodeFailure: If the blob carries an unknown scheme tag.
    """
    if not isinstance(blob, str):
        raise DecodeFailure(f"Expected text blob, got {type(blob).__name__}")
    tag, sep, body = blob.partition(SCHEME_SEPARATOR)
    if not sep:
        return None, blob
    try:
        return Scheme(tag), body
    except ValueError:
        raise DecodeFailure(f"Unknown envelope scheme: {tag!r}") from None


def plain_encode(text: str) -> str:
    """Reversible, unencrypted fallback encoding."""
    return seal(Scheme.PLAIN, text.encode("utf-8"))


def plain_decode(body: str) -> str:
    """Decode a plain-fallback (or legacy base64) payload.

    Raises:
        DecodeFailure: If body is not base64 of UTF-8 text.
    """
    raw = b64decode(body)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as err:
        raise DecodeFailure("Payload is not UTF-8 text") from err

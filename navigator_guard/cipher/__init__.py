"""Cipher — session-scoped protection of values written to local storage.

Security Note (Threat Model):
    Keys live in ephemeral session storage next to the process that uses
    them. Anyone able to read that storage can decrypt every value written
    during the session. The XOR path is obfuscation, not confidentiality.
"""

from .config import CipherConfig
from .crypto import Scheme
from .keys import KeyManager, KeyScheme
from .secret_store import SecretStore

__all__ = [
    "CipherConfig",
    "KeyManager",
    "KeyScheme",
    "Scheme",
    "SecretStore",
]

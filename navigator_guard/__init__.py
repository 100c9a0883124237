"""Navigator Guard.

Client-resident protection layer: a session-scoped cipher for values
written to local storage, and a fixed-window request throttle.
"""
from .version import __version__
from .exceptions import (
    GuardError,
    KeyUnavailable,
    DecodeFailure,
    ThrottleRejected,
)
from .storage import SessionStorage, MemorySessionStorage
from .cipher import CipherConfig, SecretStore
from .persist import EncryptedStorage
from .throttle import Throttle, ThrottlePolicy, setup_throttle

__all__ = [
    "__version__",
    "GuardError",
    "KeyUnavailable",
    "DecodeFailure",
    "ThrottleRejected",
    "SessionStorage",
    "MemorySessionStorage",
    "CipherConfig",
    "SecretStore",
    "EncryptedStorage",
    "Throttle",
    "ThrottlePolicy",
    "setup_throttle",
]

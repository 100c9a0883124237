"""
Navigator Guard defaults.

Values here are read once at import time from the environment and used as
defaults by ``CipherConfig`` and ``ThrottlePolicy``.
"""
import os

ENV_PREFIX = "GUARD_"

# Lookup names of the two key representations in session storage.
AEAD_KEY_NAME = os.environ.get(
    f"{ENV_PREFIX}AEAD_KEY_NAME", "navigator-guard.aead-key"
)
XOR_KEY_NAME = os.environ.get(
    f"{ENV_PREFIX}XOR_KEY_NAME", "navigator-guard.xor-key"
)

CIPHER_BACKEND = os.environ.get(f"{ENV_PREFIX}CIPHER_BACKEND", "aesgcm")

# Throttle defaults: 20 requests per 60s window, swept every 5 minutes.
RATE_LIMIT = 20
RATE_WINDOW = 60.0
RATE_HOURLY_LIMIT = 100
RATE_SWEEP_INTERVAL = 300.0

LOGGER_NAME = "navigator.guard"


def env_flag(name: str, default: bool) -> bool:
    """Parse a boolean-like environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")

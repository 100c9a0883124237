"""
Navigator Guard exceptions.

``KeyUnavailable`` and ``DecodeFailure`` are recovered inside the cipher
when it runs fail-open; they only reach callers in fail-loud mode.
``ThrottleRejected`` is raised by ``Throttle.enforce`` so HTTP layers can
turn it into a 429 response.
"""
from typing import Optional


class GuardError(Exception):
    """Base error for navigator-guard failures."""


class KeyUnavailable(GuardError):
    """Key material or the cryptographic primitive cannot be used."""


class DecodeFailure(GuardError, ValueError):
    """Blob is malformed, truncated, tampered or from another key."""


class ThrottleRejected(GuardError):
    """Identifier exceeded its request ceiling for the current window."""

    def __init__(self, identifier: str, retry_after: Optional[int] = None):
        self.identifier = identifier
        self.retry_after = retry_after
        super().__init__(
            f"Rate limit exceeded, retry after {retry_after}s"
        )

"""Throttle — fixed-window abuse prevention for write-like endpoints."""

from .limiter import RateLimitEntry, Throttle, ThrottleDecision
from .middleware import client_identifier, setup_throttle, throttle_middleware
from .policy import ThrottlePolicy

__all__ = [
    "RateLimitEntry",
    "Throttle",
    "ThrottleDecision",
    "ThrottlePolicy",
    "client_identifier",
    "setup_throttle",
    "throttle_middleware",
]

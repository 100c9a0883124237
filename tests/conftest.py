"""Shared fixtures for navigator-guard tests."""
from unittest.mock import Mock

import pytest

from navigator_guard.cipher import CipherConfig, SecretStore
from navigator_guard.storage import MemorySessionStorage
from navigator_guard.throttle import Throttle, ThrottlePolicy


@pytest.fixture
def storage():
    """Fresh ephemeral session storage."""
    return MemorySessionStorage()


@pytest.fixture
def store(storage):
    """SecretStore bound to the ``storage`` fixture."""
    return SecretStore(storage)


@pytest.fixture
def strict_store(storage):
    """SecretStore running fail-loud."""
    return SecretStore(storage, CipherConfig(fail_open=False))


@pytest.fixture
def clock():
    """Controllable clock starting at t=1000s."""
    return Mock(return_value=1000.0)


@pytest.fixture
def throttle(clock):
    """Throttle with ceiling 3 per 60s window."""
    return Throttle(ThrottlePolicy(limit=3, window_seconds=60), clock=clock)

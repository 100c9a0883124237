"""Tests for the fixed-window Throttle."""
import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest
from pydantic import ValidationError

from navigator_guard.exceptions import ThrottleRejected
from navigator_guard.throttle import Throttle, ThrottlePolicy


class TestAllow:
    """Tests for allow()."""

    def test_ceiling_then_reset(self, throttle, clock):
        """Test [T, T, T, F] in one window, then T after it elapses."""
        assert [throttle.allow("x") for _ in range(4)] == [True, True, True, False]

        clock.return_value = 1060.0
        assert throttle.allow("x") is True
        assert throttle.entry("x").count == 1

    def test_rejection_does_not_mutate(self, throttle):
        """Test rejected calls leave the counter untouched."""
        for _ in range(3):
            throttle.allow("x")
        before = throttle.entry("x")
        assert throttle.allow("x") is False
        assert throttle.entry("x") == before

    def test_identifiers_are_isolated(self, throttle):
        """Test x and y never affect each other's counts."""
        for _ in range(3):
            throttle.allow("x")
        assert throttle.allow("x") is False
        assert throttle.allow("y") is True
        assert throttle.entry("y").count == 1
        assert throttle.entry("x").count == 3

    def test_reset_time_strictly_increases(self, throttle, clock):
        """Test each rollover moves the reset time forward."""
        throttle.allow("x")
        first = throttle.entry("x").reset_at
        clock.return_value = first
        throttle.allow("x")
        second = throttle.entry("x").reset_at
        assert second > first
        assert second == first + 60

    def test_expired_entry_treated_as_absent(self, throttle, clock):
        """Test an expired window is invisible before any sweep."""
        throttle.allow("x")
        clock.return_value = 1061.0
        assert throttle.entry("x") is None
        assert "x" in throttle  # not physically evicted yet

    def test_default_policy(self):
        """Test the default policy admits 20 per minute."""
        throttle = Throttle(clock=Mock(return_value=0.0))
        results = [throttle.allow("ip") for _ in range(21)]
        assert results.count(True) == 20
        assert results[-1] is False

    def test_empty_identifier(self, throttle):
        with pytest.raises(ValueError):
            throttle.allow("")


class TestDecision:
    """Tests for check() and enforce()."""

    def test_metadata(self, throttle):
        decision = throttle.check("x")
        assert decision.allowed is True
        assert decision.limit == 3
        assert decision.remaining == 2
        assert decision.reset_at == 1060.0
        assert decision.retry_after is None

    def test_blocked_retry_after(self, throttle, clock):
        for _ in range(3):
            throttle.check("x")
        clock.return_value = 1030.5
        decision = throttle.check("x")
        assert decision.allowed is False
        assert decision.remaining == 0
        assert decision.retry_after == 30

    def test_enforce_raises(self, throttle):
        for _ in range(3):
            throttle.enforce("x")
        with pytest.raises(ThrottleRejected) as exc:
            throttle.enforce("x")
        assert exc.value.identifier == "x"
        assert exc.value.retry_after == 60


class TestSweep:
    """Tests for sweep()."""

    def test_only_expired_entries_removed(self, throttle, clock):
        """Test sweep keeps live windows and drops elapsed ones."""
        throttle.allow("old")
        clock.return_value = 1030.0
        throttle.allow("new")

        clock.return_value = 1059.0
        assert throttle.sweep() == 0
        assert len(throttle) == 2

        clock.return_value = 1060.0
        assert throttle.sweep() == 1
        assert "old" not in throttle
        assert "new" in throttle

    def test_after_sweep_behaves_like_new(self, throttle, clock):
        """Test a swept identifier starts from a fresh window."""
        for _ in range(3):
            throttle.allow("x")
        clock.return_value = 2000.0
        throttle.sweep()
        assert [throttle.allow("x") for _ in range(4)] == [True, True, True, False]
        assert throttle.entry("x").reset_at == 2060.0

    def test_reset_forgets_everything(self, throttle):
        for _ in range(3):
            throttle.allow("x")
        throttle.reset()
        assert len(throttle) == 0
        assert throttle.allow("x") is True

    def test_sweep_concurrent_with_allow(self):
        """Test sweeping while admitting never loses the ceiling."""
        clock = Mock(return_value=0.0)
        throttle = Throttle(ThrottlePolicy(limit=50, window_seconds=60), clock=clock)
        stop = threading.Event()

        def sweeper():
            while not stop.is_set():
                throttle.sweep()

        thread = threading.Thread(target=sweeper)
        thread.start()
        try:
            with ThreadPoolExecutor(max_workers=8) as pool:
                results = list(pool.map(lambda _: throttle.allow("x"), range(200)))
        finally:
            stop.set()
            thread.join()
        assert results.count(True) == 50


class TestConcurrentAdmission:
    """Tests for N simultaneous calls on one identifier."""

    @pytest.mark.parametrize("ceiling", [1, 5, 20])
    def test_at_most_ceiling_admitted(self, ceiling):
        throttle = Throttle(
            ThrottlePolicy(limit=ceiling, window_seconds=60),
            clock=Mock(return_value=0.0),
        )
        barrier = threading.Barrier(32)

        def call(_):
            barrier.wait()
            return throttle.allow("shared")

        with ThreadPoolExecutor(max_workers=32) as pool:
            results = list(pool.map(call, range(32)))
        assert results.count(True) == ceiling


class TestHourlyTier:
    """Tests for the optional hourly ceiling."""

    def test_inactive_by_default(self, clock):
        """Test the hourly ceiling is not enforced unless enabled."""
        throttle = Throttle(
            ThrottlePolicy(limit=2, window_seconds=60, hourly_limit=3),
            clock=clock,
        )
        admitted = 0
        for minute in range(5):
            clock.return_value = 1000.0 + minute * 60
            admitted += sum(throttle.allow("x") for _ in range(2))
        assert admitted == 10

    def test_enforced(self, clock):
        """Test the hourly ceiling caps admissions across windows."""
        throttle = Throttle(
            ThrottlePolicy(
                limit=2, window_seconds=60, hourly_limit=3, hourly_enforced=True,
            ),
            clock=clock,
        )
        assert [throttle.allow("x") for _ in range(2)] == [True, True]
        clock.return_value = 1060.0
        assert [throttle.allow("x") for _ in range(2)] == [True, False]
        decision = throttle.check("x")
        assert decision.reset_at == 1000.0 + 3600

        clock.return_value = 1000.0 + 3600
        assert throttle.allow("x") is True

    def test_swept_only_when_hour_elapsed(self, clock):
        throttle = Throttle(
            ThrottlePolicy(limit=2, window_seconds=60, hourly_enforced=True),
            clock=clock,
        )
        throttle.allow("x")
        clock.return_value = 1100.0
        assert throttle.sweep() == 0
        clock.return_value = 1000.0 + 3600
        assert throttle.sweep() == 1


class TestPolicy:
    """Tests for ThrottlePolicy validation."""

    def test_defaults(self):
        policy = ThrottlePolicy()
        assert policy.limit == 20
        assert policy.window_seconds == 60
        assert policy.hourly_limit == 100
        assert policy.hourly_enforced is False
        assert policy.sweep_interval == 300

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"limit": 0},
            {"window_seconds": 0},
            {"limit": 10, "hourly_limit": 5, "hourly_enforced": True},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValidationError):
            ThrottlePolicy(**kwargs)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("GUARD_RATE_LIMIT", "5")
        monkeypatch.setenv("GUARD_RATE_WINDOW", "10")
        monkeypatch.setenv("GUARD_RATE_HOURLY_ENFORCED", "yes")
        policy = ThrottlePolicy.from_env()
        assert policy.limit == 5
        assert policy.window_seconds == 10.0
        assert policy.hourly_enforced is True

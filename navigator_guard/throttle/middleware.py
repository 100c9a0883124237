"""
aiohttp integration for the Throttle.

``setup_throttle(app, throttle)`` installs a middleware that gates
write-like requests and a background task that sweeps expired entries
every ``policy.sweep_interval`` seconds while the application runs.
"""
import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Optional

from aiohttp import web

from ..conf import LOGGER_NAME
from .limiter import Throttle, ThrottleDecision

logger = logging.getLogger(f"{LOGGER_NAME}.throttle")

THROTTLE_KEY = web.AppKey("navigator_guard.throttle", Throttle)

WRITE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

Identify = Callable[[web.Request], str]
Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def client_identifier(request: web.Request) -> str:
    """Best-effort caller identifier (client address)."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return request.remote or "unknown"


def _rate_limit_headers(decision: ThrottleDecision) -> dict[str, str]:
    headers = {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(int(decision.reset_at)),
    }
    if decision.retry_after is not None:
        headers["Retry-After"] = str(decision.retry_after)
    return headers


def throttle_middleware(
    throttle: Throttle,
    identify: Identify = client_identifier,
    methods: Optional[Iterable[str]] = None,
):
    """Build a middleware admitting requests through ``throttle``.

    Args:
        throttle: Shared Throttle instance.
        identify: Callable extracting the caller identifier from a request.
        methods: HTTP methods to gate (defaults to write-like methods).

    Returns:
        aiohttp middleware; rejected requests get a 429 response.
    """
    gated = frozenset(m.upper() for m in (methods or WRITE_METHODS))

    @web.middleware
    async def _throttle(request: web.Request, handler: Handler) -> web.StreamResponse:
        if request.method not in gated:
            return await handler(request)
        decision = throttle.check(identify(request))
        if not decision.allowed:
            raise web.HTTPTooManyRequests(
                text="Rate limit exceeded. Try again later.",
                headers=_rate_limit_headers(decision),
            )
        response = await handler(request)
        if not response.prepared:
            response.headers.update(_rate_limit_headers(decision))
        return response

    return _throttle


async def _sweep_forever(throttle: Throttle, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            throttle.sweep()
        except Exception as err:
            logger.error("Throttle sweep failed: %s", err)


def setup_throttle(
    app: web.Application,
    throttle: Throttle,
    identify: Identify = client_identifier,
    methods: Optional[Iterable[str]] = None,
) -> None:
    """Register the throttle middleware and its periodic sweep on ``app``."""
    app[THROTTLE_KEY] = throttle
    app.middlewares.append(throttle_middleware(throttle, identify, methods))

    async def _sweeper(app: web.Application):
        task = asyncio.create_task(
            _sweep_forever(app[THROTTLE_KEY], throttle.policy.sweep_interval)
        )
        yield
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    app.cleanup_ctx.append(_sweeper)

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_none,
)

from ..core.models import LookupResult

log = structlog.get_logger()

MAX_ATTEMPTS = 10

# Failures worth another attempt: transport/status errors and unparseable payloads
RETRYABLE_ERRORS = (httpx.HTTPError, ValueError)


def get_client(
    email: str | None = None,
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Create an httpx AsyncClient with sensible defaults.

    Args:
        email: Optional email for polite user agent
        timeout: Request timeout in seconds (default: 30)
        transport: Optional transport override (tests pass an httpx.MockTransport)

    Returns:
        Configured httpx.AsyncClient
    """
    headers = {
        "User-Agent": (
            f"scrnatools_db/1.0 (mailto:{email})" if email else "scrnatools_db/1.0"
        )
    }

    limits = httpx.Limits(
        max_keepalive_connections=10,
        max_connections=20,
        keepalive_expiry=30.0,
    )

    if transport is not None:
        return httpx.AsyncClient(
            headers=headers,
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    return httpx.AsyncClient(
        http2=True,
        headers=headers,
        timeout=timeout,
        limits=limits,
        follow_redirects=True,
    )


def _log_failed_attempt(retry_state: RetryCallState, key: str, source: str) -> None:
    outcome = retry_state.outcome
    error = outcome.exception() if outcome is not None else None
    log.warning(
        "lookup_attempt_failed",
        key=key,
        source=source,
        attempt=retry_state.attempt_number,
        error=str(error),
        error_type=type(error).__name__,
    )


async def lookup_with_retry(
    key: str,
    source: str,
    fetch: Callable[[], Awaitable[dict[str, Any]]],
    max_attempts: int = MAX_ATTEMPTS,
    rate_limiter: "RateLimiter | None" = None,
) -> LookupResult:
    """
    Run a lookup with bounded retries and no backoff.

    Every failed attempt is logged. When all attempts fail the result is an
    explicit unresolved LookupResult with empty data.

    Args:
        key: DOI (or batch label) the lookup is for
        source: Name of the service, used in logs and on the result
        fetch: Zero-argument coroutine factory performing one attempt
        max_attempts: Attempt budget (default: 10)
        rate_limiter: Optional limiter acquired before every attempt
    """
    attempts = 0
    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_none(),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            after=lambda rs: _log_failed_attempt(rs, key, source),
        ):
            with attempt:
                attempts = attempt.retry_state.attempt_number
                if rate_limiter is not None:
                    await rate_limiter.acquire()
                data = await fetch()
    except RetryError as e:
        last = e.last_attempt.exception()
        log.error(
            "lookup_unresolved",
            key=key,
            source=source,
            attempts=attempts,
            error=str(last),
        )
        return LookupResult(
            key=key, source=source, resolved=False, attempts=attempts, error=str(last)
        )

    return LookupResult(key=key, source=source, resolved=True, attempts=attempts, data=data)


async def fetch_page(client: httpx.AsyncClient, url: str) -> str:
    """GET a page and return its text; any HTTP failure propagates."""
    resp = await client.get(url)
    resp.raise_for_status()
    log.info(
        "http_request_success",
        url=url,
        status=resp.status_code,
        content_length=len(resp.content) if resp.content else 0,
    )
    return resp.text


class RateLimiter:
    """Simple rate limiter enforcing a minimum interval between calls."""

    def __init__(self, calls_per_second: float = 1.0) -> None:
        self.min_interval = 1.0 / calls_per_second
        self.last_call = 0.0
        self._lock: asyncio.Lock | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def _ensure_lock(self) -> asyncio.Lock:
        """Lazily create the lock, recreating it when the event loop changes."""
        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            current_loop = None

        if self._lock is None or self._loop is not current_loop:
            self._lock = asyncio.Lock()
            self._loop = current_loop

        return self._lock

    async def acquire(self) -> None:
        """Wait until rate limit allows next call."""
        lock = self._ensure_lock()
        async with lock:
            loop = asyncio.get_running_loop()
            time_since_last = loop.time() - self.last_call

            if time_since_last < self.min_interval:
                wait_time = self.min_interval - time_since_last
                log.debug("rate_limit_wait", wait_time=wait_time)
                await asyncio.sleep(wait_time)

            self.last_call = loop.time()

"""HTTP transport shared by the provider clients.

Retry/backoff policy:

* transport errors (connect, read timeout, ...) and 5xx responses are retried
  up to ``HttpConfig.max_attempts`` attempts in total, sleeping
  ``backoff_base_seconds * 2**attempt`` between attempts, then surface as
  ``TransientProviderError``;
* a 429, or a 403 whose rate-limit metadata reports zero remaining quota,
  raises ``RateLimitExceeded`` at once, with the reported reset time;
* every other response (2xx, 3xx, other 4xx) is returned to the caller, which
  knows what a 404 means for its endpoint.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from kustomap.errors import ProviderRequestError, RateLimitExceeded, TransientProviderError
from kustomap.models.config import HttpConfig
from kustomap.observability.logging import get_logger

_log = get_logger("sources.http")

# Epoch seconds above this are absolute timestamps, below are deltas.
_EPOCH_THRESHOLD = 10_000_000


@dataclass(frozen=True)
class RateLimitHeaders:
    """Names of the response headers carrying quota metadata."""

    remaining: str
    reset: str


GITHUB_RATE_LIMIT = RateLimitHeaders(remaining="X-RateLimit-Remaining", reset="X-RateLimit-Reset")
GITLAB_RATE_LIMIT = RateLimitHeaders(remaining="RateLimit-Remaining", reset="RateLimit-Reset")


def _parse_reset(value: str | None, now: datetime) -> datetime | None:
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    if seconds > _EPOCH_THRESHOLD:
        return datetime.fromtimestamp(seconds, tz=UTC)
    return now + timedelta(seconds=max(0.0, seconds))


class ProviderHttpClient:
    """GET-only client for one provider with retry, backoff and quota checks.

    Args:
        provider:    Provider name used in errors and logs.
        config:      Timeout and retry policy.
        rate_limit:  Header names of the provider's quota metadata.
        headers:     Extra headers sent with every request (auth, Accept).
        client:      Optional shared ``httpx.AsyncClient``. When omitted the
                     instance creates and owns one.
        sleep:       Awaitable used for backoff delays.
    """

    def __init__(
        self,
        provider: str,
        config: HttpConfig,
        rate_limit: RateLimitHeaders,
        headers: Mapping[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._provider = provider
        self._config = config
        self._rate_limit = rate_limit
        self._headers = dict(headers or {})
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=True)
        self._timeout = httpx.Timeout(config.timeout_seconds)
        self._sleep = sleep

    @property
    def provider(self) -> str:
        return self._provider

    async def get(self, url: str, params: Mapping[str, str] | None = None) -> httpx.Response:
        """GET *url* under the retry policy.

        Raises:
            RateLimitExceeded: provider quota exhausted; never retried.
            TransientProviderError: every attempt failed with a transport
                error or a 5xx response.
        """
        attempts = max(1, self._config.max_attempts)
        last_error: TransientProviderError | None = None

        for attempt in range(attempts):
            try:
                response = await self._client.get(
                    url,
                    params=params,
                    headers=self._headers,
                    timeout=self._timeout,
                )
            except httpx.RequestError as exc:
                last_error = TransientProviderError(
                    f"{self._provider} request to {url} failed: {type(exc).__name__}: {exc}"
                )
                _log.warning(
                    "provider_request_error",
                    provider=self._provider,
                    url=url,
                    error=type(exc).__name__,
                    attempt=attempt + 1,
                    max_attempts=attempts,
                )
            else:
                self._check_rate_limit(response, url)
                if response.status_code < 500:
                    return response
                last_error = TransientProviderError(
                    f"{self._provider} returned HTTP {response.status_code} for {url}",
                    status_code=response.status_code,
                )
                _log.warning(
                    "provider_server_error",
                    provider=self._provider,
                    url=url,
                    status_code=response.status_code,
                    attempt=attempt + 1,
                    max_attempts=attempts,
                )

            if attempt < attempts - 1:
                delay = self._config.backoff_base_seconds * (2**attempt)
                _log.info("provider_request_retry", provider=self._provider, url=url, delay_seconds=delay)
                await self._sleep(delay)

        assert last_error is not None
        raise last_error

    async def get_json(self, url: str, params: Mapping[str, str] | None = None) -> Any:
        """GET *url* and decode a successful JSON body."""
        response = self.ensure_success(await self.get(url, params=params), url)
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderRequestError(
                f"{self._provider} returned invalid JSON for {url}",
                status_code=response.status_code,
            ) from exc

    def ensure_success(self, response: httpx.Response, url: str) -> httpx.Response:
        """Raise ``ProviderRequestError`` for any non-2xx response."""
        if response.is_success:
            return response
        raise ProviderRequestError(
            f"{self._provider} returned HTTP {response.status_code} for {url}: {response.text[:200]}",
            status_code=response.status_code,
        )

    def _check_rate_limit(self, response: httpx.Response, url: str) -> None:
        remaining = response.headers.get(self._rate_limit.remaining)
        exhausted = remaining is not None and remaining.strip() == "0"

        if response.status_code == 429 or (exhausted and response.status_code == 403):
            now = datetime.now(tz=UTC)
            reset_at = _parse_reset(response.headers.get(self._rate_limit.reset), now)
            if reset_at is None:
                reset_at = _parse_reset(response.headers.get("Retry-After"), now)
            _log.error(
                "rate_limit_exceeded",
                provider=self._provider,
                url=url,
                status_code=response.status_code,
                reset_at=reset_at.isoformat() if reset_at else None,
            )
            raise RateLimitExceeded(self._provider, reset_at=reset_at)

        if exhausted:
            _log.warning("rate_limit_quota_exhausted", provider=self._provider, url=url)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

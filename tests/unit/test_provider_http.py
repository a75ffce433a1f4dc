"""Tests for ProviderHttpClient retry, backoff and rate-limit handling."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import httpx
import pytest

from kustomap.errors import ProviderRequestError, RateLimitExceeded, TransientProviderError
from kustomap.models.config import HttpConfig
from kustomap.sources.http import GITHUB_RATE_LIMIT, GITLAB_RATE_LIMIT, ProviderHttpClient

_URL = "https://api.example.test/resource"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _Recorder:
    """MockTransport handler replaying canned responses in order."""

    def __init__(self, *outcomes: httpx.Response | Exception) -> None:
        self._outcomes = list(outcomes)
        self.calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        outcome = self._outcomes.pop(0) if len(self._outcomes) > 1 else self._outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome.status_code, headers=outcome.headers, content=outcome.content)


def _make_client(
    handler: _Recorder,
    max_attempts: int = 3,
    backoff: float = 0.0,
    delays: list[float] | None = None,
    rate_limit=GITHUB_RATE_LIMIT,
) -> ProviderHttpClient:
    async def sleep(seconds: float) -> None:
        if delays is not None:
            delays.append(seconds)

    return ProviderHttpClient(
        "github",
        HttpConfig(timeout_seconds=5.0, max_attempts=max_attempts, backoff_base_seconds=backoff),
        rate_limit=rate_limit,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        sleep=sleep,
    )


# ---------------------------------------------------------------------------
# Retry policy
# ---------------------------------------------------------------------------


class TestRetry:
    async def test_success_first_try(self) -> None:
        """A 200 is returned without retrying."""
        handler = _Recorder(httpx.Response(200, json={"ok": True}))
        client = _make_client(handler)
        response = await client.get(_URL)
        assert response.status_code == 200
        assert handler.calls == 1

    async def test_server_error_then_success(self) -> None:
        """A 502 followed by a 200 succeeds on the second attempt."""
        handler = _Recorder(httpx.Response(502), httpx.Response(200, text="ok"))
        client = _make_client(handler)
        response = await client.get(_URL)
        assert response.text == "ok"
        assert handler.calls == 2

    async def test_server_errors_exhaust_attempts(self) -> None:
        """Persistent 503s surface as TransientProviderError after max attempts."""
        handler = _Recorder(httpx.Response(503))
        client = _make_client(handler, max_attempts=3)
        with pytest.raises(TransientProviderError) as excinfo:
            await client.get(_URL)
        assert excinfo.value.status_code == 503
        assert handler.calls == 3

    async def test_transport_errors_are_retried(self) -> None:
        """Connection failures are transient and retried."""
        request = httpx.Request("GET", _URL)
        handler = _Recorder(httpx.ConnectError("refused", request=request), httpx.Response(200))
        client = _make_client(handler)
        response = await client.get(_URL)
        assert response.status_code == 200
        assert handler.calls == 2

    async def test_timeouts_exhaust_attempts(self) -> None:
        """Read timeouts count as transient failures."""
        request = httpx.Request("GET", _URL)
        handler = _Recorder(httpx.ReadTimeout("slow", request=request))
        client = _make_client(handler, max_attempts=2)
        with pytest.raises(TransientProviderError) as excinfo:
            await client.get(_URL)
        assert excinfo.value.status_code is None
        assert handler.calls == 2

    async def test_exponential_backoff(self) -> None:
        """Delays double between attempts and no sleep follows the last one."""
        delays: list[float] = []
        handler = _Recorder(httpx.Response(500))
        client = _make_client(handler, max_attempts=3, backoff=1.0, delays=delays)
        with pytest.raises(TransientProviderError):
            await client.get(_URL)
        assert delays == [1.0, 2.0]

    async def test_client_errors_are_not_retried(self) -> None:
        """A 404 is returned to the caller on the first attempt."""
        handler = _Recorder(httpx.Response(404))
        client = _make_client(handler)
        response = await client.get(_URL)
        assert response.status_code == 404
        assert handler.calls == 1


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------


class TestRateLimit:
    async def test_403_with_zero_remaining_raises_immediately(self) -> None:
        """Exhausted quota on a 403 raises without any retry."""
        reset_epoch = 1_900_000_000
        handler = _Recorder(
            httpx.Response(
                403,
                headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": str(reset_epoch)},
            )
        )
        client = _make_client(handler)
        with pytest.raises(RateLimitExceeded) as excinfo:
            await client.get(_URL)
        assert handler.calls == 1
        assert excinfo.value.reset_at == datetime.fromtimestamp(reset_epoch, tz=UTC)

    async def test_429_uses_retry_after(self) -> None:
        """A 429 without quota headers falls back to Retry-After seconds."""
        handler = _Recorder(httpx.Response(429, headers={"Retry-After": "30"}))
        client = _make_client(handler)
        before = datetime.now(tz=UTC)
        with pytest.raises(RateLimitExceeded) as excinfo:
            await client.get(_URL)
        reset_at = excinfo.value.reset_at
        assert reset_at is not None
        assert before + timedelta(seconds=29) <= reset_at <= before + timedelta(seconds=60)
        assert handler.calls == 1

    async def test_403_with_quota_left_is_returned(self) -> None:
        """A 403 with remaining quota is an ordinary client error."""
        handler = _Recorder(httpx.Response(403, headers={"X-RateLimit-Remaining": "12"}))
        client = _make_client(handler)
        response = await client.get(_URL)
        with pytest.raises(ProviderRequestError) as excinfo:
            client.ensure_success(response, _URL)
        assert excinfo.value.status_code == 403

    async def test_gitlab_header_names(self) -> None:
        """GitLab quota headers have no X- prefix."""
        handler = _Recorder(httpx.Response(403, headers={"RateLimit-Remaining": "0", "RateLimit-Reset": "60"}))
        client = _make_client(handler, rate_limit=GITLAB_RATE_LIMIT)
        with pytest.raises(RateLimitExceeded) as excinfo:
            await client.get(_URL)
        assert excinfo.value.reset_at is not None

    async def test_zero_remaining_on_success_is_not_an_error(self) -> None:
        """Spending the last request still returns its response."""
        handler = _Recorder(httpx.Response(200, headers={"X-RateLimit-Remaining": "0"}, text="last"))
        client = _make_client(handler)
        response = await client.get(_URL)
        assert response.text == "last"


# ---------------------------------------------------------------------------
# JSON decoding
# ---------------------------------------------------------------------------


class TestGetJson:
    async def test_decodes_body(self) -> None:
        """A 200 JSON body is decoded."""
        handler = _Recorder(httpx.Response(200, json={"default_branch": "main"}))
        client = _make_client(handler)
        assert await client.get_json(_URL) == {"default_branch": "main"}

    async def test_invalid_json(self) -> None:
        """A non-JSON body raises ProviderRequestError."""
        handler = _Recorder(httpx.Response(200, text="<html>"))
        client = _make_client(handler)
        with pytest.raises(ProviderRequestError):
            await client.get_json(_URL)

    async def test_error_status(self) -> None:
        """A 401 raises ProviderRequestError with the status code."""
        handler = _Recorder(httpx.Response(401, json={"message": "Bad credentials"}))
        client = _make_client(handler)
        with pytest.raises(ProviderRequestError) as excinfo:
            await client.get_json(_URL)
        assert excinfo.value.status_code == 401

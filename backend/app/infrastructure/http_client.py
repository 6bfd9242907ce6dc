"""Resilient HTTP Client: wraps httpx.AsyncClient with retry, backoff, and error mapping.

Invariants:
    - Rate limits (429): exponential backoff with jitter, respects Retry-After header
    - Transient errors (5xx, connection, timeout): max_retries retries with exponential backoff
    - Client errors (4xx except 429): immediate failure, no retry
    - All failures mapped to ExternalSourceError (core/errors.py)

Design Decisions:
    - One wrapper shared by every provider client; providers only build URLs and parse bodies
    - transport is injectable so tests can hand in httpx.MockTransport
"""

import asyncio
import random
import logging

import httpx

from app.core.errors import ExternalSourceError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; ArgenStats/1.0; +https://argenstats.com)",
}


class ResilientHttpClient:
    """Wraps httpx.AsyncClient with retry logic, timeouts, and error mapping."""

    def __init__(
        self,
        source: str,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 30_000,
        timeout_seconds: int = 30,
        verify: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.source = source
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.client = httpx.AsyncClient(
            timeout=timeout_seconds,
            headers=DEFAULT_HEADERS,
            follow_redirects=True,
            verify=verify,
            transport=transport,
        )

    async def __aenter__(self) -> "ResilientHttpClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def get(self, url: str, params: dict | None = None) -> httpx.Response:
        """GET with automatic retry on transient failures."""
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.get(url, params=params)
            except (httpx.ConnectError, httpx.ReadError, httpx.RemoteProtocolError) as e:
                await self._handle_transient_error(e, url, attempt)
                continue
            except httpx.TimeoutException as e:
                await self._handle_transient_error(e, url, attempt)
                continue
            except httpx.HTTPError as e:
                raise ExternalSourceError(str(e), self.source)

            if response.status_code == 429:
                await self._handle_rate_limit(response, url, attempt)
                continue
            if response.status_code >= 500:
                await self._handle_transient_error(
                    f"HTTP {response.status_code}", url, attempt,
                )
                continue
            if response.status_code >= 400:
                raise ExternalSourceError(
                    f"HTTP {response.status_code} for {url}", self.source,
                )
            logger.debug(
                "Provider request ok",
                extra={"url": url, "attempt": attempt + 1, "data_source": self.source},
            )
            return response
        # Unreachable: the handlers raise on the last attempt.
        raise ExternalSourceError(f"Retries exhausted for {url}", self.source)

    async def get_json(self, url: str, params: dict | None = None):
        response = await self.get(url, params=params)
        try:
            return response.json()
        except ValueError:
            raise ExternalSourceError(f"Invalid JSON from {url}", self.source)

    async def get_bytes(self, url: str, params: dict | None = None) -> bytes:
        response = await self.get(url, params=params)
        return response.content

    async def get_text(self, url: str, params: dict | None = None) -> str:
        response = await self.get(url, params=params)
        return response.text

    async def _handle_rate_limit(
        self, response: httpx.Response, url: str, attempt: int,
    ) -> None:
        """Handle rate limit response with retry or raise."""
        retry_after_ms = self._extract_retry_after(response)
        if attempt >= self.max_retries:
            raise ExternalSourceError(
                "Rate limit exceeded after retries",
                self.source,
                retry_after_ms=retry_after_ms,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"Rate limit hit, retry after {delay}ms (attempt {attempt + 1})",
            extra={"url": url, "attempt": attempt + 1, "data_source": self.source},
        )
        await asyncio.sleep(delay / 1000)

    async def _handle_transient_error(self, e, url: str, attempt: int) -> None:
        """Handle transient errors with retry or raise."""
        if attempt >= self.max_retries:
            raise ExternalSourceError(
                f"Transient failure after {self.max_retries} retries: {e}",
                self.source,
            )
        delay = self._backoff(attempt)
        logger.warning(
            f"Transient error, retry after {delay}ms: {e}",
            extra={"url": url, "attempt": attempt + 1, "data_source": self.source},
        )
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _extract_retry_after(self, response: httpx.Response) -> int | None:
        """Extract Retry-After header (returns milliseconds)."""
        val = response.headers.get("retry-after")
        if val and val.isdigit():
            return int(val) * 1000
        return None


def build_client(source: str, settings, transport: httpx.AsyncBaseTransport | None = None, **kwargs):
    """Client configured from Settings."""
    return ResilientHttpClient(
        source,
        max_retries=settings.http_max_retries,
        base_delay_ms=settings.http_base_delay_ms,
        max_delay_ms=settings.http_max_delay_ms,
        timeout_seconds=settings.http_timeout_seconds,
        transport=transport,
        **kwargs,
    )

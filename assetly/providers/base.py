"""Shared HTTP plumbing for third-party data providers.

Every provider (Zerion, CoinMarketCap, DeFiLlama, CryptoNews, Brian) is a
subclass of ``ProviderClient``. The base class owns the retry loop: transport
errors, HTTP 429 and 5xx responses are retried with a linear backoff, any
other error status fails immediately with ``ProviderError``.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from assetly.config import settings

logger = logging.getLogger(__name__)


def _retryable(status: int) -> bool:
    return status == 429 or status >= 500


class ProviderError(Exception):
    """A provider call failed after retries, or returned an error payload."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.status_code = status_code


class ProviderClient:
    """Base class for REST providers.

    ``transport`` is passed straight to ``httpx.AsyncClient``; tests hand in an
    ``httpx.MockTransport`` so no request ever leaves the process.
    """

    name: str = "provider"
    base_url: str = ""

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        *,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff: float | None = None,
    ) -> None:
        self._transport = transport
        self.timeout = timeout if timeout is not None else settings.http_timeout
        self.max_retries = max_retries if max_retries is not None else settings.http_max_retries
        self.backoff = backoff if backoff is not None else settings.http_backoff_seconds

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}{path}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        json: Any = None,
    ) -> Any:
        """Issue a request and return the decoded JSON body."""
        url = self._url(path)
        attempts = max(self.max_retries, 0) + 1
        last_error: str = "no attempt made"
        last_status: int | None = None

        async with self._client() as client:
            for attempt in range(1, attempts + 1):
                try:
                    resp = await client.request(
                        method.upper(), url, params=params, headers=headers, json=json,
                    )
                except httpx.TransportError as exc:
                    last_error, last_status = f"transport error: {exc}", None
                    logger.warning(
                        "%s %s %s failed (attempt %d/%d): %s",
                        self.name, method.upper(), url, attempt, attempts, exc,
                    )
                else:
                    if _retryable(resp.status_code):
                        last_error, last_status = f"HTTP {resp.status_code}", resp.status_code
                        logger.warning(
                            "%s %s %s returned %d (attempt %d/%d)",
                            self.name, method.upper(), url, resp.status_code, attempt, attempts,
                        )
                    elif resp.is_error:
                        raise ProviderError(
                            self.name,
                            f"HTTP {resp.status_code} - {resp.text[:300]}",
                            resp.status_code,
                        )
                    else:
                        try:
                            return resp.json()
                        except ValueError as exc:
                            raise ProviderError(self.name, f"invalid JSON response: {exc}") from exc

                if attempt < attempts:
                    await asyncio.sleep(self.backoff * attempt)

        raise ProviderError(self.name, f"giving up after {attempts} attempts ({last_error})", last_status)

    async def _get(self, path: str, **kwargs: Any) -> Any:
        return await self._request("GET", path, **kwargs)

    async def _post(self, path: str, **kwargs: Any) -> Any:
        return await self._request("POST", path, **kwargs)

    def _require_key(self, key: str, env_name: str) -> str:
        if not key:
            raise ProviderError(self.name, f"{env_name} is not configured")
        return key

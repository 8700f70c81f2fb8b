"""cryptonews-api.com client.

Both calls degrade to an empty payload instead of raising, so a missing news
key or an outage never takes down a portfolio analysis.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from assetly.config import settings
from assetly.providers.base import ProviderClient, ProviderError

logger = logging.getLogger(__name__)

EMPTY_NEWS: dict[str, Any] = {"data": [], "total_pages": 0, "total_items": 0}
EMPTY_SENTIMENT: dict[str, Any] = {"sentiment": 0, "total_items": 0}


class CryptoNewsClient(ProviderClient):
    name = "cryptonews"
    base_url = "https://cryptonews-api.com/api/v1"

    def __init__(
        self,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(transport, **kwargs)
        self.api_key = api_key if api_key is not None else settings.cryptonews_api_key

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def get_news(self, ticker: str = "", items: int = 3) -> dict[str, Any]:
        """Ticker news when ``ticker`` is given, general market news otherwise."""
        try:
            token = self._require_key(self.api_key, "CRYPTONEWS_API_KEY")
            if ticker:
                return await self._get(
                    "",
                    params={"tickers": ticker, "items": items, "page": 1, "token": token},
                )
            return await self._get(
                "/category",
                params={"section": "general", "items": items, "page": 1, "token": token},
            )
        except ProviderError as exc:
            logger.error("CryptoNews news fetch failed: %s", exc)
            return dict(EMPTY_NEWS, data=[])

    async def get_token_sentiment(self, ticker: str) -> dict[str, Any]:
        try:
            token = self._require_key(self.api_key, "CRYPTONEWS_API_KEY")
            return await self._get("/sentiment", params={"tickers": ticker, "token": token})
        except ProviderError as exc:
            logger.error("CryptoNews sentiment fetch failed: %s", exc)
            return dict(EMPTY_SENTIMENT)

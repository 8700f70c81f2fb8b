"""CoinMarketCap latest quotes."""
from __future__ import annotations

import logging
from typing import Any, Iterable

import httpx

from assetly.config import settings
from assetly.portfolio.models import PriceData
from assetly.providers.base import ProviderClient, ProviderError

logger = logging.getLogger(__name__)


class CoinMarketCapClient(ProviderClient):
    name = "coinmarketcap"
    base_url = "https://pro-api.coinmarketcap.com/v1"

    def __init__(
        self,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(transport, **kwargs)
        self.api_key = api_key if api_key is not None else settings.cmc_api_key

    async def get_quotes(self, symbols: Iterable[str]) -> dict[str, PriceData]:
        """USD quotes keyed by upper-case symbol. Unknown symbols are absent."""
        wanted = sorted({s.upper() for s in symbols if s})
        if not wanted:
            return {}

        body = await self._get(
            "/cryptocurrency/quotes/latest",
            params={"symbol": ",".join(wanted), "convert": "USD"},
            headers={
                "X-CMC_PRO_API_KEY": self._require_key(self.api_key, "CMC_API_KEY"),
                "Accept": "application/json",
            },
        )

        status = body.get("status") or {}
        if status.get("error_code"):
            raise ProviderError(self.name, status.get("error_message") or f"error {status['error_code']}")

        quotes: dict[str, PriceData] = {}
        for symbol, entry in (body.get("data") or {}).items():
            # v1 returns one object per symbol; v2 returns a list
            if isinstance(entry, list):
                if not entry:
                    continue
                entry = entry[0]
            usd = (entry.get("quote") or {}).get("USD") or {}
            if usd.get("price") is None:
                continue
            quotes[symbol.upper()] = PriceData(
                price=float(usd["price"]),
                change_24h=float(usd.get("percent_change_24h") or 0),
                market_cap=float(usd.get("market_cap") or 0),
                volume_24h=float(usd.get("volume_24h") or 0),
            )

        missing = set(wanted) - quotes.keys()
        if missing:
            logger.info("CoinMarketCap has no quote for %s", ", ".join(sorted(missing)))
        return quotes

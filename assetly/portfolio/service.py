"""Wallet positions priced into a portfolio valuation."""
from __future__ import annotations

import logging

from assetly.portfolio.models import PortfolioValuation, PriceData
from assetly.portfolio.valuation import non_stable_symbols, value_positions
from assetly.providers.base import ProviderError
from assetly.providers.coinmarketcap import CoinMarketCapClient
from assetly.providers.zerion import ZerionClient, parse_positions

logger = logging.getLogger(__name__)


class PortfolioService:
    def __init__(
        self,
        zerion: ZerionClient | None = None,
        cmc: CoinMarketCapClient | None = None,
    ) -> None:
        self.zerion = zerion or ZerionClient()
        self.cmc = cmc or CoinMarketCapClient()

    async def positions(self, address: str) -> list[dict]:
        """Raw Zerion position objects."""
        return await self.zerion.get_wallet_positions(address)

    async def value(self, address: str) -> PortfolioValuation:
        """Zerion positions, repriced with CoinMarketCap quotes where available.

        A quote failure is not fatal: positions keep the USD values Zerion
        reported.
        """
        raw = await self.positions(address)
        return await self.value_raw(raw)

    async def value_raw(self, raw: list[dict]) -> PortfolioValuation:
        positions = parse_positions(raw)
        symbols = non_stable_symbols(positions)

        quotes: dict[str, PriceData] = {}
        if symbols:
            try:
                quotes = await self.cmc.get_quotes(symbols)
            except ProviderError as exc:
                logger.warning("Quotes unavailable, using position values: %s", exc)

        valuation = value_positions(positions, quotes)
        logger.info(
            "Valued %d positions: $%.2f (risk %.2f)",
            len(valuation.positions), valuation.total_value_usd, valuation.risk_score,
        )
        return valuation

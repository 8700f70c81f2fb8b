"""Lending recommendations and the throttled Brian portfolio scan."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from assetly.config import settings
from assetly.portfolio.models import LendingRecommendation, RecommendedAction, Risk, TokenPosition
from assetly.providers.base import ProviderError
from assetly.providers.brian import BrianClient

logger = logging.getLogger(__name__)

# AAVE V3 supply rates shown to the user; not fetched live
AAVE_RATES = {
    "ETH": "4.82%",
    "USDC": "4.12%",
    "USDT": "3.98%",
    "DAI": "4.05%",
}


def lending_recommendations(positions: list[TokenPosition]) -> list[LendingRecommendation]:
    relevant = [p for p in positions if p.symbol in AAVE_RATES]
    if not relevant:
        return []
    return [LendingRecommendation(
        type="YIELD",
        description="Available AAVE Lending Opportunities",
        actions=[
            RecommendedAction(
                description=f"{p.symbol} Balance: {p.quantity:.4f}",
                expected_return=f"Current AAVE lending rate: {AAVE_RATES[p.symbol]} APY",
                risk=Risk.LOW,
            )
            for p in relevant
        ],
    )]


@dataclass
class PortfolioScan:
    address: str
    chain: str
    analysis: str
    scanned_at: float


_SCAN_PROMPT = (
    "Analyze portfolio for {address} on {chain}. Include:\n"
    "1. Total portfolio value\n"
    "2. Asset allocation\n"
    "3. DeFi positions\n"
    "4. Yield opportunities"
)


class PortfolioManager:
    """Runs at most one Brian portfolio analysis per scan interval."""

    def __init__(
        self,
        brian: BrianClient | None = None,
        interval: float | None = None,
        clock=time.monotonic,
    ) -> None:
        self.brian = brian or BrianClient()
        self.interval = interval if interval is not None else settings.scan_interval_seconds
        self._clock = clock
        self._last_scan: float | None = None

    def throttled(self) -> bool:
        if self._last_scan is None:
            return False
        return self._clock() - self._last_scan < self.interval

    async def scan_and_optimize(self, address: str, chain: str) -> PortfolioScan | None:
        if self.throttled():
            logger.debug("Portfolio scan for %s skipped: within scan interval", address)
            return None

        now = self._clock()
        try:
            result = await self.brian.ask(_SCAN_PROMPT.format(address=address, chain=chain))
        except ProviderError as exc:
            logger.error("Portfolio optimization failed: %s", exc)
            return None

        self._last_scan = now
        answer = result.get("answer", "") if isinstance(result, dict) else str(result)
        return PortfolioScan(address=address, chain=chain, analysis=answer, scanned_at=time.time())

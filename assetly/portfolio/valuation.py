"""Portfolio valuation: quantity × price summed over positions.

Stablecoins are valued 1:1 with USD. Every other position is priced from a
quote table keyed by upper-case symbol; positions the quote table does not
know keep whatever value their position provider reported.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Mapping

from assetly.portfolio.models import PortfolioValuation, PriceData, TokenPosition
from assetly.portfolio.tokens import is_stablecoin

_STABLE_PRICE = PriceData(price=1.0, change_24h=0.0)


def value_positions(
    positions: list[TokenPosition],
    quotes: Mapping[str, PriceData],
) -> PortfolioValuation:
    valued: list[TokenPosition] = []
    for pos in positions:
        symbol = pos.symbol.upper()
        if pos.is_stablecoin or is_stablecoin(symbol):
            valued.append(replace(
                pos,
                is_stablecoin=True,
                value_usd=pos.quantity,
                price=1.0,
                price_data=_STABLE_PRICE,
                priced=True,
            ))
            continue

        quote = quotes.get(symbol)
        if quote is None:
            valued.append(replace(pos, priced=pos.price is not None))
            continue

        valued.append(replace(
            pos,
            value_usd=pos.quantity * quote.price,
            price=quote.price,
            price_data=quote,
            priced=True,
        ))

    total = sum(p.value_usd for p in valued)
    return PortfolioValuation(
        positions=valued,
        total_value_usd=total,
        risk_score=risk_score(valued, total),
    )


def risk_score(positions: list[TokenPosition], total: float | None = None) -> float:
    """Share of value held in volatile assets, scaled to 0-10."""
    total = sum(p.value_usd for p in positions) if total is None else total
    if total <= 0:
        return 0.0
    volatile = sum(p.value_usd for p in positions if not p.is_stablecoin)
    return round(volatile / total * 10, 2)


def asset_distribution(valuation: PortfolioValuation) -> dict[str, dict[str, float]]:
    """symbol → {percentage, value_usd}. Repeated symbols are merged."""
    total = valuation.total_value_usd
    dist: dict[str, dict[str, float]] = {}
    for pos in valuation.positions:
        entry = dist.setdefault(pos.symbol, {"percentage": 0.0, "value_usd": 0.0})
        entry["value_usd"] += pos.value_usd
    for entry in dist.values():
        entry["percentage"] = round(entry["value_usd"] / total * 100, 2) if total > 0 else 0.0
    return dist


def non_stable_symbols(positions: list[TokenPosition]) -> list[str]:
    """Unique upper-case symbols that need a market price, in holding order."""
    seen: dict[str, None] = {}
    for pos in positions:
        if not (pos.is_stablecoin or is_stablecoin(pos.symbol)):
            seen.setdefault(pos.symbol.upper(), None)
    return list(seen)

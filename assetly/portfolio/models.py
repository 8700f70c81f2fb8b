"""Plain data types shared by providers, scorers and the API layer."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import StrEnum


class Action(StrEnum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class Mood(StrEnum):
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


class Risk(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    UNKNOWN = "UNKNOWN"


@dataclass
class PriceData:
    price: float
    change_24h: float = 0.0
    market_cap: float = 0.0
    volume_24h: float = 0.0


@dataclass
class TokenPosition:
    """One fungible balance held by the wallet."""

    symbol: str
    quantity: float
    name: str = ""
    # USD value as reported by the position provider, or computed by valuation
    value_usd: float = 0.0
    price: float | None = None
    chain: str = ""
    token_address: str | None = None
    is_stablecoin: bool = False
    price_data: PriceData | None = None
    # False when no price source knew the token
    priced: bool = True


@dataclass
class PortfolioValuation:
    positions: list[TokenPosition]
    total_value_usd: float
    # 0 = all stablecoins, 10 = all volatile assets
    risk_score: float = 0.0
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))


@dataclass
class TokenSentiment:
    symbol: str
    score: float
    recommendation: Action
    headline: str = ""
    source: str = ""
    url: str = ""
    published: str = ""
    headline_sentiment: str = "neutral"
    risk_factors: list[str] = field(default_factory=list)
    news_count: int = 0


@dataclass
class MarketEvent:
    title: str
    summary: str
    impact: Risk
    timestamp: str
    tokens: list[str] = field(default_factory=list)


@dataclass
class RecommendedAction:
    description: str
    risk: Risk = Risk.LOW
    expected_return: str | None = None


@dataclass
class LendingRecommendation:
    type: str  # YIELD | REBALANCE | RISK_MANAGEMENT
    description: str
    actions: list[RecommendedAction] = field(default_factory=list)

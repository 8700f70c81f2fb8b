"""Market news analysis for a portfolio.

Pulls general market headlines plus headlines for the most relevant holdings,
then scores each token with ``sentiment.score_news``.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from assetly.portfolio import sentiment
from assetly.portfolio.models import Action, MarketEvent, Mood, TokenPosition, TokenSentiment
from assetly.portfolio.tokens import top_tokens
from assetly.providers.base import ProviderError
from assetly.providers.cryptonews import CryptoNewsClient

logger = logging.getLogger(__name__)

# How many holdings get their own news lookup
MAX_NEWS_TOKENS = 3


@dataclass
class GeneralMarket:
    sentiment: Mood
    score: float
    signal: Action
    moods: dict[str, Mood]
    major_events: list[MarketEvent] = field(default_factory=list)


@dataclass
class MarketNewsAnalysis:
    general_market: GeneralMarket
    portfolio_tokens: dict[str, TokenSentiment]
    action_items: list[str] = field(default_factory=lambda: ["Monitor market conditions"])
    risks: list[str] = field(default_factory=lambda: ["Market volatility"])


def news_symbols(positions: list[TokenPosition]) -> list[str]:
    """Volatile holdings plus USDC, deduplicated in holding order."""
    seen: dict[str, None] = {}
    for pos in positions:
        if not pos.is_stablecoin or pos.symbol.upper() == "USDC":
            seen.setdefault(pos.symbol, None)
    return list(seen)


def token_sentiment(symbol: str, items: list[dict], now: datetime | None = None) -> TokenSentiment:
    score = sentiment.score_news(items, now)
    first = items[0] if items else {}
    is_usdc = symbol.upper() == "USDC"
    return TokenSentiment(
        symbol=symbol,
        score=round(score, 4),
        recommendation=sentiment.recommend(score, symbol),
        headline=first.get("title", ""),
        source=first.get("source_name", ""),
        url=first.get("news_url", ""),
        published=first.get("date", ""),
        headline_sentiment=sentiment.normalize_label(first.get("sentiment", "")),
        risk_factors=["Stablecoin stability"] if is_usdc else ["Market volatility"],
        news_count=len(items),
    )


class NewsAnalyzer:
    def __init__(self, client: CryptoNewsClient | None = None) -> None:
        self.client = client or CryptoNewsClient()

    async def analyze(
        self,
        positions: list[TokenPosition],
        now: datetime | None = None,
    ) -> MarketNewsAnalysis:
        if not self.client.configured:
            raise ProviderError(self.client.name, "CRYPTONEWS_API_KEY is not configured")
        now = now or datetime.now(timezone.utc)

        symbols = news_symbols(positions)
        lookups = top_tokens(symbols)[:MAX_NEWS_TOKENS]

        general, *per_token = await asyncio.gather(
            self.client.get_news(""),
            *[self.client.get_news(s) for s in lookups],
        )
        general_items = general.get("data", [])
        token_news = {
            symbol: body.get("data", [])
            for symbol, body in zip(lookups, per_token)
            if body.get("data")
        }
        logger.info(
            "News: %d general items, per-token items for %s",
            len(general_items), ", ".join(token_news) or "none",
        )

        portfolio_tokens = {
            symbol: token_sentiment(symbol, token_news[symbol], now)
            for symbol in symbols
            if token_news.get(symbol)
        }

        general_score = sentiment.score_news(general_items, now)
        return MarketNewsAnalysis(
            general_market=GeneralMarket(
                sentiment=sentiment.market_sentiment(general_items),
                score=round(general_score, 4),
                signal=sentiment.dynamic_signal(general_score, len(general_items)),
                moods=sentiment.sector_moods(general_items),
                major_events=sentiment.major_events(general_items),
            ),
            portfolio_tokens=portfolio_tokens,
        )

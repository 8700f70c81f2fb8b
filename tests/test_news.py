"""Tests for per-portfolio market news analysis."""
from __future__ import annotations

from datetime import datetime, timezone

import httpx
import pytest

from assetly.portfolio.models import Action, Mood, TokenPosition
from assetly.portfolio.news import NewsAnalyzer, news_symbols, token_sentiment
from assetly.portfolio.tokens import is_stablecoin
from assetly.providers.base import ProviderError
from assetly.providers.cryptonews import CryptoNewsClient

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


def make_pos(symbol: str, quantity: float = 1.0) -> TokenPosition:
    return TokenPosition(symbol=symbol, quantity=quantity, is_stablecoin=is_stablecoin(symbol))


def news_handler(seen: list[str]):
    general = [
        {"title": f"Crypto up {i}", "sentiment": "Positive", "source_name": "X",
         "date": "Mon, 01 Jan 2024 10:00:00 -0500"}
        for i in range(4)
    ]
    eth = [{
        "title": "ETH upgrade ships", "text": "", "sentiment": "Positive",
        "source_name": "Reuters", "date": "Fri, 10 May 2024 08:00:00 -0400",
        "news_url": "https://example.org/eth",
    }]
    usdc = [{"title": "USDC reserves audited", "sentiment": "Neutral", "source_name": "Decrypt"}]

    def handler(request: httpx.Request) -> httpx.Response:
        ticker = request.url.params.get("tickers", "")
        seen.append(ticker)
        data = {"": general, "ETH": eth, "USDC": usdc}.get(ticker, [])
        return httpx.Response(200, json={"data": data, "total_pages": 1})

    return handler


def test_news_symbols_keeps_volatile_and_usdc():
    positions = [make_pos("ETH"), make_pos("USDC"), make_pos("DAI"), make_pos("LINK"), make_pos("ETH")]
    assert news_symbols(positions) == ["ETH", "USDC", "LINK"]


async def test_analyze_scores_market_and_tokens():
    seen: list[str] = []
    client = CryptoNewsClient(api_key="nk", transport=httpx.MockTransport(news_handler(seen)))
    analyzer = NewsAnalyzer(client)

    positions = [make_pos("ETH"), make_pos("USDC"), make_pos("DAI"), make_pos("LINK")]
    result = await analyzer.analyze(positions, now=NOW)

    assert sorted(seen) == ["", "ETH", "LINK", "USDC"]

    market = result.general_market
    assert market.score == pytest.approx(0.8)
    assert market.signal == Action.BUY
    assert market.sentiment == Mood.BULLISH
    assert market.moods["overall"] == Mood.BULLISH
    assert len(market.major_events) == 4

    eth = result.portfolio_tokens["ETH"]
    assert eth.score == pytest.approx(1.8)
    assert eth.recommendation == Action.BUY
    assert eth.headline == "ETH upgrade ships"
    assert eth.url == "https://example.org/eth"
    assert eth.headline_sentiment == "positive"
    assert eth.news_count == 1

    usdc = result.portfolio_tokens["USDC"]
    assert usdc.recommendation == Action.HOLD
    assert usdc.risk_factors == ["Stablecoin stability"]

    # no per-token news for LINK
    assert "LINK" not in result.portfolio_tokens
    assert result.action_items == ["Monitor market conditions"]


async def test_analyze_without_key_raises():
    client = CryptoNewsClient(api_key="", transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    with pytest.raises(ProviderError, match="CRYPTONEWS_API_KEY"):
        await NewsAnalyzer(client).analyze([make_pos("ETH")])


def test_token_sentiment_empty_news_holds():
    result = token_sentiment("LINK", [], NOW)
    assert result.score == 0.0
    assert result.recommendation == Action.HOLD
    assert result.headline == ""
    assert result.headline_sentiment == "neutral"
    assert result.risk_factors == ["Market volatility"]

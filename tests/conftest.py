"""Shared fixtures."""
from __future__ import annotations

import httpx
import pytest

from assetly.api.deps import build_services
from assetly.portfolio.news import NewsAnalyzer
from assetly.portfolio.service import PortfolioService
from assetly.providers.brian import BrianClient
from assetly.providers.coinmarketcap import CoinMarketCapClient
from assetly.providers.cryptonews import CryptoNewsClient
from assetly.providers.defillama import DeFiLlamaClient
from assetly.providers.zerion import ZerionClient
from upstream import upstream_handler


@pytest.fixture
def make_services():
    """Factory for a Services bundle whose every HTTP client hits ``upstream_handler``."""

    def factory(
        seen: list[str] | None = None,
        fail_hosts: set[str] = frozenset(),
        news_key: str = "nk",
        llm_factory=None,
        **overrides,
    ):
        transport = httpx.MockTransport(upstream_handler(seen, fail_hosts))
        opts = {"transport": transport, "max_retries": 0, "backoff": 0}
        return build_services(
            portfolio=PortfolioService(
                zerion=ZerionClient(api_key="zk", **opts),
                cmc=CoinMarketCapClient(api_key="cmc", **opts),
            ),
            llama=DeFiLlamaClient(**opts),
            news=NewsAnalyzer(CryptoNewsClient(api_key=news_key, **opts)),
            brian=BrianClient(api_key="bk", **opts),
            llm_factory=llm_factory,
            **overrides,
        )

    return factory

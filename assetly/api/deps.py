"""Service wiring for the HTTP layer.

Routes depend on ``get_services``; tests swap it out through
``app.dependency_overrides`` with services built on mock transports.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel

from assetly.core import nodes as core_nodes
from assetly.core.agent import PortfolioAgent
from assetly.finance.aave import AaveService
from assetly.finance.swap import SwapService
from assetly.finance.wallet import Wallet, make_web3
from assetly.portfolio.manager import PortfolioManager
from assetly.portfolio.news import NewsAnalyzer
from assetly.portfolio.service import PortfolioService
from assetly.providers.brian import BrianClient
from assetly.providers.defillama import DeFiLlamaClient

logger = logging.getLogger(__name__)


@dataclass
class Services:
    portfolio: PortfolioService
    llama: DeFiLlamaClient
    news: NewsAnalyzer
    brian: BrianClient
    wallet: Wallet
    aave: AaveService
    swap: SwapService
    manager: PortfolioManager
    agent: PortfolioAgent


def build_services(
    portfolio: PortfolioService | None = None,
    llama: DeFiLlamaClient | None = None,
    news: NewsAnalyzer | None = None,
    brian: BrianClient | None = None,
    wallet: Wallet | None = None,
    aave: AaveService | None = None,
    llm_factory: Callable[[type[BaseModel]], Any] | None = None,
) -> Services:
    """Default clients for anything not passed in; also wires the graph nodes."""
    portfolio = portfolio or PortfolioService()
    llama = llama or DeFiLlamaClient()
    news = news or NewsAnalyzer()
    brian = brian or BrianClient()
    if wallet is None or aave is None:
        w3 = make_web3()
        wallet = wallet or Wallet(w3)
        aave = aave or AaveService(w3)

    core_nodes.setup(portfolio=portfolio, llama=llama, news=news, llm_factory=llm_factory)
    return Services(
        portfolio=portfolio,
        llama=llama,
        news=news,
        brian=brian,
        wallet=wallet,
        aave=aave,
        swap=SwapService(brian),
        manager=PortfolioManager(brian),
        agent=PortfolioAgent(),
    )


_services: Services | None = None


def get_services() -> Services:
    global _services
    if _services is None:
        _services = build_services()
    return _services


async def record_safely(coro) -> None:
    """Await a history write; a failed write is logged, never fatal to the request."""
    try:
        await coro
    except Exception as exc:
        logger.warning("History write failed: %s", exc)

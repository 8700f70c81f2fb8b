"""AnalysisState, the shared state flowing through the analysis graph."""
from __future__ import annotations

import operator
from typing import Annotated, Any

from typing_extensions import TypedDict

from assetly.core.schemas import OpportunityAssessment, PortfolioAssessment, StrategyRecommendation
from assetly.portfolio.market import EthAnalysis, MarketData
from assetly.portfolio.models import PortfolioValuation
from assetly.portfolio.news import MarketNewsAnalysis


class AnalysisState(TypedDict, total=False):
    # Wallet being analyzed (may be empty when raw positions are supplied)
    address: str

    # Zerion position objects handed in by the caller, skips the fetch
    raw_positions: list[dict[str, Any]] | None

    # Run the three LLM stages after the deterministic ones
    include_llm: bool

    valuation: PortfolioValuation
    distribution: dict[str, dict[str, float]]
    market_data: MarketData | None
    eth_analysis: EthAnalysis | None
    news: MarketNewsAnalysis | None

    assessment: PortfolioAssessment | None
    opportunities: OpportunityAssessment | None
    strategy: StrategyRecommendation | None

    # Appended to by every node that degrades (operator.add reducer)
    errors: Annotated[list[str], operator.add]

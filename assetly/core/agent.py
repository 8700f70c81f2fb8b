"""PortfolioAgent: builds and runs the compiled analysis graph.

Graph topology:
  value_portfolio
    → gather_market
      → analyze_news
        → [assess | END]  (conditional on include_llm)
          → find_opportunities
            → form_strategy
              → END
"""
from __future__ import annotations

import logging
from typing import Any

from langgraph.graph import END, StateGraph

from assetly.core.edges import route_after_news
from assetly.core.nodes import (
    analyze_news,
    assess,
    find_opportunities,
    form_strategy,
    gather_market,
    value_portfolio,
)
from assetly.core.state import AnalysisState

logger = logging.getLogger(__name__)


def build_graph():
    """Build and compile the analysis graph. Returns a runnable."""
    g = StateGraph(AnalysisState)

    g.add_node("value_portfolio", value_portfolio)
    g.add_node("gather_market", gather_market)
    g.add_node("analyze_news", analyze_news)
    g.add_node("assess", assess)
    g.add_node("find_opportunities", find_opportunities)
    g.add_node("form_strategy", form_strategy)

    g.set_entry_point("value_portfolio")

    g.add_edge("value_portfolio", "gather_market")
    g.add_edge("gather_market", "analyze_news")
    g.add_conditional_edges(
        "analyze_news",
        route_after_news,
        {"assess": "assess", "end": END},
    )
    g.add_edge("assess", "find_opportunities")
    g.add_edge("find_opportunities", "form_strategy")
    g.add_edge("form_strategy", END)

    return g.compile()


class PortfolioAgent:
    """High-level wrapper around the compiled graph."""

    def __init__(self) -> None:
        self.graph = build_graph()

    async def analyze(
        self,
        address: str = "",
        raw_positions: list[dict[str, Any]] | None = None,
        include_llm: bool = True,
    ) -> AnalysisState:
        """Run one analysis. Either ``address`` or ``raw_positions`` is required."""
        if not address and raw_positions is None:
            raise ValueError("address or raw_positions is required")

        initial_state: AnalysisState = {
            "address": address,
            "raw_positions": raw_positions,
            "include_llm": include_llm,
            "market_data": None,
            "eth_analysis": None,
            "news": None,
            "assessment": None,
            "opportunities": None,
            "strategy": None,
            "errors": [],
        }
        final = await self.graph.ainvoke(initial_state)
        if final.get("errors"):
            logger.warning("Analysis finished with %d degraded stage(s)", len(final["errors"]))
        return final

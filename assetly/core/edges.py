"""Conditional edge router for the analysis graph."""
from __future__ import annotations

from assetly.core.state import AnalysisState


def route_after_news(state: AnalysisState) -> str:
    """Continue into the LLM stages only when they were requested."""
    if state.get("include_llm"):
        return "assess"
    return "end"

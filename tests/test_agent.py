"""Tests for the analysis graph, with mock upstreams and a scripted chat model."""
from __future__ import annotations

import pytest

from assetly.config import settings
from assetly.core.edges import route_after_news
from assetly.core.schemas import (
    AssetAllocation,
    OpportunityAssessment,
    PortfolioAssessment,
    RiskMetrics,
    StrategyRecommendation,
    YieldOpportunity,
)
from assetly.portfolio.models import Action
from upstream import WALLET, ZERION_POSITIONS

ASSESSMENT = PortfolioAssessment(
    asset_distribution=[AssetAllocation(symbol="ETH", percentage=98.36, value_usd=6000.0)],
    market_conditions=[],
    risk_metrics=RiskMetrics(overall_risk=7, diversification_score=2, volatility_score=8),
)

OPPORTUNITIES = OpportunityAssessment(yield_opportunities=[
    YieldOpportunity(protocol="aave-v3", asset="USDC", apy=4.5, tvl=8e7, risk="LOW", recommended=True),
])


class ScriptedLLM:
    def __init__(self, result) -> None:
        self.result = result
        self.messages = None

    async def ainvoke(self, messages):
        self.messages = messages
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def scripted(results: dict, calls: list | None = None):
    def factory(schema):
        llm = ScriptedLLM(results[schema])
        if calls is not None:
            calls.append(llm)
        return llm

    return factory


def test_route_after_news():
    assert route_after_news({"include_llm": True}) == "assess"
    assert route_after_news({"include_llm": False}) == "end"
    assert route_after_news({}) == "end"


async def test_deterministic_analysis(make_services):
    services = make_services()
    state = await services.agent.analyze(address=WALLET, include_llm=False)

    valuation = state["valuation"]
    assert valuation.total_value_usd == pytest.approx(6100.0)
    assert valuation.risk_score == 9.84
    assert state["distribution"]["USDC"]["value_usd"] == 100.0

    assert [p["pool"] for p in state["market_data"].protocols] == ["p1", "p2"]
    assert state["eth_analysis"].current_price == 3000.0
    assert state["eth_analysis"].recommendation.action == Action.BUY

    news = state["news"]
    assert news.general_market.signal == Action.BUY
    assert list(news.portfolio_tokens) == ["ETH"]

    assert state["assessment"] is None
    assert state["strategy"] is None
    assert state["errors"] == []


async def test_llm_stages_degrade_independently(make_services):
    calls: list[ScriptedLLM] = []
    services = make_services(llm_factory=scripted({
        PortfolioAssessment: ASSESSMENT,
        OpportunityAssessment: OPPORTUNITIES,
        StrategyRecommendation: RuntimeError("model overloaded"),
    }, calls))

    state = await services.agent.analyze(address=WALLET, include_llm=True)

    assert state["assessment"] == ASSESSMENT
    assert state["opportunities"] == OPPORTUNITIES
    assert state["strategy"] is None
    assert state["errors"] == ["strategy: model overloaded"]
    # deterministic results survive the failed stage
    assert state["valuation"].total_value_usd == pytest.approx(6100.0)

    assert len(calls) == 3
    system, human = calls[0].messages
    assert "untrusted" in system.content
    assert "ETH upgrade ships" in human.content


async def test_unbuildable_model_degrades_every_stage(make_services):
    def broken_factory(schema):
        raise RuntimeError("no credentials")

    services = make_services(llm_factory=broken_factory)
    state = await services.agent.analyze(address=WALLET, include_llm=True)

    assert state["assessment"] is None
    assert state["opportunities"] is None
    assert state["strategy"] is None
    assert state["errors"] == [
        "assessment: no credentials",
        "opportunities: no credentials",
        "strategy: no credentials",
    ]
    assert state["valuation"].total_value_usd == pytest.approx(6100.0)
    assert state["news"] is not None


async def test_missing_openai_key_keeps_deterministic_results(make_services, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr(settings, "llm_provider", "openai")
    monkeypatch.setattr(settings, "openai_api_key", "")

    services = make_services()
    state = await services.agent.analyze(address=WALLET, include_llm=True)

    assert state["assessment"] is None
    assert state["strategy"] is None
    assert [e.split(":")[0] for e in state["errors"]] == ["assessment", "opportunities", "strategy"]
    assert state["valuation"].total_value_usd == pytest.approx(6100.0)
    assert state["market_data"] is not None


async def test_raw_positions_skip_position_fetch(make_services):
    seen: list[str] = []
    services = make_services(seen=seen)
    state = await services.agent.analyze(raw_positions=ZERION_POSITIONS, include_llm=False)

    assert "api.zerion.io" not in seen
    assert state["valuation"].total_value_usd == pytest.approx(6100.0)


async def test_missing_news_key_is_recorded(make_services):
    services = make_services(news_key="")
    state = await services.agent.analyze(address=WALLET, include_llm=False)

    assert state["news"] is None
    assert len(state["errors"]) == 1
    assert state["errors"][0].startswith("news:")
    assert state["market_data"] is not None


async def test_market_outage_is_recorded(make_services):
    services = make_services(fail_hosts={"yields.llama.fi"})
    state = await services.agent.analyze(address=WALLET, include_llm=False)

    assert state["market_data"] is None
    assert state["eth_analysis"] is None
    assert [e.split(":")[0] for e in state["errors"]] == ["market_data", "eth_analysis"]
    assert state["news"] is not None


async def test_requires_address_or_positions(make_services):
    services = make_services()
    with pytest.raises(ValueError, match="address or raw_positions"):
        await services.agent.analyze()

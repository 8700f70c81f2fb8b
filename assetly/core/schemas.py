"""Structured LLM outputs for the three analysis stages.

The chat model is bound to these with ``with_structured_output``, so a stage
either yields a validated object or fails. Maps keyed by symbol are modelled
as lists because tool-calling schemas cannot express free-form keys.
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


# ── stage 1: assessment ───────────────────────────────────────────────────────


class AssetAllocation(BaseModel):
    symbol: str
    percentage: float
    value_usd: float


class MarketCondition(BaseModel):
    symbol: str
    trend: str = Field(description="e.g. uptrend, downtrend, sideways")
    price_change_24h: float = 0.0
    market_cap: float = 0.0
    volume_24h: float = 0.0


class RiskMetrics(BaseModel):
    overall_risk: float = Field(ge=0, le=10)
    diversification_score: float = Field(ge=0, le=10)
    volatility_score: float = Field(ge=0, le=10)


class PortfolioAssessment(BaseModel):
    asset_distribution: list[AssetAllocation]
    market_conditions: list[MarketCondition]
    risk_metrics: RiskMetrics


# ── stage 2: opportunities ────────────────────────────────────────────────────


class YieldOpportunity(BaseModel):
    protocol: str
    asset: str
    apy: float
    tvl: float
    risk: Literal["LOW", "MEDIUM", "HIGH"]
    recommended: bool


class TradingOpportunity(BaseModel):
    pair: str
    type: Literal["SPOT", "LP", "LENDING"]
    expected_return: float
    confidence: float = Field(ge=0, le=1)
    timeframe: str


class LiquidityPosition(BaseModel):
    pool: str
    protocol: str
    apr: float
    il_risk: float
    recommendation: str


class OpportunityAssessment(BaseModel):
    yield_opportunities: list[YieldOpportunity] = Field(default_factory=list)
    trading_opportunities: list[TradingOpportunity] = Field(default_factory=list)
    liquidity_positions: list[LiquidityPosition] = Field(default_factory=list)


# ── stage 3: strategy ─────────────────────────────────────────────────────────


class RebalanceStep(BaseModel):
    asset: str
    current_allocation: float
    target_allocation: float
    action: Literal["BUY", "SELL", "HOLD"]
    amount: float


class YieldPlan(BaseModel):
    asset: str
    protocol: str
    amount: float
    expected_yield: float
    steps: list[str]


class RiskMitigation(BaseModel):
    type: str
    action: str
    priority: Literal["HIGH", "MEDIUM", "LOW"]
    rationale: str


class StrategyRecommendation(BaseModel):
    rebalancing: list[RebalanceStep] = Field(default_factory=list)
    yield_strategy: list[YieldPlan] = Field(default_factory=list)
    risk_mitigation: list[RiskMitigation] = Field(default_factory=list)

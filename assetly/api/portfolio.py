"""Read-side API: portfolio data, analysis and recommendations."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from assetly.api.deps import Services, get_services, record_safely
from assetly.finance.networks import NETWORK_CONFIG, chain_config, validate_address
from assetly.finance.wallet import format_eth
from assetly.memory import history
from assetly.portfolio.manager import lending_recommendations
from assetly.portfolio.tokens import SUPPORTED_TOKENS
from assetly.portfolio.valuation import asset_distribution
from assetly.portfolio.yields import chain_name_for, find_yields
from assetly.providers.zerion import parse_positions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["portfolio"])


class AddressRequest(BaseModel):
    address: str = ""


class AgentAnalysisRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    address: str = ""
    portfolio_data: list[dict] | dict | None = Field(default=None, alias="portfolioData")
    include_llm: bool = Field(default=False, alias="includeLlm")


class RecommendationsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    portfolio_data: list[dict] | dict | None = Field(default=None, alias="portfolioData")


class YieldRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tokens: list[str] = Field(default_factory=list)
    chain_id: str | int | None = Field(default="0xaa36a7", alias="chainId")


class ScanRequest(BaseModel):
    address: str = ""
    chain: str = "sepolia"


def _require_address(address: str) -> str:
    if not address:
        raise HTTPException(status_code=400, detail="Address is required")
    try:
        return validate_address(address)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _raw_positions(portfolio_data: list[dict] | dict) -> list[dict]:
    if isinstance(portfolio_data, dict):
        return portfolio_data.get("data", [])
    return portfolio_data


# ── endpoints ─────────────────────────────────────────────────────────────────


@router.post("/portfolio-analysis")
async def portfolio_analysis(body: AddressRequest, svc: Services = Depends(get_services)) -> dict:
    """Raw Zerion positions for an address."""
    address = _require_address(body.address)
    return {"data": await svc.portfolio.positions(address)}


@router.post("/analyze-portfolio")
async def analyze_portfolio(body: AddressRequest, svc: Services = Depends(get_services)) -> dict:
    address = _require_address(body.address)
    valuation = await svc.portfolio.value(address)
    recommendations = lending_recommendations(valuation.positions)

    await record_safely(history.record_analysis(
        address,
        valuation.total_value_usd,
        valuation.risk_score,
        recommendations,
    ))
    return {
        "valuation": valuation,
        "distribution": asset_distribution(valuation),
        "recommendations": recommendations,
    }


@router.post("/agent-analysis")
async def agent_analysis(body: AgentAnalysisRequest, svc: Services = Depends(get_services)) -> dict:
    """Valuation, DeFi market data and news sentiment, plus LLM stages on request."""
    raw = _raw_positions(body.portfolio_data) if body.portfolio_data is not None else None
    address = body.address
    if raw is None or address:
        address = _require_address(address)

    state = await svc.agent.analyze(address=address, raw_positions=raw, include_llm=body.include_llm)
    valuation = state["valuation"]

    if address:
        await record_safely(history.record_analysis(
            address,
            valuation.total_value_usd,
            valuation.risk_score,
            [state.get("strategy")] if state.get("strategy") else [],
            kind="agent",
        ))
    return {
        "valuation": valuation,
        "distribution": state.get("distribution", {}),
        "market_data": state.get("market_data"),
        "eth_analysis": state.get("eth_analysis"),
        "market_news_analysis": state.get("news"),
        "assessment": state.get("assessment"),
        "opportunities": state.get("opportunities"),
        "strategy": state.get("strategy"),
        "errors": state.get("errors", []),
        "timestamp": int(time.time() * 1000),
    }


@router.post("/get-recommendations")
async def get_recommendations(body: RecommendationsRequest) -> dict:
    if body.portfolio_data is None:
        raise HTTPException(status_code=400, detail="Portfolio data is required")
    positions = parse_positions(_raw_positions(body.portfolio_data))
    return {"recommendations": lending_recommendations(positions)}


@router.post("/yield-analysis")
async def yield_analysis(body: YieldRequest, svc: Services = Depends(get_services)) -> dict:
    if not body.tokens:
        raise HTTPException(status_code=400, detail="Tokens are required")
    chain = chain_name_for(body.chain_id)
    pools = await svc.llama.get_pools()
    return {"chain": chain, "yields": find_yields(pools, body.tokens, chain)}


@router.get("/wallet/{address}")
async def wallet_info(address: str, svc: Services = Depends(get_services)) -> dict[str, Any]:
    address = _require_address(address)
    balance = await svc.wallet.get_balance(address)
    chain_id = await svc.wallet.chain_id()
    return {
        "address": address,
        "balance_eth": f"{balance:.4f}",
        "chain_id": hex(chain_id),
        "network": chain_config(chain_id),
        "subscribed": await svc.wallet.is_subscribed(address),
    }


@router.get("/tokens/{address}")
async def token_balances(address: str, svc: Services = Depends(get_services)) -> dict[str, str]:
    """Balances of the supported Sepolia tokens, 4dp strings keyed by symbol."""
    address = _require_address(address)
    reads = [
        svc.wallet.get_balance(address) if symbol == "ETH"
        else svc.wallet.get_token_balance(address, token["address"])
        for symbol, token in SUPPORTED_TOKENS.items()
    ]
    amounts = await asyncio.gather(*reads)
    return {symbol: format_eth(amount) for symbol, amount in zip(SUPPORTED_TOKENS, amounts)}


@router.post("/portfolio-scan")
async def portfolio_scan(body: ScanRequest, svc: Services = Depends(get_services)) -> dict:
    """Brian portfolio scan; ``scan`` is null while the scan interval has not elapsed."""
    address = _require_address(body.address)
    scan = await svc.manager.scan_and_optimize(address, body.chain)
    return {"scan": scan, "throttled": scan is None and svc.manager.throttled()}


@router.get("/networks")
async def networks() -> dict[str, dict]:
    return NETWORK_CONFIG


@router.get("/history")
async def get_history(address: str | None = None, n: int = 20) -> dict[str, list[dict]]:
    analyses = await history.recent_analyses(n, address)
    transactions = await history.recent_transactions(n, address)
    return {
        "analyses": [
            {
                "ts": a.ts.isoformat(),
                "address": a.address,
                "kind": a.kind,
                "total_value_usd": a.total_value_usd,
                "risk_score": a.risk_score,
            }
            for a in analyses
        ],
        "transactions": [
            {
                "ts": t.ts.isoformat(),
                "address": t.address,
                "action": t.action,
                "tx_hash": t.tx_hash,
                "status": t.status,
            }
            for t in transactions
        ],
    }

"""DeFi market context from DeFiLlama, and the ETH position heuristic."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from assetly.portfolio.models import Action, Risk
from assetly.providers.defillama import ETH_COIN_ID, DeFiLlamaClient

logger = logging.getLogger(__name__)

MIN_POOL_TVL_USD = 100_000
MIN_ETH_POOL_TVL_USD = 1_000_000
LARGE_POSITION_USD = 100_000

# DeFiLlama coin ids for the symbols we can price without a contract address
COINGECKO_IDS = {
    "ETH": "coingecko:ethereum",
    "WETH": "coingecko:weth",
    "BTC": "coingecko:bitcoin",
    "WBTC": "coingecko:wrapped-bitcoin",
    "LINK": "coingecko:chainlink",
    "SOL": "coingecko:solana",
    "AAVE": "coingecko:aave",
    "UNI": "coingecko:uniswap",
}

LENDING_PROJECTS = {"aave-v2", "aave-v3", "compound-v2", "compound-v3", "spark", "morpho-blue"}


@dataclass
class AggregateStats:
    total_tvl: float = 0.0
    avg_apy: float = 0.0
    volume_usd_24h: float = 0.0
    avg_base_apy: float = 0.0
    avg_reward_apy: float = 0.0
    total_protocols: int = 0


@dataclass
class MarketData:
    protocols: list[dict[str, Any]]
    aggregate_stats: AggregateStats
    prices: dict[str, dict] = field(default_factory=dict)


@dataclass
class EthRecommendation:
    action: Action
    confidence: float
    reasoning: str
    suggested_entry: float | None = None
    suggested_exit: float | None = None


@dataclass
class EthAnalysis:
    current_price: float
    tvl_change_24h: float
    tvl_change_7d: float
    total_value_locked: float
    eth_pool_share: float
    avg_lending_apy: float
    avg_lp_apy: float
    best_yield: dict[str, Any] | None
    recommendation: EthRecommendation


def calculate_il_risk(il7d: float | None) -> Risk:
    """Bucket a pool's 7-day impermanent loss figure."""
    if not il7d:
        return Risk.UNKNOWN
    if il7d < 0.1:
        return Risk.LOW
    if il7d < 0.3:
        return Risk.MEDIUM
    return Risk.HIGH


def pool_risk(pool: dict) -> Risk:
    if pool.get("stablecoin"):
        return Risk.LOW
    risk = calculate_il_risk(pool.get("il7d"))
    return Risk.MEDIUM if risk == Risk.UNKNOWN else risk


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _pct_change(current: float, previous: float) -> float:
    if not previous:
        return 0.0
    return (current - previous) / previous * 100


def summarize_pools(
    pools: list[dict],
    protocols: list[dict],
    tokens: list[str],
) -> tuple[list[dict[str, Any]], AggregateStats]:
    """Pools matching any token with TVL over $100k, joined with protocol data."""
    wanted = [t.upper() for t in tokens if t]
    by_name: dict[str, dict] = {}
    for protocol in protocols:
        for key in (protocol.get("slug"), protocol.get("name")):
            if key:
                by_name.setdefault(str(key).lower(), protocol)

    rows: list[dict[str, Any]] = []
    for pool in pools:
        symbol = str(pool.get("symbol", ""))
        if not any(t in symbol.upper() for t in wanted):
            continue
        if (pool.get("tvlUsd") or 0) <= MIN_POOL_TVL_USD:
            continue
        protocol = by_name.get(str(pool.get("project", "")).lower(), {})
        rows.append({
            "pool": pool.get("pool"),
            "project": pool.get("project"),
            "chain": pool.get("chain"),
            "symbol": symbol,
            "tvl": float(pool.get("tvlUsd") or 0),
            "apy": float(pool.get("apy") or 0),
            "base_apy": float(pool.get("apyBase") or 0),
            "reward_apy": float(pool.get("apyReward") or 0),
            "apy_pct_30d": pool.get("apyPct30d"),
            "volume_usd_24h": float(pool.get("volumeUsd24h") or 0),
            "tvl_change_24h": pool.get("tvlUsdChange24h"),
            "stablecoin": "USD" in symbol or "DAI" in symbol,
            "il_risk": calculate_il_risk(pool.get("il7d")),
            "reward_tokens": pool.get("rewardTokens") or [],
            "protocol_tvl": float(protocol.get("tvl") or 0),
            "protocol_change_1d": float(protocol.get("change_1d") or 0),
            "protocol_change_7d": float(protocol.get("change_7d") or 0),
        })

    stats = AggregateStats(
        total_tvl=sum(r["tvl"] for r in rows),
        avg_apy=_mean([r["apy"] for r in rows]),
        volume_usd_24h=sum(r["volume_usd_24h"] for r in rows),
        avg_base_apy=_mean([r["base_apy"] for r in rows]),
        avg_reward_apy=_mean([r["reward_apy"] for r in rows]),
        total_protocols=len({r["project"] for r in rows}),
    )
    return rows, stats


async def get_defi_market_data(tokens: list[str], client: DeFiLlamaClient | None = None) -> MarketData:
    client = client or DeFiLlamaClient()
    coins = [COINGECKO_IDS[t.upper()] for t in tokens if t.upper() in COINGECKO_IDS]
    pools, protocols, prices = await asyncio.gather(
        client.get_pools(),
        client.get_protocols(),
        client.get_prices(coins),
    )
    rows, stats = summarize_pools(pools, protocols, tokens)
    logger.info("DeFi market data: %d pools across %d protocols", len(rows), stats.total_protocols)
    return MarketData(protocols=rows, aggregate_stats=stats, prices=prices)


def eth_recommendation(
    price: float,
    tvl_change: float,
    avg_lending_apy: float,
    avg_lp_apy: float,
    amount: float,
) -> EthRecommendation:
    score = 0
    reasons: list[str] = []

    if tvl_change > 5:
        score += 2
        reasons.append("Strong TVL growth indicates increasing network usage")
    elif tvl_change < -5:
        score -= 2
        reasons.append("Declining TVL suggests reduced network activity")

    if avg_lending_apy > 5 or avg_lp_apy > 10:
        score += 1
        reasons.append("Attractive yield opportunities available")

    if amount * price > LARGE_POSITION_USD:
        score -= 1
        reasons.append("Large position size suggests considering partial profit taking")

    if score >= 2:
        return EthRecommendation(Action.BUY, 0.8, ". ".join(reasons), suggested_entry=price * 0.95)
    if score <= -2:
        return EthRecommendation(Action.SELL, 0.7, ". ".join(reasons), suggested_exit=price * 1.05)
    return EthRecommendation(Action.HOLD, 0.6, ". ".join(reasons))


async def analyze_eth_position(amount: float, client: DeFiLlamaClient | None = None) -> EthAnalysis:
    client = client or DeFiLlamaClient()
    prices, tvl_points, pools = await asyncio.gather(
        client.get_prices([ETH_COIN_ID]),
        client.get_chain_tvl("Ethereum"),
        client.get_pools(),
    )

    price = float((prices.get(ETH_COIN_ID) or {}).get("price") or 0)
    tvls = [float(p.get("tvl") or 0) for p in tvl_points]
    current = tvls[-1] if tvls else 0.0
    change_24h = _pct_change(current, tvls[-2]) if len(tvls) >= 2 else 0.0
    change_7d = _pct_change(current, tvls[-8]) if len(tvls) >= 8 else 0.0

    eth_pools = [
        p for p in pools
        if "ETH" in str(p.get("symbol", "")).upper()
        and (p.get("tvlUsd") or 0) > MIN_ETH_POOL_TVL_USD
    ]
    lending = [p for p in eth_pools if _is_lending(p)]
    lp = [p for p in eth_pools if not _is_lending(p)]
    avg_lending = _mean([float(p.get("apy") or 0) for p in lending])
    avg_lp = _mean([float(p.get("apy") or 0) for p in lp])

    best = max(eth_pools, key=lambda p: p.get("apy") or 0, default=None)
    best_yield = None
    if best is not None:
        best_yield = {
            "protocol": best.get("project"),
            "apy": float(best.get("apy") or 0),
            "tvl": float(best.get("tvlUsd") or 0),
            "risk": pool_risk(best),
        }

    pool_tvl = sum(float(p.get("tvlUsd") or 0) for p in eth_pools)
    return EthAnalysis(
        current_price=price,
        tvl_change_24h=change_24h,
        tvl_change_7d=change_7d,
        total_value_locked=current,
        eth_pool_share=(pool_tvl / current * 100) if current else 0.0,
        avg_lending_apy=avg_lending,
        avg_lp_apy=avg_lp,
        best_yield=best_yield,
        recommendation=eth_recommendation(price, change_24h, avg_lending, avg_lp, amount),
    )


def _is_lending(pool: dict) -> bool:
    project = str(pool.get("project", "")).lower()
    return project in LENDING_PROJECTS or "lend" in project

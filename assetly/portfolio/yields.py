"""Lending yields the user can actually act on.

Only pools of protocols the deposit flow supports (AAVE v3), on the user's
chain, with at least $10M TVL. The two best non-zero APYs are kept per token.
"""
from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

SUPPORTED_PROTOCOLS = {"aave-v3"}
MIN_TVL_USD = 10_000_000
TOP_N = 2

CHAIN_NAMES = {"0xaa36a7": "Ethereum", "0x1": "Ethereum"}

# Holding symbol → pool symbols that count as the same asset
_ALIASES = {
    "ETH": {"ETH", "WETH"},
    "LINK": {"LINK", "CHAINLINK"},
}


def chain_name_for(chain_id: str | int | None) -> str:
    if isinstance(chain_id, int):
        chain_id = hex(chain_id)
    return CHAIN_NAMES.get(str(chain_id or "").lower(), "Unknown")


def _matches(token: str, pool_symbol: str) -> bool:
    token = token.upper()
    pool_symbol = pool_symbol.upper()
    return pool_symbol in _ALIASES.get(token, {token})


def _fmt(value: float | None) -> str:
    return f"{value:.2f}" if value else "0.00"


def format_pool(pool: dict) -> dict:
    return {
        "symbol": pool.get("symbol"),
        "protocol": pool.get("project"),
        "chain": pool.get("chain"),
        "supply_apy": _fmt(pool.get("apyBase")),
        "reward_apy": _fmt(pool.get("apyReward")),
        "total_apy": f"{float(pool.get('apy') or 0):.2f}",
        "tvl_usd_millions": f"{float(pool.get('tvlUsd') or 0) / 1e6:.2f}",
        "il7d": _fmt(pool.get("il7d")),
        "tvl_change_24h": _fmt(pool.get("tvlUsdChange24h")),
        "stablecoin": pool.get("stablecoin"),
    }


def find_yields(pools: list[dict], tokens: list[str], chain: str = "Ethereum") -> dict[str, list[dict]]:
    """token → up to two formatted pools, best APY first. Tokens with none are omitted."""
    relevant = [
        p for p in pools
        if p.get("chain") == chain
        and str(p.get("project", "")).lower() in SUPPORTED_PROTOCOLS
        and (p.get("tvlUsd") or 0) > MIN_TVL_USD
        and any(_matches(t, str(p.get("symbol", ""))) for t in tokens)
    ]
    logger.info("Yield analysis: %d relevant pools on %s", len(relevant), chain)

    result: dict[str, list[dict]] = {}
    for token in tokens:
        candidates = [
            p for p in relevant
            if _matches(token, str(p.get("symbol", ""))) and (p.get("apy") or 0) > 0
        ]
        candidates.sort(key=lambda p: p.get("apy") or 0, reverse=True)
        if candidates:
            result[token] = [format_pool(p) for p in candidates[:TOP_N]]
    return result

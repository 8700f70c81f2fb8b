"""Tests for the actionable lending-yield filter."""
from __future__ import annotations

from assetly.portfolio.yields import chain_name_for, find_yields, format_pool


def pool(symbol: str, apy: float, tvl: float = 20_000_000, project: str = "aave-v3",
         chain: str = "Ethereum", **extra) -> dict:
    return {"symbol": symbol, "apy": apy, "tvlUsd": tvl, "project": project, "chain": chain, **extra}


POOLS = [
    pool("WETH", 2.1, apyBase=2.1),
    pool("WETH", 3.4, apyBase=3.0, apyReward=0.4),
    pool("ETH", 1.0),
    pool("WETH", 9.0, project="compound-v3"),       # unsupported protocol
    pool("WETH", 8.0, tvl=5_000_000),               # too small
    pool("WETH", 7.0, chain="Arbitrum"),            # other chain
    pool("USDC", 0.0),                              # no yield
    pool("LINK", 0.8),
]


def test_find_yields_keeps_two_best_per_token():
    result = find_yields(POOLS, ["ETH", "LINK", "USDC"])

    assert [p["total_apy"] for p in result["ETH"]] == ["3.40", "2.10"]
    assert result["LINK"][0]["total_apy"] == "0.80"
    # tokens without a qualifying pool are omitted
    assert "USDC" not in result


def test_find_yields_other_chain():
    result = find_yields(POOLS, ["ETH", "LINK"], chain="Arbitrum")
    assert list(result) == ["ETH"]
    assert [p["total_apy"] for p in result["ETH"]] == ["7.00"]


def test_format_pool():
    formatted = format_pool(pool("WETH", 3.4, apyBase=3.0, apyReward=0.4, il7d=None, stablecoin=False))
    assert formatted == {
        "symbol": "WETH",
        "protocol": "aave-v3",
        "chain": "Ethereum",
        "supply_apy": "3.00",
        "reward_apy": "0.40",
        "total_apy": "3.40",
        "tvl_usd_millions": "20.00",
        "il7d": "0.00",
        "tvl_change_24h": "0.00",
        "stablecoin": False,
    }


def test_chain_name_for():
    assert chain_name_for("0xaa36a7") == "Ethereum"
    assert chain_name_for("0xAA36A7") == "Ethereum"
    assert chain_name_for(11155111) == "Ethereum"
    assert chain_name_for("0x66eee") == "Unknown"
    assert chain_name_for(None) == "Unknown"

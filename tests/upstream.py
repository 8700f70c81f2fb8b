"""Canned upstream responses shared by the graph and API tests."""
from __future__ import annotations

import httpx

from assetly.providers.defillama import ETH_COIN_ID

WALLET = "0x" + "ab" * 20


def zerion_position(symbol: str, quantity: float, value: float, price: float | None = None) -> dict:
    return {
        "type": "positions",
        "attributes": {
            "quantity": {"numeric": str(quantity)},
            "value": value,
            "price": price,
            "flags": {"is_trash": False},
            "fungible_info": {"symbol": symbol, "name": symbol, "implementations": []},
        },
        "relationships": {"chain": {"data": {"type": "chains", "id": "sepolia"}}},
    }


ZERION_POSITIONS = [
    zerion_position("ETH", 2, 5000.0, 2500.0),
    zerion_position("USDC", 100, 100.0, 1.0),
]

POOLS = [
    {"pool": "p1", "project": "aave-v3", "chain": "Ethereum", "symbol": "WETH",
     "tvlUsd": 50_000_000, "apy": 3.0, "apyBase": 3.0},
    {"pool": "p2", "project": "uniswap-v3", "chain": "Ethereum", "symbol": "WETH-USDC",
     "tvlUsd": 2_000_000, "apy": 12.0, "il7d": 0.2},
    {"pool": "p3", "project": "aave-v3", "chain": "Ethereum", "symbol": "USDC",
     "tvlUsd": 80_000_000, "apy": 4.5, "apyBase": 4.5, "stablecoin": True},
]

CHAIN_TVL = [{"date": i, "tvl": 100e9} for i in range(7)] + [{"date": 7, "tvl": 110e9}]

GENERAL_NEWS = [
    {"title": f"Crypto rally day {i}", "text": "BTC leads", "sentiment": "Positive",
     "source_name": "X", "date": "Mon, 01 Jan 2024 10:00:00 -0500"}
    for i in range(4)
]

ETH_NEWS = [
    {"title": "ETH upgrade ships", "text": "", "sentiment": "Positive",
     "source_name": "Reuters", "date": "Mon, 01 Jan 2024 10:00:00 -0500"},
]

BRIAN_STEPS = [{"to": "0x" + "01" * 20, "data": "0xaa"}, {"to": "0x" + "02" * 20, "data": "0xbb"}]


def upstream_handler(seen: list[str] | None = None, fail_hosts: set[str] = frozenset()):
    """Route a request to a canned response by host and path."""

    def handler(request: httpx.Request) -> httpx.Response:
        host, path = request.url.host, request.url.path
        if seen is not None:
            seen.append(host)
        if host in fail_hosts:
            return httpx.Response(500)

        if host == "api.zerion.io":
            return httpx.Response(200, json={"data": ZERION_POSITIONS, "links": {}})
        if host == "pro-api.coinmarketcap.com":
            return httpx.Response(200, json={
                "status": {"error_code": 0},
                "data": {"ETH": {"quote": {"USD": {"price": 3000.0, "percent_change_24h": 1.0}}}},
            })
        if host == "yields.llama.fi":
            return httpx.Response(200, json={"data": POOLS})
        if host == "api.llama.fi" and path == "/protocols":
            return httpx.Response(200, json=[{"name": "Aave V3", "slug": "aave-v3", "tvl": 1e10}])
        if host == "api.llama.fi":
            return httpx.Response(200, json=CHAIN_TVL)
        if host == "coins.llama.fi":
            return httpx.Response(200, json={"coins": {
                ETH_COIN_ID: {"price": 3000.0},
                "coingecko:ethereum": {"price": 3000.0},
            }})
        if host == "cryptonews-api.com":
            ticker = request.url.params.get("tickers", "")
            data = {"": GENERAL_NEWS, "ETH": ETH_NEWS}.get(ticker, [])
            return httpx.Response(200, json={"data": data, "total_pages": 1})
        if host == "api.brianknows.org" and path.endswith("/transaction"):
            return httpx.Response(200, json={"result": [{"action": "deposit", "data": {"steps": BRIAN_STEPS}}]})
        if host == "api.brianknows.org":
            return httpx.Response(200, json={"result": {"answer": "ok"}})
        return httpx.Response(404)

    return handler

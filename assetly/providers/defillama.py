"""DeFiLlama public endpoints: yield pools, protocols, prices, chain TVL.

No auth required. Each endpoint lives on its own host, so paths are full URLs.
"""
from __future__ import annotations

from typing import Iterable

from assetly.providers.base import ProviderClient

POOLS_URL = "https://yields.llama.fi/pools"
PROTOCOLS_URL = "https://api.llama.fi/protocols"
PRICES_URL = "https://coins.llama.fi/prices/current/{coins}"
CHAIN_TVL_URL = "https://api.llama.fi/v2/historicalChainTvl/{chain}"

ETH_COIN_ID = "ethereum:0x0000000000000000000000000000000000000000"


class DeFiLlamaClient(ProviderClient):
    name = "defillama"

    async def get_pools(self) -> list[dict]:
        body = await self._get(POOLS_URL)
        return body.get("data", [])

    async def get_protocols(self) -> list[dict]:
        return await self._get(PROTOCOLS_URL)

    async def get_prices(self, coins: Iterable[str]) -> dict[str, dict]:
        """Prices keyed by coin id (``chain:address`` or ``coingecko:id``)."""
        ids = ",".join(coins)
        if not ids:
            return {}
        body = await self._get(PRICES_URL.format(coins=ids))
        return body.get("coins", {})

    async def get_chain_tvl(self, chain: str = "Ethereum") -> list[dict]:
        """Daily ``{date, tvl}`` points, oldest first."""
        return await self._get(CHAIN_TVL_URL.format(chain=chain))

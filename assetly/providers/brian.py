"""Brian agent API: knowledge answers and transaction building.

``ask`` sends a natural-language question to a knowledge box and returns the
answer text. ``transact`` turns a prompt such as "swap 10 USDC for ETH" into
ready-to-sign transaction steps for the given address.
"""
from __future__ import annotations

import logging
from typing import Any, Literal

import httpx

from assetly.config import settings
from assetly.providers.base import ProviderClient

logger = logging.getLogger(__name__)

AgentKind = Literal["portfolio", "trading", "defi", "research", "aave"]

_AGENT_PROMPTS: dict[str, str] = {
    "portfolio": (
        "Analyze this portfolio on {chain}:\n"
        "- Address: {address}\n"
        "- Show total value\n"
        "- List all tokens and balances\n"
        "- Identify major positions"
    ),
    "trading": (
        "Analyze trading opportunities for {address} on {chain}:\n"
        "- Current market conditions\n"
        "- Potential entry/exit points\n"
        "- Risk assessment\n"
        "- Recommended trades"
    ),
    "defi": (
        "Find DeFi opportunities for {address} on {chain}:\n"
        "- Best yield farming positions\n"
        "- Lending opportunities\n"
        "- Liquidity pools analysis\n"
        "- Risk/reward ratios"
    ),
    "research": (
        "Research this portfolio on {chain}:\n"
        "- Token fundamentals\n"
        "- Protocol analysis\n"
        "- Market trends\n"
        "- Risk factors"
    ),
    "aave": (
        "Analyze Aave opportunities for {address} on {chain}:\n"
        "- Current positions\n"
        "- Health factor\n"
        "- Borrowing power\n"
        "- Best yield opportunities\n"
        "- Risk assessment\n"
        "- Liquidation risks"
    ),
}


def agent_prompt(kind: str, address: str, chain: str = "ethereum") -> str:
    try:
        template = _AGENT_PROMPTS[kind]
    except KeyError:
        raise ValueError(f"Unknown agent kind: {kind!r}") from None
    return template.format(address=address, chain=chain)


class BrianClient(ProviderClient):
    name = "brian"
    base_url = "https://api.brianknows.org/api/v0"

    def __init__(
        self,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(transport, **kwargs)
        self.api_key = api_key if api_key is not None else settings.brian_api_key

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-brian-api-key": self._require_key(self.api_key, "BRIAN_API_KEY"),
        }

    async def ask(self, prompt: str, kb: str | None = None) -> dict[str, Any]:
        body = await self._post(
            "/agent/knowledge",
            json={"prompt": prompt, "kb": kb or settings.brian_kb},
            headers=self._headers(),
        )
        return body.get("result", body)

    async def ask_agent(self, kind: AgentKind, address: str, chain: str = "ethereum") -> dict[str, Any]:
        return await self.ask(agent_prompt(kind, address, chain))

    async def transact(
        self,
        prompt: str,
        address: str,
        chain_id: int | None = None,
    ) -> list[dict[str, Any]]:
        """Return the list of transaction results Brian built for ``prompt``."""
        payload: dict[str, Any] = {"prompt": prompt, "address": address}
        if chain_id is not None:
            payload["chainId"] = str(chain_id)
        logger.info("Brian transaction request: %s", prompt)
        body = await self._post("/agent/transaction", json=payload, headers=self._headers())
        result = body.get("result", [])
        return result if isinstance(result, list) else [result]


def transaction_steps(results: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Flatten the ``data.steps`` of every Brian transaction result."""
    steps: list[dict[str, Any]] = []
    for result in results:
        steps.extend(((result.get("data") or {}).get("steps")) or [])
    return steps

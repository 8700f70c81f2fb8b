"""Token swaps, built by the Brian transaction agent and signed in the browser."""
from __future__ import annotations

import logging

from assetly.finance.aave import parse_amount
from assetly.finance.networks import parse_chain_id, validate_address
from assetly.providers.brian import BrianClient, transaction_steps

logger = logging.getLogger(__name__)


class SwapService:
    def __init__(self, brian: BrianClient | None = None) -> None:
        self.brian = brian or BrianClient()

    async def build_swap(
        self,
        address: str,
        token_in: str,
        token_out: str,
        amount: str | float,
        chain_id: str | int | None = None,
    ) -> list[dict]:
        validate_address(address)
        parse_amount(amount)
        if not token_in or not token_out:
            raise ValueError("tokenIn and tokenOut are required")
        if token_in.upper() == token_out.upper():
            raise ValueError("tokenIn and tokenOut must differ")

        prompt = f"swap {amount} {token_in} for {token_out}"
        results = await self.brian.transact(prompt, address, parse_chain_id(chain_id))
        steps = transaction_steps(results)
        logger.info("Swap %s → %s: %d step(s)", token_in, token_out, len(steps))
        return steps

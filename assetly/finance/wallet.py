"""Read-only chain access for connected wallets.

The user's keys never reach this process: balances and subscription status
are read over JSON-RPC, and the subscription payment is returned unsigned
for the browser wallet to send.
"""
from __future__ import annotations

import logging
from decimal import Decimal

from web3 import AsyncWeb3, Web3

from assetly.config import settings
from assetly.finance.networks import validate_address

logger = logging.getLogger(__name__)

ERC20_ABI = [
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "decimals",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
    {
        "name": "approve",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
]

# How far back to look for a subscription payment
SUBSCRIPTION_LOOKBACK_BLOCKS = 100


def format_eth(amount: Decimal | float) -> str:
    return f"{Decimal(str(amount)):.4f}"


def make_web3(rpc_url: str | None = None) -> AsyncWeb3:
    return AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url or settings.infura_rpc_url))


def _address_topic(address: str) -> str:
    return "0x" + address.lower().removeprefix("0x").rjust(64, "0")


class Wallet:
    """JSON-RPC queries about a wallet address."""

    def __init__(self, w3: AsyncWeb3 | None = None, rpc_url: str | None = None) -> None:
        self.w3 = w3 or make_web3(rpc_url)

    # ── queries ───────────────────────────────────────────────────────────────

    async def get_balance(self, address: str) -> Decimal:
        """Native balance in ETH."""
        wei = await self.w3.eth.get_balance(Web3.to_checksum_address(validate_address(address)))
        return Web3.from_wei(wei, "ether")

    async def get_token_balance(self, address: str, token: str) -> Decimal:
        """ERC-20 balance in whole tokens."""
        contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(validate_address(token)),
            abi=ERC20_ABI,
        )
        owner = Web3.to_checksum_address(validate_address(address))
        raw = await contract.functions.balanceOf(owner).call()
        decimals = await contract.functions.decimals().call()
        return Decimal(raw) / Decimal(10) ** decimals

    async def chain_id(self) -> int:
        return await self.w3.eth.chain_id

    # ── subscription ──────────────────────────────────────────────────────────

    def build_subscription_tx(self, sender: str) -> dict:
        """Unsigned fixed-fee ETH transfer to the subscription address."""
        if not settings.subscription_address:
            raise ValueError("Subscription address not configured")
        validate_address(sender)
        fee_wei = Web3.to_wei(settings.subscription_fee_eth, "ether")
        return {
            "from": sender,
            "to": validate_address(settings.subscription_address),
            "value": hex(fee_wei),
            "chainId": hex(settings.chain_id),
        }

    async def is_subscribed(self, address: str) -> bool:
        """True if a recent log of the subscription address names ``address``."""
        if not settings.subscription_address:
            return False
        topic = _address_topic(validate_address(address))
        latest = await self.w3.eth.get_block_number()
        logs = await self.w3.eth.get_logs({
            "address": Web3.to_checksum_address(settings.subscription_address),
            "fromBlock": max(latest - SUBSCRIPTION_LOOKBACK_BLOCKS, 0),
            "toBlock": "latest",
        })
        for log in logs:
            if any(Web3.to_hex(t).lower() == topic for t in log["topics"]):
                return True
        return False

"""AAVE V3 supply on Sepolia.

A deposit is always the same two calls: ERC-20 ``approve(pool, amount)`` on
the asset, then ``supply(asset, amount, onBehalfOf, 0)`` on the pool.
``build_deposit`` returns both unsigned for the browser wallet;
``deposit`` signs and sends them with the agent key, one receipt at a time.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from web3 import AsyncWeb3, Web3

from assetly.config import settings
from assetly.core.audit import TxApproval, require_approval
from assetly.finance.networks import SEPOLIA_CHAIN_ID, parse_chain_id, validate_address
from assetly.finance.wallet import ERC20_ABI, make_web3

logger = logging.getLogger(__name__)

AAVE_POOL = "0x6Ae43d3271ff6888e7Fc43Fd7321a503ff738951"
AAVE_USDC = "0x94a9d9ac8a22534e3faca9f4e7f2e2cf85d5e4c8"
AAVE_USDC_DECIMALS = 6

POOL_ABI = [
    {
        "name": "supply",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "asset", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "onBehalfOf", "type": "address"},
            {"name": "referralCode", "type": "uint16"},
        ],
        "outputs": [],
    },
    {
        "name": "getUserAccountData",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "user", "type": "address"}],
        "outputs": [
            {"name": "totalCollateralBase", "type": "uint256"},
            {"name": "totalDebtBase", "type": "uint256"},
            {"name": "availableBorrowsBase", "type": "uint256"},
            {"name": "currentLiquidationThreshold", "type": "uint256"},
            {"name": "ltv", "type": "uint256"},
            {"name": "healthFactor", "type": "uint256"},
        ],
    },
]

# AAVE reports account values in the oracle base currency (USD, 8 decimals)
_BASE_UNIT = Decimal(10) ** 8
_WAD = Decimal(10) ** 18


class TransactionFailed(Exception):
    """A sent transaction was mined but reverted."""


@dataclass
class AccountData:
    total_collateral_usd: Decimal
    total_debt_usd: Decimal
    available_borrows_usd: Decimal
    liquidation_threshold: Decimal
    ltv: Decimal
    health_factor: Decimal


def parse_amount(amount: str | float | Decimal) -> Decimal:
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {amount!r}") from None
    if not value.is_finite() or value <= 0:
        raise ValueError("Amount must be greater than zero")
    return value


def to_units(amount: str | float | Decimal, decimals: int) -> int:
    units = int(parse_amount(amount) * Decimal(10) ** decimals)
    if units == 0:
        raise ValueError(f"Amount {amount} is below the token's precision of {decimals} decimals")
    return units


def deposit_prompt(amount: str | float, symbol: str, chain_id: str | int | None) -> str:
    """Prompt for a Brian-built deposit. Brian only knows the Sepolia AAVE market."""
    if parse_chain_id(chain_id) != SEPOLIA_CHAIN_ID:
        raise ValueError("AAVE deposits are only supported on Sepolia testnet")
    parse_amount(amount)
    return f"deposit {amount} {symbol} to aave on sepolia testnet"


class AaveService:
    def __init__(
        self,
        w3: AsyncWeb3 | None = None,
        pool: str = AAVE_POOL,
        asset: str = AAVE_USDC,
        decimals: int = AAVE_USDC_DECIMALS,
    ) -> None:
        self.w3 = w3 or make_web3()
        self.pool_address = Web3.to_checksum_address(pool)
        self.asset_address = Web3.to_checksum_address(asset)
        self.decimals = decimals
        self.pool = self.w3.eth.contract(address=self.pool_address, abi=POOL_ABI)
        self.token = self.w3.eth.contract(address=self.asset_address, abi=ERC20_ABI)

    def build_deposit(self, owner: str, amount: str | float | Decimal) -> list[dict]:
        """The approve and supply transactions, unsigned, in send order."""
        owner = Web3.to_checksum_address(validate_address(owner))
        units = to_units(amount, self.decimals)
        approve = self.token.encode_abi("approve", args=[self.pool_address, units])
        supply = self.pool.encode_abi("supply", args=[self.asset_address, units, owner, 0])
        return [
            {"from": owner, "to": self.asset_address, "data": approve, "value": "0x0"},
            {"from": owner, "to": self.pool_address, "data": supply, "value": "0x0"},
        ]

    async def deposit(self, amount: str | float | Decimal) -> str:
        """Supply ``amount`` from the agent account. Returns the supply tx hash."""
        if not settings.agent_private_key:
            raise ValueError("AGENT_PRIVATE_KEY is not configured")
        account = self.w3.eth.account.from_key(settings.agent_private_key)
        txs = self.build_deposit(account.address, amount)

        await require_approval(TxApproval(
            title=f"Supply {amount} USDC to AAVE",
            details={
                "from": account.address,
                "pool": self.pool_address,
                "asset": self.asset_address,
                "amount": str(amount),
            },
            risk="medium",
        ))

        tx_hash = ""
        for label, tx in zip(("approve", "supply"), txs):
            logger.info("AAVE %s: sending", label)
            tx_hash = await self._send(account, tx)
            logger.info("AAVE %s confirmed: %s", label, tx_hash)
        return tx_hash

    async def _send(self, account, tx: dict) -> str:
        eth = self.w3.eth
        full = {
            "from": account.address,
            "to": tx["to"],
            "data": tx["data"],
            "value": int(tx["value"], 16),
            "nonce": await eth.get_transaction_count(account.address),
            "chainId": await eth.chain_id,
            "gasPrice": await eth.gas_price,
        }
        full["gas"] = await eth.estimate_gas(full)
        signed = account.sign_transaction(full)
        tx_hash = await eth.send_raw_transaction(signed.raw_transaction)
        receipt = await eth.wait_for_transaction_receipt(tx_hash)
        if receipt["status"] != 1:
            raise TransactionFailed(f"Transaction reverted: {Web3.to_hex(tx_hash)}")
        return Web3.to_hex(tx_hash)

    async def get_user_account_data(self, address: str) -> AccountData:
        user = Web3.to_checksum_address(validate_address(address))
        raw = await self.pool.functions.getUserAccountData(user).call()
        collateral, debt, available, threshold, ltv, health = raw
        return AccountData(
            total_collateral_usd=Decimal(collateral) / _BASE_UNIT,
            total_debt_usd=Decimal(debt) / _BASE_UNIT,
            available_borrows_usd=Decimal(available) / _BASE_UNIT,
            liquidation_threshold=Decimal(threshold) / Decimal(10_000),
            ltv=Decimal(ltv) / Decimal(10_000),
            health_factor=Decimal(health) / _WAD,
        )

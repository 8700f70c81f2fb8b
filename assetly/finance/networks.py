"""Supported test networks and address helpers.

``NETWORK_CONFIG`` entries are the exact params of the wallet
``wallet_addEthereumChain`` request, so the dashboard can hand them to
``window.ethereum`` unchanged.
"""
from __future__ import annotations

import re

from assetly.config import settings

SEPOLIA_CHAIN_ID = 11155111
ARBITRUM_SEPOLIA_CHAIN_ID = 421614

_EVM_ADDR_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def _sepolia_rpc() -> str:
    return f"https://sepolia.infura.io/v3/{settings.infura_api_key}"


NETWORK_CONFIG: dict[str, dict] = {
    "Ethereum Sepolia": {
        "chainId": hex(SEPOLIA_CHAIN_ID),
        "chainName": "Sepolia",
        "nativeCurrency": {"name": "Sepolia ETH", "symbol": "ETH", "decimals": 18},
        "rpcUrls": [_sepolia_rpc()],
        "blockExplorerUrls": ["https://sepolia.etherscan.io"],
    },
    "Arbitrum Sepolia": {
        "chainId": hex(ARBITRUM_SEPOLIA_CHAIN_ID),
        "chainName": "Arbitrum Sepolia",
        "nativeCurrency": {"name": "Arbitrum Sepolia ETH", "symbol": "ETH", "decimals": 18},
        "rpcUrls": ["https://sepolia-rollup.arbitrum.io/rpc"],
        "blockExplorerUrls": ["https://sepolia.arbiscan.io"],
    },
}


def parse_chain_id(value: str | int | None) -> int | None:
    """Accept 11155111, "11155111" or "0xaa36a7"."""
    if value is None or value == "":
        return None
    if isinstance(value, int):
        return value
    value = value.strip().lower()
    return int(value, 16) if value.startswith("0x") else int(value)


def chain_config(chain_id: str | int) -> dict | None:
    cid = parse_chain_id(chain_id)
    for network in NETWORK_CONFIG.values():
        if int(network["chainId"], 16) == cid:
            return network
    return None


def validate_address(address: str) -> str:
    """Return ``address`` unchanged if it is a 0x-prefixed 20-byte hex string."""
    if not isinstance(address, str) or not _EVM_ADDR_RE.match(address):
        raise ValueError(f"Invalid EVM address: {address!r}")
    return address

"""Token constants: stablecoin detection, supported Sepolia tokens, priorities."""
from __future__ import annotations

_KNOWN_STABLE = {
    "USDC", "USDT", "DAI", "BUSD", "TUSD", "USDP",
    "AETHUSDC", "SEPOLIAMNT", "USDD", "USDX",
}

# Sepolia deployments
SUPPORTED_TOKENS: dict[str, dict] = {
    "ETH": {
        "symbol": "ETH",
        "name": "Ethereum",
        "decimals": 18,
        "address": "0x0000000000000000000000000000000000000000",
    },
    "LINK": {
        "symbol": "LINK",
        "name": "Chainlink",
        "decimals": 18,
        "address": "0x779877A7B0D9E8603169DdbD7836e478b4624789",
    },
    "USDC": {
        "symbol": "USDC",
        "name": "USD Coin",
        "decimals": 6,
        "address": "0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238",
    },
}

# Used to pick which holdings get their own news lookups
NEWS_PRIORITY: dict[str, int] = {
    "ETH": 5,
    "BTC": 4,
    "LINK": 3,
    "USDC": 3,
    "BNB": 2,
    "MATIC": 2,
    "AAVE": 2,
}

# Tickers recognised when scanning headlines for mentioned tokens
COMMON_TICKERS = ["BTC", "ETH", "USDT", "BNB", "SOL", "LINK"]


def is_stablecoin(symbol: str) -> bool:
    upper = (symbol or "").upper()
    return upper in _KNOWN_STABLE or "USD" in upper


def top_tokens(symbols: list[str], limit: int = 6) -> list[str]:
    """Order symbols by news priority (stable for ties) and keep ``limit``."""
    return sorted(symbols, key=lambda s: NEWS_PRIORITY.get(s, 0), reverse=True)[:limit]


def tokens_in_text(text: str) -> list[str]:
    upper = (text or "").upper()
    return [t for t in COMMON_TICKERS if t in upper]

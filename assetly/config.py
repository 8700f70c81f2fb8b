from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Data providers ────────────────────────────────────────────────────────
    zerion_api_key: str = ""
    # Zerion serves testnet balances when this header is "testnet"
    zerion_env: str = "testnet"
    cmc_api_key: str = ""
    cryptonews_api_key: str = ""

    # ── Agents / LLM ──────────────────────────────────────────────────────────
    brian_api_key: str = ""
    brian_kb: str = "public-knowledge-box"
    llm_provider: Literal["openai", "anthropic"] = "openai"
    llm_model: str = "gpt-4o"
    llm_temperature: float = 0.3
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    # ── Chain ─────────────────────────────────────────────────────────────────
    infura_api_key: str = ""
    # Explicit RPC endpoint wins over the Infura-derived one
    rpc_url: str = ""
    chain_id: int = 11155111  # Sepolia
    agent_private_key: str = ""
    subscription_address: str = ""
    subscription_fee_eth: Decimal = Decimal("0.001")

    # ── HTTP client behaviour ─────────────────────────────────────────────────
    http_timeout: float = 15.0
    http_max_retries: int = 3
    http_backoff_seconds: float = 0.5

    # ── App ───────────────────────────────────────────────────────────────────
    scan_interval_seconds: int = 300
    sqlite_path: Path = Path("./data/assetly.db")
    log_level: str = "INFO"
    # Require operator approval before any server-signed transaction
    audit_mode: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    @field_validator("sqlite_path", mode="before")
    @classmethod
    def expand_sqlite_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser()

    @property
    def infura_rpc_url(self) -> str:
        if self.rpc_url:
            return self.rpc_url
        return f"https://sepolia.infura.io/v3/{self.infura_api_key}"

    @property
    def is_testnet(self) -> bool:
        return self.chain_id in {11155111, 421614, 84532}


# Singleton: import and use `settings` everywhere
settings = Settings()

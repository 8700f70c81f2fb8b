"""Tests for wallet queries and subscriptions, against an in-memory web3 stand-in."""
from __future__ import annotations

from decimal import Decimal

import pytest

from assetly.config import settings
from assetly.finance.networks import (
    ARBITRUM_SEPOLIA_CHAIN_ID,
    NETWORK_CONFIG,
    chain_config,
    parse_chain_id,
    validate_address,
)
from assetly.finance.wallet import Wallet, format_eth

USER = "0x" + "ab" * 20
SUBSCRIPTION = "0x" + "cd" * 20


def topic_for(address: str) -> bytes:
    return bytes.fromhex(address[2:].rjust(64, "0"))


class FakeEth:
    def __init__(self, logs: list[dict] | None = None) -> None:
        self.logs = logs or []
        self.filters: list[dict] = []

    async def get_balance(self, address: str) -> int:
        return 1_500_000_000_000_000_000

    async def get_block_number(self) -> int:
        return 1000

    async def get_logs(self, params: dict) -> list[dict]:
        self.filters.append(params)
        return self.logs

    async def _chain_id(self) -> int:
        return 11155111

    @property
    def chain_id(self):
        return self._chain_id()


class FakeWeb3:
    def __init__(self, logs: list[dict] | None = None) -> None:
        self.eth = FakeEth(logs)


@pytest.fixture
def subscription(monkeypatch):
    monkeypatch.setattr(settings, "subscription_address", SUBSCRIPTION)
    monkeypatch.setattr(settings, "subscription_fee_eth", Decimal("0.001"))
    monkeypatch.setattr(settings, "chain_id", 11155111)


# ── queries ───────────────────────────────────────────────────────────────────


async def test_get_balance_in_eth():
    wallet = Wallet(w3=FakeWeb3())
    assert await wallet.get_balance(USER) == Decimal("1.5")
    assert await wallet.chain_id() == 11155111


async def test_get_balance_rejects_bad_address():
    with pytest.raises(ValueError, match="Invalid EVM address"):
        await Wallet(w3=FakeWeb3()).get_balance("not-an-address")


def test_format_eth():
    assert format_eth(Decimal("1.23456")) == "1.2346"
    assert format_eth(0) == "0.0000"


# ── subscription ──────────────────────────────────────────────────────────────


def test_build_subscription_tx(subscription):
    tx = Wallet(w3=FakeWeb3()).build_subscription_tx(USER)
    assert tx == {
        "from": USER,
        "to": SUBSCRIPTION,
        "value": "0x38d7ea4c68000",
        "chainId": "0xaa36a7",
    }


def test_build_subscription_tx_unconfigured(monkeypatch):
    monkeypatch.setattr(settings, "subscription_address", "")
    with pytest.raises(ValueError, match="Subscription address not configured"):
        Wallet(w3=FakeWeb3()).build_subscription_tx(USER)


async def test_is_subscribed_finds_topic(subscription):
    w3 = FakeWeb3(logs=[
        {"topics": [b"\x11" * 32]},
        {"topics": [b"\x22" * 32, topic_for(USER)]},
    ])
    assert await Wallet(w3=w3).is_subscribed(USER) is True
    [params] = w3.eth.filters
    assert params["fromBlock"] == 900
    assert params["address"].lower() == SUBSCRIPTION


async def test_is_subscribed_no_matching_log(subscription):
    w3 = FakeWeb3(logs=[{"topics": [topic_for("0x" + "ef" * 20)]}])
    assert await Wallet(w3=w3).is_subscribed(USER) is False


async def test_is_subscribed_unconfigured(monkeypatch):
    monkeypatch.setattr(settings, "subscription_address", "")
    w3 = FakeWeb3()
    assert await Wallet(w3=w3).is_subscribed(USER) is False
    assert w3.eth.filters == []


# ── networks ──────────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "value,expected",
    [(11155111, 11155111), ("11155111", 11155111), ("0xaa36a7", 11155111), ("0xAA36A7", 11155111),
     (None, None), ("", None)],
)
def test_parse_chain_id(value, expected):
    assert parse_chain_id(value) == expected


def test_chain_config():
    assert chain_config("0xaa36a7") is NETWORK_CONFIG["Ethereum Sepolia"]
    assert chain_config(ARBITRUM_SEPOLIA_CHAIN_ID)["chainName"] == "Arbitrum Sepolia"
    assert chain_config(1) is None


def test_validate_address():
    assert validate_address(USER) == USER
    for bad in ("", "0x123", "ab" * 20, "0x" + "zz" * 20, None):
        with pytest.raises(ValueError):
            validate_address(bad)

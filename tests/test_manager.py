"""Tests for AAVE lending recommendations and the throttled portfolio scan."""
from __future__ import annotations

from assetly.portfolio.manager import PortfolioManager, lending_recommendations
from assetly.portfolio.models import Risk, TokenPosition
from assetly.providers.base import ProviderError


class FakeBrian:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.prompts: list[str] = []

    async def ask(self, prompt: str, kb: str | None = None) -> dict:
        self.prompts.append(prompt)
        if self.fail:
            raise ProviderError("brian", "HTTP 500")
        return {"answer": "Mostly ETH, consider lending USDC"}


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_lending_recommendations():
    positions = [
        TokenPosition(symbol="ETH", quantity=1.23456),
        TokenPosition(symbol="LINK", quantity=10),
        TokenPosition(symbol="USDC", quantity=250),
    ]
    [rec] = lending_recommendations(positions)

    assert rec.type == "YIELD"
    assert rec.description == "Available AAVE Lending Opportunities"
    assert [a.description for a in rec.actions] == ["ETH Balance: 1.2346", "USDC Balance: 250.0000"]
    assert rec.actions[0].expected_return == "Current AAVE lending rate: 4.82% APY"
    assert all(a.risk == Risk.LOW for a in rec.actions)


def test_lending_recommendations_none_relevant():
    assert lending_recommendations([TokenPosition(symbol="LINK", quantity=1)]) == []


async def test_scan_is_throttled_within_interval():
    brian, clock = FakeBrian(), FakeClock()
    manager = PortfolioManager(brian=brian, interval=300, clock=clock)

    scan = await manager.scan_and_optimize("0xabc", "sepolia")
    assert scan is not None
    assert scan.analysis == "Mostly ETH, consider lending USDC"
    assert "0xabc" in brian.prompts[0]

    clock.now += 299
    assert await manager.scan_and_optimize("0xabc", "sepolia") is None
    assert len(brian.prompts) == 1

    clock.now += 1
    assert await manager.scan_and_optimize("0xabc", "sepolia") is not None
    assert len(brian.prompts) == 2


async def test_failed_scan_returns_none_and_does_not_throttle():
    brian, clock = FakeBrian(fail=True), FakeClock()
    manager = PortfolioManager(brian=brian, interval=300, clock=clock)

    assert await manager.scan_and_optimize("0xabc", "sepolia") is None
    assert not manager.throttled()

    brian.fail = False
    assert await manager.scan_and_optimize("0xabc", "sepolia") is not None

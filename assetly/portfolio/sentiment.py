"""News sentiment scoring.

Each news item carries a provider label (Positive / Negative / Neutral).
The label is turned into a number, adjusted for price moves mentioned in the
text, contrarian phrasing, source credibility and recency, and averaged over
all items. The resulting float is bucketed into BUY / SELL / HOLD.
"""
from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime

from assetly.portfolio.models import Action, MarketEvent, Mood, Risk
from assetly.portfolio.tokens import tokens_in_text

logger = logging.getLogger(__name__)

LABEL_SCORES = {"positive": 1.0, "negative": -1.5, "neutral": 0.0}

# Fixed thresholds for per-token recommendations
BUY_THRESHOLD = 0.3
SELL_THRESHOLD = -0.5

RECENT_WINDOW = timedelta(hours=48)
RECENT_WEIGHT = 1.5

TOP_SOURCES = ("Bloomberg", "Reuters", "CoinDesk", "The Block")
GOOD_SOURCES = ("Cointelegraph", "NewsBTC", "Decrypt")

_PRICE_MOVE_RE = re.compile(r"(\d+)%\s*(drop|decline|increase|rise|gain)")


def source_credibility(source: str) -> float:
    source = source or ""
    if any(s in source for s in TOP_SOURCES):
        return 1.2
    if any(s in source for s in GOOD_SOURCES):
        return 1.0
    return 0.8


def _parse_date(value: str) -> datetime | None:
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _label(item: dict) -> str:
    return str(item.get("sentiment") or "Neutral").lower()


def score_item(item: dict, now: datetime | None = None) -> float:
    """Weighted score of a single news item."""
    now = now or datetime.now(timezone.utc)
    score = LABEL_SCORES.get(_label(item), 0.0)
    text = f"{item.get('title', '')} {item.get('text', '')}".lower()

    move = _PRICE_MOVE_RE.search(text)
    if move:
        pct = int(move.group(1))
        if move.group(2) in ("drop", "decline"):
            score -= 1.0 if pct > 20 else 0.5
        else:
            score += 0.8 if pct > 20 else 0.4

    if "despite" in text:
        score *= -0.5

    score *= source_credibility(item.get("source_name", ""))

    published = _parse_date(item.get("date", ""))
    if published is not None and published > now - RECENT_WINDOW:
        score *= RECENT_WEIGHT
    return score


def score_news(items: list[dict], now: datetime | None = None) -> float:
    """Mean weighted score; 0.0 for no news."""
    if not items:
        return 0.0
    now = now or datetime.now(timezone.utc)
    return sum(score_item(i, now) for i in items) / len(items)


def recommend(score: float, symbol: str = "") -> Action:
    """Bucket a token score against the two fixed thresholds.

    USDC is pegged, so it is always HOLD whatever the news says.
    """
    if symbol.upper() == "USDC":
        return Action.HOLD
    if score > BUY_THRESHOLD:
        return Action.BUY
    if score < SELL_THRESHOLD:
        return Action.SELL
    return Action.HOLD


def dynamic_signal(score: float, news_count: int) -> Action:
    """Signal whose threshold grows with news volume, capped at 0.5."""
    threshold = min(0.3 * math.sqrt(max(news_count, 0)), 0.5)
    if score < -threshold:
        return Action.SELL
    if score > threshold:
        return Action.BUY
    return Action.HOLD


def _direction(item: dict) -> int:
    raw = item.get("sentiment")
    if isinstance(raw, (int, float)):
        if raw > 0.3:
            return 1
        if raw < -0.3:
            return -1
        return 0
    label = _label(item)
    if label == "positive":
        return 1
    if label == "negative":
        return -1
    return 0


def market_mood(items: list[dict], sector: str | None = None) -> Mood:
    """Net direction of the items, optionally restricted to a sector keyword."""
    if sector:
        items = [i for i in items if sector.lower() in str(i.get("title", "")).lower()]
    net = sum(_direction(i) for i in items)
    if net > 0:
        return Mood.BULLISH
    if net < 0:
        return Mood.BEARISH
    return Mood.NEUTRAL


def sector_moods(items: list[dict]) -> dict[str, Mood]:
    return {
        "overall": market_mood(items),
        "defi": market_mood(items, "defi"),
        "nft": market_mood(items, "nft"),
        "layer1": market_mood(items, "layer1"),
    }


def market_sentiment(items: list[dict]) -> Mood:
    """Needs a margin of more than three items to call a direction."""
    net = sum(_direction(i) for i in items)
    if net > 3:
        return Mood.BULLISH
    if net < -3:
        return Mood.BEARISH
    return Mood.NEUTRAL


def major_events(items: list[dict]) -> list[MarketEvent]:
    events = []
    for item in items:
        label = _label(item)
        if label == "neutral":
            continue
        events.append(MarketEvent(
            title=item.get("title", ""),
            summary=item.get("text", ""),
            impact=Risk.HIGH if label == "positive" else Risk.MEDIUM,
            timestamp=item.get("date", ""),
            tokens=tokens_in_text(item.get("text", "")),
        ))
    return events


def normalize_label(label: str) -> str:
    label = (label or "").lower()
    return label if label in ("positive", "negative") else "neutral"

"""Sanitize third-party text before it is placed in an LLM prompt.

News headlines and summaries are written by strangers. ``scrub()`` decodes
HTML, strips tags, replaces prompt-injection phrases with ``[FILTERED]`` and
truncates the result.
"""
from __future__ import annotations

import html
import re

_INJECTION_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"(ignore|disregard|forget|override)\s+(all\s+)?(previous|prior|above|earlier)?\s*instructions?", re.IGNORECASE),
    re.compile(r"\byou\s+are\s+now\b", re.IGNORECASE),
    re.compile(r"\bpretend\s+(you\s+are|to\s+be)\b", re.IGNORECASE),
    re.compile(r"\bnew\s+(instructions?|directive|task)\b", re.IGNORECASE),
    re.compile(r"\bsystem\s+prompt\b", re.IGNORECASE),
    re.compile(r"<\s*/?\s*(system|instructions?|prompt)\s*>", re.IGNORECASE),
    # fake turn markers
    re.compile(r"\b(system|assistant|human|user)\s*:\s", re.IGNORECASE),
    # steer the strategy toward a specific trade
    re.compile(r"\b(always|must)\s+(recommend|buy|sell)\b", re.IGNORECASE),
    re.compile(r"\b(send|transfer|approve)\s+(all|everything|funds|balance|unlimited)\b", re.IGNORECASE),
    re.compile(r"\b(reveal|print|show|expose)\s+(the\s+)?(private\s+key|seed|mnemonic)\b", re.IGNORECASE),
]

_HTML_TAG_RE = re.compile(r"<[^>]{0,200}>")
_WHITESPACE_RE = re.compile(r"\s+")


def scrub(text: str, max_length: int = 400) -> str:
    if not text:
        return ""
    text = html.unescape(text)
    text = _HTML_TAG_RE.sub(" ", text)
    for pattern in _INJECTION_PATTERNS:
        text = pattern.sub("[FILTERED]", text)
    text = _WHITESPACE_RE.sub(" ", text).strip()
    return text[:max_length]


def scrub_news(items: list[dict], limit: int = 10) -> list[dict]:
    """Prompt-safe copies of news items, keeping only the fields prompts use."""
    return [
        {
            "title": scrub(item.get("title", ""), 200),
            "text": scrub(item.get("text", "")),
            "source": scrub(item.get("source_name", ""), 60),
            "sentiment": item.get("sentiment", "Neutral"),
            "date": item.get("date", ""),
        }
        for item in items[:limit]
    ]

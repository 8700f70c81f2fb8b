"""Analysis and transaction history, SQLite-backed.

Keeps every portfolio analysis and every transaction the API prepared or
sent, so the dashboard can show what happened across restarts.
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from sqlalchemy import DateTime, Float, String, Text, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from assetly.config import settings

logger = logging.getLogger(__name__)

_engine = None
async_session: async_sessionmaker[AsyncSession] = None  # type: ignore[assignment]


class Base(DeclarativeBase):
    pass


class AnalysisRecord(Base):
    __tablename__ = "analyses"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    ts: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    address: Mapped[str] = mapped_column(String(42), index=True)
    kind: Mapped[str] = mapped_column(String(32), default="valuation")
    total_value_usd: Mapped[float] = mapped_column(Float, default=0.0)
    risk_score: Mapped[float] = mapped_column(Float, default=0.0)
    recommendations: Mapped[str] = mapped_column(Text, default="[]")  # JSON


class TransactionRecord(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    ts: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    address: Mapped[str] = mapped_column(String(42), index=True)
    action: Mapped[str] = mapped_column(String(32))  # deposit | swap | subscribe | brian
    tx_hash: Mapped[str] = mapped_column(String(66), default="")
    steps: Mapped[str] = mapped_column(Text, default="[]")  # JSON
    status: Mapped[str] = mapped_column(String(16), default="prepared")  # prepared|sent|failed


# ── setup ─────────────────────────────────────────────────────────────────────


async def init_db(path: Path | None = None) -> None:
    global _engine, async_session

    path = path or settings.sqlite_path
    path.parent.mkdir(parents=True, exist_ok=True)

    _engine = create_async_engine(f"sqlite+aiosqlite:///{path}", echo=False)
    async_session = async_sessionmaker(_engine, expire_on_commit=False)

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("History DB ready at %s", path)


async def close_db() -> None:
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None


# ── helpers ───────────────────────────────────────────────────────────────────


def _encode(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    return str(obj)


async def record_analysis(
    address: str,
    total_value_usd: float,
    risk_score: float,
    recommendations: list[Any] | None = None,
    kind: str = "valuation",
) -> None:
    async with async_session() as session:
        session.add(AnalysisRecord(
            ts=datetime.now(timezone.utc),
            address=address.lower(),
            kind=kind,
            total_value_usd=total_value_usd,
            risk_score=risk_score,
            recommendations=json.dumps(recommendations or [], default=_encode),
        ))
        await session.commit()


async def record_transaction(
    address: str,
    action: str,
    tx_hash: str = "",
    steps: list[Any] | None = None,
    status: str = "prepared",
) -> None:
    async with async_session() as session:
        session.add(TransactionRecord(
            ts=datetime.now(timezone.utc),
            address=address.lower(),
            action=action,
            tx_hash=tx_hash,
            steps=json.dumps(steps or [], default=_encode),
            status=status,
        ))
        await session.commit()


async def recent_analyses(n: int = 20, address: str | None = None) -> Sequence[AnalysisRecord]:
    query = select(AnalysisRecord)
    if address:
        query = query.where(AnalysisRecord.address == address.lower())
    query = query.order_by(AnalysisRecord.ts.desc(), AnalysisRecord.id.desc()).limit(n)
    async with async_session() as session:
        result = await session.execute(query)
        return result.scalars().all()


async def recent_transactions(n: int = 20, address: str | None = None) -> Sequence[TransactionRecord]:
    query = select(TransactionRecord)
    if address:
        query = query.where(TransactionRecord.address == address.lower())
    query = query.order_by(TransactionRecord.ts.desc(), TransactionRecord.id.desc()).limit(n)
    async with async_session() as session:
        result = await session.execute(query)
        return result.scalars().all()

"""Approval gate for server-signed transactions.

The browser wallet signs everything the user does from the dashboard. The
only transactions this process signs itself are the ones sent with
``AGENT_PRIVATE_KEY`` (``AaveService.deposit``). With AUDIT_MODE=true each
of those is printed as a rich panel and waits for the operator to type 'y'.
Without a TTY there is nobody to ask, so the transaction is denied.

Every decision is appended as a JSON line to data/audit.log.

    await require_approval(TxApproval(
        title="Supply 10 USDC to AAVE",
        details={"pool": POOL, "amount": "10"},
        risk="medium",
    ))
    # raises ApprovalDenied on 'n'
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from assetly.config import settings

logger = logging.getLogger(__name__)
_console = Console()

AUDIT_LOG_PATH = Path("./data/audit.log")


class ApprovalDenied(Exception):
    """Raised when the operator rejects a transaction."""


@dataclass
class TxApproval:
    title: str
    details: dict[str, Any] = field(default_factory=dict)
    risk: str = "medium"  # low | medium | high


_RISK_COLOR = {"low": "green", "medium": "yellow", "high": "red"}


def _is_interactive() -> bool:
    try:
        return sys.stdin.isatty()
    except (AttributeError, ValueError):
        return False


def _render_panel(action: TxApproval) -> Panel:
    risk_color = _RISK_COLOR.get(action.risk, "yellow")

    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold dim", no_wrap=True)
    table.add_column()
    table.add_row("Risk", Text(action.risk.upper(), style=f"bold {risk_color}"))
    table.add_row("Chain", str(settings.chain_id))
    for key, val in action.details.items():
        table.add_row(key.replace("_", " ").title(), str(val))

    return Panel(
        table,
        title=f"[bold]{action.title}[/bold]",
        title_align="left",
        border_style=risk_color,
        padding=(1, 2),
    )


async def _async_input(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, input, prompt)


def _append_audit_log(action: TxApproval, approved: bool) -> None:
    try:
        AUDIT_LOG_PATH.parent.mkdir(parents=True, exist_ok=True)
        entry = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "title": action.title,
            "risk": action.risk,
            "details": action.details,
            "approved": approved,
        }
        with AUDIT_LOG_PATH.open("a") as f:
            f.write(json.dumps(entry, default=str) + "\n")
    except OSError as exc:
        logger.warning("Audit log write failed: %s", exc)


async def require_approval(action: TxApproval) -> None:
    """No-op unless AUDIT_MODE is on. Raises ApprovalDenied when denied."""
    if not settings.audit_mode:
        return

    _console.print()
    _console.print(_render_panel(action))
    _console.print()

    if _is_interactive():
        try:
            answer = await _async_input("  Approve? [y/N] > ")
        except (EOFError, KeyboardInterrupt):
            answer = "n"
        approved = answer.strip().lower() in {"y", "yes"}
    else:
        logger.warning("[AUDIT] No terminal to approve on: %s", action.title)
        approved = False

    _append_audit_log(action, approved)

    if approved:
        logger.info("[AUDIT] Approved: %s", action.title)
    else:
        logger.warning("[AUDIT] Denied: %s", action.title)
        raise ApprovalDenied(f"Operator denied: {action.title}")

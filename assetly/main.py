"""assetly entrypoint.

    python -m assetly.main                 # serve the API and dashboard
    python -m assetly.main analyze 0xabc…  # one-off analysis in the terminal
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from assetly import dashboard
from assetly.api import actions, portfolio
from assetly.api.deps import build_services
from assetly.config import settings
from assetly.core.audit import ApprovalDenied
from assetly.memory import history
from assetly.providers.base import ProviderError

__version__ = "0.1.0"

# ── logging ───────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True)],
)
logger = logging.getLogger("assetly")


# ── FastAPI app ───────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI):
    await history.init_db()
    logger.info("assetly API starting (chain %d)", settings.chain_id)
    if not settings.is_testnet:
        logger.warning("Chain %d is not a testnet: agent deposits spend real funds", settings.chain_id)
    yield
    await history.close_db()
    logger.info("assetly API stopping")


app = FastAPI(
    title="assetly",
    description="DeFi portfolio analysis and wallet actions",
    version=__version__,
    lifespan=lifespan,
)
app.include_router(portfolio.router)
app.include_router(actions.router)
app.include_router(dashboard.router)


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
    logger.error("Upstream %s failed on %s: %s", exc.provider, request.url.path, exc.message)
    return JSONResponse(
        status_code=502,
        content={"error": f"{exc.provider} request failed", "details": exc.message},
    )


@app.exception_handler(ApprovalDenied)
async def approval_denied_handler(request: Request, exc: ApprovalDenied) -> JSONResponse:
    return JSONResponse(status_code=403, content={"error": "Transaction denied", "details": str(exc)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error", "details": str(exc)})


@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}


# ── CLI ───────────────────────────────────────────────────────────────────────


async def analyze(address: str, include_llm: bool) -> None:
    """Run one analysis and print it as rich tables."""
    services = build_services()
    state = await services.agent.analyze(address=address, include_llm=include_llm)
    console = Console()

    valuation = state["valuation"]
    table = Table(title=f"Portfolio {address}")
    table.add_column("Token")
    table.add_column("Quantity", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Value (USD)", justify="right")
    for pos in valuation.positions:
        price = f"{pos.price:,.4f}" if pos.price is not None else "n/a"
        table.add_row(pos.symbol, f"{pos.quantity:,.4f}", price, f"{pos.value_usd:,.2f}")
    console.print(table)
    console.print(f"Total: [bold]${valuation.total_value_usd:,.2f}[/bold]   Risk: {valuation.risk_score}/10")

    news = state.get("news")
    if news is not None:
        console.print(
            f"Market: {news.general_market.sentiment} "
            f"(score {news.general_market.score}, signal {news.general_market.signal})"
        )
        for symbol, sentiment in news.portfolio_tokens.items():
            console.print(f"  {symbol}: {sentiment.recommendation} ({sentiment.score}) {sentiment.headline}")

    strategy = state.get("strategy")
    if strategy is not None:
        for step in strategy.rebalancing:
            console.print(f"  {step.action} {step.asset}: {step.current_allocation}% → {step.target_allocation}%")

    for error in state.get("errors", []):
        console.print(f"[yellow]degraded:[/yellow] {error}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="assetly")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("serve", help="run the API server (default)")
    p_analyze = sub.add_parser("analyze", help="analyze a wallet and print the result")
    p_analyze.add_argument("address")
    p_analyze.add_argument("--llm", action="store_true", help="include the LLM stages")
    args = parser.parse_args(argv)

    if args.command == "analyze":
        asyncio.run(analyze(args.address, args.llm))
        return

    uvicorn.run(app, host=settings.host, port=settings.port, log_level="warning")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)

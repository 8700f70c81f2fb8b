"""Write-side API: Brian agent calls and transactions for the browser wallet.

Everything here except ``/api/agent-deposit`` returns unsigned transactions
or steps; the connected wallet signs them client-side.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from assetly.api.deps import Services, get_services, record_safely
from assetly.core.audit import ApprovalDenied
from assetly.finance.aave import deposit_prompt
from assetly.finance.networks import parse_chain_id, validate_address
from assetly.memory import history
from assetly.providers.brian import AgentKind, transaction_steps

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["actions"])


class PromptRequest(BaseModel):
    prompt: str = ""


class BrianAgentRequest(BaseModel):
    address: str = ""
    kind: AgentKind = "portfolio"
    chain: str = "ethereum"


class BrianTransactionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: str = ""
    address: str = ""
    chain_id: str | int | None = Field(default=None, alias="chainId")


class DepositRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    address: str = ""
    amount: str = ""
    symbol: str = "USDC"
    chain_id: str | int | None = Field(default="0xaa36a7", alias="chainId")
    # Let Brian build the steps instead of encoding approve + supply locally
    use_brian: bool = Field(default=False, alias="useBrian")


class AgentDepositRequest(BaseModel):
    amount: str = ""


class SwapRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    address: str = ""
    token_in: str = Field(default="", alias="tokenIn")
    token_out: str = Field(default="", alias="tokenOut")
    amount: str = ""
    chain_id: str | int | None = Field(default=None, alias="chainId")


class SubscribeRequest(BaseModel):
    address: str = ""


def _bad_request(exc: ValueError) -> HTTPException:
    return HTTPException(status_code=400, detail=str(exc))


def _checked_address(address: str) -> str:
    try:
        return validate_address(address)
    except ValueError as exc:
        raise _bad_request(exc) from exc


# ── Brian ─────────────────────────────────────────────────────────────────────


@router.post("/brian")
async def brian_ask(body: PromptRequest, svc: Services = Depends(get_services)) -> dict:
    if not body.prompt:
        raise HTTPException(status_code=400, detail="Prompt is required")
    return {"result": await svc.brian.ask(body.prompt)}


@router.post("/brian-agent")
async def brian_agent(body: BrianAgentRequest, svc: Services = Depends(get_services)) -> dict:
    address = _checked_address(body.address)
    try:
        result = await svc.brian.ask_agent(body.kind, address, body.chain)
    except ValueError as exc:
        raise _bad_request(exc) from exc
    return {"kind": body.kind, "result": result}


@router.post("/brian-transaction")
async def brian_transaction(body: BrianTransactionRequest, svc: Services = Depends(get_services)) -> dict:
    if not body.prompt:
        raise HTTPException(status_code=400, detail="Prompt is required")
    address = _checked_address(body.address)
    try:
        chain_id = parse_chain_id(body.chain_id)
    except ValueError as exc:
        raise _bad_request(exc) from exc

    results = await svc.brian.transact(body.prompt, address, chain_id)
    steps = transaction_steps(results)
    await record_safely(history.record_transaction(address, "brian", steps=steps))
    return {"result": results, "steps": steps}


# ── AAVE ──────────────────────────────────────────────────────────────────────


@router.post("/deposit-to-aave")
async def deposit_to_aave(body: DepositRequest, svc: Services = Depends(get_services)) -> dict[str, Any]:
    address = _checked_address(body.address)
    if not body.amount:
        raise HTTPException(status_code=400, detail="Amount is required")

    try:
        if body.use_brian:
            prompt = deposit_prompt(body.amount, body.symbol, body.chain_id)
            steps = transaction_steps(await svc.brian.transact(prompt, address, parse_chain_id(body.chain_id)))
            source = "brian"
        else:
            if body.symbol.upper() != "USDC":
                raise ValueError("Direct deposits support USDC only")
            steps = svc.aave.build_deposit(address, body.amount)
            source = "direct"
    except ValueError as exc:
        raise _bad_request(exc) from exc

    await record_safely(history.record_transaction(address, "deposit", steps=steps))
    logger.info("Prepared %d deposit step(s) for %s via %s", len(steps), address, source)
    return {"source": source, "steps": steps}


@router.post("/agent-deposit")
async def agent_deposit(body: AgentDepositRequest, svc: Services = Depends(get_services)) -> dict:
    """Server-signed deposit from the agent account (approval-gated)."""
    try:
        tx_hash = await svc.aave.deposit(body.amount)
    except ValueError as exc:
        raise _bad_request(exc) from exc
    except ApprovalDenied as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    await record_safely(history.record_transaction("agent", "deposit", tx_hash=tx_hash, status="sent"))
    return {"tx_hash": tx_hash}


@router.get("/aave/{address}")
async def aave_account(address: str, svc: Services = Depends(get_services)) -> dict:
    return {"account": await svc.aave.get_user_account_data(_checked_address(address))}


# ── swap / subscription ───────────────────────────────────────────────────────


@router.post("/swap")
async def swap(body: SwapRequest, svc: Services = Depends(get_services)) -> dict:
    try:
        steps = await svc.swap.build_swap(
            body.address, body.token_in, body.token_out, body.amount, body.chain_id,
        )
    except ValueError as exc:
        raise _bad_request(exc) from exc
    await record_safely(history.record_transaction(body.address, "swap", steps=steps))
    return {"steps": steps}


@router.post("/subscribe")
async def subscribe(body: SubscribeRequest, svc: Services = Depends(get_services)) -> dict:
    try:
        tx = svc.wallet.build_subscription_tx(body.address)
    except ValueError as exc:
        raise _bad_request(exc) from exc
    await record_safely(history.record_transaction(body.address, "subscribe", steps=[tx]))
    return {"transaction": tx}

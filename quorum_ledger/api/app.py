"""
Quorum Ledger — HTTP API for execution hosts.

FastAPI application exposing every ledger operation and query:
- Voting power assignment (owner only)
- Proposals: create, vote, execute, autonomous vote
- Voting strategies
- Delegations: delegate, revoke
- Operation journal and chain verification

The caller's identity is taken from the configured principal header
(``X-Principal`` by default). The API trusts it completely; authenticating
callers is the job of whatever sits in front of it.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from quorum_ledger.config import settings
from quorum_ledger.governance.errors import ErrorCode, GovernanceError
from quorum_ledger.governance.ledger import GovernanceLedger

logger = logging.getLogger(__name__)


# ── Pydantic request models ────────────────────────────────────


class SetPowerRequest(BaseModel):
    target: str
    amount: int = Field(ge=0)


class CreateProposalRequest(BaseModel):
    title: str = Field(max_length=100)
    description: str = Field(max_length=500)


class VoteRequest(BaseModel):
    vote_for: bool


class CreateStrategyRequest(BaseModel):
    name: str = Field(max_length=50)
    auto_vote: bool
    vote_preference: bool
    min_quorum: int = Field(ge=0)
    delegate_to: str | None = None


class DelegateRequest(BaseModel):
    delegate: str
    power: int = Field(ge=0)


class AutonomousVoteRequest(BaseModel):
    strategy_owner: str
    strategy_id: int = Field(ge=0)


ERROR_STATUS = {
    ErrorCode.UNAUTHORIZED: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.ALREADY_VOTED: 409,
    ErrorCode.PROPOSAL_CLOSED: 409,
    ErrorCode.PROPOSAL_ACTIVE: 409,
    ErrorCode.INSUFFICIENT_VOTES: 400,
    ErrorCode.INVALID_STRATEGY: 400,
    ErrorCode.QUORUM_NOT_MET: 409,
}


class ApiState:
    """Mutable application state injected at startup."""

    def __init__(self) -> None:
        self.ledger: GovernanceLedger | None = None
        self.principal_header: str = settings.principal_header
        self.startup_time: datetime = datetime.now(timezone.utc)


state = ApiState()


# ── Application lifecycle ──────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup & shutdown lifecycle — build the ledger unless one was injected."""
    if state.ledger is None:
        from quorum_ledger.orchestrator import build_ledger, configure_logging

        configure_logging()
        state.ledger = build_ledger()
    logger.info("Quorum Ledger API started (owner=%s)", state.ledger.owner)

    yield

    logger.info("Quorum Ledger API shut down")


app = FastAPI(
    title="Quorum Ledger",
    description="Weighted voting, delegation and proposal lifecycle ledger",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(GovernanceError)
async def governance_error_handler(request: Request, exc: GovernanceError) -> JSONResponse:
    return JSONResponse(
        status_code=ERROR_STATUS[exc.code],
        content={"error": exc.code.value, "code": exc.code.numeric},
    )


def _ledger() -> GovernanceLedger:
    if state.ledger is None:
        raise HTTPException(status_code=503, detail="Ledger not initialized")
    return state.ledger


def _caller(request: Request) -> str:
    caller = request.headers.get(state.principal_header)
    if not caller:
        raise HTTPException(
            status_code=401, detail=f"Missing {state.principal_header} header"
        )
    return caller


def _dump(record: BaseModel | None) -> dict[str, Any] | None:
    return record.model_dump(mode="json") if record is not None else None


# ── Routes: Health ─────────────────────────────────────────────


@app.get("/health")
async def health():
    ledger = _ledger()
    uptime = datetime.now(timezone.utc) - state.startup_time
    return {
        "status": "ok",
        "height": ledger.clock.current_height(),
        "uptime_seconds": int(uptime.total_seconds()),
    }


@app.get("/stats")
async def stats():
    ledger = _ledger()
    return {
        "total_voting_power": ledger.get_total_voting_power(),
        "proposal_count": ledger.get_proposal_count(),
        "journal_entries": ledger.journal.entry_count(),
    }


# ── Routes: Voting power ───────────────────────────────────────


@app.post("/power")
async def set_power(body: SetPowerRequest, request: Request):
    ok = _ledger().set_power(_caller(request), body.target, body.amount)
    return {"ok": ok}


@app.get("/principals/{principal}/power")
async def get_power(principal: str):
    return {"principal": principal, "power": _ledger().get_user_voting_power(principal)}


# ── Routes: Proposals ──────────────────────────────────────────


@app.post("/proposals")
async def create_proposal(body: CreateProposalRequest, request: Request):
    proposal_id = _ledger().create_proposal(_caller(request), body.title, body.description)
    return {"proposal_id": proposal_id}


@app.get("/proposals/{proposal_id}")
async def get_proposal(proposal_id: int):
    return _dump(_ledger().get_proposal(proposal_id))


@app.post("/proposals/{proposal_id}/votes")
async def vote(proposal_id: int, body: VoteRequest, request: Request):
    ok = _ledger().vote(_caller(request), proposal_id, body.vote_for)
    return {"ok": ok}


@app.get("/proposals/{proposal_id}/votes/{voter}")
async def get_vote(proposal_id: int, voter: str):
    return _dump(_ledger().get_vote(proposal_id, voter))


@app.post("/proposals/{proposal_id}/execute")
async def execute_proposal(proposal_id: int, request: Request):
    ok = _ledger().execute_proposal(_caller(request), proposal_id)
    return {"ok": ok}


@app.post("/proposals/{proposal_id}/autonomous-votes")
async def execute_autonomous_vote(
    proposal_id: int, body: AutonomousVoteRequest, request: Request
):
    ok = _ledger().execute_autonomous_vote(
        _caller(request), proposal_id, body.strategy_owner, body.strategy_id
    )
    return {"ok": ok}


# ── Routes: Strategies ─────────────────────────────────────────


@app.post("/strategies")
async def create_strategy(body: CreateStrategyRequest, request: Request):
    strategy_id = _ledger().create_voting_strategy(
        _caller(request),
        body.name,
        body.auto_vote,
        body.vote_preference,
        body.min_quorum,
        body.delegate_to,
    )
    return {"strategy_id": strategy_id}


@app.get("/strategies/{owner}/{strategy_id}")
async def get_strategy(owner: str, strategy_id: int):
    return _dump(_ledger().get_strategy(owner, strategy_id))


# ── Routes: Delegations ────────────────────────────────────────


@app.post("/delegations")
async def delegate(body: DelegateRequest, request: Request):
    ok = _ledger().delegate_voting_power(_caller(request), body.delegate, body.power)
    return {"ok": ok}


@app.delete("/delegations/{delegate}")
async def revoke_delegation(delegate: str, request: Request):
    ok = _ledger().revoke_delegation(_caller(request), delegate)
    return {"ok": ok}


@app.get("/delegations/{delegator}/{delegate}")
async def get_delegation(delegator: str, delegate: str):
    return _dump(_ledger().get_delegation(delegator, delegate))


# ── Routes: Journal ────────────────────────────────────────────


@app.get("/journal")
async def journal(limit: int = 50):
    entries = _ledger().journal.latest_entries(limit=limit)
    return {"entries": [e.model_dump(mode="json") for e in entries]}


@app.get("/journal/verify")
async def verify_journal():
    is_valid, entries_verified, message = _ledger().journal.verify_chain()
    return {"valid": is_valid, "entries_verified": entries_verified, "message": message}

"""
Governance Schema — Pydantic models for every record the ledger persists.

These models are the canonical shapes of proposals, vote records,
delegations and voting strategies. The store keeps them as JSON documents
(``model_dump(mode="json")``) and the components rebuild them on read.

Principals are opaque strings supplied by the host's identity source.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, Field

Principal = str


# ════════════════════════════════════════════════════════════════
# Enumerations
# ════════════════════════════════════════════════════════════════


class ProposalStatus(str, enum.Enum):
    """Lifecycle status of a proposal."""

    ACTIVE = "active"
    PASSED = "passed"
    FAILED = "failed"
    EXECUTED = "executed"


class StoreMapping(str, enum.Enum):
    """Named mappings in the key-value store."""

    PROPOSALS = "proposals"
    VOTES = "votes"
    VOTING_POWER = "voting_power"
    VOTING_STRATEGIES = "voting_strategies"
    DELEGATIONS = "delegations"
    USER_STRATEGY_COUNT = "user_strategy_count"
    COUNTERS = "counters"
    JOURNAL = "journal"


PROPOSAL_COUNT = "proposal_count"
TOTAL_VOTING_POWER = "total_voting_power"
JOURNAL_HEAD = "journal_head"


# ════════════════════════════════════════════════════════════════
# Records
# ════════════════════════════════════════════════════════════════


class Proposal(BaseModel):
    """
    A time-boxed proposal.

    ``quorum_required`` is a snapshot taken at creation and never
    recomputed. Status is advisory bookkeeping; nothing is executed.
    """

    id: int = Field(ge=1, description="Sequential proposal id, starting at 1")
    proposer: Principal
    title: str = Field(max_length=100)
    description: str = Field(max_length=500)
    votes_for: int = Field(default=0, ge=0)
    votes_against: int = Field(default=0, ge=0)
    start_height: int = Field(ge=0)
    end_height: int = Field(ge=0, description="Last height (inclusive) at which votes count")
    executed: bool = False
    quorum_required: int = Field(ge=0)
    status: ProposalStatus = ProposalStatus.ACTIVE

    @property
    def total_votes(self) -> int:
        return self.votes_for + self.votes_against


class VoteRecord(BaseModel):
    """One weighted vote. Immutable once created."""

    proposal_id: int = Field(ge=1)
    voter: Principal
    weight: int = Field(ge=0, description="Voter's power at cast time")
    choice: bool = Field(description="True for, False against")
    cast_at_height: int = Field(ge=0)


class Delegation(BaseModel):
    """
    A power transfer between an ordered pair of principals.

    Only one record exists per pair; revocation flips ``active`` and keeps
    ``delegated_amount`` as it was.
    """

    delegator: Principal
    delegate: Principal
    delegated_amount: int = Field(ge=0)
    active: bool = True
    created_at_height: int = Field(ge=0)


class Strategy(BaseModel):
    """A stored automated-voting configuration owned by one principal."""

    owner: Principal
    strategy_id: int = Field(ge=1, description="Sequential per owner, starting at 1")
    name: str = Field(max_length=50)
    auto_vote: bool
    vote_preference: bool
    min_quorum_threshold: int = Field(ge=0)
    delegate_to: Principal | None = None
    active: bool = True


class JournalEntry(BaseModel):
    """An entry in the hash-chained operation journal."""

    sequence_number: int = Field(ge=1)
    height: int = Field(ge=0)
    operation: str
    caller: Principal
    arguments: dict = Field(default_factory=dict)
    result: int | bool | None = None
    previous_hash: str = Field(min_length=64, max_length=64)
    entry_hash: str = Field(min_length=64, max_length=64)

"""
Proposal Store — proposal records and their lifecycle.

A proposal is open for votes from its creation height through
``end_height`` inclusive. Once the window has closed and the quorum
snapshot has been met, anyone may finalize it exactly once, which marks it
executed. Nothing is actually executed: status is bookkeeping.

Persisted status only ever moves "active" → "executed". ``derive_status``
can classify a closed proposal as "passed" or "failed", but no mutation
calls it; readers opt into it as a view.
"""

from __future__ import annotations

import logging

from quorum_ledger.governance.errors import (
    NotFound,
    ProposalActive,
    ProposalClosed,
    QuorumNotMet,
)
from quorum_ledger.governance.power import VotingPowerLedger
from quorum_ledger.governance.schema import (
    PROPOSAL_COUNT,
    Principal,
    Proposal,
    ProposalStatus,
    StoreMapping,
)
from quorum_ledger.ledger.store import StateStore

logger = logging.getLogger(__name__)

DEFAULT_PROPOSAL_DURATION = 1440
DEFAULT_QUORUM_PERCENT = 20


def derive_status(proposal: Proposal, height: int) -> ProposalStatus:
    """
    Status implied by elapsed time and the quorum outcome.

    Executed proposals stay executed, open ones stay active. A closed,
    unexecuted proposal has passed if quorum was met and failed otherwise.
    The for/against split does not matter.
    """
    if proposal.executed:
        return ProposalStatus.EXECUTED
    if height <= proposal.end_height:
        return ProposalStatus.ACTIVE
    if proposal.total_votes >= proposal.quorum_required:
        return ProposalStatus.PASSED
    return ProposalStatus.FAILED


class ProposalStore:
    """Owns ``proposals`` and the ``proposal_count`` counter."""

    def __init__(
        self,
        store: StateStore,
        power_ledger: VotingPowerLedger,
        duration: int = DEFAULT_PROPOSAL_DURATION,
        quorum_percent: int = DEFAULT_QUORUM_PERCENT,
    ) -> None:
        self.store = store
        self.power_ledger = power_ledger
        self.duration = duration
        self.quorum_percent = quorum_percent

    def create_proposal(
        self,
        caller: Principal,
        title: str,
        description: str,
        height: int,
    ) -> int:
        """
        Open a new proposal at ``height``.

        The quorum is snapshotted from the aggregate voting power now and
        never recomputed.

        Returns:
            The new proposal id.
        """
        proposal_id = self.proposal_count() + 1
        quorum_required = self.power_ledger.total_voting_power() * self.quorum_percent // 100

        proposal = Proposal(
            id=proposal_id,
            proposer=caller,
            title=title,
            description=description,
            start_height=height,
            end_height=height + self.duration,
            quorum_required=quorum_required,
        )
        self.save(proposal)
        self.store.set(StoreMapping.COUNTERS, PROPOSAL_COUNT, proposal_id)

        logger.info(
            "Proposal created: #%d by=%s title='%s' window=[%d, %d] quorum=%d",
            proposal_id, caller, title[:80], proposal.start_height,
            proposal.end_height, quorum_required,
        )
        return proposal_id

    def get_proposal(self, proposal_id: int) -> Proposal | None:
        raw = self.store.get(StoreMapping.PROPOSALS, proposal_id)
        return Proposal.model_validate(raw) if raw is not None else None

    def require(self, proposal_id: int) -> Proposal:
        """Fetch a proposal or raise ``NotFound``."""
        proposal = self.get_proposal(proposal_id)
        if proposal is None:
            raise NotFound()
        return proposal

    def save(self, proposal: Proposal) -> None:
        self.store.set(StoreMapping.PROPOSALS, proposal.id, proposal.model_dump(mode="json"))

    def proposal_count(self) -> int:
        return self.store.get(StoreMapping.COUNTERS, PROPOSAL_COUNT, 0)

    def is_active(self, proposal_id: int, height: int) -> bool:
        proposal = self.get_proposal(proposal_id)
        if proposal is None:
            return False
        return (
            proposal.start_height <= height <= proposal.end_height
            and not proposal.executed
        )

    def is_quorum_met(self, proposal_id: int) -> bool:
        proposal = self.get_proposal(proposal_id)
        if proposal is None:
            return False
        return proposal.total_votes >= proposal.quorum_required

    def finalize(self, caller: Principal, proposal_id: int, height: int) -> None:
        """
        Mark a closed proposal as executed.

        Raises:
            NotFound: Unknown proposal.
            ProposalActive: The voting window has not closed yet.
            ProposalClosed: Already executed.
            QuorumNotMet: Combined vote weight is below the quorum snapshot.
        """
        proposal = self.require(proposal_id)
        if height <= proposal.end_height:
            raise ProposalActive()
        if proposal.executed:
            raise ProposalClosed()
        if not self.is_quorum_met(proposal_id):
            raise QuorumNotMet()

        proposal.executed = True
        proposal.status = ProposalStatus.EXECUTED
        self.save(proposal)

        logger.info(
            "Proposal executed: #%d by=%s for=%d against=%d",
            proposal_id, caller, proposal.votes_for, proposal.votes_against,
        )

"""
One weighted vote per (proposal, voter), accumulated into proposal tallies.

The weight is the voter's power at cast time. It is added to the
proposal's for/against tally immediately, so later quorum and tally reads
see it.
"""

from __future__ import annotations

import logging

from quorum_ledger.governance.errors import (
    AlreadyVoted,
    InsufficientVotes,
    ProposalClosed,
)
from quorum_ledger.governance.power import VotingPowerLedger
from quorum_ledger.governance.proposals import ProposalStore
from quorum_ledger.governance.schema import Principal, StoreMapping, VoteRecord
from quorum_ledger.ledger.store import StateStore

logger = logging.getLogger(__name__)


class VoteTally:
    """Owns the ``votes`` mapping and the tallies on proposals."""

    def __init__(
        self,
        store: StateStore,
        proposals: ProposalStore,
        power_ledger: VotingPowerLedger,
    ) -> None:
        self.store = store
        self.proposals = proposals
        self.power_ledger = power_ledger

    def cast_vote(
        self,
        caller: Principal,
        proposal_id: int,
        vote_for: bool,
        height: int,
    ) -> VoteRecord:
        """
        Record ``caller``'s vote and add its weight to the tally.

        Raises:
            NotFound: Unknown proposal.
            ProposalClosed: Outside the voting window, or already executed.
            AlreadyVoted: ``caller`` has a vote on this proposal.
            InsufficientVotes: ``caller`` has no voting power.
        """
        proposal = self.proposals.require(proposal_id)
        if not self.proposals.is_active(proposal_id, height):
            raise ProposalClosed()
        if self.get_vote(proposal_id, caller) is not None:
            raise AlreadyVoted()

        weight = self.power_ledger.get_power(caller)
        if weight == 0:
            raise InsufficientVotes()

        record = VoteRecord(
            proposal_id=proposal_id,
            voter=caller,
            weight=weight,
            choice=vote_for,
            cast_at_height=height,
        )
        self.store.set(
            StoreMapping.VOTES, (proposal_id, caller), record.model_dump(mode="json")
        )

        if vote_for:
            proposal.votes_for += weight
        else:
            proposal.votes_against += weight
        self.proposals.save(proposal)

        logger.info(
            "Vote cast: proposal=#%d voter=%s choice=%s weight=%d",
            proposal_id, caller, "for" if vote_for else "against", weight,
        )
        return record

    def get_vote(self, proposal_id: int, voter: Principal) -> VoteRecord | None:
        raw = self.store.get(StoreMapping.VOTES, (proposal_id, voter))
        return VoteRecord.model_validate(raw) if raw is not None else None

    def votes_for_proposal(self, proposal_id: int) -> list[VoteRecord]:
        """Every recorded vote on a proposal, in store order."""
        return [
            VoteRecord.model_validate(raw)
            for (pid, _voter), raw in self.store.items(StoreMapping.VOTES)
            if pid == proposal_id
        ]

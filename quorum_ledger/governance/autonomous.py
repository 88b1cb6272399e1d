"""
Autonomous Executor — casts a vote on a strategy owner's behalf.

This operation is an addition on top of the manual call surface: any
principal may trigger it, but the vote is always recorded for the
strategy's owner, with the strategy's preference, and under exactly the
constraints of a manual vote (active window, one vote per voter, non-zero
power). The strategy's ``min_quorum_threshold`` gates it on participation
so far: the proposal must already carry at least that much combined
weight.

``delegate_to`` is stored on strategies but not consulted here.
"""

from __future__ import annotations

import logging

from quorum_ledger.governance.errors import InvalidStrategy, NotFound, QuorumNotMet
from quorum_ledger.governance.proposals import ProposalStore
from quorum_ledger.governance.schema import Principal, VoteRecord
from quorum_ledger.governance.strategies import StrategyRegistry
from quorum_ledger.governance.tally import VoteTally

logger = logging.getLogger(__name__)


class AutonomousExecutor:
    """Reads a strategy and a proposal, then drives the Vote Tally."""

    def __init__(
        self,
        strategies: StrategyRegistry,
        proposals: ProposalStore,
        tally: VoteTally,
    ) -> None:
        self.strategies = strategies
        self.proposals = proposals
        self.tally = tally

    def execute(
        self,
        caller: Principal,
        proposal_id: int,
        strategy_owner: Principal,
        strategy_id: int,
        height: int,
    ) -> VoteRecord:
        """
        Vote for ``strategy_owner`` according to their strategy.

        Raises:
            NotFound: Unknown strategy or proposal.
            InvalidStrategy: Strategy inactive or not set to auto-vote.
            QuorumNotMet: Proposal participation below the strategy threshold.
            ProposalClosed, AlreadyVoted, InsufficientVotes: As for a manual vote.
        """
        strategy = self.strategies.get_strategy(strategy_owner, strategy_id)
        if strategy is None:
            raise NotFound()
        if not strategy.active or not strategy.auto_vote:
            raise InvalidStrategy()

        proposal = self.proposals.require(proposal_id)
        if proposal.total_votes < strategy.min_quorum_threshold:
            raise QuorumNotMet()

        record = self.tally.cast_vote(
            strategy_owner, proposal_id, strategy.vote_preference, height
        )

        logger.info(
            "Autonomous vote: proposal=#%d owner=%s strategy=%d triggered_by=%s",
            proposal_id, strategy_owner, strategy_id, caller,
        )
        return record

"""
Tests for the Strategy Registry and the Autonomous Executor.

Validates:
- Per-owner sequential strategy ids
- Autonomous votes are cast for the owner with the stored preference
- Strategy, threshold and manual-vote constraints
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from quorum_ledger.governance.autonomous import AutonomousExecutor
from quorum_ledger.governance.errors import (
    AlreadyVoted,
    InvalidStrategy,
    NotFound,
    ProposalClosed,
    QuorumNotMet,
)
from quorum_ledger.governance.power import VotingPowerLedger
from quorum_ledger.governance.proposals import ProposalStore
from quorum_ledger.governance.strategies import StrategyRegistry
from quorum_ledger.governance.tally import VoteTally
from quorum_ledger.ledger.store import MemoryStore


class TestStrategyRegistry:
    """Test strategy registration."""

    def setup_method(self):
        self.registry = StrategyRegistry(MemoryStore())

    def test_ids_are_sequential_per_owner(self):
        assert self.registry.create_strategy("alice", "a1", True, True, 0) == 1
        assert self.registry.create_strategy("alice", "a2", False, True, 0) == 2
        assert self.registry.create_strategy("bob", "b1", True, False, 0) == 1
        assert self.registry.strategy_count("alice") == 2
        assert self.registry.strategy_count("carol") == 0

    def test_strategy_fields(self):
        strategy_id = self.registry.create_strategy(
            "alice", "Always yes", True, True, 25, delegate_to="bob"
        )
        strategy = self.registry.get_strategy("alice", strategy_id)

        assert strategy.owner == "alice"
        assert strategy.name == "Always yes"
        assert strategy.auto_vote is True
        assert strategy.vote_preference is True
        assert strategy.min_quorum_threshold == 25
        assert strategy.delegate_to == "bob"
        assert strategy.active is True

    def test_unknown_strategy(self):
        assert self.registry.get_strategy("alice", 1) is None

    def test_name_length_limit(self):
        self.registry.create_strategy("alice", "n" * 50, True, True, 0)
        with pytest.raises(ValidationError):
            self.registry.create_strategy("alice", "n" * 51, True, True, 0)
        assert self.registry.strategy_count("alice") == 1


class TestAutonomousExecutor:
    """Test strategy-driven voting."""

    def setup_method(self):
        store = MemoryStore()
        self.power = VotingPowerLedger(store, owner="owner")
        self.proposals = ProposalStore(store, self.power)
        self.tally = VoteTally(store, self.proposals, self.power)
        self.registry = StrategyRegistry(store)
        self.executor = AutonomousExecutor(self.registry, self.proposals, self.tally)

        self.power.set_power("owner", "alice", 40)
        self.power.set_power("owner", "bob", 60)
        self.proposal_id = self.proposals.create_proposal("bob", "Title", "", height=0)

    def test_votes_for_owner_with_preference(self):
        strategy_id = self.registry.create_strategy("alice", "No", True, False, 0)
        record = self.executor.execute("keeper", self.proposal_id, "alice", strategy_id, height=5)

        assert record.voter == "alice"
        assert record.choice is False
        assert record.weight == 40
        assert self.proposals.get_proposal(self.proposal_id).votes_against == 40
        assert self.tally.get_vote(self.proposal_id, "keeper") is None

    def test_unknown_strategy(self):
        with pytest.raises(NotFound):
            self.executor.execute("alice", self.proposal_id, "alice", 1, height=5)

    def test_manual_strategy_rejected(self):
        strategy_id = self.registry.create_strategy("alice", "Manual", False, True, 0)
        with pytest.raises(InvalidStrategy):
            self.executor.execute("alice", self.proposal_id, "alice", strategy_id, height=5)

    def test_unknown_proposal(self):
        strategy_id = self.registry.create_strategy("alice", "Yes", True, True, 0)
        with pytest.raises(NotFound):
            self.executor.execute("alice", 99, "alice", strategy_id, height=5)

    def test_threshold_gates_on_participation(self):
        strategy_id = self.registry.create_strategy("alice", "Follow", True, True, 50)
        with pytest.raises(QuorumNotMet):
            self.executor.execute("alice", self.proposal_id, "alice", strategy_id, height=5)

        self.tally.cast_vote("bob", self.proposal_id, True, height=6)
        self.executor.execute("alice", self.proposal_id, "alice", strategy_id, height=7)
        assert self.proposals.get_proposal(self.proposal_id).votes_for == 100

    def test_owner_already_voted(self):
        strategy_id = self.registry.create_strategy("alice", "Yes", True, True, 0)
        self.tally.cast_vote("alice", self.proposal_id, False, height=1)
        with pytest.raises(AlreadyVoted):
            self.executor.execute("alice", self.proposal_id, "alice", strategy_id, height=2)

    def test_closed_proposal(self):
        strategy_id = self.registry.create_strategy("alice", "Yes", True, True, 0)
        with pytest.raises(ProposalClosed):
            self.executor.execute("alice", self.proposal_id, "alice", strategy_id, height=1441)

"""
Tests for the Proposal Store.

Validates:
- Sequential ids, voting window and quorum snapshot at creation
- Active-window boundaries
- Finalization gates (window, executed, quorum)
- Status derivation is a pure view
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from quorum_ledger.governance.errors import (
    NotFound,
    ProposalActive,
    ProposalClosed,
    QuorumNotMet,
)
from quorum_ledger.governance.power import VotingPowerLedger
from quorum_ledger.governance.proposals import ProposalStore, derive_status
from quorum_ledger.governance.schema import ProposalStatus
from quorum_ledger.ledger.store import MemoryStore


class TestProposalStore:
    """Test the proposal lifecycle."""

    def setup_method(self):
        self.store = MemoryStore()
        self.power = VotingPowerLedger(self.store, owner="owner")
        self.proposals = ProposalStore(self.store, self.power)

    def test_create_proposal(self):
        self.power.set_power("owner", "alice", 100)
        proposal_id = self.proposals.create_proposal("alice", "Title", "Body", height=10)

        proposal = self.proposals.get_proposal(proposal_id)
        assert proposal_id == 1
        assert proposal.proposer == "alice"
        assert proposal.start_height == 10
        assert proposal.end_height == 10 + 1440
        assert proposal.quorum_required == 20
        assert proposal.status == ProposalStatus.ACTIVE
        assert proposal.executed is False
        assert (proposal.votes_for, proposal.votes_against) == (0, 0)

    def test_ids_are_sequential(self):
        first = self.proposals.create_proposal("alice", "One", "", height=0)
        second = self.proposals.create_proposal("bob", "Two", "", height=5)
        assert (first, second) == (1, 2)
        assert self.proposals.proposal_count() == 2

    def test_quorum_rounds_down(self):
        self.power.set_power("owner", "alice", 99)
        proposal_id = self.proposals.create_proposal("alice", "Title", "", height=0)
        assert self.proposals.get_proposal(proposal_id).quorum_required == 19

    def test_quorum_is_snapshot(self):
        """Later power assignments do not change an existing proposal's quorum."""
        self.power.set_power("owner", "alice", 100)
        proposal_id = self.proposals.create_proposal("alice", "Title", "", height=0)
        self.power.set_power("owner", "bob", 900)

        assert self.proposals.get_proposal(proposal_id).quorum_required == 20
        later_id = self.proposals.create_proposal("bob", "Later", "", height=0)
        assert self.proposals.get_proposal(later_id).quorum_required == 200

    def test_creation_needs_no_power(self):
        proposal_id = self.proposals.create_proposal("stranger", "Title", "", height=0)
        assert self.proposals.get_proposal(proposal_id).quorum_required == 0

    def test_title_length_limit(self):
        with pytest.raises(ValidationError):
            self.proposals.create_proposal("alice", "x" * 101, "", height=0)
        assert self.proposals.proposal_count() == 0

    def test_description_length_limit(self):
        self.proposals.create_proposal("alice", "x" * 100, "y" * 500, height=0)
        with pytest.raises(ValidationError):
            self.proposals.create_proposal("alice", "Title", "y" * 501, height=0)

    def test_is_active_window_is_inclusive(self):
        proposal_id = self.proposals.create_proposal("alice", "Title", "", height=100)
        assert self.proposals.is_active(proposal_id, 100)
        assert self.proposals.is_active(proposal_id, 100 + 1440)
        assert not self.proposals.is_active(proposal_id, 100 + 1441)
        assert not self.proposals.is_active(proposal_id, 99)

    def test_unknown_proposal_is_not_active(self):
        assert not self.proposals.is_active(42, 0)
        assert self.proposals.get_proposal(42) is None

    def test_finalize_unknown(self):
        with pytest.raises(NotFound):
            self.proposals.finalize("alice", 7, height=5000)

    def test_finalize_during_window(self):
        proposal_id = self.proposals.create_proposal("alice", "Title", "", height=0)
        with pytest.raises(ProposalActive):
            self.proposals.finalize("alice", proposal_id, height=1440)

    def test_finalize_without_quorum(self):
        self.power.set_power("owner", "alice", 100)
        proposal_id = self.proposals.create_proposal("alice", "Title", "", height=0)
        with pytest.raises(QuorumNotMet):
            self.proposals.finalize("alice", proposal_id, height=1441)

    def test_finalize_zero_quorum_succeeds_once(self):
        proposal_id = self.proposals.create_proposal("alice", "Title", "", height=0)
        self.proposals.finalize("bob", proposal_id, height=1441)

        proposal = self.proposals.get_proposal(proposal_id)
        assert proposal.executed is True
        assert proposal.status == ProposalStatus.EXECUTED

        with pytest.raises(ProposalClosed):
            self.proposals.finalize("bob", proposal_id, height=1442)

    def test_is_quorum_met(self):
        self.power.set_power("owner", "alice", 100)
        proposal_id = self.proposals.create_proposal("alice", "Title", "", height=0)
        assert not self.proposals.is_quorum_met(proposal_id)

        proposal = self.proposals.get_proposal(proposal_id)
        proposal.votes_against = 20
        self.proposals.save(proposal)
        assert self.proposals.is_quorum_met(proposal_id)


class TestDeriveStatus:
    """Status derivation is available as a pure function only."""

    def setup_method(self):
        self.store = MemoryStore()
        self.power = VotingPowerLedger(self.store, owner="owner")
        self.proposals = ProposalStore(self.store, self.power)
        self.power.set_power("owner", "alice", 100)
        self.proposal_id = self.proposals.create_proposal("alice", "Title", "", height=0)

    def _with_votes(self, votes_for: int, votes_against: int):
        proposal = self.proposals.get_proposal(self.proposal_id)
        return proposal.model_copy(update={"votes_for": votes_for, "votes_against": votes_against})

    def test_open_window_is_active(self):
        assert derive_status(self._with_votes(100, 0), 1440) == ProposalStatus.ACTIVE

    def test_closed_with_quorum_passes(self):
        assert derive_status(self._with_votes(30, 10), 1441) == ProposalStatus.PASSED

    def test_closed_without_quorum_fails(self):
        assert derive_status(self._with_votes(10, 0), 1441) == ProposalStatus.FAILED

    def test_closed_tie_with_quorum_passes(self):
        assert derive_status(self._with_votes(20, 20), 1441) == ProposalStatus.PASSED

    def test_closed_against_majority_with_quorum_passes(self):
        assert derive_status(self._with_votes(0, 20), 1441) == ProposalStatus.PASSED

    def test_closed_one_short_of_quorum_fails(self):
        assert derive_status(self._with_votes(19, 0), 1441) == ProposalStatus.FAILED

    def test_executed_stays_executed(self):
        proposal = self._with_votes(30, 0).model_copy(update={"executed": True})
        assert derive_status(proposal, 5000) == ProposalStatus.EXECUTED

    def test_stored_status_not_touched(self):
        derive_status(self._with_votes(30, 0), 5000)
        assert self.proposals.get_proposal(self.proposal_id).status == ProposalStatus.ACTIVE

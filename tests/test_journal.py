"""
Tests for the Operation Journal hash chain.

Validates:
- Entries are linked by previous_hash
- Chain verification
- Tamper detection
"""

from __future__ import annotations

from quorum_ledger.governance.schema import StoreMapping
from quorum_ledger.ledger.journal import GENESIS_HASH, OperationJournal
from quorum_ledger.ledger.store import MemoryStore


class TestOperationJournal:
    """Test the append-only journal."""

    def setup_method(self):
        self.store = MemoryStore()
        self.journal = OperationJournal(self.store)

    def _append_three(self):
        self.journal.append(1, "set_power", "owner", {"target": "alice", "amount": 100}, True)
        self.journal.append(2, "create_proposal", "alice", {"title": "T", "description": ""}, 1)
        self.journal.append(3, "vote", "alice", {"proposal_id": 1, "vote_for": True}, True)

    def test_empty_journal_verifies(self):
        assert self.journal.verify_chain() == (True, 0, "Journal is empty")
        assert self.journal.entry_count() == 0
        assert self.journal.latest_entries() == []

    def test_first_entry_links_to_genesis(self):
        entry = self.journal.append(0, "set_power", "owner", {"amount": 1}, True)
        assert entry.sequence_number == 1
        assert entry.previous_hash == GENESIS_HASH
        assert len(entry.entry_hash) == 64

    def test_chain_linkage(self):
        self._append_three()
        first, second, third = (self.journal.get_entry(i) for i in (1, 2, 3))
        assert second.previous_hash == first.entry_hash
        assert third.previous_hash == second.entry_hash

    def test_verify_chain(self):
        self._append_three()
        is_valid, verified, _ = self.journal.verify_chain()
        assert is_valid
        assert verified == 3

    def test_latest_entries_newest_first(self):
        self._append_three()
        entries = self.journal.latest_entries(limit=2)
        assert [e.sequence_number for e in entries] == [3, 2]

    def test_tampered_arguments_detected(self):
        self._append_three()
        raw = self.store.get(StoreMapping.JOURNAL, 2)
        raw["arguments"]["title"] = "Something else"
        self.store.set(StoreMapping.JOURNAL, 2, raw)

        is_valid, verified, message = self.journal.verify_chain()
        assert not is_valid
        assert verified == 1
        assert "Hash mismatch at sequence 2" in message

    def test_missing_entry_detected(self):
        self._append_three()
        self.store.delete(StoreMapping.JOURNAL, 2)
        is_valid, _, message = self.journal.verify_chain()
        assert not is_valid
        assert "Missing entry" in message

    def test_result_types_survive_round_trip(self):
        self.journal.append(0, "vote", "alice", {}, True)
        self.journal.append(0, "create_proposal", "alice", {}, 4)
        assert self.journal.get_entry(1).result is True
        assert self.journal.get_entry(2).result == 4
        assert self.journal.verify_chain()[0]

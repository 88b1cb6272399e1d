"""
Operation Journal — append-only, hash-chained record of ledger mutations.

Every successful governance operation appends one entry inside the same
store transaction as its state writes, so the journal and the state can
never disagree about what happened.

Each entry stores SHA-256(previous_hash || canonical_json(entry_fields)),
so any retroactive alteration is detectable by ``verify_chain()``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any

from quorum_ledger.governance.schema import (
    JOURNAL_HEAD,
    JournalEntry,
    Principal,
    StoreMapping,
)
from quorum_ledger.ledger.store import StateStore

logger = logging.getLogger(__name__)

GENESIS_HASH = "0" * 64  # The "previous hash" of the first entry


class JournalIntegrityError(Exception):
    """Raised when the journal head or an entry is missing or inconsistent."""
    pass


class OperationJournal:
    """
    Journal of every committed mutation, stored in the ``journal`` mapping.

    The head (last sequence number and hash) lives under ``journal_head``
    in the ``counters`` mapping.
    """

    def __init__(self, store: StateStore) -> None:
        self.store = store

    def append(
        self,
        height: int,
        operation: str,
        caller: Principal,
        arguments: dict[str, Any],
        result: int | bool | None = None,
    ) -> JournalEntry:
        """
        Append an entry after the current head.

        Must be called inside the operation's store transaction.
        """
        sequence, previous_hash = self._head()
        sequence += 1

        entry_hash = self._compute_hash(
            sequence_number=sequence,
            height=height,
            operation=operation,
            caller=caller,
            arguments=arguments,
            result=result,
            previous_hash=previous_hash,
        )
        entry = JournalEntry(
            sequence_number=sequence,
            height=height,
            operation=operation,
            caller=caller,
            arguments=arguments,
            result=result,
            previous_hash=previous_hash,
            entry_hash=entry_hash,
        )

        self.store.set(StoreMapping.JOURNAL, sequence, entry.model_dump(mode="json"))
        self.store.set(
            StoreMapping.COUNTERS,
            JOURNAL_HEAD,
            {"sequence_number": sequence, "entry_hash": entry_hash},
        )

        logger.debug(
            "Journal entry appended: seq=%d op=%s hash=%s",
            sequence, operation, entry_hash[:16],
        )
        return entry

    def verify_chain(self) -> tuple[bool, int, str]:
        """
        Walk the journal from the first entry, recomputing every hash.

        Returns:
            Tuple of (is_valid, entries_verified, message).
        """
        head_sequence, head_hash = self._head()
        if head_sequence == 0:
            return True, 0, "Journal is empty"

        previous_hash = GENESIS_HASH
        for sequence in range(1, head_sequence + 1):
            entry = self.get_entry(sequence)
            if entry is None:
                return False, sequence - 1, f"Missing entry at sequence {sequence}"

            if entry.previous_hash != previous_hash:
                return (
                    False, sequence - 1,
                    f"Chain break at sequence {sequence}: "
                    f"previous_hash does not match prior entry's hash",
                )

            expected_hash = self._compute_hash(
                sequence_number=entry.sequence_number,
                height=entry.height,
                operation=entry.operation,
                caller=entry.caller,
                arguments=entry.arguments,
                result=entry.result,
                previous_hash=entry.previous_hash,
            )
            if entry.entry_hash != expected_hash:
                return (
                    False, sequence - 1,
                    f"Hash mismatch at sequence {sequence}: "
                    f"stored={entry.entry_hash[:16]}... "
                    f"computed={expected_hash[:16]}...",
                )
            previous_hash = entry.entry_hash

        if previous_hash != head_hash:
            return False, head_sequence, "Journal head hash does not match last entry"

        return (
            True, head_sequence,
            f"Chain verified: {head_sequence} entries, integrity intact",
        )

    def get_entry(self, sequence_number: int) -> JournalEntry | None:
        raw = self.store.get(StoreMapping.JOURNAL, sequence_number)
        return JournalEntry.model_validate(raw) if raw is not None else None

    def latest_entries(self, limit: int = 50) -> list[JournalEntry]:
        """Most recent entries, newest first."""
        head_sequence, _ = self._head()
        entries = []
        for sequence in range(head_sequence, max(0, head_sequence - limit), -1):
            entry = self.get_entry(sequence)
            if entry is None:
                raise JournalIntegrityError(f"Missing journal entry {sequence}")
            entries.append(entry)
        return entries

    def entry_count(self) -> int:
        return self._head()[0]

    # ── Internal ────────────────────────────────────────────────

    def _head(self) -> tuple[int, str]:
        head = self.store.get(StoreMapping.COUNTERS, JOURNAL_HEAD)
        if head is None:
            return 0, GENESIS_HASH
        return head["sequence_number"], head["entry_hash"]

    @staticmethod
    def _compute_hash(
        sequence_number: int,
        height: int,
        operation: str,
        caller: Principal,
        arguments: dict[str, Any],
        result: int | bool | None,
        previous_hash: str,
    ) -> str:
        hashable = {
            "sequence_number": sequence_number,
            "height": height,
            "operation": operation,
            "caller": caller,
            "arguments": arguments,
            "result": result,
            "previous_hash": previous_hash,
        }
        canonical = json.dumps(hashable, sort_keys=True, default=str)
        return hashlib.sha256(
            (previous_hash + canonical).encode("utf-8")
        ).hexdigest()

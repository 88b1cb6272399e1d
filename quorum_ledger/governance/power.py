"""
Voting Power Ledger — per-principal power balances and the running aggregate.

Every other component reads power through this ledger. Only the deployment
owner may assign power; the Delegation Ledger moves power between
principals through ``credit`` and ``debit``.

The aggregate ``total_voting_power`` is increased by every assignment and
never recomputed from balances. Setting one principal's power twice
therefore counts both amounts, and the aggregate can exceed the sum of
current balances. Quorum snapshots are taken from this aggregate.
"""

from __future__ import annotations

import logging

from quorum_ledger.governance.errors import InsufficientVotes, Unauthorized
from quorum_ledger.governance.schema import (
    TOTAL_VOTING_POWER,
    Principal,
    StoreMapping,
)
from quorum_ledger.ledger.store import StateStore

logger = logging.getLogger(__name__)


class VotingPowerLedger:
    """Owns ``voting_power`` entries and the ``total_voting_power`` counter."""

    def __init__(self, store: StateStore, owner: Principal) -> None:
        """
        Args:
            store: The state store.
            owner: The only principal allowed to assign power.
        """
        self.store = store
        self.owner = owner

    def set_power(self, caller: Principal, target: Principal, amount: int) -> None:
        """
        Replace ``target``'s power with ``amount`` and add ``amount`` to the
        aggregate.

        Raises:
            Unauthorized: If ``caller`` is not the owner.
        """
        if caller != self.owner:
            raise Unauthorized()
        if amount < 0:
            raise ValueError(f"Voting power must be unsigned, got {amount}")

        self.store.set(StoreMapping.VOTING_POWER, target, amount)
        total = self.total_voting_power() + amount
        self.store.set(StoreMapping.COUNTERS, TOTAL_VOTING_POWER, total)

        logger.info("Voting power set: target=%s amount=%d total=%d", target, amount, total)

    def get_power(self, principal: Principal) -> int:
        return self.store.get(StoreMapping.VOTING_POWER, principal, 0)

    def total_voting_power(self) -> int:
        return self.store.get(StoreMapping.COUNTERS, TOTAL_VOTING_POWER, 0)

    def balances(self) -> dict[Principal, int]:
        """Every stored balance (zero entries included)."""
        return dict(self.store.items(StoreMapping.VOTING_POWER))

    def credit(self, principal: Principal, amount: int) -> int:
        """Add to a balance without touching the aggregate."""
        balance = self.get_power(principal) + amount
        self.store.set(StoreMapping.VOTING_POWER, principal, balance)
        return balance

    def debit(self, principal: Principal, amount: int) -> int:
        """
        Subtract from a balance without touching the aggregate.

        Raises:
            InsufficientVotes: If the balance would go negative.
        """
        balance = self.get_power(principal)
        if amount > balance:
            raise InsufficientVotes()
        self.store.set(StoreMapping.VOTING_POWER, principal, balance - amount)
        return balance - amount

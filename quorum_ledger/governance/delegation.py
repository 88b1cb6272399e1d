"""
Delegation Ledger — reversible power transfers between pairs of principals.

Delegating moves ``amount`` out of the delegator's balance and into the
delegate's; revoking moves exactly the recorded amount back. There is one
record per ordered (delegator, delegate) pair: delegating again before
revoking overwrites it, and only the latest amount is returned on
revocation. Delegations do not chain: the delegate's received power is
ordinary balance.
"""

from __future__ import annotations

import logging

from quorum_ledger.governance.errors import (
    InsufficientVotes,
    InvalidStrategy,
    NotFound,
    Unauthorized,
)
from quorum_ledger.governance.power import VotingPowerLedger
from quorum_ledger.governance.schema import Delegation, Principal, StoreMapping
from quorum_ledger.ledger.store import StateStore

logger = logging.getLogger(__name__)


class DelegationLedger:
    """Owns the ``delegations`` mapping; mutates power through the power ledger."""

    def __init__(self, store: StateStore, power_ledger: VotingPowerLedger) -> None:
        self.store = store
        self.power_ledger = power_ledger

    def delegate(
        self,
        caller: Principal,
        delegate: Principal,
        amount: int,
        height: int,
    ) -> Delegation:
        """
        Transfer ``amount`` of ``caller``'s power to ``delegate``.

        Raises:
            InsufficientVotes: ``amount`` exceeds ``caller``'s power.
            InvalidStrategy: ``caller`` and ``delegate`` are the same principal.
        """
        if amount < 0:
            raise ValueError(f"Delegated amount must be unsigned, got {amount}")
        if amount > self.power_ledger.get_power(caller):
            raise InsufficientVotes()
        if caller == delegate:
            raise InvalidStrategy()

        record = Delegation(
            delegator=caller,
            delegate=delegate,
            delegated_amount=amount,
            active=True,
            created_at_height=height,
        )
        self._save(record)
        self.power_ledger.debit(caller, amount)
        self.power_ledger.credit(delegate, amount)

        logger.info(
            "Power delegated: %s -> %s amount=%d height=%d",
            caller, delegate, amount, height,
        )
        return record

    def revoke(self, caller: Principal, delegate: Principal) -> Delegation:
        """
        Return the recorded amount from ``delegate`` to ``caller``.

        The record is kept, flagged inactive, with its amount unchanged.

        Raises:
            NotFound: No delegation from ``caller`` to ``delegate``.
            Unauthorized: The delegation was already revoked.
            InsufficientVotes: ``delegate`` no longer holds the amount
                (its balance was reassigned by the owner meanwhile).
        """
        record = self.get_delegation(caller, delegate)
        if record is None:
            raise NotFound()
        if not record.active:
            raise Unauthorized()
        if self.power_ledger.get_power(delegate) < record.delegated_amount:
            raise InsufficientVotes()

        self.power_ledger.credit(caller, record.delegated_amount)
        self.power_ledger.debit(delegate, record.delegated_amount)
        record.active = False
        self._save(record)

        logger.info(
            "Delegation revoked: %s -> %s amount=%d",
            caller, delegate, record.delegated_amount,
        )
        return record

    def get_delegation(self, delegator: Principal, delegate: Principal) -> Delegation | None:
        raw = self.store.get(StoreMapping.DELEGATIONS, (delegator, delegate))
        return Delegation.model_validate(raw) if raw is not None else None

    def delegations(self) -> list[Delegation]:
        return [
            Delegation.model_validate(raw)
            for _key, raw in self.store.items(StoreMapping.DELEGATIONS)
        ]

    def _save(self, record: Delegation) -> None:
        self.store.set(
            StoreMapping.DELEGATIONS,
            (record.delegator, record.delegate),
            record.model_dump(mode="json"),
        )

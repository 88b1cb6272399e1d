"""
Governance Ledger — the operation surface the execution host calls.

Wires the components together and gives every operation the same shape:

1. Snapshot ``current_height`` from the host clock, once.
2. Open one store transaction.
3. Validate and mutate through the owning component.
4. Append the operation to the journal.
5. Commit, or roll back on any failure, and re-raise it unchanged.

The caller's identity is always an explicit argument; the ledger trusts it.

Usage:
    ledger = GovernanceLedger(store=MemoryStore(), clock=ManualClock(), owner="owner")
    ledger.set_power("owner", "alice", 100)
    proposal_id = ledger.create_proposal("alice", "Fund the docs", "...")
    ledger.vote("alice", proposal_id, True)
"""

from __future__ import annotations

from typing import Any, Callable

import structlog

from quorum_ledger.clock import HeightClock
from quorum_ledger.governance.autonomous import AutonomousExecutor
from quorum_ledger.governance.delegation import DelegationLedger
from quorum_ledger.governance.errors import GovernanceError
from quorum_ledger.governance.power import VotingPowerLedger
from quorum_ledger.governance.proposals import (
    DEFAULT_PROPOSAL_DURATION,
    DEFAULT_QUORUM_PERCENT,
    ProposalStore,
    derive_status,
)
from quorum_ledger.governance.schema import (
    Delegation,
    Principal,
    Proposal,
    Strategy,
    VoteRecord,
)
from quorum_ledger.governance.strategies import StrategyRegistry
from quorum_ledger.governance.tally import VoteTally
from quorum_ledger.ledger.journal import OperationJournal
from quorum_ledger.ledger.store import StateStore

log = structlog.get_logger(__name__)


class GovernanceLedger:
    """Facade over the power, proposal, tally, delegation and strategy components."""

    def __init__(
        self,
        store: StateStore,
        clock: HeightClock,
        owner: Principal,
        proposal_duration: int = DEFAULT_PROPOSAL_DURATION,
        quorum_percent: int = DEFAULT_QUORUM_PERCENT,
        derive_closed_status: bool = False,
    ) -> None:
        """
        Args:
            store: Durable key-value store supplied by the host.
            clock: Monotonic height source supplied by the host.
            owner: Deployment owner, the only principal allowed to set power.
            proposal_duration: Voting window length in heights.
            quorum_percent: Share of aggregate power required as quorum.
            derive_closed_status: Present "passed"/"failed" on reads of
                closed, unexecuted proposals. Never persisted.
        """
        self.store = store
        self.clock = clock
        self.owner = owner
        self.derive_closed_status = derive_closed_status

        self.power = VotingPowerLedger(store, owner)
        self.proposals = ProposalStore(
            store, self.power, duration=proposal_duration, quorum_percent=quorum_percent
        )
        self.tally = VoteTally(store, self.proposals, self.power)
        self.delegations = DelegationLedger(store, self.power)
        self.strategies = StrategyRegistry(store)
        self.autonomous = AutonomousExecutor(self.strategies, self.proposals, self.tally)
        self.journal = OperationJournal(store)

    # ── Operations ──────────────────────────────────────────────

    def set_power(self, caller: Principal, target: Principal, amount: int) -> bool:
        return self._run(
            "set_power", caller, {"target": target, "amount": amount},
            lambda height: self.power.set_power(caller, target, amount) or True,
        )

    def create_proposal(self, caller: Principal, title: str, description: str) -> int:
        return self._run(
            "create_proposal", caller, {"title": title, "description": description},
            lambda height: self.proposals.create_proposal(caller, title, description, height),
        )

    def vote(self, caller: Principal, proposal_id: int, vote_for: bool) -> bool:
        return self._run(
            "vote", caller, {"proposal_id": proposal_id, "vote_for": vote_for},
            lambda height: bool(self.tally.cast_vote(caller, proposal_id, vote_for, height)),
        )

    def create_voting_strategy(
        self,
        caller: Principal,
        name: str,
        auto_vote: bool,
        vote_preference: bool,
        min_quorum: int,
        delegate_to: Principal | None = None,
    ) -> int:
        arguments = {
            "name": name,
            "auto_vote": auto_vote,
            "vote_preference": vote_preference,
            "min_quorum": min_quorum,
            "delegate_to": delegate_to,
        }
        return self._run(
            "create_voting_strategy", caller, arguments,
            lambda height: self.strategies.create_strategy(
                caller, name, auto_vote, vote_preference, min_quorum, delegate_to
            ),
        )

    def delegate_voting_power(self, caller: Principal, delegate: Principal, power: int) -> bool:
        return self._run(
            "delegate_voting_power", caller, {"delegate": delegate, "power": power},
            lambda height: bool(self.delegations.delegate(caller, delegate, power, height)),
        )

    def revoke_delegation(self, caller: Principal, delegate: Principal) -> bool:
        return self._run(
            "revoke_delegation", caller, {"delegate": delegate},
            lambda height: bool(self.delegations.revoke(caller, delegate)),
        )

    def execute_proposal(self, caller: Principal, proposal_id: int) -> bool:
        return self._run(
            "execute_proposal", caller, {"proposal_id": proposal_id},
            lambda height: self.proposals.finalize(caller, proposal_id, height) or True,
        )

    def execute_autonomous_vote(
        self,
        caller: Principal,
        proposal_id: int,
        strategy_owner: Principal,
        strategy_id: int,
    ) -> bool:
        arguments = {
            "proposal_id": proposal_id,
            "strategy_owner": strategy_owner,
            "strategy_id": strategy_id,
        }
        return self._run(
            "execute_autonomous_vote", caller, arguments,
            lambda height: bool(
                self.autonomous.execute(caller, proposal_id, strategy_owner, strategy_id, height)
            ),
        )

    # ── Queries ─────────────────────────────────────────────────

    def get_proposal(self, proposal_id: int) -> Proposal | None:
        proposal = self.proposals.get_proposal(proposal_id)
        if proposal is not None and self.derive_closed_status:
            height = self.clock.current_height()
            proposal = proposal.model_copy(update={"status": derive_status(proposal, height)})
        return proposal

    def get_vote(self, proposal_id: int, voter: Principal) -> VoteRecord | None:
        return self.tally.get_vote(proposal_id, voter)

    def get_user_voting_power(self, principal: Principal) -> int:
        return self.power.get_power(principal)

    def get_strategy(self, owner: Principal, strategy_id: int) -> Strategy | None:
        return self.strategies.get_strategy(owner, strategy_id)

    def get_delegation(self, delegator: Principal, delegate: Principal) -> Delegation | None:
        return self.delegations.get_delegation(delegator, delegate)

    def get_total_voting_power(self) -> int:
        return self.power.total_voting_power()

    def get_proposal_count(self) -> int:
        return self.proposals.proposal_count()

    def is_proposal_active(self, proposal_id: int) -> bool:
        return self.proposals.is_active(proposal_id, self.clock.current_height())

    def is_quorum_met(self, proposal_id: int) -> bool:
        return self.proposals.is_quorum_met(proposal_id)

    # ── Internal ────────────────────────────────────────────────

    def _run(
        self,
        operation: str,
        caller: Principal,
        arguments: dict[str, Any],
        action: Callable[[int], Any],
    ) -> Any:
        height = self.clock.current_height()
        bound = log.bind(operation=operation, caller=caller, height=height)

        try:
            with self.store.transaction():
                result = action(height)
                entry = self.journal.append(height, operation, caller, arguments, result)
        except GovernanceError as exc:
            bound.warning(
                "quorum_ledger.operation.rejected",
                error=exc.code.value,
                code=exc.code.numeric,
                **arguments,
            )
            raise
        except ValueError as exc:
            # pydantic's ValidationError is a ValueError too
            bound.warning(
                "quorum_ledger.operation.invalid",
                error=type(exc).__name__,
                detail=str(exc),
                **arguments,
            )
            raise

        bound.info(
            f"quorum_ledger.{operation}",
            result=result,
            journal_sequence=entry.sequence_number,
            **arguments,
        )
        return result

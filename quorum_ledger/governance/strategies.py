"""
Per-principal registry of named automated-voting configurations.

Strategy ids are sequential per owner, starting at 1. Strategies are
created active; nothing deactivates them yet.
"""

from __future__ import annotations

import logging

from quorum_ledger.governance.schema import Principal, Strategy, StoreMapping
from quorum_ledger.ledger.store import StateStore

logger = logging.getLogger(__name__)


class StrategyRegistry:
    """Owns ``voting_strategies`` and ``user_strategy_count``."""

    def __init__(self, store: StateStore) -> None:
        self.store = store

    def create_strategy(
        self,
        caller: Principal,
        name: str,
        auto_vote: bool,
        vote_preference: bool,
        min_quorum: int,
        delegate_to: Principal | None = None,
    ) -> int:
        """
        Register a strategy owned by ``caller``.

        Returns:
            The new strategy id (per-owner sequence).
        """
        strategy_id = self.strategy_count(caller) + 1
        strategy = Strategy(
            owner=caller,
            strategy_id=strategy_id,
            name=name,
            auto_vote=auto_vote,
            vote_preference=vote_preference,
            min_quorum_threshold=min_quorum,
            delegate_to=delegate_to,
            active=True,
        )
        self.store.set(
            StoreMapping.VOTING_STRATEGIES,
            (caller, strategy_id),
            strategy.model_dump(mode="json"),
        )
        self.store.set(StoreMapping.USER_STRATEGY_COUNT, caller, strategy_id)

        logger.info(
            "Strategy created: owner=%s id=%d name='%s' auto_vote=%s",
            caller, strategy_id, name, auto_vote,
        )
        return strategy_id

    def get_strategy(self, owner: Principal, strategy_id: int) -> Strategy | None:
        raw = self.store.get(StoreMapping.VOTING_STRATEGIES, (owner, strategy_id))
        return Strategy.model_validate(raw) if raw is not None else None

    def strategy_count(self, owner: Principal) -> int:
        return self.store.get(StoreMapping.USER_STRATEGY_COUNT, owner, 0)

"""
Ledger storage — SQLAlchemy model for the durable key-value store.

Every named mapping of the governance ledger (proposals, votes,
voting_power, voting_strategies, delegations, user_strategy_count,
counters, journal) lives in a single table, one row per (mapping, key).
Keys are canonical JSON so that composite keys such as
``(proposal_id, voter)`` have exactly one textual form.
"""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all ledger models."""
    pass


class StateEntryDB(Base):
    """
    A single value in one of the ledger's named mappings.

    Rows are written only inside a store transaction, which is committed
    once per governance operation.
    """

    __tablename__ = "state_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)

    mapping = Column(
        String(50), nullable=False,
        comment="Name of the mapping (proposals, votes, voting_power, ...)",
    )
    key = Column(
        String(512), nullable=False,
        comment="Canonical JSON encoding of the mapping key",
    )
    value = Column(
        JSON, nullable=False,
        comment="JSON document of the stored record or counter",
    )

    updated_at = Column(
        DateTime(timezone=True), nullable=False,
        default=func.now(), onupdate=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("mapping", "key", name="uq_state_mapping_key"),
        Index("ix_state_mapping", "mapping"),
    )

    def __repr__(self) -> str:
        return f"<StateEntry {self.mapping}[{self.key}]>"

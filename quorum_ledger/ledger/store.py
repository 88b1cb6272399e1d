"""
State stores — the durable key-value layer the governance core writes to.

The core only ever talks to a ``StateStore``: named mappings with
get/set/delete, plus a ``transaction()`` scope that makes one operation's
writes all-or-nothing. Two implementations ship:

- ``MemoryStore`` — dict-backed, for tests and embedded hosts.
- ``SqlStore``    — SQLAlchemy-backed, one row per (mapping, key).

Usage:
    store = SqlStore("sqlite:///quorum_ledger.db")
    store.initialize()

    with store.transaction():
        store.set("voting_power", "alice", 100)
"""

from __future__ import annotations

import copy
import enum
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker

from quorum_ledger.ledger.models import Base, StateEntryDB

logger = logging.getLogger(__name__)

_DELETED = object()


def encode_key(key: Any) -> str:
    """Canonical text form of a mapping key; tuples become JSON arrays."""
    if isinstance(key, tuple):
        key = list(key)
    return json.dumps(key, sort_keys=True, separators=(",", ":"))


def decode_key(raw: str) -> Any:
    key = json.loads(raw)
    return tuple(key) if isinstance(key, list) else key


def _mapping_name(mapping: str | enum.Enum) -> str:
    return mapping.value if isinstance(mapping, enum.Enum) else mapping


class StateStore(ABC):
    """Interface over the host's durable key-value store."""

    @abstractmethod
    def get(self, mapping: str, key: Any, default: Any = None) -> Any:
        """Return the stored value or ``default``."""

    @abstractmethod
    def set(self, mapping: str, key: Any, value: Any) -> None:
        """Insert or replace a value."""

    @abstractmethod
    def delete(self, mapping: str, key: Any) -> None:
        """Remove a value; absent keys are ignored."""

    @abstractmethod
    def items(self, mapping: str) -> list[tuple[Any, Any]]:
        """All (key, value) pairs of a mapping."""

    @abstractmethod
    def transaction(self) -> Any:
        """Context manager committing every write on success, none on error."""


class MemoryStore(StateStore):
    """
    In-process store.

    Writes made inside ``transaction()`` are staged and only applied when
    the block exits cleanly. Nested transactions join the outer one.
    """

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}
        self._staged: dict[tuple[str, str], Any] | None = None

    def get(self, mapping: str, key: Any, default: Any = None) -> Any:
        name, raw = _mapping_name(mapping), encode_key(key)
        if self._staged is not None and (name, raw) in self._staged:
            value = self._staged[(name, raw)]
            return default if value is _DELETED else copy.deepcopy(value)
        if raw not in self._data.get(name, {}):
            return default
        return copy.deepcopy(self._data[name][raw])

    def set(self, mapping: str, key: Any, value: Any) -> None:
        self._write(_mapping_name(mapping), encode_key(key), copy.deepcopy(value))

    def delete(self, mapping: str, key: Any) -> None:
        self._write(_mapping_name(mapping), encode_key(key), _DELETED)

    def items(self, mapping: str) -> list[tuple[Any, Any]]:
        name = _mapping_name(mapping)
        merged = dict(self._data.get(name, {}))
        if self._staged is not None:
            for (staged_name, raw), value in self._staged.items():
                if staged_name == name:
                    merged[raw] = value
        return [
            (decode_key(raw), copy.deepcopy(value))
            for raw, value in merged.items()
            if value is not _DELETED
        ]

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._staged is not None:
            yield
            return

        self._staged = {}
        try:
            yield
        except BaseException:
            self._staged = None
            raise

        staged, self._staged = self._staged, None
        for (name, raw), value in staged.items():
            self._apply(name, raw, value)

    def _write(self, name: str, raw: str, value: Any) -> None:
        if self._staged is not None:
            self._staged[(name, raw)] = value
        else:
            self._apply(name, raw, value)

    def _apply(self, name: str, raw: str, value: Any) -> None:
        if value is _DELETED:
            self._data.get(name, {}).pop(raw, None)
        else:
            self._data.setdefault(name, {})[raw] = value


class SqlStore(StateStore):
    """
    SQLAlchemy-backed store.

    A transaction is one ORM session: committed when the block exits
    cleanly, rolled back otherwise. Calls made outside a transaction run in
    their own short-lived session.
    """

    def __init__(self, database_url: str) -> None:
        """
        Args:
            database_url: SQLAlchemy connection string (sync driver).
        """
        self.engine = create_engine(database_url, echo=False)
        self.SessionLocal = sessionmaker(bind=self.engine)
        self._session: Session | None = None

    def initialize(self) -> None:
        """Create the schema if it does not exist yet."""
        Base.metadata.create_all(self.engine)
        logger.info("State store initialized: %s", self.engine.url.render_as_string())

    def get(self, mapping: str, key: Any, default: Any = None) -> Any:
        with self._scope() as session:
            row = self._row(session, _mapping_name(mapping), encode_key(key))
            if row is None:
                return default
            return copy.deepcopy(row.value)

    def set(self, mapping: str, key: Any, value: Any) -> None:
        name, raw = _mapping_name(mapping), encode_key(key)
        with self._scope() as session:
            row = self._row(session, name, raw)
            if row is None:
                session.add(StateEntryDB(mapping=name, key=raw, value=copy.deepcopy(value)))
            else:
                row.value = copy.deepcopy(value)
            session.flush()

    def delete(self, mapping: str, key: Any) -> None:
        with self._scope() as session:
            row = self._row(session, _mapping_name(mapping), encode_key(key))
            if row is not None:
                session.delete(row)
                session.flush()

    def items(self, mapping: str) -> list[tuple[Any, Any]]:
        with self._scope() as session:
            rows = session.execute(
                select(StateEntryDB)
                .where(StateEntryDB.mapping == _mapping_name(mapping))
                .order_by(StateEntryDB.id.asc())
            ).scalars().all()
            return [(decode_key(row.key), copy.deepcopy(row.value)) for row in rows]

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._session is not None:
            yield
            return

        with self.SessionLocal() as session:
            self._session = session
            try:
                yield
                session.commit()
            except BaseException:
                session.rollback()
                raise
            finally:
                self._session = None

    # ── Internal ────────────────────────────────────────────────

    @contextmanager
    def _scope(self) -> Iterator[Session]:
        if self._session is not None:
            yield self._session
            return

        with self.SessionLocal() as session:
            yield session
            session.commit()

    @staticmethod
    def _row(session: Session, name: str, raw: str) -> StateEntryDB | None:
        return session.execute(
            select(StateEntryDB).where(
                StateEntryDB.mapping == name, StateEntryDB.key == raw
            )
        ).scalar_one_or_none()

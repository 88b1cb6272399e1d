"""
Quorum Ledger — Host wiring.

Central construction point that:
1. Configures structured logging
2. Builds the state store selected in settings (SQL or in-memory)
3. Builds the height clock
4. Assembles the GovernanceLedger facade

The API and the audit CLI both obtain their ledger from here.
"""

from __future__ import annotations

import logging
import sys

import structlog

from quorum_ledger.clock import HeightClock, SystemClock
from quorum_ledger.config import LedgerSettings, settings
from quorum_ledger.governance.ledger import GovernanceLedger
from quorum_ledger.ledger.store import MemoryStore, SqlStore, StateStore

logger = logging.getLogger(__name__)


def configure_logging(config: LedgerSettings = settings) -> None:
    """Configure structured logging."""
    logging.basicConfig(
        level=logging.getLevelName(config.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            (
                structlog.dev.ConsoleRenderer()
                if config.log_format != "json"
                else structlog.processors.JSONRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_store(config: LedgerSettings = settings) -> StateStore:
    """Create the configured store, initializing the schema for SQL."""
    if config.store_backend == "memory":
        logger.info("Using in-memory state store")
        return MemoryStore()
    if config.store_backend == "sql":
        store = SqlStore(config.database_url)
        store.initialize()
        return store
    raise ValueError(f"Unknown store backend: {config.store_backend}")


def build_clock(config: LedgerSettings = settings) -> HeightClock:
    return SystemClock(
        seconds_per_height=config.seconds_per_height,
        genesis_timestamp=config.genesis_timestamp,
    )


def build_ledger(
    config: LedgerSettings = settings,
    store: StateStore | None = None,
    clock: HeightClock | None = None,
) -> GovernanceLedger:
    """Assemble a ledger from settings; ``store`` and ``clock`` override them."""
    ledger = GovernanceLedger(
        store=store if store is not None else build_store(config),
        clock=clock if clock is not None else build_clock(config),
        owner=config.owner_principal,
        proposal_duration=config.proposal_duration,
        quorum_percent=config.quorum_percent,
        derive_closed_status=config.derive_closed_status,
    )

    structlog.get_logger().info(
        "quorum_ledger.orchestrator.ledger_ready",
        owner=config.owner_principal,
        store_backend=config.store_backend,
        proposal_duration=config.proposal_duration,
        quorum_percent=config.quorum_percent,
    )
    return ledger

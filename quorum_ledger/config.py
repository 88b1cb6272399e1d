"""Quorum Ledger — Application configuration via environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class LedgerSettings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "QUORUM_LEDGER_",
        "extra": "ignore",
    }

    # ── Deployment ─────────────────────────────────────────────
    owner_principal: str = "owner"

    # ── Governance rules ───────────────────────────────────────
    proposal_duration: int = 1440
    quorum_percent: int = 20
    derive_closed_status: bool = False

    # ── Storage ────────────────────────────────────────────────
    store_backend: str = "sql"
    database_url: str = "sqlite:///quorum_ledger.db"

    # ── Height clock ───────────────────────────────────────────
    seconds_per_height: int = 600
    genesis_timestamp: float = 0.0

    # ── API ────────────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    principal_header: str = "X-Principal"

    # ── Logging ────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "json"


settings = LedgerSettings()

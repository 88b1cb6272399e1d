"""Quorum Ledger — weighted voting, delegation and proposal lifecycle ledger."""

__version__ = "0.1.0"

"""Governance core: power, proposals, votes, delegations and strategies."""

"""
The closed set of failures a governance operation may return.

Each failure is an exception class carrying nothing beyond its kind. All of
them are raised during precondition validation, before any write.
"""

from __future__ import annotations

import enum


class ErrorCode(str, enum.Enum):
    """Failure kinds, in host wire order."""

    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    ALREADY_VOTED = "already_voted"
    PROPOSAL_CLOSED = "proposal_closed"
    PROPOSAL_ACTIVE = "proposal_active"
    INSUFFICIENT_VOTES = "insufficient_votes"
    INVALID_STRATEGY = "invalid_strategy"
    QUORUM_NOT_MET = "quorum_not_met"

    @property
    def numeric(self) -> int:
        """Numeric code used by hosts that report errors as unsigned ints (u100..u107)."""
        return 100 + list(ErrorCode).index(self)


class GovernanceError(Exception):
    """Base class for every typed ledger failure."""

    code: ErrorCode

    def __init__(self) -> None:
        super().__init__(self.code.value)


class Unauthorized(GovernanceError):
    code = ErrorCode.UNAUTHORIZED


class NotFound(GovernanceError):
    code = ErrorCode.NOT_FOUND


class AlreadyVoted(GovernanceError):
    code = ErrorCode.ALREADY_VOTED


class ProposalClosed(GovernanceError):
    code = ErrorCode.PROPOSAL_CLOSED


class ProposalActive(GovernanceError):
    code = ErrorCode.PROPOSAL_ACTIVE


class InsufficientVotes(GovernanceError):
    code = ErrorCode.INSUFFICIENT_VOTES


class InvalidStrategy(GovernanceError):
    code = ErrorCode.INVALID_STRATEGY


class QuorumNotMet(GovernanceError):
    code = ErrorCode.QUORUM_NOT_MET


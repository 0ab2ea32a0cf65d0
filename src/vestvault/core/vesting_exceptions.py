"""
Vesting-specific exception hierarchy for vestvault.

Every failure of a vault operation is terminal for the current call: the
operation aborts with no partial state change and the typed exception is
surfaced to the caller. The ``recoverable`` flag tells callers whether
retrying the same call later (after time passes or more deposits arrive)
can succeed.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class VestingError(Exception):
    """Base exception for all vault errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried later
    """

    recoverable: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: Optional[bool] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if recoverable is not None:
            self.recoverable = recoverable


# ==================== Authorization Errors ====================


class UnauthorizedError(VestingError):
    """Raised when a non-administrator calls an administrator-only operation."""
    pass


class ReentrantCallError(VestingError):
    """Raised when a guarded operation is entered while another is in flight."""
    pass


# ==================== Argument & Capacity Errors ====================


class InvalidArgumentError(VestingError):
    """Raised on a bad amount, address, cliff/duration pair, or duplicate schedule."""
    pass


class InsufficientCapacityError(VestingError):
    """Raised when a new schedule would promise more than custody holds."""
    recoverable = True  # More deposits raise capacity


# ==================== Claim Errors ====================


class NoScheduleError(VestingError):
    """Raised when the caller has no vesting schedule."""
    pass


class NothingToClaimError(VestingError):
    """Raised when nothing has vested since the last claim."""
    recoverable = True  # More vests as time passes


class InsufficientCustodyBalanceError(VestingError):
    """Raised when the custody account cannot cover a claim."""
    pass


class TransferFailedError(VestingError):
    """Raised when the asset transfer service rejects or fails a transfer."""
    recoverable = True


# ==================== Helpers ====================


def is_recoverable_error(exc: BaseException) -> bool:
    """True when retrying the same call later can succeed."""
    return isinstance(exc, VestingError) and exc.recoverable


def get_error_context(exc: BaseException) -> Dict[str, Any]:
    """
    Flatten an exception into fields suitable for a structured log record.

    Vault errors add their ``recoverable`` flag and, when present, their
    ``details`` dict. Anything else reports type and message only.
    """
    context: Dict[str, Any] = {"error_type": exc.__class__.__name__, "error_message": str(exc)}
    if not isinstance(exc, VestingError):
        return context

    context["recoverable"] = exc.recoverable
    if exc.details:
        context["details"] = dict(exc.details)
    return context

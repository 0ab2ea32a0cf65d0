"""
Access control and reentrancy protection for the vesting vault.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from ..core.contracts.erc20 import ZERO_ADDRESS
from ..core.vesting_exceptions import InvalidArgumentError, ReentrantCallError, UnauthorizedError

logger = logging.getLogger(__name__)


def is_null_address(address: str | None) -> bool:
    return not address or address.lower() == ZERO_ADDRESS


class AccessControl:
    """Single-administrator authorization."""

    def __init__(self, administrator: str):
        if is_null_address(administrator):
            raise InvalidArgumentError("Administrator cannot be the zero address")
        self.administrator = administrator.lower()

    def is_authorized(self, caller: str) -> bool:
        return bool(caller) and caller.lower() == self.administrator

    def require_administrator(self, caller: str, operation: str) -> None:
        if not self.is_authorized(caller):
            logger.warning(
                "Access denied: caller is not administrator",
                extra={
                    "event": "vesting.unauthorized",
                    "operation": operation,
                    "caller": (caller or "")[:10],
                }
            )
            raise UnauthorizedError(
                f"{operation}: caller is not the administrator",
                details={"caller": caller, "operation": operation},
            )


class ReentrancyGuard:
    """Blocks a second guarded operation while one is in flight."""

    def __init__(self) -> None:
        self._locked = False
        self._operation: str | None = None

    @contextmanager
    def guard(self, operation: str) -> Iterator[None]:
        if self._locked:
            logger.error(
                "Reentrant call rejected",
                extra={
                    "event": "vesting.reentrant_call",
                    "operation": operation,
                    "in_flight": self._operation,
                }
            )
            raise ReentrantCallError(
                f"{operation}: reentrant call while {self._operation} is in flight",
                details={"operation": operation, "in_flight": self._operation},
            )

        try:
            self._locked = True
            self._operation = operation
            yield
        finally:
            self._locked = False
            self._operation = None

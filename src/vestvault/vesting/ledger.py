from __future__ import annotations

import logging
from typing import Any, Dict, Iterable

from ..core.vesting_exceptions import InsufficientCapacityError, InvalidArgumentError
from .schedule import VestingSchedule

logger = logging.getLogger(__name__)


class CustodyLedger:
    """
    Tracks what the vault has promised against what custody actually holds.

    Capacity for a new schedule is::

        held_balance - reserved - (total_promised - total_released)

    Every schedule is fully backed from the moment it is created, so a
    deposit only widens capacity for schedules created afterwards.
    """

    def __init__(self, total_promised: int = 0, total_released: int = 0, reserved: int = 0):
        if reserved < 0:
            raise InvalidArgumentError("Reserved amount cannot be negative", details={"reserved": reserved})
        self.total_promised = total_promised
        self.total_released = total_released
        self.reserved = reserved

    @property
    def outstanding(self) -> int:
        """Promised units not yet released to beneficiaries."""
        return self.total_promised - self.total_released

    def available_capacity(self, held_balance: int) -> int:
        return held_balance - self.reserved - self.outstanding

    def require_capacity(self, amount: int, held_balance: int) -> None:
        """Raise InsufficientCapacityError unless ``amount`` fits in custody."""
        available = self.available_capacity(held_balance)
        if available < amount:
            raise InsufficientCapacityError(
                f"Insufficient custody capacity ({available} < {amount})",
                details={
                    "requested": amount,
                    "available": available,
                    "held_balance": held_balance,
                    "outstanding": self.outstanding,
                    "reserved": self.reserved,
                },
            )

    def record_promise(self, amount: int) -> None:
        self.total_promised += amount

    def revert_promise(self, amount: int) -> None:
        self.total_promised -= amount

    def record_release(self, amount: int) -> None:
        self.total_released += amount

    def revert_release(self, amount: int) -> None:
        self.total_released -= amount

    def to_dict(self) -> Dict[str, int]:
        return {
            "total_promised": self.total_promised,
            "total_released": self.total_released,
            "reserved": self.reserved,
        }

    @classmethod
    def restore(cls, data: Dict[str, Any] | None, schedules: Iterable[VestingSchedule]) -> "CustodyLedger":
        """
        Rebuild the ledger from the schedules it backs.

        Totals are always recomputed from ``schedules``. Stored totals are
        only cross-checked, and a mismatch means the state was tampered
        with or truncated.

        Raises:
            InvalidArgumentError: Stored totals disagree with the schedules
        """
        data = data or {}
        schedules = list(schedules)
        ledger = cls(
            total_promised=sum(schedule.total_amount for schedule in schedules),
            total_released=sum(schedule.claimed_amount for schedule in schedules),
            reserved=int(data.get("reserved", 0)),
        )
        for name in ("total_promised", "total_released"):
            if name in data and int(data[name]) != getattr(ledger, name):
                raise InvalidArgumentError(
                    f"Stored {name} does not match the schedules",
                    details={"stored": int(data[name]), "derived": getattr(ledger, name)},
                )
        return ledger

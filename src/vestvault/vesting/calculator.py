"""
Linear vesting with a cliff.

Amounts are integers and the linear branch truncates toward zero, so a
claim taken just before full vesting may come up short by a rounding
remainder. The terminal branch returns ``total_amount`` exactly, which
settles that remainder once the duration has elapsed.
"""

from __future__ import annotations

from ..core.vesting_exceptions import InvalidArgumentError
from .schedule import VestingSchedule


def vested_amount(schedule: VestingSchedule, now: int) -> int:
    """
    Amount of ``schedule`` vested as of ``now``.

    Args:
        schedule: Schedule to evaluate
        now: Current timestamp

    Returns:
        Vested amount in ``[0, total_amount]``
    """
    if schedule.duration <= 0:
        raise InvalidArgumentError(
            "Vesting duration must be positive",
            details={"duration": schedule.duration},
        )

    elapsed = now - schedule.start_time
    if elapsed < schedule.cliff or elapsed <= 0:
        return 0
    if elapsed >= schedule.duration:
        return schedule.total_amount
    return schedule.total_amount * elapsed // schedule.duration


def claimable_amount(schedule: VestingSchedule, now: int) -> int:
    """Vested but not yet claimed amount."""
    return max(0, vested_amount(schedule, now) - schedule.claimed_amount)

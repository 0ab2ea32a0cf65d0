from __future__ import annotations

import logging
from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, Iterator

logger = logging.getLogger(__name__)


@dataclass
class VestingSchedule:
    """Linear release schedule for one beneficiary.

    ``start_time == 0`` is reserved to mean "no schedule".
    """

    cliff: int
    start_time: int
    duration: int
    total_amount: int
    claimed_amount: int = 0

    @property
    def exists(self) -> bool:
        return self.start_time > 0

    @property
    def unclaimed_amount(self) -> int:
        return self.total_amount - self.claimed_amount

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VestingSchedule":
        return cls(
            cliff=int(data["cliff"]),
            start_time=int(data["start_time"]),
            duration=int(data["duration"]),
            total_amount=int(data["total_amount"]),
            claimed_amount=int(data.get("claimed_amount", 0)),
        )


class ScheduleStore:
    """Mapping from beneficiary address to at most one VestingSchedule."""

    def __init__(self) -> None:
        self._schedules: dict[str, VestingSchedule] = {}

    @staticmethod
    def _key(beneficiary: str) -> str:
        return beneficiary.lower()

    def get(self, beneficiary: str) -> VestingSchedule | None:
        """Return the live schedule record, or None."""
        schedule = self._schedules.get(self._key(beneficiary))
        if schedule is None or not schedule.exists:
            return None
        return schedule

    def snapshot(self, beneficiary: str) -> VestingSchedule | None:
        """Return a detached copy of the schedule for read-only callers."""
        schedule = self.get(beneficiary)
        return replace(schedule) if schedule is not None else None

    def has(self, beneficiary: str) -> bool:
        return self.get(beneficiary) is not None

    def insert(self, beneficiary: str, schedule: VestingSchedule) -> None:
        key = self._key(beneficiary)
        if self.has(key):
            raise KeyError(f"schedule already exists for {beneficiary}")
        self._schedules[key] = schedule

    def remove(self, beneficiary: str) -> None:
        """Drop a schedule. Only used to undo an uncommitted insert."""
        self._schedules.pop(self._key(beneficiary), None)

    def items(self) -> Iterator[tuple[str, VestingSchedule]]:
        return iter(list(self._schedules.items()))

    def __len__(self) -> int:
        return len(self._schedules)

    def __contains__(self, beneficiary: object) -> bool:
        return isinstance(beneficiary, str) and self.has(beneficiary)

    def to_dict(self) -> Dict[str, Dict[str, int]]:
        return {address: schedule.to_dict() for address, schedule in self._schedules.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Dict[str, Any]]) -> "ScheduleStore":
        store = cls()
        for address, raw in data.items():
            store.insert(address, VestingSchedule.from_dict(raw))
        logger.debug("Loaded %d vesting schedules", len(store))
        return store

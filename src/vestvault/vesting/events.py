from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict

SCHEDULE_CREATED = "ScheduleCreated"
TOKENS_DEPOSITED = "TokensDeposited"
TOKENS_CLAIMED = "TokensClaimed"

EVENT_TYPES = (SCHEDULE_CREATED, TOKENS_DEPOSITED, TOKENS_CLAIMED)


@dataclass
class VestingEvent:
    """Record emitted by a committed vault operation.

    ``account`` is the beneficiary for ScheduleCreated/TokensClaimed and the
    depositor for TokensDeposited.
    """

    event_type: str
    account: str
    amount: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VestingEvent":
        if data["event_type"] not in EVENT_TYPES:
            raise ValueError(f"Unknown vault event type: {data['event_type']!r}")
        return cls(
            event_type=data["event_type"],
            account=data["account"],
            amount=int(data["amount"]),
            timestamp=int(data["timestamp"]),
        )

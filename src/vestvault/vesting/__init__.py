"""
vestvault vesting engine.

- ScheduleStore / VestingSchedule: per-beneficiary schedule records
- calculator: pure linear cliff vesting formula
- CustodyLedger: promised vs held accounting
- ScheduleAdmin / ClaimProcessor: administrator and beneficiary operations
- VestingVault: owns the components and exposes the public operations
"""

from .calculator import claimable_amount, vested_amount
from .events import SCHEDULE_CREATED, TOKENS_CLAIMED, TOKENS_DEPOSITED, VestingEvent
from .ledger import CustodyLedger
from .schedule import ScheduleStore, VestingSchedule
from .vault import VestingVault

__all__ = [
    "VestingVault",
    "VestingSchedule",
    "ScheduleStore",
    "CustodyLedger",
    "VestingEvent",
    "vested_amount",
    "claimable_amount",
    "SCHEDULE_CREATED",
    "TOKENS_DEPOSITED",
    "TOKENS_CLAIMED",
]

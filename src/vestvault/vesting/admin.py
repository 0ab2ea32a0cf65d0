from __future__ import annotations

import logging
from typing import Callable

from ..core.protocols import IAssetTransferService
from ..core.vesting_exceptions import InvalidArgumentError
from .events import SCHEDULE_CREATED, TOKENS_DEPOSITED
from .guard import AccessControl, ReentrancyGuard, is_null_address
from .ledger import CustodyLedger
from .schedule import ScheduleStore, VestingSchedule
from .transaction import atomic
from .transfers import invoke_transfer

logger = logging.getLogger(__name__)

EmitFn = Callable[[str, str, int, int], None]


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ScheduleAdmin:
    """Administrator-only operations: schedule creation and deposits."""

    def __init__(
        self,
        store: ScheduleStore,
        ledger: CustodyLedger,
        token: IAssetTransferService,
        custody_address: str,
        access: AccessControl,
        reentrancy: ReentrancyGuard,
        emit: EmitFn,
    ):
        self.store = store
        self.ledger = ledger
        self.token = token
        self.custody_address = custody_address
        self.access = access
        self.reentrancy = reentrancy
        self._emit = emit

    def create_schedule(
        self,
        caller: str,
        beneficiary: str,
        amount: int,
        cliff: int,
        duration: int,
        now: int,
    ) -> VestingSchedule:
        """
        Register a vesting schedule for ``beneficiary`` starting at ``now``.

        Args:
            caller: Must be the administrator
            beneficiary: Address receiving the allocation
            amount: Total units allocated
            cliff: Seconds before anything vests
            duration: Seconds over which the full amount vests
            now: Current timestamp, becomes the schedule's start time

        Returns:
            Copy of the created schedule

        Raises:
            UnauthorizedError: Caller is not the administrator
            InvalidArgumentError: Bad arguments or duplicate schedule
            InsufficientCapacityError: Custody cannot back the allocation
            ReentrantCallError: Another guarded operation is in flight
        """
        with self.reentrancy.guard("create_schedule"):
            self.access.require_administrator(caller, "create_schedule")
            self._validate_schedule_args(beneficiary, amount, cliff, duration, now)

            held = self.token.balance_of(self.custody_address)
            self.ledger.require_capacity(amount, held)

            schedule = VestingSchedule(
                cliff=cliff,
                start_time=now,
                duration=duration,
                total_amount=amount,
            )
            with atomic() as undo:
                self.store.insert(beneficiary, schedule)
                undo.record("schedule insert", lambda: self.store.remove(beneficiary))
                self.ledger.record_promise(amount)
                undo.record("promise", lambda: self.ledger.revert_promise(amount))

            self._emit(SCHEDULE_CREATED, beneficiary.lower(), amount, now)
            logger.info(
                "Vesting schedule created",
                extra={
                    "event": "vesting.schedule_created",
                    "beneficiary": beneficiary[:10],
                    "amount": amount,
                    "cliff": cliff,
                    "duration": duration,
                    "start_time": now,
                }
            )
            return self.store.snapshot(beneficiary)

    def deposit(self, caller: str, amount: int, now: int) -> None:
        """
        Pull ``amount`` from the administrator into custody.

        The administrator must have approved the custody account for at
        least ``amount`` beforehand. Promised totals are unchanged.

        Raises:
            UnauthorizedError: Caller is not the administrator
            InvalidArgumentError: Amount is not a positive integer
            TransferFailedError: The transfer service rejected the pull
        """
        with self.reentrancy.guard("deposit"):
            self.access.require_administrator(caller, "deposit")
            if not _is_int(amount) or amount <= 0:
                raise InvalidArgumentError(
                    "Deposit amount must be a positive integer", details={"amount": amount}
                )

            invoke_transfer(
                "deposit",
                self.token.transfer_from,
                self.custody_address,
                caller,
                self.custody_address,
                amount,
                details={"depositor": caller, "amount": amount},
            )

            self._emit(TOKENS_DEPOSITED, caller.lower(), amount, now)
            logger.info(
                "Tokens deposited",
                extra={
                    "event": "vesting.deposit",
                    "depositor": caller[:10],
                    "amount": amount,
                }
            )

    def _validate_schedule_args(
        self, beneficiary: str, amount: int, cliff: int, duration: int, now: int
    ) -> None:
        details = {
            "beneficiary": beneficiary,
            "amount": amount,
            "cliff": cliff,
            "duration": duration,
        }
        if is_null_address(beneficiary):
            raise InvalidArgumentError("Beneficiary cannot be the zero address", details=details)
        if beneficiary in self.store:
            raise InvalidArgumentError("Vesting schedule already exists for beneficiary", details=details)
        if not _is_int(amount) or amount <= 0:
            raise InvalidArgumentError("Amount must be a positive integer", details=details)
        if not _is_int(cliff) or not _is_int(duration):
            raise InvalidArgumentError("Cliff and duration must be integer seconds", details=details)
        if duration <= 0:
            raise InvalidArgumentError("Duration must be positive", details=details)
        if cliff < 0:
            raise InvalidArgumentError("Cliff cannot be negative", details=details)
        if cliff > duration:
            raise InvalidArgumentError("Cliff cannot exceed duration", details=details)
        if now <= 0:
            # start_time 0 marks "no schedule"
            raise InvalidArgumentError("Clock must be positive to start a schedule", details={"now": now})

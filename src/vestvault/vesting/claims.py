from __future__ import annotations

import logging
from typing import Callable

from ..core.protocols import IAssetTransferService
from ..core.vesting_exceptions import (
    InsufficientCustodyBalanceError,
    NoScheduleError,
    NothingToClaimError,
)
from .calculator import vested_amount
from .events import TOKENS_CLAIMED
from .guard import ReentrancyGuard
from .ledger import CustodyLedger
from .schedule import ScheduleStore
from .transaction import atomic
from .transfers import invoke_transfer

logger = logging.getLogger(__name__)


class ClaimProcessor:
    """Releases vested units to the calling beneficiary."""

    def __init__(
        self,
        store: ScheduleStore,
        ledger: CustodyLedger,
        token: IAssetTransferService,
        custody_address: str,
        reentrancy: ReentrancyGuard,
        emit: Callable[[str, str, int, int], None],
    ):
        self.store = store
        self.ledger = ledger
        self.token = token
        self.custody_address = custody_address
        self.reentrancy = reentrancy
        self._emit = emit

    def claim(self, caller: str, now: int) -> int:
        """
        Transfer everything vested but unclaimed to ``caller``.

        Bookkeeping is updated before the external transfer so a nested
        call made during the transfer sees the new ``claimed_amount``. Any
        failure from the balance check onward restores the bookkeeping.

        Returns:
            Amount released

        Raises:
            ReentrantCallError: A guarded operation is already in flight
            NoScheduleError: Caller has no schedule
            NothingToClaimError: Nothing vested since the last claim
            InsufficientCustodyBalanceError: Custody cannot cover the claim
            TransferFailedError: The transfer service failed
        """
        with self.reentrancy.guard("claim"):
            schedule = self.store.get(caller)
            if schedule is None:
                raise NoScheduleError(
                    "No vesting schedule for caller", details={"beneficiary": caller}
                )

            vested = vested_amount(schedule, now)
            delta = vested - schedule.claimed_amount
            if delta <= 0:
                raise NothingToClaimError(
                    "Nothing to claim",
                    details={
                        "beneficiary": caller,
                        "vested": vested,
                        "claimed": schedule.claimed_amount,
                    },
                )

            previous_claimed = schedule.claimed_amount
            with atomic() as undo:
                schedule.claimed_amount = previous_claimed + delta
                undo.record("claimed amount", lambda: setattr(schedule, "claimed_amount", previous_claimed))
                self.ledger.record_release(delta)
                undo.record("release", lambda: self.ledger.revert_release(delta))

                held = self.token.balance_of(self.custody_address)
                if held < delta:
                    logger.error(
                        "Custody balance below claim",
                        extra={
                            "event": "vesting.custody_shortfall",
                            "beneficiary": caller[:10],
                            "held": held,
                            "amount": delta,
                        }
                    )
                    raise InsufficientCustodyBalanceError(
                        f"Custody balance too low for claim ({held} < {delta})",
                        details={"beneficiary": caller, "held": held, "amount": delta},
                    )

                invoke_transfer(
                    "claim",
                    self.token.transfer,
                    self.custody_address,
                    caller,
                    delta,
                    details={"beneficiary": caller, "amount": delta},
                )

            self._emit(TOKENS_CLAIMED, caller.lower(), delta, now)
            logger.info(
                "Vested tokens claimed",
                extra={
                    "event": "vesting.claimed",
                    "beneficiary": caller[:10],
                    "amount": delta,
                    "claimed_total": schedule.claimed_amount,
                    "total_amount": schedule.total_amount,
                }
            )
            return delta

"""
Vesting Vault.

Holds a fungible asset in custody and releases it to beneficiaries along
per-beneficiary linear schedules with a cliff.

Roles:
- Administrator: creates schedules and deposits asset into custody
- Beneficiary: claims whatever has vested

Every public operation is all-or-nothing and runs under a single
reentrancy guard. Schedules are always fully backed by custody: creation
fails unless the unpromised part of the held balance covers the amount.
"""

from __future__ import annotations

import hashlib
import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator

from ..core.metrics import VestingMetrics
from ..core.protocols import IAssetTransferService
from ..core.vesting_exceptions import InvalidArgumentError, VestingError
from . import calculator
from .admin import ScheduleAdmin
from .claims import ClaimProcessor
from .events import VestingEvent
from .guard import AccessControl, ReentrancyGuard
from .ledger import CustodyLedger
from .schedule import ScheduleStore, VestingSchedule

logger = logging.getLogger(__name__)


class VestingVault:
    """Custody vault with linear cliff vesting per beneficiary."""

    def __init__(
        self,
        token: IAssetTransferService,
        administrator: str,
        address: str | None = None,
        time_provider: Callable[[], int] | None = None,
        reserved: int = 0,
        metrics: VestingMetrics | None = None,
        store: ScheduleStore | None = None,
        ledger: CustodyLedger | None = None,
    ):
        if not isinstance(token, IAssetTransferService):
            raise InvalidArgumentError("token must provide balance_of, transfer and transfer_from")
        self.token = token
        self.access = AccessControl(administrator)
        self.address = (address or self._derive_address(administrator)).lower()
        self.store = store if store is not None else ScheduleStore()
        self.ledger = ledger if ledger is not None else CustodyLedger(reserved=reserved)
        self.events: list[VestingEvent] = []
        self.metrics = metrics
        self._time_provider = time_provider or (lambda: int(time.time()))
        self._reentrancy = ReentrancyGuard()

        self.admin = ScheduleAdmin(
            self.store,
            self.ledger,
            token,
            self.address,
            self.access,
            self._reentrancy,
            self._emit,
        )
        self.claims = ClaimProcessor(
            self.store,
            self.ledger,
            token,
            self.address,
            self._reentrancy,
            self._emit,
        )
        logger.info(
            "VestingVault initialized",
            extra={
                "event": "vesting.vault_initialized",
                "vault": self.address[:10],
                "administrator": self.administrator[:10],
                "deterministic_clock": time_provider is not None,
            }
        )

    @staticmethod
    def _derive_address(administrator: str) -> str:
        digest = hashlib.sha3_256(f"vesting:{administrator.lower()}:{time.time()}".encode()).digest()
        return f"0x{digest[-20:].hex()}"

    @property
    def administrator(self) -> str:
        return self.access.administrator

    def _current_time(self) -> int:
        timestamp = self._time_provider()
        try:
            return int(timestamp)
        except (TypeError, ValueError) as exc:
            raise ValueError("time_provider must return an integer timestamp") from exc

    def _emit(self, event_type: str, account: str, amount: int, timestamp: int) -> None:
        self.events.append(
            VestingEvent(event_type=event_type, account=account, amount=amount, timestamp=timestamp)
        )

    @contextmanager
    def _observe(self, operation: str) -> Iterator[None]:
        try:
            yield
        except VestingError as exc:
            logger.warning(
                "%s rejected: %s",
                operation,
                exc.message,
                extra={
                    "event": f"vesting.{operation}_rejected",
                    "error_type": type(exc).__name__,
                    "recoverable": exc.recoverable,
                }
            )
            if self.metrics:
                self.metrics.record_operation(operation, type(exc).__name__)
            raise
        if self.metrics:
            self.metrics.record_operation(operation, "success")
            self.metrics.update_ledger(len(self.store), self.ledger.outstanding, self.held_balance())

    # ==================== Administrator Operations ====================

    def create_schedule(
        self, caller: str, beneficiary: str, amount: int, cliff: int, duration: int
    ) -> VestingSchedule:
        """Create a schedule for ``beneficiary`` starting now. Administrator only."""
        with self._observe("create_schedule"):
            return self.admin.create_schedule(
                caller, beneficiary, amount, cliff, duration, self._current_time()
            )

    def deposit(self, caller: str, amount: int) -> None:
        """Pull ``amount`` from the administrator into custody. Administrator only."""
        with self._observe("deposit"):
            self.admin.deposit(caller, amount, self._current_time())
            if self.metrics:
                self.metrics.record_deposit(amount)

    # ==================== Beneficiary Operations ====================

    def claim(self, caller: str) -> int:
        """Release everything vested to ``caller``. Returns the amount released."""
        with self._observe("claim"):
            amount = self.claims.claim(caller, self._current_time())
            if self.metrics:
                self.metrics.record_claim(amount)
            return amount

    # ==================== View Functions ====================

    def get_schedule(self, beneficiary: str) -> VestingSchedule | None:
        return self.store.snapshot(beneficiary)

    def vested_amount(self, beneficiary: str, now: int | None = None) -> int:
        schedule = self.store.get(beneficiary)
        if schedule is None:
            return 0
        return calculator.vested_amount(schedule, self._current_time() if now is None else now)

    def claimable_amount(self, beneficiary: str, now: int | None = None) -> int:
        schedule = self.store.get(beneficiary)
        if schedule is None:
            return 0
        return calculator.claimable_amount(schedule, self._current_time() if now is None else now)

    def held_balance(self) -> int:
        return self.token.balance_of(self.address)

    def outstanding(self) -> int:
        return self.ledger.outstanding

    def available_capacity(self) -> int:
        return self.ledger.available_capacity(self.held_balance())

    def beneficiaries(self) -> list[str]:
        return [address for address, schedule in self.store.items() if schedule.exists]

    def summary(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "administrator": self.administrator,
            "schedules": len(self.store),
            "held_balance": self.held_balance(),
            "total_promised": self.ledger.total_promised,
            "total_released": self.ledger.total_released,
            "outstanding": self.ledger.outstanding,
            "reserved": self.ledger.reserved,
            "available_capacity": self.available_capacity(),
        }

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        """Serialize vault state to dictionary."""
        return {
            "address": self.address,
            "administrator": self.administrator,
            "ledger": self.ledger.to_dict(),
            "schedules": self.store.to_dict(),
            "events": [event.to_dict() for event in self.events],
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        token: IAssetTransferService,
        time_provider: Callable[[], int] | None = None,
        metrics: VestingMetrics | None = None,
    ) -> "VestingVault":
        """Deserialize vault state from dictionary."""
        if "administrator" not in data or "address" not in data:
            raise InvalidArgumentError("Vault state is missing administrator or address")
        store = ScheduleStore.from_dict(data.get("schedules", {}))
        # Ledger totals always equal the sums over the stored schedules
        ledger = CustodyLedger.restore(data.get("ledger"), (schedule for _, schedule in store.items()))
        vault = cls(
            token=token,
            administrator=data["administrator"],
            address=data["address"],
            time_provider=time_provider,
            metrics=metrics,
            store=store,
            ledger=ledger,
        )
        vault.events = [VestingEvent.from_dict(item) for item in data.get("events", [])]
        return vault

"""
Tests for administrator operations: schedule creation and deposits.
"""

import pytest

from vestvault.core.contracts.erc20 import ZERO_ADDRESS
from vestvault.core.vesting_exceptions import (
    InsufficientCapacityError,
    InvalidArgumentError,
    TransferFailedError,
    UnauthorizedError,
)
from vestvault.vesting.events import SCHEDULE_CREATED, TOKENS_DEPOSITED

from vestvault_tests.constants import ADMIN, ALICE, BOB, START_TIME


class TestDeposit:
    def test_deposit_moves_tokens_into_custody(self, vault, token):
        token.approve(ADMIN, vault.address, 5_000)
        vault.deposit(ADMIN, 5_000)

        assert token.balance_of(vault.address) == 5_000
        assert token.balance_of(ADMIN) == 995_000
        assert vault.ledger.total_promised == 0
        assert vault.events[-1].event_type == TOKENS_DEPOSITED
        assert vault.events[-1].account == ADMIN
        assert vault.events[-1].amount == 5_000

    def test_deposit_requires_administrator(self, vault, token):
        token.approve(ALICE, vault.address, 100)
        with pytest.raises(UnauthorizedError):
            vault.deposit(ALICE, 100)

    @pytest.mark.parametrize("amount", [0, -5])
    def test_deposit_rejects_non_positive_amount(self, vault, amount):
        with pytest.raises(InvalidArgumentError):
            vault.deposit(ADMIN, amount)

    def test_deposit_without_allowance_fails_cleanly(self, vault, token):
        with pytest.raises(TransferFailedError) as exc_info:
            vault.deposit(ADMIN, 100)
        assert "allowance" in exc_info.value.details["cause"]
        assert token.balance_of(vault.address) == 0
        assert vault.events == []

    def test_deposit_rejected_by_transfer_service(self, vault, token, monkeypatch):
        monkeypatch.setattr(token, "transfer_from", lambda *args: False)
        with pytest.raises(TransferFailedError):
            vault.deposit(ADMIN, 100)
        assert vault.events == []

    def test_deposit_raises_capacity_for_new_schedules(self, funded_vault, token):
        funded_vault.create_schedule(ADMIN, ALICE, 10_000, 0, 100)
        assert funded_vault.available_capacity() == 0

        token.approve(ADMIN, funded_vault.address, 500)
        funded_vault.deposit(ADMIN, 500)
        assert funded_vault.available_capacity() == 500


class TestCreateSchedule:
    def test_create_schedule_records_fields(self, funded_vault):
        schedule = funded_vault.create_schedule(ADMIN, ALICE, 1_000, 90, 270)

        assert schedule.start_time == START_TIME
        assert schedule.cliff == 90
        assert schedule.duration == 270
        assert schedule.total_amount == 1_000
        assert schedule.claimed_amount == 0
        assert funded_vault.get_schedule(ALICE) == schedule
        assert funded_vault.ledger.total_promised == 1_000
        assert funded_vault.available_capacity() == 9_000

        event = funded_vault.events[-1]
        assert event.event_type == SCHEDULE_CREATED
        assert (event.account, event.amount, event.timestamp) == (ALICE, 1_000, START_TIME)

    def test_returned_schedule_is_a_copy(self, funded_vault):
        schedule = funded_vault.create_schedule(ADMIN, ALICE, 1_000, 0, 10)
        schedule.claimed_amount = 1_000
        assert funded_vault.get_schedule(ALICE).claimed_amount == 0

    def test_non_admin_cannot_create(self, funded_vault):
        with pytest.raises(UnauthorizedError):
            funded_vault.create_schedule(ALICE, ALICE, 1_000, 0, 10)
        assert funded_vault.get_schedule(ALICE) is None

    @pytest.mark.parametrize(
        "amount, cliff, duration",
        [(1, 0, 1), (5_000, 100, 100), (9_999, 0, 10**9)],
    )
    def test_duplicate_schedule_rejected_regardless_of_values(self, funded_vault, amount, cliff, duration):
        funded_vault.create_schedule(ADMIN, ALICE, 1, 0, 1)
        with pytest.raises(InvalidArgumentError, match="already exists"):
            funded_vault.create_schedule(ADMIN, ALICE.upper().replace("0X", "0x"), amount, cliff, duration)
        assert funded_vault.ledger.total_promised == 1

    @pytest.mark.parametrize(
        "beneficiary, amount, cliff, duration",
        [
            (ALICE, 0, 0, 10),
            (ALICE, -1, 0, 10),
            ("", 100, 0, 10),
            (ZERO_ADDRESS, 100, 0, 10),
            (ALICE, 100, 11, 10),
            (ALICE, 100, 0, 0),
            (ALICE, 100, -1, 10),
            (ALICE, 10.5, 0, 10),
            (ALICE, True, 0, 10),
        ],
    )
    def test_invalid_arguments_rejected(self, funded_vault, beneficiary, amount, cliff, duration):
        with pytest.raises(InvalidArgumentError):
            funded_vault.create_schedule(ADMIN, beneficiary, amount, cliff, duration)
        assert funded_vault.ledger.total_promised == 0
        assert funded_vault.beneficiaries() == []

    def test_clock_at_zero_rejected(self, funded_vault, clock):
        clock.current_time = 0
        with pytest.raises(InvalidArgumentError):
            funded_vault.create_schedule(ADMIN, ALICE, 100, 0, 10)

    def test_capacity_exceeded_leaves_no_schedule(self, funded_vault):
        funded_vault.create_schedule(ADMIN, ALICE, 6_000, 0, 10)
        with pytest.raises(InsufficientCapacityError):
            funded_vault.create_schedule(ADMIN, BOB, 4_001, 0, 10)
        assert funded_vault.get_schedule(BOB) is None
        assert funded_vault.ledger.total_promised == 6_000

    def test_capacity_exact_fit_allowed(self, funded_vault):
        funded_vault.create_schedule(ADMIN, ALICE, 6_000, 0, 10)
        funded_vault.create_schedule(ADMIN, BOB, 4_000, 0, 10)
        assert funded_vault.available_capacity() == 0

    def test_empty_vault_has_no_capacity(self, vault):
        with pytest.raises(InsufficientCapacityError):
            vault.create_schedule(ADMIN, ALICE, 1, 0, 10)

    def test_reserved_balance_is_withheld(self, token, clock):
        from vestvault.vesting.vault import VestingVault

        vault = VestingVault(token=token, administrator=ADMIN, time_provider=clock.now, reserved=2_000)
        token.approve(ADMIN, vault.address, 10_000)
        vault.deposit(ADMIN, 10_000)

        assert vault.available_capacity() == 8_000
        with pytest.raises(InsufficientCapacityError):
            vault.create_schedule(ADMIN, ALICE, 8_001, 0, 10)

    def test_claims_free_capacity_for_new_schedules(self, funded_vault, clock):
        funded_vault.create_schedule(ADMIN, ALICE, 10_000, 0, 100)
        clock.advance(100)
        funded_vault.claim(ALICE)

        # Held balance and outstanding obligations both fell by 10_000
        assert funded_vault.held_balance() == 0
        assert funded_vault.outstanding() == 0
        assert funded_vault.available_capacity() == 0

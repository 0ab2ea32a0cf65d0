import json
import os

import pytest

from vestvault.core.contracts.erc20 import ERC20Token
from vestvault.core.state_store import StateFileError, load_state, save_state
from vestvault.core.vesting_exceptions import InsufficientCapacityError, InvalidArgumentError
from vestvault.vesting.vault import VestingVault

from vestvault_tests.constants import ADMIN, ALICE, BOB


def _populate(vault, clock):
    vault.create_schedule(ADMIN, ALICE, 1_000, 10, 100)
    clock.advance(40)
    vault.claim(ALICE)


def test_vault_dict_round_trip(funded_vault, token, clock):
    _populate(funded_vault, clock)

    restored = VestingVault.from_dict(funded_vault.to_dict(), token, time_provider=clock.now)

    assert restored.address == funded_vault.address
    assert restored.administrator == ADMIN
    assert restored.get_schedule(ALICE) == funded_vault.get_schedule(ALICE)
    assert restored.ledger.to_dict() == funded_vault.ledger.to_dict()
    assert restored.events == funded_vault.events
    assert restored.summary() == funded_vault.summary()


def test_restored_vault_keeps_enforcing_rules(funded_vault, token, clock):
    _populate(funded_vault, clock)
    restored = VestingVault.from_dict(funded_vault.to_dict(), token, time_provider=clock.now)

    clock.advance(60)
    assert restored.claim(ALICE) == 600
    assert restored.get_schedule(ALICE).claimed_amount == 1_000


def test_state_file_round_trip(tmp_path, funded_vault, token, clock):
    _populate(funded_vault, clock)
    path = str(tmp_path / "state" / "vault.json")

    save_state(path, token, funded_vault)
    assert oct(os.stat(path).st_mode & 0o777) == oct(0o600)

    loaded_token, loaded_vault = load_state(path, time_provider=clock.now)
    assert isinstance(loaded_token, ERC20Token)
    assert loaded_token.balance_of(ALICE) == 400
    assert loaded_vault.token is loaded_token
    assert loaded_vault.held_balance() == funded_vault.held_balance()
    assert loaded_vault.get_schedule(ALICE).claimed_amount == 400


def test_missing_state_file(tmp_path):
    with pytest.raises(StateFileError, match="not found"):
        load_state(str(tmp_path / "missing.json"))


def test_corrupt_state_file(tmp_path):
    path = tmp_path / "vault.json"
    path.write_text("{not json")
    with pytest.raises(StateFileError):
        load_state(str(path))


def test_wrong_version_rejected(tmp_path):
    path = tmp_path / "vault.json"
    path.write_text(json.dumps({"version": 99, "token": {}, "vault": {}}))
    with pytest.raises(StateFileError, match="version"):
        load_state(str(path))


def test_malformed_vault_section(tmp_path, token):
    path = tmp_path / "vault.json"
    path.write_text(json.dumps({"version": 1, "token": token.to_dict(), "vault": {}}))
    with pytest.raises(StateFileError, match="Malformed"):
        load_state(str(path))


def test_unknown_event_type_rejected(tmp_path, funded_vault, token):
    state = {"version": 1, "token": token.to_dict(), "vault": funded_vault.to_dict()}
    state["vault"]["events"][0]["event_type"] = "TokensBurned"
    path = tmp_path / "vault.json"
    path.write_text(json.dumps(state))
    with pytest.raises(StateFileError, match="TokensBurned"):
        load_state(str(path))


def test_vault_requires_transfer_service():
    with pytest.raises(InvalidArgumentError):
        VestingVault(token=object(), administrator=ADMIN)


def test_missing_ledger_is_rebuilt_from_schedules(funded_vault, token, clock):
    _populate(funded_vault, clock)
    data = funded_vault.to_dict()
    del data["ledger"]

    restored = VestingVault.from_dict(data, token, time_provider=clock.now)

    assert restored.ledger.total_promised == 1_000
    assert restored.ledger.total_released == 400
    assert restored.available_capacity() == 9_000
    with pytest.raises(InsufficientCapacityError):
        restored.create_schedule(ADMIN, BOB, 9_001, 0, 10)


@pytest.mark.parametrize("field", ["total_promised", "total_released"])
def test_ledger_disagreeing_with_schedules_rejected(funded_vault, token, clock, field):
    _populate(funded_vault, clock)
    data = funded_vault.to_dict()
    data["ledger"][field] = 0

    with pytest.raises(InvalidArgumentError, match=field):
        VestingVault.from_dict(data, token, time_provider=clock.now)


def test_state_file_with_understated_ledger_rejected(tmp_path, funded_vault, token, clock):
    _populate(funded_vault, clock)
    state = {"version": 1, "token": token.to_dict(), "vault": funded_vault.to_dict()}
    state["vault"]["ledger"]["total_promised"] = 0
    path = tmp_path / "vault.json"
    path.write_text(json.dumps(state))

    with pytest.raises(StateFileError, match="total_promised"):
        load_state(str(path))

import logging

import pytest

from vestvault.core.contracts.erc20 import ERC20Token
from vestvault.vesting.vault import VestingVault

from vestvault_tests.constants import ADMIN, START_TIME


class ManualClock:
    def __init__(self, start_time: int):
        self.current_time = start_time

    def now(self) -> int:
        return self.current_time

    def advance(self, seconds: int):
        self.current_time += seconds


@pytest.fixture(autouse=True)
def _reset_vestvault_logger():
    """CLI tests attach handlers bound to CliRunner streams; drop them afterwards."""
    yield
    logging.getLogger("vestvault").handlers = []


@pytest.fixture
def clock():
    return ManualClock(START_TIME)


@pytest.fixture
def token():
    token = ERC20Token(name="Vested Token", symbol="VEST", owner=ADMIN)
    token.mint(ADMIN, ADMIN, 1_000_000)
    return token


@pytest.fixture
def vault(token, clock):
    return VestingVault(token=token, administrator=ADMIN, time_provider=clock.now)


@pytest.fixture
def funded_vault(vault, token):
    """Vault holding 10_000 units in custody."""
    token.approve(ADMIN, vault.address, 10_000)
    vault.deposit(ADMIN, 10_000)
    return vault

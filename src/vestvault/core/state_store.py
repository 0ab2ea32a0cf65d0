"""
JSON state file holding the custody token and the vesting vault.

Writes go to a temporary file in the same directory and are moved into
place with os.replace, so a crash never leaves a half-written state file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import Any, Callable, Dict

from ..vesting.vault import VestingVault
from .contracts.erc20 import ERC20Token
from .vesting_exceptions import VestingError

logger = logging.getLogger(__name__)

STATE_VERSION = 1
SECURE_FILE_MODE = 0o600


class StateFileError(Exception):
    """Raised when the state file is missing, unreadable or malformed."""
    pass


def save_state(path: str, token: ERC20Token, vault: VestingVault) -> None:
    payload = {
        "version": STATE_VERSION,
        "token": token.to_dict(),
        "vault": vault.to_dict(),
    }
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".vestvault-", suffix=".json")
    try:
        os.fchmod(fd, SECURE_FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
    logger.debug("Saved vault state to %s", path)


def load_state(
    path: str,
    time_provider: Callable[[], int] | None = None,
) -> tuple[ERC20Token, VestingVault]:
    if not os.path.exists(path):
        raise StateFileError(f"State file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as handle:
            payload: Dict[str, Any] = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise StateFileError(f"Could not read state file {path}: {exc}") from exc

    version = payload.get("version")
    if version != STATE_VERSION:
        raise StateFileError(f"Unsupported state file version: {version!r}")

    try:
        token = ERC20Token.from_dict(payload["token"])
        vault = VestingVault.from_dict(payload["vault"], token, time_provider=time_provider)
    except (KeyError, TypeError, ValueError, VestingError) as exc:
        raise StateFileError(f"Malformed state file {path}: {exc}") from exc

    logger.debug("Loaded vault state from %s", path)
    return token, vault

"""
Custody asset for the vesting vault.

A fungible token kept entirely in memory. It implements the asset
transfer service the vault depends on (balance_of, transfer,
transfer_from) plus the allowance and minting calls an operator needs to
fund a vault. State round-trips through to_dict/from_dict so it can live
in the same state file as the vault.

Addresses are compared case-insensitively. Every rejected call raises
TokenError and leaves balances, allowances and the event log untouched.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "0" * 40
TRANSFER = "Transfer"
APPROVAL = "Approval"


class TokenError(Exception):
    """A token call was rejected; nothing changed."""
    pass


@dataclass
class TokenEvent:
    """Transfer or Approval log entry."""

    event_type: str
    from_address: str
    to_address: str
    value: int
    timestamp: float = field(default_factory=time.time)


def _canonical(address: str) -> str:
    return address.lower()


def _check_amount(amount: int, ceiling: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise TokenError(f"ERC20: amount must be an integer, got {type(amount).__name__}")
    if amount < 0:
        raise TokenError("ERC20: amount cannot be negative")
    if amount > ceiling:
        raise TokenError("ERC20: amount exceeds uint256")


def _check_counterparty(address: str, role: str) -> None:
    if not address or address == ZERO_ADDRESS:
        raise TokenError(f"ERC20: {role} is zero address")


@dataclass
class ERC20Token:
    """
    In-memory fungible token with a single minting owner.

    ``allowances`` maps holder -> spender -> remaining amount. An allowance
    of ``UINT256_MAX`` is treated as unlimited and never decremented.
    """

    name: str
    symbol: str
    decimals: int = 18
    total_supply: int = 0
    address: str = ""
    owner: str = ""
    balances: Dict[str, int] = field(default_factory=dict)
    allowances: Dict[str, Dict[str, int]] = field(default_factory=dict)
    events: List[TokenEvent] = field(default_factory=list)

    UINT256_MAX: int = 2**256 - 1

    def __post_init__(self) -> None:
        if not self.address:
            seed = f"erc20:{self.symbol}:{self.name}:{time.time()}".encode()
            self.address = "0x" + hashlib.sha3_256(seed).digest()[-20:].hex()
        self.address = _canonical(self.address)
        self.owner = _canonical(self.owner)

    # ==================== Views ====================

    def balance_of(self, account: str) -> int:
        return self.balances.get(_canonical(account), 0)

    def allowance(self, holder: str, spender: str) -> int:
        return self.allowances.get(_canonical(holder), {}).get(_canonical(spender), 0)

    # ==================== Transfer service ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Move ``amount`` of the sender's own balance to ``recipient``.

        Raises:
            TokenError: Zero recipient, bad amount or insufficient balance
        """
        source, target = _canonical(sender), _canonical(recipient)
        _check_counterparty(target, "recipient")
        _check_amount(amount, self.UINT256_MAX)
        self._require_balance(source, amount)

        self._move(source, target, amount)
        logger.debug(
            "ERC20 transfer",
            extra={
                "event": "erc20.transfer",
                "token": self.symbol,
                "from": source[:10],
                "to": target[:10],
                "amount": amount,
            }
        )
        return True

    def transfer_from(self, spender: str, holder: str, recipient: str, amount: int) -> bool:
        """
        Move ``amount`` from ``holder`` to ``recipient`` on behalf of ``spender``.

        The spender must hold an allowance from ``holder`` of at least
        ``amount``; the allowance is reduced unless it is unlimited.

        Raises:
            TokenError: Zero recipient, bad amount, short allowance or balance
        """
        agent, source, target = _canonical(spender), _canonical(holder), _canonical(recipient)
        _check_counterparty(target, "recipient")
        _check_amount(amount, self.UINT256_MAX)

        granted = self.allowance(source, agent)
        if granted < amount:
            raise TokenError(f"ERC20: insufficient allowance ({granted} < {amount})")
        self._require_balance(source, amount)

        if granted != self.UINT256_MAX:
            self.allowances[source][agent] = granted - amount
        self._move(source, target, amount)
        logger.debug(
            "ERC20 transferFrom",
            extra={
                "event": "erc20.transfer_from",
                "token": self.symbol,
                "spender": agent[:10],
                "from": source[:10],
                "to": target[:10],
                "amount": amount,
            }
        )
        return True

    # ==================== Funding ====================

    def approve(self, holder: str, spender: str, amount: int) -> bool:
        """Set the allowance ``holder`` grants ``spender`` to exactly ``amount``."""
        source, agent = _canonical(holder), _canonical(spender)
        _check_counterparty(agent, "spender")
        _check_amount(amount, self.UINT256_MAX)

        self.allowances.setdefault(source, {})[agent] = amount
        self.events.append(TokenEvent(APPROVAL, source, agent, amount))
        return True

    def mint(self, minter: str, recipient: str, amount: int) -> bool:
        """Create ``amount`` new units for ``recipient``. Owner only."""
        if _canonical(minter) != self.owner:
            raise TokenError("ERC20: caller is not owner")
        target = _canonical(recipient)
        _check_counterparty(target, "recipient")
        _check_amount(amount, self.UINT256_MAX)
        if self.total_supply + amount > self.UINT256_MAX:
            raise TokenError("ERC20: total supply would exceed uint256")

        self.total_supply += amount
        self.balances[target] = self.balances.get(target, 0) + amount
        self.events.append(TokenEvent(TRANSFER, ZERO_ADDRESS, target, amount))
        logger.info(
            "ERC20 mint",
            extra={
                "event": "erc20.mint",
                "token": self.symbol,
                "to": target[:10],
                "amount": amount,
                "total_supply": self.total_supply,
            }
        )
        return True

    # ==================== Internals ====================

    def _require_balance(self, account: str, amount: int) -> None:
        available = self.balances.get(account, 0)
        if available < amount:
            raise TokenError(f"ERC20: transfer amount exceeds balance ({amount} > {available})")

    def _move(self, source: str, target: str, amount: int) -> None:
        self.balances[source] = self.balances.get(source, 0) - amount
        self.balances[target] = self.balances.get(target, 0) + amount
        self.events.append(TokenEvent(TRANSFER, source, target, amount))

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "total_supply": self.total_supply,
            "address": self.address,
            "owner": self.owner,
            "balances": dict(self.balances),
            "allowances": {holder: dict(grants) for holder, grants in self.allowances.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ERC20Token":
        """Rebuild a token from ``to_dict`` output. The event log is not persisted."""
        return cls(
            name=data["name"],
            symbol=data["symbol"],
            decimals=int(data.get("decimals", 18)),
            total_supply=int(data.get("total_supply", 0)),
            address=data.get("address", ""),
            owner=data.get("owner", ""),
            balances={account: int(value) for account, value in data.get("balances", {}).items()},
            allowances={
                holder: {spender: int(value) for spender, value in grants.items()}
                for holder, grants in data.get("allowances", {}).items()
            },
        )

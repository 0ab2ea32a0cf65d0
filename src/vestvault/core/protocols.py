"""
vestvault - Collaborator Protocol Interfaces

Structural interfaces for the external services the vault depends on.
Any object with matching methods can be injected, which keeps the vault
testable with in-memory fakes.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class IAssetTransferService(Protocol):
    """
    Moves units of the custody asset and reports balances.

    Transfers are atomic. A failed transfer either returns False or raises;
    in both cases no balance has moved.
    """

    def balance_of(self, account: str) -> int:
        """Current balance of ``account``."""
        ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Move ``amount`` from ``sender`` to ``recipient``.

        Returns:
            True on success, False if the transfer was rejected
        """
        ...

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        """
        Move ``amount`` from ``from_addr`` to ``to_addr`` using the
        allowance ``from_addr`` granted to ``spender``.

        Returns:
            True on success, False if the transfer was rejected
        """
        ...

"""
vestvault contract standards.

- ERC20: fungible token used as the custody asset
"""

from .erc20 import ERC20Token, TokenError, TokenEvent, ZERO_ADDRESS

__all__ = [
    "ERC20Token",
    "TokenError",
    "TokenEvent",
    "ZERO_ADDRESS",
]

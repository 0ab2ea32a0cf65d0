"""
vestvault - Time-locked token custody

An administrator deposits a fungible token into custody and registers a
linear vesting schedule with a cliff for each beneficiary. Beneficiaries
claim whatever has vested.

Main Components:
- vesting: schedule store, vesting formula, custody ledger, vault operations
- core: configuration, logging, metrics, exceptions, ERC20 asset
- cli: command-line interface over a JSON state file
"""

__version__ = "0.1.0"
__author__ = "vestvault Development Team"

__all__ = []

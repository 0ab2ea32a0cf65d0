"""
vestvault core module.

Shared infrastructure for the vault: configuration, logging, metrics,
exceptions, collaborator protocols and the ERC20 custody asset.
"""

__all__ = []

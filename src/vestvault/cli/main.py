#!/usr/bin/env python3
"""
vestvault CLI

Drives a vesting vault persisted in a JSON state file:
- init: deploy the custody token and the vault
- deposit / create-schedule: administrator operations
- claim: beneficiary withdrawal
- schedule / status / events: read-only views

``--now`` pins the clock to a fixed timestamp, which makes runs
reproducible and lets an operator inspect future vesting states.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from typing import Any, Dict, Optional

import click
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from vestvault.core import config
from vestvault.core.contracts.erc20 import ERC20Token, TokenError
from vestvault.core.logging_config import configure_from_settings
from vestvault.core.metrics import VestingMetrics
from vestvault.core.state_store import StateFileError, load_state, save_state
from vestvault.core.vesting_exceptions import VestingError, get_error_context
from vestvault.vesting.vault import VestingVault

logger = logging.getLogger(__name__)

console = Console()


def _cli_fail(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging."""
    logger.error("CLI error: %s", exc, extra={"event": "cli.error", **get_error_context(exc)})
    console.print(f"[bold red]Error:[/] {exc}", soft_wrap=True)
    sys.exit(exit_code)


def _emit_payload(ctx: click.Context, payload: Dict[str, Any], title: str) -> None:
    """Emit a result payload honoring the --json-output flag."""
    if ctx.obj.get("json_output"):
        click.echo(json.dumps(payload, indent=2))
        return

    table = Table(show_header=False, box=box.ROUNDED, title=title)
    for key, value in payload.items():
        table.add_row(f"[bold cyan]{key.replace('_', ' ').title()}[/]", str(value))
    console.print(Panel(table, border_style="cyan"))


def _time_provider(ctx: click.Context):
    now = ctx.obj.get("now")
    if now is not None:
        return lambda: now
    return lambda: int(time.time())


def _load(ctx: click.Context) -> tuple[ERC20Token, VestingVault]:
    return load_state(ctx.obj["state_file"], time_provider=_time_provider(ctx))


def _save(ctx: click.Context, token: ERC20Token, vault: VestingVault) -> None:
    save_state(ctx.obj["state_file"], token, vault)


# ============================================================================
# CLI Group
# ============================================================================

@click.group()
@click.option(
    '--state-file',
    envvar='VESTVAULT_STATE_PATH',
    default=config.STATE_PATH,
    type=click.Path(dir_okay=False),
    show_default=True,
    help='JSON file holding token and vault state',
)
@click.option('--now', type=int, default=None, help='Pin the clock to this Unix timestamp')
@click.option('--json-output', is_flag=True, help='Output raw JSON')
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], case_sensitive=False),
    default=config.LOG_LEVEL,
    show_default=True,
)
@click.pass_context
def cli(ctx: click.Context, state_file: str, now: Optional[int], json_output: bool, log_level: str):
    """
    vestvault - time-locked token custody with linear cliff vesting.
    """
    ctx.ensure_object(dict)
    configure_from_settings("vestvault", level=log_level)
    ctx.obj['state_file'] = state_file
    ctx.obj['now'] = now
    ctx.obj['json_output'] = json_output


@cli.command('init')
@click.option('--admin', required=True, help='Administrator address')
@click.option('--supply', type=click.IntRange(min=0), default=0, show_default=True,
              help='Initial token supply minted to the administrator')
@click.option('--name', 'token_name', default='Vested Token', show_default=True)
@click.option('--symbol', default='VEST', show_default=True)
@click.option('--reserved', type=click.IntRange(min=0), default=config.RESERVED_BALANCE,
              show_default=True, help='Custody balance withheld from new schedules')
@click.option('--force', is_flag=True, help='Overwrite an existing state file')
@click.pass_context
def init_cmd(ctx: click.Context, admin: str, supply: int, token_name: str, symbol: str,
             reserved: int, force: bool):
    """Deploy the custody token and an empty vault."""
    if os.path.exists(ctx.obj["state_file"]) and not force:
        # Refused whether or not the existing file parses
        _cli_fail(FileExistsError(
            f"State file {ctx.obj['state_file']} already exists (use --force to overwrite)"
        ))
        return

    try:
        token = ERC20Token(
            name=token_name,
            symbol=symbol,
            decimals=config.TOKEN_DECIMALS,
            owner=admin,
        )
        if supply:
            token.mint(admin, admin, supply)
        vault = VestingVault(
            token=token,
            administrator=admin,
            time_provider=_time_provider(ctx),
            reserved=reserved,
        )
        _save(ctx, token, vault)
    except (VestingError, TokenError, OSError) as exc:
        _cli_fail(exc)
        return

    _emit_payload(ctx, {
        "vault": vault.address,
        "token": token.address,
        "administrator": vault.administrator,
        "admin_balance": token.balance_of(admin),
        "reserved": reserved,
    }, "Vault Initialized")


@cli.command('deposit')
@click.option('--caller', required=True, help='Administrator address')
@click.argument('amount', type=int)
@click.pass_context
def deposit_cmd(ctx: click.Context, caller: str, amount: int):
    """Approve the vault and deposit AMOUNT into custody."""
    try:
        token, vault = _load(ctx)
        if amount > 0:
            token.approve(caller, vault.address, amount)
        vault.deposit(caller, amount)
        _save(ctx, token, vault)
    except (VestingError, TokenError, StateFileError, OSError) as exc:
        _cli_fail(exc)
        return

    _emit_payload(ctx, {
        "deposited": amount,
        "held_balance": vault.held_balance(),
        "available_capacity": vault.available_capacity(),
    }, "Deposit")


@cli.command('create-schedule')
@click.option('--caller', required=True, help='Administrator address')
@click.option('--beneficiary', required=True, help='Beneficiary address')
@click.option('--amount', type=int, required=True, help='Total units allocated')
@click.option('--cliff', type=int, required=True, help='Cliff in seconds')
@click.option('--duration', type=int, required=True, help='Vesting duration in seconds')
@click.pass_context
def create_schedule_cmd(ctx: click.Context, caller: str, beneficiary: str, amount: int,
                        cliff: int, duration: int):
    """Register a vesting schedule starting now."""
    try:
        token, vault = _load(ctx)
        schedule = vault.create_schedule(caller, beneficiary, amount, cliff, duration)
        _save(ctx, token, vault)
    except (VestingError, StateFileError, OSError) as exc:
        _cli_fail(exc)
        return

    payload = {"beneficiary": beneficiary.lower()}
    payload.update(schedule.to_dict())
    _emit_payload(ctx, payload, "Schedule Created")


@cli.command('claim')
@click.option('--caller', required=True, help='Beneficiary address')
@click.pass_context
def claim_cmd(ctx: click.Context, caller: str):
    """Claim everything vested for the caller."""
    try:
        token, vault = _load(ctx)
        amount = vault.claim(caller)
        _save(ctx, token, vault)
    except (VestingError, StateFileError, OSError) as exc:
        _cli_fail(exc)
        return

    schedule = vault.get_schedule(caller)
    _emit_payload(ctx, {
        "beneficiary": caller.lower(),
        "claimed": amount,
        "claimed_total": schedule.claimed_amount,
        "total_amount": schedule.total_amount,
        "balance": token.balance_of(caller),
    }, "Claim")


@cli.command('schedule')
@click.argument('beneficiary')
@click.pass_context
def schedule_cmd(ctx: click.Context, beneficiary: str):
    """Show the schedule for BENEFICIARY."""
    try:
        _, vault = _load(ctx)
    except StateFileError as exc:
        _cli_fail(exc)
        return

    schedule = vault.get_schedule(beneficiary)
    if schedule is None:
        _cli_fail(LookupError(f"No vesting schedule for {beneficiary}"))
        return

    payload = {"beneficiary": beneficiary.lower()}
    payload.update(schedule.to_dict())
    payload["vested_amount"] = vault.vested_amount(beneficiary)
    payload["claimable_amount"] = vault.claimable_amount(beneficiary)
    payload["unclaimed_amount"] = schedule.unclaimed_amount
    _emit_payload(ctx, payload, "Vesting Schedule")


@cli.command('status')
@click.option('--metrics', 'as_metrics', is_flag=True,
              help='Print ledger gauges in Prometheus text format')
@click.pass_context
def status_cmd(ctx: click.Context, as_metrics: bool):
    """Show custody and ledger totals."""
    try:
        _, vault = _load(ctx)
    except StateFileError as exc:
        _cli_fail(exc)
        return

    if as_metrics:
        metrics = VestingMetrics()
        metrics.update_ledger(len(vault.store), vault.outstanding(), vault.held_balance())
        click.echo(metrics.export().decode("utf-8"), nl=False)
        return

    _emit_payload(ctx, vault.summary(), "Vault Status")


@cli.command('events')
@click.option('--limit', type=click.IntRange(min=1), default=50, show_default=True)
@click.pass_context
def events_cmd(ctx: click.Context, limit: int):
    """List the most recent vault events."""
    try:
        _, vault = _load(ctx)
    except StateFileError as exc:
        _cli_fail(exc)
        return

    events = vault.events[-limit:]
    if ctx.obj.get("json_output"):
        click.echo(json.dumps([event.to_dict() for event in events], indent=2))
        return

    table = Table(title="Vault Events", box=box.SIMPLE)
    table.add_column("Time", style="dim")
    table.add_column("Event", style="cyan")
    table.add_column("Account")
    table.add_column("Amount", justify="right", style="green")
    for event in events:
        table.add_row(str(event.timestamp), event.event_type, event.account, str(event.amount))
    console.print(table)


def main() -> int:
    """Console script entry point."""
    cli(obj={})
    return 0


if __name__ == "__main__":
    sys.exit(main() or 0)

"""
vestvault - Prometheus Metrics

Counters and gauges describing vault activity. Each VestingMetrics owns its
own CollectorRegistry so several vaults can coexist in one process.
"""

from __future__ import annotations

import logging

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest

logger = logging.getLogger(__name__)


class VestingMetrics:
    """Metrics collector for a single vesting vault."""

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()

        self.operations_total = Counter(
            "vestvault_operations_total",
            "Vault operations by name and outcome",
            ["operation", "outcome"],
            registry=self.registry,
        )
        self.claimed_amount_total = Counter(
            "vestvault_claimed_amount_total",
            "Total units released to beneficiaries",
            registry=self.registry,
        )
        self.deposited_amount_total = Counter(
            "vestvault_deposited_amount_total",
            "Total units deposited into custody",
            registry=self.registry,
        )
        self.schedules = Gauge(
            "vestvault_schedules",
            "Number of vesting schedules",
            registry=self.registry,
        )
        self.outstanding_amount = Gauge(
            "vestvault_outstanding_amount",
            "Promised but not yet claimed units",
            registry=self.registry,
        )
        self.held_balance = Gauge(
            "vestvault_held_balance",
            "Custody account balance",
            registry=self.registry,
        )

    def record_operation(self, operation: str, outcome: str) -> None:
        self.operations_total.labels(operation=operation, outcome=outcome).inc()

    def record_claim(self, amount: int) -> None:
        self.claimed_amount_total.inc(amount)

    def record_deposit(self, amount: int) -> None:
        self.deposited_amount_total.inc(amount)

    def update_ledger(self, schedules: int, outstanding: int, held: int) -> None:
        self.schedules.set(schedules)
        self.outstanding_amount.set(outstanding)
        self.held_balance.set(held)

    def export(self) -> bytes:
        """Render the registry in Prometheus text exposition format."""
        return generate_latest(self.registry)

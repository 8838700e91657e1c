"""
SocietySettings schema.

The parsed form of a society's YAML settings file. Policy sections reuse the
kernel's frozen policy objects, so whatever is loaded here can be handed to
services unchanged; the kernel itself never imports this package.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from coop_kernel.domain.policy import (
    AlertPolicy,
    FeeSchedule,
    LedgerPolicy,
    ProductDefaults,
    ReconciliationPolicy,
)


@dataclass(frozen=True)
class SocietySettings:
    """One society's configuration."""

    society_name: str
    currency: str = "INR"
    version: int = 1
    products: ProductDefaults = field(default_factory=ProductDefaults)
    fees: FeeSchedule = field(default_factory=FeeSchedule)
    reconciliation: ReconciliationPolicy = field(default_factory=ReconciliationPolicy)
    ledger: LedgerPolicy = field(default_factory=LedgerPolicy)
    alerts: AlertPolicy = field(default_factory=AlertPolicy)
    checksum: str = ""

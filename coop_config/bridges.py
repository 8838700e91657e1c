"""
Config -> Kernel bridges.

Build kernel services and selectors from a SocietySettings. These live in
coop_config (the producer) because the kernel must NEVER import coop_config.

Usage:
    settings = get_active_settings()
    with session_scope() as session:
        ledger = build_ledger(SqlAlchemyLedgerStore(session), settings)
        ledger.accounts.open_account(...)
"""

from __future__ import annotations

from dataclasses import dataclass

from coop_config.schema import SocietySettings
from coop_kernel.domain.clock import Clock, SystemClock
from coop_kernel.selectors.alert_selector import AlertSelector
from coop_kernel.selectors.collection_selector import CollectionSelector
from coop_kernel.services.account_service import AccountService
from coop_kernel.services.ledger_service import LedgerService
from coop_kernel.services.member_service import MemberService
from coop_kernel.services.projection_service import ProjectionService
from coop_kernel.services.society_ledger_service import SocietyLedgerService
from coop_kernel.storage.port import LedgerStore


@dataclass(frozen=True)
class CoopLedger:
    """Every service and selector bound to one store, clock and settings."""

    store: LedgerStore
    settings: SocietySettings
    members: MemberService
    accounts: AccountService
    ledger: LedgerService
    society_ledger: SocietyLedgerService
    projections: ProjectionService
    collections: CollectionSelector
    alerts: AlertSelector


def build_ledger(store: LedgerStore, settings: SocietySettings, clock: Clock | None = None) -> CoopLedger:
    clock = clock or SystemClock()
    accounts = AccountService(
        store,
        clock,
        products=settings.products,
        fees=settings.fees,
        ledger_policy=settings.ledger,
        reconciliation_policy=settings.reconciliation,
    )
    return CoopLedger(
        store=store,
        settings=settings,
        members=MemberService(store, clock),
        accounts=accounts,
        ledger=accounts.ledger,
        society_ledger=accounts.society_ledger,
        projections=ProjectionService(store, clock, settings.products, currency=settings.currency),
        collections=CollectionSelector(store, currency=settings.currency),
        alerts=AlertSelector(store, settings.alerts),
    )

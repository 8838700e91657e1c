"""
Module: coop_kernel.selectors.alert_selector
Responsibility: Gather accounts and their logs, refresh balances by replay
    and run the pure alert engine for a given day.
Architecture position: Kernel > Selectors. Computes only; nothing is stored
    or delivered.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date

from coop_engines.alerts import AccountAlert, compute_alerts
from coop_kernel.domain.dtos import AccountStatus
from coop_kernel.domain.policy import AlertPolicy
from coop_kernel.domain.replay import replay_balance
from coop_kernel.selectors.base import BaseSelector
from coop_kernel.storage.port import LedgerStore


class AlertSelector(BaseSelector):
    def __init__(self, store: LedgerStore, policy: AlertPolicy | None = None):
        super().__init__(store)
        self.policy = policy or AlertPolicy()

    def alerts(self, as_of: date, owner_id: str | None = None) -> list[AccountAlert]:
        """Alerts for active accounts (optionally one member's) on ``as_of``."""
        accounts = []
        logs = {}
        for account in self.store.list_accounts(owner_id=owner_id, status=AccountStatus.ACTIVE):
            log = self.store.list_transactions(account.id)
            logs[account.id] = log
            accounts.append(replace(account, balance=replay_balance(account.product_type, log)))
        return compute_alerts(accounts=accounts, transactions=logs, as_of=as_of, policy=self.policy)

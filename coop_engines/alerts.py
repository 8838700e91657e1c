"""
Module: coop_engines.alerts
Responsibility:
    Compute account alerts for a given day: low Optional Deposit balances,
    loans past or near their final date, missing EMI payments and FD/RD
    accounts at or near maturity.

Architecture position:
    Engines -- pure calculation layer, zero I/O. Alerts are computed only;
    nothing here stores or delivers them.

Invariants enforced:
    - Only Active accounts raise alerts.
    - Alert ids are stable per (kind, account), so a caller can track which
      ones it has already shown.
    - ``as_of`` is always explicit; the engine never reads the clock.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from coop_engines.tracer import traced_engine
from coop_kernel.domain.calendar import same_month
from coop_kernel.domain.dtos import (
    AccountRecord,
    AccountStatus,
    Direction,
    ProductType,
    TransactionRecord,
)
from coop_kernel.domain.policy import AlertPolicy
from coop_kernel.domain.values import Money

_DEFAULT_POLICY = AlertPolicy()


class AlertKind(str, Enum):
    LOW_BALANCE = "LOW"
    LOAN_MATURITY_OVERDUE = "LOAN-MAT"
    LOAN_MATURITY_APPROACHING = "LOAN-NEAR"
    EMI_LATE = "EMI-LATE"
    EMI_DUE = "EMI-DUE"
    DEPOSIT_MATURITY = "FD-MAT"


class AlertSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ALERT = "alert"


_SEVERITY_RANK = {AlertSeverity.ALERT: 0, AlertSeverity.WARNING: 1, AlertSeverity.INFO: 2}


@dataclass(frozen=True)
class AccountAlert:
    kind: AlertKind
    severity: AlertSeverity
    account_id: str
    title: str
    message: str
    as_of: date

    @property
    def id(self) -> str:
        return f"ALERT-{self.kind.value}-{self.account_id}"


def _money(account: AccountRecord, amount: Decimal) -> str:
    return Money.of(amount, account.currency).display()


def _low_balance(account: AccountRecord, as_of: date, policy: AlertPolicy) -> list[AccountAlert]:
    threshold = account.low_balance_alert_threshold
    if threshold is None:
        threshold = policy.low_balance_threshold
    if account.balance >= threshold:
        return []
    return [
        AccountAlert(
            kind=AlertKind.LOW_BALANCE,
            severity=AlertSeverity.WARNING,
            account_id=account.id,
            title="Low Balance Alert",
            message=(
                f"Account {account.account_number} balance ({_money(account, account.balance)}) "
                f"is below minimum limit ({_money(account, threshold)})."
            ),
            as_of=as_of,
        )
    ]


def _loan_alerts(
    account: AccountRecord,
    transactions: Sequence[TransactionRecord],
    as_of: date,
    policy: AlertPolicy,
) -> list[AccountAlert]:
    alerts: list[AccountAlert] = []

    if account.maturity_date is not None:
        days_left = (account.maturity_date - as_of).days
        if days_left < 0 and account.balance > 0:
            alerts.append(
                AccountAlert(
                    kind=AlertKind.LOAN_MATURITY_OVERDUE,
                    severity=AlertSeverity.ALERT,
                    account_id=account.id,
                    title="Loan Maturity Overdue",
                    message=(
                        f"Loan {account.account_number} matured on {account.maturity_date.isoformat()}. "
                        f"Outstanding: {_money(account, account.balance)}."
                    ),
                    as_of=as_of,
                )
            )
        elif 0 <= days_left <= policy.loan_maturity_warning_days:
            alerts.append(
                AccountAlert(
                    kind=AlertKind.LOAN_MATURITY_APPROACHING,
                    severity=AlertSeverity.INFO,
                    account_id=account.id,
                    title="Loan Maturity Approaching",
                    message=(
                        f"Loan {account.account_number} matures in {days_left} days "
                        f"({account.maturity_date.isoformat()})."
                    ),
                    as_of=as_of,
                )
            )

    if account.balance <= 0:
        return alerts

    paid_this_month = any(
        tx.direction is Direction.CREDIT and same_month(tx.date, as_of) for tx in transactions
    )
    if paid_this_month:
        return alerts

    if as_of.day > policy.emi_late_after_day:
        alerts.append(
            AccountAlert(
                kind=AlertKind.EMI_LATE,
                severity=AlertSeverity.WARNING,
                account_id=account.id,
                title="Loan Repayment Late",
                message=f"EMI for {account.product_type.value} ({account.account_number}) is overdue for this month.",
                as_of=as_of,
            )
        )
    elif as_of.day > policy.emi_due_after_day:
        alerts.append(
            AccountAlert(
                kind=AlertKind.EMI_DUE,
                severity=AlertSeverity.INFO,
                account_id=account.id,
                title="Loan Repayment Due",
                message=f"EMI for {account.product_type.value} ({account.account_number}) is due this month.",
                as_of=as_of,
            )
        )
    return alerts


def _deposit_maturity(account: AccountRecord, as_of: date, policy: AlertPolicy) -> list[AccountAlert]:
    if account.maturity_date is None:
        return []
    days_left = (account.maturity_date - as_of).days
    if days_left > policy.deposit_maturity_warning_days:
        return []
    label = f"{account.product_type.value} {account.account_number}"
    if days_left < 0:
        return [
            AccountAlert(
                kind=AlertKind.DEPOSIT_MATURITY,
                severity=AlertSeverity.WARNING,
                account_id=account.id,
                title="Maturity Action Pending",
                message=f"{label} matured on {account.maturity_date.isoformat()}.",
                as_of=as_of,
            )
        ]
    return [
        AccountAlert(
            kind=AlertKind.DEPOSIT_MATURITY,
            severity=AlertSeverity.INFO,
            account_id=account.id,
            title="Deposit Maturity Approaching",
            message=f"{label} matures in {days_left} days ({account.maturity_date.isoformat()}).",
            as_of=as_of,
        )
    ]


@traced_engine("account_alerts", "1.0", fingerprint_fields=("as_of",))
def compute_alerts(
    *,
    accounts: Iterable[AccountRecord],
    transactions: Mapping[str, Sequence[TransactionRecord]],
    as_of: date,
    policy: AlertPolicy = _DEFAULT_POLICY,
) -> list[AccountAlert]:
    """
    All alerts for ``accounts`` on ``as_of``, most severe first.

    ``transactions`` maps account id to that account's log; only loans need
    an entry. Balances are read from the records as given, so callers that
    want replayed figures pass records refreshed by recompute_balance.
    """
    alerts: list[AccountAlert] = []
    for account in accounts:
        if account.status is not AccountStatus.ACTIVE:
            continue
        if account.product_type is ProductType.OPTIONAL_DEPOSIT:
            alerts.extend(_low_balance(account, as_of, policy))
        elif account.product_type is ProductType.LOAN:
            alerts.extend(_loan_alerts(account, transactions.get(account.id, ()), as_of, policy))
        elif account.product_type in (ProductType.FIXED_DEPOSIT, ProductType.RECURRING_DEPOSIT):
            alerts.extend(_deposit_maturity(account, as_of, policy))

    alerts.sort(key=lambda a: (_SEVERITY_RANK[a.severity], a.account_id, a.kind.value))
    return alerts

"""Tests for account alert computation."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

from coop_engines.alerts import AlertKind, AlertSeverity, compute_alerts
from coop_kernel.domain.dtos import (
    AccountRecord,
    AccountStatus,
    Direction,
    LoanSubtype,
    ProductType,
    TransactionRecord,
)
from coop_kernel.domain.policy import AlertPolicy

AS_OF = date(2024, 6, 20)


def _account(account_id, product_type, balance, **kwargs):
    return AccountRecord(
        id=account_id,
        owner_id="M001",
        account_number=f"M001-{account_id[-2:]}-1",
        product_type=product_type,
        opening_date=date(2024, 1, 10),
        original_principal=Decimal(balance),
        balance=Decimal(balance),
        interest_rate=Decimal("6"),
        initial_interest_rate=Decimal("6"),
        **kwargs,
    )


def _loan(balance="40000", maturity=date(2026, 1, 10)):
    return _account(
        "ACC-00000010",
        ProductType.LOAN,
        balance,
        loan_subtype=LoanSubtype.PERSONAL,
        term_months=24,
        maturity_date=maturity,
    )


def _repayment(on):
    return TransactionRecord(
        id="TX-0000000099",
        account_id="ACC-00000010",
        seq=99,
        date=on,
        amount=Decimal("2000"),
        direction=Direction.CREDIT,
    )


class TestLowBalance:
    def test_below_default_threshold(self):
        od = _account("ACC-00000001", ProductType.OPTIONAL_DEPOSIT, "499")
        [alert] = compute_alerts(accounts=[od], transactions={}, as_of=AS_OF)
        assert alert.kind is AlertKind.LOW_BALANCE
        assert alert.severity is AlertSeverity.WARNING
        assert alert.id == "ALERT-LOW-ACC-00000001"
        assert "₹499" in alert.message and "₹500" in alert.message

    def test_at_threshold_is_fine(self):
        od = _account("ACC-00000001", ProductType.OPTIONAL_DEPOSIT, "500")
        assert compute_alerts(accounts=[od], transactions={}, as_of=AS_OF) == []

    def test_account_threshold_overrides_policy(self):
        od = _account(
            "ACC-00000001", ProductType.OPTIONAL_DEPOSIT, "900", low_balance_alert_threshold=Decimal("1000")
        )
        assert len(compute_alerts(accounts=[od], transactions={}, as_of=AS_OF)) == 1

    def test_inactive_accounts_are_silent(self):
        od = _account("ACC-00000001", ProductType.OPTIONAL_DEPOSIT, "0", status=AccountStatus.CLOSED)
        assert compute_alerts(accounts=[od], transactions={}, as_of=AS_OF) == []


class TestLoanAlerts:
    def test_overdue_maturity_with_outstanding(self):
        loan = _loan(maturity=date(2024, 6, 1))
        alerts = compute_alerts(accounts=[loan], transactions={loan.id: [_repayment(date(2024, 6, 2))]}, as_of=AS_OF)
        assert [a.kind for a in alerts] == [AlertKind.LOAN_MATURITY_OVERDUE]
        assert alerts[0].severity is AlertSeverity.ALERT

    def test_maturity_approaching(self):
        loan = _loan(maturity=date(2024, 7, 10))
        alerts = compute_alerts(accounts=[loan], transactions={loan.id: [_repayment(date(2024, 6, 2))]}, as_of=AS_OF)
        assert [a.kind for a in alerts] == [AlertKind.LOAN_MATURITY_APPROACHING]
        assert "20 days" in alerts[0].message

    def test_emi_late_after_fifteenth(self):
        loan = _loan()
        alerts = compute_alerts(accounts=[loan], transactions={loan.id: [_repayment(date(2024, 5, 20))]}, as_of=AS_OF)
        assert [a.kind for a in alerts] == [AlertKind.EMI_LATE]

    def test_emi_due_between_fifth_and_fifteenth(self):
        loan = _loan()
        alerts = compute_alerts(accounts=[loan], transactions={}, as_of=date(2024, 6, 10))
        assert [a.kind for a in alerts] == [AlertKind.EMI_DUE]

    def test_no_emi_alert_early_in_month(self):
        loan = _loan()
        assert compute_alerts(accounts=[loan], transactions={}, as_of=date(2024, 6, 5)) == []

    def test_paid_this_month_is_quiet(self):
        loan = _loan()
        assert compute_alerts(accounts=[loan], transactions={loan.id: [_repayment(date(2024, 6, 1))]}, as_of=AS_OF) == []

    def test_cleared_loan_is_quiet(self):
        loan = _loan(balance="0", maturity=date(2024, 6, 1))
        assert compute_alerts(accounts=[loan], transactions={}, as_of=AS_OF) == []


class TestDepositMaturity:
    def test_within_window(self):
        fd = _account("ACC-00000002", ProductType.FIXED_DEPOSIT, "10000", maturity_date=date(2024, 6, 25))
        [alert] = compute_alerts(accounts=[fd], transactions={}, as_of=AS_OF)
        assert alert.title == "Deposit Maturity Approaching"
        assert alert.severity is AlertSeverity.INFO

    def test_past_maturity_needs_action(self):
        rd = _account("ACC-00000003", ProductType.RECURRING_DEPOSIT, "10000", maturity_date=date(2024, 6, 18))
        [alert] = compute_alerts(accounts=[rd], transactions={}, as_of=AS_OF)
        assert alert.title == "Maturity Action Pending"
        assert alert.severity is AlertSeverity.WARNING

    def test_outside_window(self):
        fd = _account("ACC-00000002", ProductType.FIXED_DEPOSIT, "10000", maturity_date=date(2024, 7, 1))
        assert compute_alerts(accounts=[fd], transactions={}, as_of=AS_OF) == []

    def test_window_follows_policy(self):
        fd = _account("ACC-00000002", ProductType.FIXED_DEPOSIT, "10000", maturity_date=date(2024, 7, 1))
        policy = AlertPolicy(deposit_maturity_warning_days=15)
        assert len(compute_alerts(accounts=[fd], transactions={}, as_of=AS_OF, policy=policy)) == 1


class TestOrdering:
    def test_most_severe_first(self):
        od = _account("ACC-00000001", ProductType.OPTIONAL_DEPOSIT, "10")
        fd = _account("ACC-00000002", ProductType.FIXED_DEPOSIT, "10000", maturity_date=date(2024, 6, 25))
        loan = _loan(maturity=date(2024, 6, 1))
        alerts = compute_alerts(accounts=[fd, od, replace(loan)], transactions={}, as_of=AS_OF)
        assert [a.severity for a in alerts] == [
            AlertSeverity.ALERT,
            AlertSeverity.WARNING,
            AlertSeverity.WARNING,
            AlertSeverity.INFO,
        ]
        assert alerts[0].account_id == loan.id

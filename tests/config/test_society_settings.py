"""
Tests for society settings loading and the config-to-kernel bridge.
"""

from datetime import date
from decimal import Decimal

import pytest
import yaml

from coop_config import get_active_settings
from coop_config.bridges import build_ledger
from coop_config.loader import compute_checksum, parse_settings
from coop_kernel.domain.clock import DeterministicClock
from coop_kernel.domain.dtos import LoanSubtype, ProductType
from coop_kernel.storage.memory import InMemoryLedgerStore


def _write(tmp_path, data):
    path = tmp_path / "society.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestDefaults:
    def test_packaged_defaults(self):
        settings = get_active_settings()
        assert settings.currency == "INR"
        assert settings.products.rate_for(ProductType.FIXED_DEPOSIT) == Decimal("6.8")
        assert settings.products.rate_for(ProductType.LOAN, LoanSubtype.EMERGENCY) == Decimal("14")
        assert settings.products.term_months_for(ProductType.LOAN, LoanSubtype.HOME) == 120
        assert settings.fees.emergency_fee_total == Decimal("700")
        assert settings.reconciliation.split_tolerance == Decimal("1")
        assert settings.ledger.maturity_grace_days == 3
        assert settings.alerts.deposit_maturity_warning_days == 7

    def test_checksum_stable(self):
        assert get_active_settings().checksum == get_active_settings().checksum
        assert len(get_active_settings().checksum) == 64

    def test_trace_logged(self, captured_logs):
        settings = get_active_settings()
        traces = [r for r in captured_logs() if r["message"] == "COOP_CONFIG_TRACE"]
        assert traces[0]["checksum"] == settings.checksum
        assert traces[0]["society_name"] == settings.society_name


class TestOverrides:
    def test_partial_override_keeps_other_defaults(self, tmp_path):
        path = _write(
            tmp_path,
            {
                "society_name": "Shivaji Nagar Society",
                "products": {"deposit_rates": {"OptionalDeposit": "4"}, "loan_rates": {"gold": 9.5}},
                "reconciliation": {"utr_required": False},
            },
        )
        settings = get_active_settings(path)
        assert settings.society_name == "Shivaji Nagar Society"
        assert settings.products.rate_for(ProductType.OPTIONAL_DEPOSIT) == Decimal("4")
        assert settings.products.rate_for(ProductType.LOAN, LoanSubtype.GOLD) == Decimal("9.5")
        assert settings.products.rate_for(ProductType.RECURRING_DEPOSIT) == Decimal("6.5")
        assert settings.reconciliation.utr_required is False

    def test_fee_components(self):
        settings = parse_settings(
            {"society_name": "S", "fees": {"emergency_loan_fee": [{"name": "File", "amount": 250}]}}
        )
        assert settings.fees.emergency_fee_total == Decimal("250")

    def test_missing_society_name(self):
        with pytest.raises(KeyError):
            parse_settings({"currency": "INR"})

    @pytest.mark.parametrize(
        "data",
        [
            {"society_name": "S", "currency": "XXX"},
            {"society_name": "S", "products": {"deposit_rates": {"Savings": 4}}},
            {"society_name": "S", "products": {"loan_rates": {"Boat": 4}}},
            {"society_name": "S", "alerts": {"low_balance_threshold": "lots"}},
        ],
    )
    def test_bad_values(self, data):
        with pytest.raises(ValueError):
            parse_settings(data)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_settings(tmp_path / "absent.yaml")

    def test_checksum_tracks_content(self):
        assert compute_checksum({"a": 1}) == compute_checksum({"a": 1})
        assert compute_checksum({"a": 1}) != compute_checksum({"a": 2})


class TestBuildLedger:
    def test_services_share_store_and_policies(self, tmp_path):
        path = _write(
            tmp_path,
            {"society_name": "S", "products": {"deposit_rates": {"OptionalDeposit": "5"}}},
        )
        store = InMemoryLedgerStore()
        ledger = build_ledger(store, get_active_settings(path), DeterministicClock(date(2024, 6, 15)))

        ledger.members.register_member("M001", "Asha Patil")
        account = ledger.accounts.open_account("M001", ProductType.OPTIONAL_DEPOSIT, "1000")
        ledger.ledger.append_transaction(account.id, "200", "credit")

        assert account.interest_rate == Decimal("5")
        assert store.get_account(account.id).balance == Decimal("1200")
        assert ledger.collections.daywise_collection(date(2024, 6, 15)).grand_total.amount == Decimal("1200")
        assert ledger.alerts.alerts(date(2024, 6, 15)) == []

"""
Settings loader (``coop_config.loader``).

Responsibility
--------------
Reads the YAML settings file and parses each section into the kernel's
policy dataclasses. Runtime callers use ``coop_config.get_active_settings()``
rather than calling these functions directly.

Invariants enforced
-------------------
* Amounts and rates are read through ``str`` into ``Decimal``; a YAML float
  never reaches the ledger as a binary fraction.
* Unknown product or loan subtype names raise ``ValueError``.
* Omitted sections and keys keep the policy defaults.
* ``compute_checksum`` is deterministic for identical parsed data.

Failure modes
-------------
* Missing file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Bad values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from coop_config.schema import SocietySettings
from coop_kernel.domain.currency import CurrencyRegistry
from coop_kernel.domain.dtos import LoanSubtype, ProductType
from coop_kernel.domain.policy import (
    AlertPolicy,
    FeeSchedule,
    LedgerPolicy,
    ProductDefaults,
    ReconciliationPolicy,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file; an empty file yields an empty dict."""
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, field_name: str) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"{field_name}: expected a number, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"{field_name}: expected a number, got {value!r}") from e


def _product_type(name: str) -> ProductType:
    for candidate in ProductType:
        if candidate.value == name or candidate.name.lower() == str(name).lower():
            return candidate
    raise ValueError(f"Unknown product type: {name!r}")


def _loan_subtype(name: str) -> LoanSubtype:
    for candidate in LoanSubtype:
        if candidate.value.lower() == str(name).lower():
            return candidate
    raise ValueError(f"Unknown loan subtype: {name!r}")


def parse_products(data: dict[str, Any]) -> ProductDefaults:
    """
    Parse the ``products`` section.

    Keys given override the defaults one by one; products not mentioned keep
    their built-in rate and term.
    """
    defaults = ProductDefaults()
    deposit_rates = dict(defaults.deposit_rates)
    for name, rate in (data.get("deposit_rates") or {}).items():
        deposit_rates[_product_type(name)] = parse_decimal(rate, f"deposit_rates.{name}")
    loan_rates = dict(defaults.loan_rates)
    for name, rate in (data.get("loan_rates") or {}).items():
        loan_rates[_loan_subtype(name)] = parse_decimal(rate, f"loan_rates.{name}")
    deposit_terms = dict(defaults.deposit_terms)
    for name, months in (data.get("deposit_terms") or {}).items():
        deposit_terms[_product_type(name)] = int(months)
    loan_terms = dict(defaults.loan_terms)
    for name, months in (data.get("loan_terms") or {}).items():
        loan_terms[_loan_subtype(name)] = int(months)

    default_subtype = data.get("default_loan_subtype")
    return ProductDefaults(
        deposit_rates=deposit_rates,
        loan_rates=loan_rates,
        deposit_terms=deposit_terms,
        loan_terms=loan_terms,
        default_loan_subtype=_loan_subtype(default_subtype) if default_subtype else defaults.default_loan_subtype,
    )


def parse_fees(data: dict[str, Any]) -> FeeSchedule:
    defaults = FeeSchedule()
    components = data.get("emergency_loan_fee")
    if components is None:
        parsed = defaults.emergency_fee_components
    else:
        parsed = tuple(
            (item["name"], parse_decimal(item["amount"], f"emergency_loan_fee.{item['name']}"))
            for item in components
        )
    return FeeSchedule(
        emergency_fee_components=parsed,
        emergency_fee_category=data.get("emergency_fee_category", defaults.emergency_fee_category),
    )


def parse_reconciliation(data: dict[str, Any]) -> ReconciliationPolicy:
    defaults = ReconciliationPolicy()
    tolerance = data.get("split_tolerance")
    return ReconciliationPolicy(
        split_tolerance=parse_decimal(tolerance, "split_tolerance") if tolerance is not None else defaults.split_tolerance,
        utr_required=bool(data.get("utr_required", defaults.utr_required)),
    )


def parse_ledger(data: dict[str, Any], currency: str) -> LedgerPolicy:
    defaults = LedgerPolicy()
    tolerance = data.get("cache_tolerance")
    return LedgerPolicy(
        cache_tolerance=parse_decimal(tolerance, "cache_tolerance") if tolerance is not None else defaults.cache_tolerance,
        allow_negative_deposit_balance=bool(
            data.get("allow_negative_deposit_balance", defaults.allow_negative_deposit_balance)
        ),
        maturity_grace_days=int(data.get("maturity_grace_days", defaults.maturity_grace_days)),
        currency=currency,
    )


def parse_alerts(data: dict[str, Any]) -> AlertPolicy:
    defaults = AlertPolicy()
    threshold = data.get("low_balance_threshold")
    return AlertPolicy(
        low_balance_threshold=(
            parse_decimal(threshold, "low_balance_threshold") if threshold is not None else defaults.low_balance_threshold
        ),
        loan_maturity_warning_days=int(data.get("loan_maturity_warning_days", defaults.loan_maturity_warning_days)),
        deposit_maturity_warning_days=int(
            data.get("deposit_maturity_warning_days", defaults.deposit_maturity_warning_days)
        ),
        emi_due_after_day=int(data.get("emi_due_after_day", defaults.emi_due_after_day)),
        emi_late_after_day=int(data.get("emi_late_after_day", defaults.emi_late_after_day)),
    )


def parse_settings(data: dict[str, Any]) -> SocietySettings:
    """
    Parse a whole settings document.

    Raises:
        KeyError: ``society_name`` is missing.
        ValueError: unknown currency, product, subtype or a bad number.
    """
    currency = str(data.get("currency", "INR")).upper()
    if not CurrencyRegistry.is_valid(currency):
        raise ValueError(f"Unknown currency: {currency!r}")
    return SocietySettings(
        society_name=data["society_name"],
        currency=currency,
        version=int(data.get("version", 1)),
        products=parse_products(data.get("products") or {}),
        fees=parse_fees(data.get("fees") or {}),
        reconciliation=parse_reconciliation(data.get("reconciliation") or {}),
        ledger=parse_ledger(data.get("ledger") or {}, currency),
        alerts=parse_alerts(data.get("alerts") or {}),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 over the canonical JSON form of the raw settings."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

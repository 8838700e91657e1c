"""
Pure domain layer.

Value objects, enums, records and the replay fold. Nothing in here touches
SQLAlchemy, the wall clock or any other I/O.
"""

from coop_kernel.domain.calendar import (
    add_days,
    add_months,
    format_display_date,
    parse_safe_date,
)
from coop_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from coop_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from coop_kernel.domain.dtos import (
    AccountRecord,
    AccountStatus,
    Direction,
    Guarantor,
    LedgerDirection,
    LedgerEntryRecord,
    LoanSubtype,
    MemberRecord,
    PaymentMode,
    PaymentSplit,
    ProductType,
    RdFrequency,
    TransactionKind,
    TransactionRecord,
)
from coop_kernel.domain.policy import (
    AlertPolicy,
    FeeSchedule,
    LedgerPolicy,
    ProductDefaults,
    ReconciliationPolicy,
)
from coop_kernel.domain.replay import (
    minimum_balance_in_year,
    replay_balance,
    rewind_balances,
    signed_contribution,
)
from coop_kernel.domain.values import Currency, Money

__all__ = [
    "Currency",
    "Money",
    "CurrencyInfo",
    "CurrencyRegistry",
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "add_days",
    "add_months",
    "format_display_date",
    "parse_safe_date",
    "AccountRecord",
    "AccountStatus",
    "Direction",
    "Guarantor",
    "LedgerDirection",
    "LedgerEntryRecord",
    "LoanSubtype",
    "MemberRecord",
    "PaymentMode",
    "PaymentSplit",
    "ProductType",
    "RdFrequency",
    "TransactionKind",
    "TransactionRecord",
    "AlertPolicy",
    "FeeSchedule",
    "LedgerPolicy",
    "ProductDefaults",
    "ReconciliationPolicy",
    "minimum_balance_in_year",
    "replay_balance",
    "rewind_balances",
    "signed_contribution",
]

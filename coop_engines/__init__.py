"""
Module: coop_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines: product
    calculators, the payment reconciler, the collection aggregator and the
    account alert engine.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May import coop_kernel.domain and coop_kernel.exceptions only.
    MUST NOT import coop_kernel.services, coop_kernel.storage or coop_config.

Invariants enforced:
    - Engines never read the clock; dates are passed in.
    - Decimal-only arithmetic; floats are rejected at the Money boundary.
    - Identical inputs always produce identical outputs.

Audit relevance:
    Engine calls are wrapped by ``@traced_engine`` (see
    ``coop_engines.tracer``) and emit COOP_ENGINE_TRACE records.

Usage:
    from coop_engines import project_loan, reconcile_payment
    from coop_engines.collection import build_collection_report
"""

from coop_kernel.logging_config import get_logger

logger = get_logger("engines")

from coop_engines.alerts import (  # noqa: E402
    AccountAlert,
    AlertKind,
    AlertSeverity,
    compute_alerts,
)
from coop_engines.collection import (  # noqa: E402
    CollectionReport,
    CollectionRow,
    PassbookBacklog,
    build_collection_report,
    passbook_backlog,
    passbook_order,
    resolve_contribution,
)
from coop_engines.interest import (  # noqa: E402
    Projection,
    maturity_date_for,
    project_fixed_deposit,
    project_loan,
    project_optional_deposit,
    project_principal_only,
    project_recurring_deposit,
    reducing_balance_emi,
)
from coop_engines.payment import parse_payment_mode, reconcile_payment  # noqa: E402
from coop_engines.tracer import compute_input_fingerprint, traced_engine  # noqa: E402

__all__ = [
    "AccountAlert",
    "AlertKind",
    "AlertSeverity",
    "CollectionReport",
    "CollectionRow",
    "PassbookBacklog",
    "Projection",
    "build_collection_report",
    "compute_alerts",
    "compute_input_fingerprint",
    "maturity_date_for",
    "parse_payment_mode",
    "passbook_backlog",
    "passbook_order",
    "project_fixed_deposit",
    "project_loan",
    "project_optional_deposit",
    "project_principal_only",
    "project_recurring_deposit",
    "reconcile_payment",
    "reducing_balance_emi",
    "resolve_contribution",
    "traced_engine",
]

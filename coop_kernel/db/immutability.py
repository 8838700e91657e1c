"""
ORM-level immutability enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

The transaction log is the source of truth for every balance. A transaction
edited in place would silently change balances, minimum-balance reports and
passbook history. Corrections are made by appending a new transaction.

SQLAlchemy fires mapper events before UPDATE/DELETE reaches the database;
the listeners below raise ImmutabilityViolationError there, aborting the
flush before any SQL is sent.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity               | When Immutable          | Mutable fields
---------------------|-------------------------|-------------------------------
Transaction          | ALWAYS (from creation)  | none
SocietyLedgerEntry   | ALWAYS (from creation)  | none
Account              | structural fields       | balance cache, status, rate,
                     |                         | maturity_processed, updated_at
AccountGuarantor     | ALWAYS (from creation)  | none

===============================================================================
USAGE
===============================================================================

Registered by ``create_tables()``. Registration is idempotent.

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
    ...
    register_immutability_listeners()
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from coop_kernel.exceptions import ImmutabilityViolationError
from coop_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

# Fields fixed at account opening.
ACCOUNT_STRUCTURAL_FIELDS = (
    "owner_id",
    "account_number",
    "product_type",
    "loan_subtype",
    "opening_date",
    "original_principal",
    "initial_interest_rate",
    "term_months",
    "term_days",
    "rd_frequency",
    "currency",
)


def _blocked(entity_type: str, entity_id: str, operation: str, reason: str, **extra) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": entity_id,
            "operation": operation,
            **extra,
        },
    )
    raise ImmutabilityViolationError(entity_type=entity_type, entity_id=entity_id, reason=reason)


def _changed_fields(target) -> list[str]:
    changed = []
    for attr in inspect(target).attrs:
        if attr.key == "updated_at":
            continue
        if attr.history.has_changes():
            changed.append(attr.key)
    return changed


def _check_append_only_update(mapper, connection, target):
    """Any field change on an append-only row is rejected."""
    changed = _changed_fields(target)
    if changed:
        entity_type = type(target).__name__
        _blocked(
            entity_type,
            str(target.id),
            "UPDATE",
            f"Cannot modify field(s) {changed} on an appended {entity_type}",
            fields=changed,
        )


def _check_append_only_delete(mapper, connection, target):
    entity_type = type(target).__name__
    _blocked(
        entity_type,
        str(target.id),
        "DELETE",
        f"{entity_type} records are append-only and cannot be deleted",
    )


def _check_account_structural_immutability(mapper, connection, target):
    """Balance cache, status and current rate may change; nothing else."""
    changed = [f for f in ACCOUNT_STRUCTURAL_FIELDS if get_history(target, f).has_changes()]
    if changed:
        _blocked(
            "Account",
            str(target.id),
            "UPDATE",
            f"Cannot modify structural field(s) {changed} after opening",
            fields=changed,
        )


def _listeners():
    from coop_kernel.models.account import Account, AccountGuarantor
    from coop_kernel.models.society_ledger import SocietyLedgerEntry
    from coop_kernel.models.transaction import Transaction

    return [
        (Transaction, "before_update", _check_append_only_update),
        (Transaction, "before_delete", _check_append_only_delete),
        (SocietyLedgerEntry, "before_update", _check_append_only_update),
        (SocietyLedgerEntry, "before_delete", _check_append_only_delete),
        (AccountGuarantor, "before_update", _check_append_only_update),
        (Account, "before_update", _check_account_structural_immutability),
    ]


def register_immutability_listeners() -> None:
    """Install the listeners. Safe to call more than once."""
    for target, name, fn in _listeners():
        if not event.contains(target, name, fn):
            event.listen(target, name, fn)


def unregister_immutability_listeners() -> None:
    """Remove the listeners. Tests only."""
    for target, name, fn in _listeners():
        if event.contains(target, name, fn):
            event.remove(target, name, fn)

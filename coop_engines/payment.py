"""
Module: coop_engines.payment
Responsibility:
    Validate and normalize a payment instruction (Cash, Online, or a split
    of Both) before anything is written to either ledger.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - The returned split always satisfies ``cash + online == amount`` within
      the configured tolerance (1 unit by default, inclusive).
    - Cash carries no reference; Online and Both need a UTR when the policy
      requires one.

Failure modes:
    - InvalidAmountError for a non-positive amount or a negative split part.
    - SplitMismatchError when the two parts of a Both payment disagree with
      the amount by more than the tolerance.
    - MissingPaymentReferenceError for Online/Both without a UTR.
    - UnsupportedPaymentModeError for anything but Cash/Online/Both.
"""

from __future__ import annotations

from decimal import Decimal

from coop_engines.tracer import traced_engine
from coop_kernel.domain.dtos import PaymentMode, PaymentSplit
from coop_kernel.domain.policy import ReconciliationPolicy
from coop_kernel.exceptions import (
    InvalidAmountError,
    MissingPaymentReferenceError,
    SplitMismatchError,
    UnsupportedPaymentModeError,
)

_DEFAULT_POLICY = ReconciliationPolicy()


def parse_payment_mode(mode: PaymentMode | str | None) -> PaymentMode:
    """Case-insensitive mode lookup; a missing mode means Cash."""
    if mode is None:
        return PaymentMode.CASH
    if isinstance(mode, PaymentMode):
        return mode
    text = str(mode).strip()
    if not text:
        return PaymentMode.CASH
    for candidate in PaymentMode:
        if candidate.value.lower() == text.lower():
            return candidate
    raise UnsupportedPaymentModeError(text)


def _clean_reference(utr: str | None) -> str | None:
    if utr is None:
        return None
    utr = utr.strip()
    return utr or None


@traced_engine("payment_reconciler", "1.0", fingerprint_fields=("amount", "mode", "cash_amount", "online_amount"))
def reconcile_payment(
    *,
    amount: Decimal,
    mode: PaymentMode | str | None = None,
    cash_amount: Decimal | None = None,
    online_amount: Decimal | None = None,
    utr_reference: str | None = None,
    policy: ReconciliationPolicy = _DEFAULT_POLICY,
) -> PaymentSplit:
    """
    Resolve how much of ``amount`` arrived in cash and how much online.

    For Cash and Online any split amounts supplied are ignored; the whole
    amount goes to the single mode. For Both, a missing part is read as 0.
    """
    if amount is None or amount <= 0:
        raise InvalidAmountError("amount", amount)

    payment_mode = parse_payment_mode(mode)
    utr = _clean_reference(utr_reference)

    if payment_mode is PaymentMode.CASH:
        return PaymentSplit(
            mode=payment_mode,
            amount=amount,
            cash=amount,
            online=Decimal("0"),
            utr_reference=None,
        )

    if payment_mode is PaymentMode.ONLINE:
        if utr is None and policy.utr_required:
            raise MissingPaymentReferenceError(payment_mode.value)
        return PaymentSplit(
            mode=payment_mode,
            amount=amount,
            cash=Decimal("0"),
            online=amount,
            utr_reference=utr,
        )

    cash = cash_amount if cash_amount is not None else Decimal("0")
    online = online_amount if online_amount is not None else Decimal("0")
    if cash < 0:
        raise InvalidAmountError("cash_amount", cash, "must not be negative")
    if online < 0:
        raise InvalidAmountError("online_amount", online, "must not be negative")
    if abs(cash + online - amount) > policy.split_tolerance:
        raise SplitMismatchError(expected_total=amount, cash_amount=cash, online_amount=online)
    if utr is None and policy.utr_required:
        raise MissingPaymentReferenceError(payment_mode.value)

    return PaymentSplit(
        mode=payment_mode,
        amount=amount,
        cash=cash,
        online=online,
        utr_reference=utr,
    )

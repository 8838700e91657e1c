"""
Typed Exception Hierarchy for the Coop Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the ledger (forms, importers, report jobs) must be able to tell a
bad request from a broken database without parsing message strings.

Every error in this module:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (not just a message string)
  4. Declares whether a retry can succeed (``retryable``)

Example - WRONG way to handle errors:
    try:
        ledger.append_transaction(...)
    except Exception as e:
        if "must sum to" in str(e):  # FRAGILE - message might change
            ...

Example - RIGHT way:
    try:
        ledger.append_transaction(...)
    except SplitMismatchError as e:
        form.set_error("cash_amount", e.code, expected=e.expected_total)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    CoopLedgerError (base)
    |
    +-- ValidationError                 (rejected before any write)
    |   +-- InvalidAmountError
    |   +-- InvalidTermError
    |   +-- InvalidDateError
    |   +-- InvalidProductError
    |   +-- GuarantorRequiredError
    |   +-- InsufficientBalanceError
    |   +-- InvalidStatusTransitionError
    |   +-- PaymentError
    |       +-- SplitMismatchError
    |       +-- MissingPaymentReferenceError
    |       +-- UnsupportedPaymentModeError
    |
    +-- NotFoundError
    |   +-- AccountNotFoundError
    |   +-- MemberNotFoundError
    |
    +-- PersistenceError                (retryable; nothing was applied)
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                        | When Raised
-------------|-----------------------------|--------------------------------------
Validation   | INVALID_AMOUNT              | amount <= 0, negative principal/rate
             | INVALID_TERM                | negative term, months AND days given
             | INVALID_DATE                | date text that is not a calendar date
             | INVALID_PRODUCT             | loan subtype on a deposit, etc.
             | GUARANTOR_REQUIRED          | loan opened without a guarantor
             | INSUFFICIENT_BALANCE        | withdrawal larger than deposit balance
             | INVALID_STATUS_TRANSITION   | e.g. Closed -> Active
Payment      | SPLIT_MISMATCH              | cash + online != amount (+-1 unit)
             | MISSING_PAYMENT_REFERENCE   | Online/Both without UTR
             | UNSUPPORTED_PAYMENT_MODE    | mode not Cash/Online/Both
-------------|-----------------------------|--------------------------------------
Lookup       | ACCOUNT_NOT_FOUND           | append to unknown account
             | MEMBER_NOT_FOUND            | passbook for unknown member
-------------|-----------------------------|--------------------------------------
Persistence  | PERSISTENCE_FAILURE         | durable commit failed
-------------|-----------------------------|--------------------------------------
Immutability | IMMUTABILITY_VIOLATION      | UPDATE/DELETE of an appended record

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Balance drift between the cached column and the replayed log is NOT an
   error.  It is corrected silently (and logged) on the next read.

2. Messages are field-specific and name the expected value, because they are
   shown to cashiers verbatim (e.g. "split amounts must sum to ₹1000, got ₹990").

===============================================================================
"""

from decimal import Decimal


class CoopLedgerError(Exception):
    """
    Base exception for all coop kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "COOP_LEDGER_ERROR"
    retryable: bool = False


# Validation errors


class ValidationError(CoopLedgerError):
    """Base exception for input that was rejected before any write."""

    code: str = "VALIDATION_ERROR"


class InvalidAmountError(ValidationError):
    """An amount field is zero, negative or not a number."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, value: object, reason: str = "must be greater than zero"):
        self.field = field
        self.value = str(value)
        self.reason = reason
        super().__init__(f"{field} {reason}, got {value}")


class InvalidTermError(ValidationError):
    """Term fields are negative or mutually inconsistent."""

    code: str = "INVALID_TERM"

    def __init__(self, reason: str, term_months: int | None = None, term_days: int | None = None):
        self.reason = reason
        self.term_months = term_months
        self.term_days = term_days
        super().__init__(f"Invalid term: {reason}")


class InvalidDateError(ValidationError):
    """A date field could not be read as a calendar date."""

    code: str = "INVALID_DATE"

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = str(value)
        super().__init__(f"{field}: {value!r} is not a valid date")


class InvalidDateRangeError(ValidationError):
    """A reporting range ends before it starts."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, start: object, end: object):
        self.start = str(start)
        self.end = str(end)
        super().__init__(f"end {end} is before start {start}")


class InvalidProductError(ValidationError):
    """Product parameters do not fit the product type."""

    code: str = "INVALID_PRODUCT"

    def __init__(self, product_type: str, reason: str):
        self.product_type = product_type
        self.reason = reason
        super().__init__(f"Invalid {product_type} parameters: {reason}")


class GuarantorRequiredError(ValidationError):
    """A loan was opened without a usable guarantor."""

    code: str = "GUARANTOR_REQUIRED"

    def __init__(self, reason: str = "at least one guarantor with name and phone is required"):
        self.reason = reason
        super().__init__(f"Loan accounts need a guarantor: {reason}")


class InsufficientBalanceError(ValidationError):
    """A deposit withdrawal would take the balance below zero."""

    code: str = "INSUFFICIENT_BALANCE"

    def __init__(self, account_id: str, balance: Decimal, requested: Decimal):
        self.account_id = account_id
        self.balance = str(balance)
        self.requested = str(requested)
        super().__init__(
            f"Not enough balance in {account_id}: available ₹{balance}, requested ₹{requested}"
        )


class InvalidStatusTransitionError(ValidationError):
    """Account status change is not allowed from the current status."""

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, account_id: str, from_status: str, to_status: str):
        self.account_id = account_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Account {account_id} cannot move from {from_status} to {to_status}"
        )


# Payment errors


class PaymentError(ValidationError):
    """Base exception for payment instruction problems."""

    code: str = "PAYMENT_ERROR"


class SplitMismatchError(PaymentError):
    """Cash and online parts of a split payment do not add up to the amount."""

    code: str = "SPLIT_MISMATCH"

    def __init__(self, expected_total: Decimal, cash_amount: Decimal, online_amount: Decimal):
        self.expected_total = str(expected_total)
        self.cash_amount = str(cash_amount)
        self.online_amount = str(online_amount)
        self.actual_total = str(cash_amount + online_amount)
        super().__init__(
            f"split amounts must sum to ₹{expected_total}, got ₹{cash_amount + online_amount} "
            f"(cash ₹{cash_amount} + online ₹{online_amount})"
        )


class MissingPaymentReferenceError(PaymentError):
    """An online or split payment has no UTR reference."""

    code: str = "MISSING_PAYMENT_REFERENCE"

    def __init__(self, payment_mode: str):
        self.payment_mode = payment_mode
        super().__init__(f"utr_reference is required for {payment_mode} payments")


class UnsupportedPaymentModeError(PaymentError):
    """Payment mode is not one of Cash, Online, Both."""

    code: str = "UNSUPPORTED_PAYMENT_MODE"

    def __init__(self, payment_mode: str):
        self.payment_mode = payment_mode
        super().__init__(
            f"payment_mode must be one of Cash, Online, Both; got {payment_mode!r}"
        )


# Lookup errors


class NotFoundError(CoopLedgerError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"


class AccountNotFoundError(NotFoundError):
    """Account with given ID was not found."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class MemberNotFoundError(NotFoundError):
    """Member with given ID was not found."""

    code: str = "MEMBER_NOT_FOUND"

    def __init__(self, member_id: str):
        self.member_id = member_id
        super().__init__(f"Member not found: {member_id}")


# Persistence errors


class PersistenceError(CoopLedgerError):
    """
    The store failed to durably apply a write.

    The write was rolled back in full; the caller may resubmit.
    """

    code: str = "PERSISTENCE_FAILURE"
    retryable: bool = True

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed and was rolled back: {reason}")


# Immutability errors


class ImmutabilityError(CoopLedgerError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Transactions and society ledger entries are immutable from the moment
    they are appended; account structural fields are immutable after opening.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )

"""
Typed Exception Hierarchy for the Contract Engine.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Calculators reject bad input immediately and never return partial
results.  Callers (form layers, review screens, batch jobs) must be able
to tell *which* rule was broken without parsing message text:

    try:
        schedule = CostPlusSchedule().generate(terms)
    except NothingToSettleError as e:
        show_banner(f"All {e.total_installments} installments already paid")
    except InvalidInputError as e:
        api_response(code=e.code, field=e.field)

Every exception:
  1. Has a TYPED class (catch by type, not message)
  2. Has a class-level CODE attribute (machine-readable, API-safe)
  3. Stores its context as attributes (survives logging and serialization)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ContractEngineError (base)
    |
    +-- InvalidInputError
    |   +-- NegativeAmountError
    |   +-- PercentageOutOfRangeError
    |   +-- ProfitShareMismatchError
    |   +-- MissingPurchasePriceError
    |   +-- NonPositiveTermError
    |   +-- InconsistentTermsError
    |   +-- CurrencyMismatchError
    |
    +-- StateInconsistencyError
        +-- NothingToSettleError
        +-- ProgressExceedsContractError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Input           | NEGATIVE_AMOUNT             | Money or quantity below zero
                | PERCENTAGE_OUT_OF_RANGE     | Percentage outside [0, 100]
                | PROFIT_SHARE_MISMATCH       | Profit-share pair does not sum to 100
                | PURCHASE_PRICE_REQUIRED     | Purchase option without a price
                | NON_POSITIVE_TERM           | Installments / lease term <= 0
                | INCONSISTENT_TERMS          | Derived fields disagree
                | CURRENCY_MISMATCH           | Mixed currencies in one calculation
----------------|-----------------------------|-----------------------------------------
State           | NOTHING_TO_SETTLE           | Early settlement after final installment
                | PROGRESS_EXCEEDS_CONTRACT   | Delivered / paid beyond the contract

Advisory conditions (Salam advance below the delivery value, joint
venture loss approximated by profit ratio) are NOT exceptions; they are
returned as ``Advisory`` records on the result.
"""

from decimal import Decimal


class ContractEngineError(Exception):
    """
    Base exception for all contract engine errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "CONTRACT_ENGINE_ERROR"


# Input validation


class InvalidInputError(ContractEngineError):
    """Input terms or arguments violate a field contract."""

    code: str = "INVALID_INPUT"

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class NegativeAmountError(InvalidInputError):
    """A money or quantity field is negative."""

    code: str = "NEGATIVE_AMOUNT"

    def __init__(self, field: str, amount: Decimal):
        self.amount = amount
        super().__init__(field, f"{field} cannot be negative: {amount}")


class PercentageOutOfRangeError(InvalidInputError):
    """A percentage field lies outside [0, 100]."""

    code: str = "PERCENTAGE_OUT_OF_RANGE"

    def __init__(self, field: str, value: Decimal):
        self.value = value
        super().__init__(field, f"{field} must be between 0 and 100, got {value}")


class ProfitShareMismatchError(InvalidInputError):
    """
    Investor and counterparty profit shares do not sum to 100.

    Both shares are kept so callers can show the offending pair.
    """

    code: str = "PROFIT_SHARE_MISMATCH"

    def __init__(self, investor_share_pct: Decimal, counterparty_share_pct: Decimal):
        self.investor_share_pct = investor_share_pct
        self.counterparty_share_pct = counterparty_share_pct
        super().__init__(
            "profit_share",
            f"Profit shares must sum to 100, got "
            f"{investor_share_pct} + {counterparty_share_pct} = "
            f"{investor_share_pct + counterparty_share_pct}",
        )


class MissingPurchasePriceError(InvalidInputError):
    """Lease carries a purchase option but no purchase price."""

    code: str = "PURCHASE_PRICE_REQUIRED"

    def __init__(self):
        super().__init__(
            "purchase_price",
            "purchase_price is required when purchase_option is true",
        )


class NonPositiveTermError(InvalidInputError):
    """A count of periods (installments, lease months, days) is not positive."""

    code: str = "NON_POSITIVE_TERM"

    def __init__(self, field: str, value: int):
        self.value = value
        super().__init__(field, f"{field} must be positive, got {value}")


class InconsistentTermsError(InvalidInputError):
    """Two fields that derive from each other were supplied with different values."""

    code: str = "INCONSISTENT_TERMS"

    def __init__(self, field: str, expected: str, received: str):
        self.expected = expected
        self.received = received
        super().__init__(
            field,
            f"{field} is inconsistent: expected {expected}, received {received}",
        )


class CurrencyMismatchError(InvalidInputError):
    """Two money values in one calculation carry different currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, field: str, expected_currency: str, received_currency: str):
        self.expected_currency = expected_currency
        self.received_currency = received_currency
        super().__init__(
            field,
            f"Currency mismatch on {field}: expected {expected_currency}, "
            f"received {received_currency}",
        )


# Progress / state


class StateInconsistencyError(ContractEngineError):
    """Progress counters supplied by the caller contradict the contract terms."""

    code: str = "STATE_INCONSISTENCY"


class NothingToSettleError(StateInconsistencyError):
    """Early settlement requested when every installment is already paid."""

    code: str = "NOTHING_TO_SETTLE"

    def __init__(self, paid_installments: int, total_installments: int):
        self.paid_installments = paid_installments
        self.total_installments = total_installments
        super().__init__(
            f"Nothing to settle: {paid_installments} of "
            f"{total_installments} installments already paid"
        )


class ProgressExceedsContractError(StateInconsistencyError):
    """Reported progress (delivered quantity, rental periods) exceeds the contract."""

    code: str = "PROGRESS_EXCEEDS_CONTRACT"

    def __init__(self, field: str, reported: Decimal | int, contracted: Decimal | int):
        self.field = field
        self.reported = reported
        self.contracted = contracted
        super().__init__(
            f"{field} {reported} exceeds contracted {contracted}"
        )

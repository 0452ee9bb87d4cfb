"""
Contract terms -- the closed set of financing archetypes.

Responsibility:
    Defines one frozen record per contract archetype (cost-plus, silent
    partnership, joint venture, lease, forward sale) and the
    ``ContractTerms`` union over them.  Each variant carries its
    discriminant as the class-level ``contract_type``; calculators route
    on it with ``match`` rather than through a class hierarchy.

Architecture position:
    Kernel > Domain -- pure value objects, zero I/O.

Invariants enforced:
    - Every money field is non-negative and expressed in whole minor
      units of a single currency per record.
    - Every percentage field lies in [0, 100].
    - Partnership profit shares sum to exactly 100.
    - Cost-plus profit rate and profit amount are always consistent: one
      is derived from the other, never both set independently.
    - A lease with a purchase option always carries a purchase price.

Failure modes:
    - InvalidInputError subclasses raised from ``__post_init__``; an
      invalid snapshot never reaches a calculator.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import ClassVar

from contract_kernel.domain.values import (
    HUNDRED,
    ZERO,
    Currency,
    Money,
    Percentage,
    Quantity,
    safe_divide,
    to_decimal,
)
from contract_kernel.exceptions import (
    CurrencyMismatchError,
    InconsistentTermsError,
    InvalidInputError,
    MissingPurchasePriceError,
    NegativeAmountError,
    NonPositiveTermError,
    PercentageOutOfRangeError,
    ProfitShareMismatchError,
)


class ContractType(str, Enum):
    """Discriminant of the contract-terms union."""

    COST_PLUS = "murabaha"
    SILENT_PARTNERSHIP = "mudarabah"
    JOINT_VENTURE = "musharakah"
    LEASE = "ijarah"
    FORWARD_SALE = "salam"


class InstallmentFrequency(str, Enum):
    """How often cost-plus installments fall due."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUAL = "semi-annual"
    ANNUAL = "annual"

    @property
    def months(self) -> int:
        return _FREQUENCY_MONTHS[self]


_FREQUENCY_MONTHS = {
    InstallmentFrequency.MONTHLY: 1,
    InstallmentFrequency.QUARTERLY: 3,
    InstallmentFrequency.SEMI_ANNUAL: 6,
    InstallmentFrequency.ANNUAL: 12,
}


class PaymentStructure(str, Enum):
    INSTALLMENT = "installment"
    LUMP_SUM = "lump-sum"


class LatePaymentPolicy(str, Enum):
    """Late payment charges go to charity; they are never income."""

    CHARITY = "charity"
    NONE = "none"


class DistributionFrequency(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class MaintenanceResponsibility(str, Enum):
    LESSOR = "lessor"
    LESSEE = "lessee"
    SHARED = "shared"


# ---------------------------------------------------------------------------
# Field validation helpers
# ---------------------------------------------------------------------------


def _set(obj: object, name: str, value: object) -> None:
    object.__setattr__(obj, name, value)


def _coerce_enum(obj: object, name: str, enum_type: type[Enum]) -> None:
    value = getattr(obj, name)
    if isinstance(value, enum_type):
        return
    try:
        _set(obj, name, enum_type(value))
    except ValueError as e:
        raise InvalidInputError(name, f"Unknown {name}: {value!r}") from e


def _check_money(
    name: str,
    value: Money,
    currency: Currency | None = None,
) -> Money:
    """Money must be non-negative, in whole minor units, in the record's currency."""
    if not isinstance(value, Money):
        raise InvalidInputError(name, f"{name} must be Money, got {type(value).__name__}")
    if value.is_negative:
        raise NegativeAmountError(name, value.amount)
    if value.round().amount != value.amount:
        raise InvalidInputError(
            name,
            f"{name} must be expressed in whole minor units of "
            f"{value.currency.code}: {value.amount}",
        )
    if currency is not None and value.currency != currency:
        raise CurrencyMismatchError(name, currency.code, value.currency.code)
    return value


def _check_percentage(obj: object, name: str) -> Decimal:
    value = to_decimal(getattr(obj, name), name)
    if value < ZERO or value > HUNDRED:
        raise PercentageOutOfRangeError(name, value)
    _set(obj, name, value)
    return value


def _check_positive_count(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(name, f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise NonPositiveTermError(name, value)


def _check_non_negative_count(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(name, f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise NegativeAmountError(name, Decimal(value))


# ---------------------------------------------------------------------------
# Cost-plus (Murabaha)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CostPlusTerms:
    """
    Cost-plus sale: the financier buys the asset and resells it at cost
    plus a disclosed, fixed mark-up, repaid in installments.

    Contract:
        Supply ``profit_rate`` or ``profit_amount``; the other is derived.
        Supplying both is accepted only when they agree to the minor unit.
        Use ``with_profit_rate`` / ``with_profit_amount`` to change one
        and recompute the other.

    Guarantees:
        - ``selling_price == cost_price + profit_amount``.
        - ``profit_amount`` is in whole minor units.
        - A lump-sum structure always has exactly one installment.
    """

    contract_type: ClassVar[ContractType] = ContractType.COST_PLUS

    cost_price: Money
    number_of_installments: int
    contract_date: date
    profit_rate: Decimal | None = None
    profit_amount: Money | None = None
    installment_frequency: InstallmentFrequency = InstallmentFrequency.MONTHLY
    payment_structure: PaymentStructure = PaymentStructure.INSTALLMENT
    deferment_period: int = 0  # months before the first installment
    early_settlement_discount_pct: Decimal = ZERO
    late_payment_policy: LatePaymentPolicy = LatePaymentPolicy.CHARITY
    duration_months: int | None = None
    takaful_coverage: bool = False

    def __post_init__(self) -> None:
        _coerce_enum(self, "installment_frequency", InstallmentFrequency)
        _coerce_enum(self, "payment_structure", PaymentStructure)
        _coerce_enum(self, "late_payment_policy", LatePaymentPolicy)

        cost = _check_money("cost_price", self.cost_price)
        _check_positive_count("number_of_installments", self.number_of_installments)
        _check_non_negative_count("deferment_period", self.deferment_period)
        if self.duration_months is not None:
            _check_positive_count("duration_months", self.duration_months)
        _check_percentage(self, "early_settlement_discount_pct")

        if self.payment_structure == PaymentStructure.LUMP_SUM:
            _set(self, "number_of_installments", 1)

        if self.profit_rate is None and self.profit_amount is None:
            raise InvalidInputError(
                "profit_rate", "profit_rate or profit_amount is required"
            )

        if self.profit_rate is not None:
            rate = _check_percentage(self, "profit_rate")
            derived = Percentage(rate).of_money(cost).round()
            if self.profit_amount is not None:
                given = _check_money("profit_amount", self.profit_amount, cost.currency)
                if given != derived:
                    raise InconsistentTermsError(
                        "profit_amount", str(derived.amount), str(given.amount)
                    )
            _set(self, "profit_amount", derived)
        else:
            amount = _check_money("profit_amount", self.profit_amount, cost.currency)
            if cost.is_zero and not amount.is_zero:
                raise InconsistentTermsError(
                    "profit_amount", "0 for a zero cost price", str(amount.amount)
                )
            rate = safe_divide(amount.amount * HUNDRED, cost.amount)
            if rate > HUNDRED:
                raise PercentageOutOfRangeError("profit_rate", rate)
            _set(self, "profit_rate", rate)

    @property
    def currency(self) -> Currency:
        return self.cost_price.currency

    @property
    def selling_price(self) -> Money:
        return self.cost_price + self.profit_amount

    @property
    def tenor_months(self) -> int:
        """Contract tenor used for annualizing the mark-up."""
        if self.duration_months is not None:
            return self.duration_months
        return self.number_of_installments * self.installment_frequency.months

    def with_profit_rate(self, profit_rate: Decimal | str | int) -> CostPlusTerms:
        """New terms with the given rate and the profit amount recomputed."""
        return replace(self, profit_rate=to_decimal(profit_rate, "profit_rate"), profit_amount=None)

    def with_profit_amount(self, profit_amount: Money) -> CostPlusTerms:
        """New terms with the given profit amount and the rate recomputed."""
        return replace(self, profit_amount=profit_amount, profit_rate=None)


# ---------------------------------------------------------------------------
# Partnerships (Mudarabah / Musharakah)
# ---------------------------------------------------------------------------


def _check_partnership(terms: SilentPartnershipTerms | JointVentureTerms) -> None:
    _coerce_enum(terms, "profit_distribution_frequency", DistributionFrequency)
    capital = _check_money("capital_amount", terms.capital_amount)

    investor = _check_percentage(terms, "investor_profit_share_pct")
    if terms.counterparty_profit_share_pct is None:
        _set(terms, "counterparty_profit_share_pct", Percentage(investor).complement.value)
    counterparty = _check_percentage(terms, "counterparty_profit_share_pct")
    if investor + counterparty != HUNDRED:
        raise ProfitShareMismatchError(investor, counterparty)

    _check_percentage(terms, "expected_return_rate_pct")
    if terms.projected_profit is not None:
        _check_money("projected_profit", terms.projected_profit, capital.currency)
    _check_positive_count("duration_months", terms.duration_months)


@dataclass(frozen=True)
class SilentPartnershipTerms:
    """
    Silent partnership: the investor supplies all capital, the
    counterparty (mudarib) supplies effort.

    Profit is split by the agreed ratio.  Loss falls entirely on the
    investor; ``capital_guaranteed`` is informational and never changes
    that rule.
    """

    contract_type: ClassVar[ContractType] = ContractType.SILENT_PARTNERSHIP

    capital_amount: Money
    investor_profit_share_pct: Decimal
    counterparty_profit_share_pct: Decimal | None = None
    expected_return_rate_pct: Decimal = ZERO  # estimate only
    projected_profit: Money | None = None
    profit_distribution_frequency: DistributionFrequency = DistributionFrequency.QUARTERLY
    capital_guaranteed: bool = False
    duration_months: int = 12

    def __post_init__(self) -> None:
        _check_partnership(self)

    @property
    def currency(self) -> Currency:
        return self.capital_amount.currency


@dataclass(frozen=True)
class JointVentureTerms:
    """
    Joint venture: both parties contribute capital.

    Profit is split by the agreed ratio, which may differ from the
    capital ratio.  Loss follows capital contributions; when the
    per-party contributions are not supplied, loss allocation falls back
    to the profit ratio and is flagged as an approximation.
    """

    contract_type: ClassVar[ContractType] = ContractType.JOINT_VENTURE

    capital_amount: Money
    investor_profit_share_pct: Decimal
    counterparty_profit_share_pct: Decimal | None = None
    expected_return_rate_pct: Decimal = ZERO
    projected_profit: Money | None = None
    profit_distribution_frequency: DistributionFrequency = DistributionFrequency.QUARTERLY
    capital_guaranteed: bool = False
    duration_months: int = 12
    investor_capital: Money | None = None
    counterparty_capital: Money | None = None

    def __post_init__(self) -> None:
        _check_partnership(self)
        currency = self.capital_amount.currency

        given = [c for c in (self.investor_capital, self.counterparty_capital) if c is not None]
        if len(given) == 1:
            raise InvalidInputError(
                "investor_capital",
                "investor_capital and counterparty_capital must be supplied together",
            )
        if given:
            investor = _check_money("investor_capital", self.investor_capital, currency)
            counterparty = _check_money("counterparty_capital", self.counterparty_capital, currency)
            if investor + counterparty != self.capital_amount:
                raise InconsistentTermsError(
                    "capital_amount",
                    str((investor + counterparty).amount),
                    str(self.capital_amount.amount),
                )

    @property
    def currency(self) -> Currency:
        return self.capital_amount.currency

    @property
    def has_capital_contributions(self) -> bool:
        return self.investor_capital is not None and self.counterparty_capital is not None


# ---------------------------------------------------------------------------
# Lease (Ijarah)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LeaseTerms:
    """
    Lease: the lessor keeps ownership and the lessee pays a fixed monthly
    rental, optionally with an end-of-term purchase option (lease-to-own).
    """

    contract_type: ClassVar[ContractType] = ContractType.LEASE

    asset_value: Money
    monthly_rental: Money
    lease_term_months: int
    contract_date: date
    purchase_option: bool = False
    purchase_price: Money | None = None
    maintenance_responsibility: MaintenanceResponsibility = MaintenanceResponsibility.LESSOR
    maintenance_cost: Money | None = None  # per month
    residual_value: Money | None = None
    late_payment_policy: LatePaymentPolicy = LatePaymentPolicy.CHARITY
    takaful_coverage: bool = False

    def __post_init__(self) -> None:
        _coerce_enum(self, "maintenance_responsibility", MaintenanceResponsibility)
        _coerce_enum(self, "late_payment_policy", LatePaymentPolicy)

        asset = _check_money("asset_value", self.asset_value)
        _check_money("monthly_rental", self.monthly_rental, asset.currency)
        _check_positive_count("lease_term_months", self.lease_term_months)

        if self.purchase_option and self.purchase_price is None:
            raise MissingPurchasePriceError()
        if self.purchase_price is not None:
            _check_money("purchase_price", self.purchase_price, asset.currency)
        if self.maintenance_cost is not None:
            _check_money("maintenance_cost", self.maintenance_cost, asset.currency)
        if self.residual_value is not None:
            residual = _check_money("residual_value", self.residual_value, asset.currency)
            if residual > asset:
                raise InconsistentTermsError(
                    "residual_value",
                    f"at most {asset.amount}",
                    str(residual.amount),
                )

    @property
    def currency(self) -> Currency:
        return self.asset_value.currency

    @property
    def total_rental(self) -> Money:
        return self.monthly_rental * self.lease_term_months


# ---------------------------------------------------------------------------
# Forward sale (Salam)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ForwardSaleTerms:
    """
    Forward sale: the buyer pays for goods delivered at a future date.

    Standard practice requires the full price upfront
    (``advance_payment == agreed_price``).  A mismatch is reported as an
    advisory by the calculator, not rejected here.
    """

    contract_type: ClassVar[ContractType] = ContractType.FORWARD_SALE

    quantity: Quantity
    agreed_price: Money
    advance_payment: Money
    delivery_date: date
    delivery_period_days: int
    late_delivery_penalty_pct_per_day: Decimal = ZERO
    payment_date: date | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.quantity, Quantity):
            raise InvalidInputError(
                "quantity", f"quantity must be Quantity, got {type(self.quantity).__name__}"
            )
        if self.quantity.value < ZERO:
            raise NegativeAmountError("quantity", self.quantity.value)

        price = _check_money("agreed_price", self.agreed_price)
        _check_money("advance_payment", self.advance_payment, price.currency)
        _check_positive_count("delivery_period_days", self.delivery_period_days)
        _check_percentage(self, "late_delivery_penalty_pct_per_day")

        if self.payment_date is not None and self.payment_date > self.delivery_date:
            raise InconsistentTermsError(
                "payment_date",
                f"on or before {self.delivery_date.isoformat()}",
                self.payment_date.isoformat(),
            )

    @property
    def currency(self) -> Currency:
        return self.agreed_price.currency

    @property
    def delivery_value(self) -> Money:
        return self.agreed_price


ContractTerms = (
    CostPlusTerms
    | SilentPartnershipTerms
    | JointVentureTerms
    | LeaseTerms
    | ForwardSaleTerms
)

PartnershipTerms = SilentPartnershipTerms | JointVentureTerms

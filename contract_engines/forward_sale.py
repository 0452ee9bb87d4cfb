"""
Module: contract_engines.forward_sale
Responsibility:
    Summary figures for forward-sale (Salam) contracts: discount to the
    delivery value, buyer benefit, annualized return, day counts to the
    delivery date, and delivery progress with the late-delivery penalty.

Architecture position:
    Engines -- pure calculation layer.  "Today" is the only external
    input and comes from an injected Clock or an explicit ``as_of``.

Invariants enforced:
    - An advance payment that differs from the delivery value is an
      advisory on the result, never an error; the figures stay computable.
    - days_until_delivery is signed: negative means overdue.  It is never
      clamped to zero.
    - The late-delivery penalty never exceeds the delivery value.

Failure modes:
    - NegativeAmountError for a negative delivered quantity.
    - ProgressExceedsContractError when delivered exceeds contracted.
    - InvalidInputError when the delivered unit differs from the
      contracted unit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from contract_engines.tracer import traced_engine
from contract_kernel.domain.advisory import (
    ADVANCE_ABOVE_DELIVERY_VALUE,
    ADVANCE_BELOW_DELIVERY_VALUE,
    Advisory,
)
from contract_kernel.domain.clock import Clock, SystemClock
from contract_kernel.domain.terms import ForwardSaleTerms
from contract_kernel.domain.values import (
    HUNDRED,
    ZERO,
    Money,
    Percentage,
    Quantity,
    quantize_ratio,
    safe_divide,
)
from contract_kernel.exceptions import (
    InvalidInputError,
    NegativeAmountError,
    ProgressExceedsContractError,
)
from contract_kernel.logging_config import get_logger

logger = get_logger("engines.forward_sale")

DAYS_PER_YEAR = Decimal("365")


@dataclass(frozen=True)
class ForwardSaleSummary:
    delivery_value: Money
    advance_payment: Money
    discount: Money
    discount_rate_pct: Decimal
    buyer_benefit: Money
    advance_coverage_pct: Decimal
    annualized_return_pct: Decimal
    days_until_delivery: int
    advisories: tuple[Advisory, ...] = ()

    @property
    def is_overdue(self) -> bool:
        return self.days_until_delivery < 0

    @property
    def is_fully_prepaid(self) -> bool:
        return self.advance_payment == self.delivery_value


@dataclass(frozen=True)
class DeliveryProgress:
    delivered: Quantity
    remaining: Quantity
    progress_pct: Decimal
    late_days: int
    late_penalty: Money

    @property
    def is_complete(self) -> bool:
        return self.remaining.is_zero


class ForwardSaleMetrics:
    """
    Forward-sale (Salam) calculator.

    Contract:
        ``discount = delivery_value - advance_payment`` when the advance
        is below the delivery value, else zero.  The annualized return
        spreads ``discount / advance_payment`` over the days from
        ``payment_date`` to ``delivery_date``, or over
        ``delivery_period_days`` when no payment date is recorded.
    """

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or SystemClock()

    def _today(self, as_of: date | None) -> date:
        return as_of if as_of is not None else self._clock.today()

    @traced_engine("forward_sale_metrics", "1.0", fingerprint_fields=("terms", "as_of"))
    def compute(self, terms: ForwardSaleTerms, as_of: date | None = None) -> ForwardSaleSummary:
        today = self._today(as_of)
        delivery_value = terms.delivery_value
        advance = terms.advance_payment
        zero = Money.zero(terms.currency)

        discount = delivery_value - advance if advance < delivery_value else zero
        discount_rate = safe_divide(discount.amount * HUNDRED, delivery_value.amount)

        if terms.payment_date is not None:
            period_days = (terms.delivery_date - terms.payment_date).days
        else:
            period_days = terms.delivery_period_days
        annualized = safe_divide(
            safe_divide(discount.amount, advance.amount) * DAYS_PER_YEAR * HUNDRED,
            Decimal(period_days),
        )

        advisories: list[Advisory] = []
        if advance != delivery_value:
            code = (
                ADVANCE_BELOW_DELIVERY_VALUE
                if advance < delivery_value
                else ADVANCE_ABOVE_DELIVERY_VALUE
            )
            advisories.append(Advisory(
                code=code,
                message=(
                    f"Advance payment {advance} differs from delivery value "
                    f"{delivery_value}; standard practice requires full payment upfront"
                ),
                details={
                    "advance_payment": str(advance.amount),
                    "delivery_value": str(delivery_value.amount),
                },
            ))
            logger.warning("forward_sale_advance_mismatch", extra={
                "advance_payment": str(advance.amount),
                "delivery_value": str(delivery_value.amount),
                "advisory_code": code,
            })

        days_until = (terms.delivery_date - today).days
        logger.info("forward_sale_metrics_computed", extra={
            "delivery_value": str(delivery_value.amount),
            "discount": str(discount.amount),
            "days_until_delivery": days_until,
        })

        return ForwardSaleSummary(
            delivery_value=delivery_value,
            advance_payment=advance,
            discount=discount,
            discount_rate_pct=quantize_ratio(discount_rate),
            buyer_benefit=discount,
            advance_coverage_pct=quantize_ratio(
                safe_divide(advance.amount * HUNDRED, delivery_value.amount)
            ),
            annualized_return_pct=quantize_ratio(annualized),
            days_until_delivery=days_until,
            advisories=tuple(advisories),
        )

    @traced_engine("forward_sale_delivery_progress", "1.0",
                   fingerprint_fields=("terms", "delivered_quantity", "as_of"))
    def delivery_progress(
        self,
        terms: ForwardSaleTerms,
        delivered_quantity: Quantity | Decimal | int | str,
        as_of: date | None = None,
    ) -> DeliveryProgress:
        """
        Delivery status on ``as_of`` (default: today from the clock).

        Late days accrue only while goods remain undelivered past the
        delivery date.  The penalty is
        ``delivery_value * penalty_pct_per_day / 100 * late_days``.
        """
        contracted = terms.quantity
        if isinstance(delivered_quantity, Quantity):
            if delivered_quantity.unit != contracted.unit:
                raise InvalidInputError(
                    "delivered_quantity",
                    f"Delivered unit {delivered_quantity.unit} does not match "
                    f"contracted unit {contracted.unit}",
                )
            delivered = delivered_quantity
        else:
            delivered = Quantity.of(delivered_quantity, contracted.unit)

        if delivered.value < ZERO or delivered.value > contracted.value:
            logger.warning("delivery_progress_rejected", extra={
                "delivered": str(delivered.value),
                "contracted": str(contracted.value),
            })
        if delivered.value < ZERO:
            raise NegativeAmountError("delivered_quantity", delivered.value)
        if delivered.value > contracted.value:
            raise ProgressExceedsContractError(
                "delivered_quantity", delivered.value, contracted.value
            )

        remaining = contracted - delivered
        today = self._today(as_of)
        late_days = 0
        if not remaining.is_zero and today > terms.delivery_date:
            late_days = (today - terms.delivery_date).days

        value = terms.delivery_value
        penalty = Percentage(terms.late_delivery_penalty_pct_per_day).of_money(value) * late_days
        if penalty > value:
            penalty = value

        return DeliveryProgress(
            delivered=delivered,
            remaining=remaining,
            progress_pct=quantize_ratio(
                safe_divide(delivered.value * HUNDRED, contracted.value)
            ),
            late_days=late_days,
            late_penalty=penalty.round(),
        )

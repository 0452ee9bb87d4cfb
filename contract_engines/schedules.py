"""
Module: contract_engines.schedules
Responsibility:
    Turn cost-plus (Murabaha) and lease (Ijarah) terms into ordered
    payment schedules, plus the summary metrics, early-settlement and
    rental-progress arithmetic that sit beside them.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Round-trip: the schedule's total payments sum to the selling price
      (cost-plus) or total rental (lease) to the minor unit; cost-plus
      principal sums to the cost price and profit to the profit amount.
    - Sequence numbers run 1..N with no gaps.
    - Straight-line split, no compounding: the mark-up is a disclosed
      fixed amount, not an interest rate.
    - The final row absorbs rounding residuals.

Failure modes:
    - NegativeAmountError for a negative paid-installment or paid-period
      count.
    - NothingToSettleError when every installment is already paid.
    - ProgressExceedsContractError when more lease periods are reported
      paid than the lease term.

Usage:
    from contract_engines.schedules import CostPlusSchedule

    schedule = CostPlusSchedule().generate(terms)
    settlement = CostPlusSchedule().early_settlement(terms, paid_installments=4)
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_DOWN, Decimal

from contract_engines.allocation import (
    AllocationEngine,
    AllocationMethod,
    AllocationTarget,
)
from contract_engines.tracer import traced_engine
from contract_kernel.domain.advisory import (
    MARKUP_ABOVE_GUIDELINE,
    RENTAL_ABOVE_GUIDELINE,
    Advisory,
)
from contract_kernel.domain.terms import CostPlusTerms, LeaseTerms, PaymentStructure
from contract_kernel.domain.values import (
    HUNDRED,
    Money,
    Percentage,
    quantize_ratio,
    safe_divide,
)
from contract_kernel.exceptions import (
    NegativeAmountError,
    NothingToSettleError,
    ProgressExceedsContractError,
)
from contract_kernel.logging_config import get_logger

logger = get_logger("engines.schedules")

# Mark-up above this share of cost is flagged for review
MARKUP_GUIDELINE_PCT = Decimal("30")

# Total rentals above this share of asset value are flagged for review
RENTAL_GUIDELINE_PCT = Decimal("150")

MONTHS_PER_YEAR = Decimal("12")


def add_months(start: date, months: int) -> date:
    """Step a date by whole months, clamping to the end of shorter months."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


@dataclass(frozen=True)
class PaymentScheduleEntry:
    """
    One row of a payment schedule.

    For a lease, ``principal_amount`` is the rental and ``profit_amount``
    is zero.
    """

    sequence: int
    due_date: date
    principal_amount: Money
    profit_amount: Money
    total_payment: Money
    remaining_balance: Money
    cumulative_paid: Money


@dataclass(frozen=True)
class CostPlusMetrics:
    """Disclosure figures for a cost-plus contract."""

    selling_price: Money
    markup: Money
    markup_rate_pct: Decimal
    apr_pct: Decimal  # disclosure only, never used for amortization
    installment_amount: Money
    number_of_installments: int
    tenor_months: int
    advisories: tuple[Advisory, ...] = ()


@dataclass(frozen=True)
class EarlySettlement:
    """Amount due to close a cost-plus contract before maturity."""

    paid_installments: int
    remaining_installments: int
    paid_amount: Money
    remaining_principal: Money
    remaining_profit: Money
    discount: Money
    settlement_amount: Money

    @property
    def outstanding_balance(self) -> Money:
        """Balance owed before the discount is applied."""
        return self.remaining_principal + self.remaining_profit


@dataclass(frozen=True)
class LeaseMetrics:
    """Return figures for a lease; purchase fields are None without an option."""

    total_rental: Money
    rental_yield_pct: Decimal
    monthly_return_rate_pct: Decimal
    payback_period_months: Decimal
    total_maintenance: Money
    net_return: Money
    asset_depreciation: Money
    residual_value: Money
    total_cost: Money | None = None
    asset_markup_pct: Decimal | None = None
    advisories: tuple[Advisory, ...] = ()


@dataclass(frozen=True)
class RentalProgress:
    periods_paid: int
    periods_remaining: int
    amount_paid: Money
    amount_remaining: Money
    progress_pct: Decimal


def _build_rows(
    due_dates: list[date],
    principals: tuple[Money, ...],
    profits: tuple[Money, ...],
    grand_total: Money,
) -> tuple[PaymentScheduleEntry, ...]:
    rows: list[PaymentScheduleEntry] = []
    cumulative = Money.zero(grand_total.currency)
    for i, (due, principal, profit) in enumerate(zip(due_dates, principals, profits), start=1):
        total = principal + profit
        cumulative = cumulative + total
        rows.append(
            PaymentScheduleEntry(
                sequence=i,
                due_date=due,
                principal_amount=principal,
                profit_amount=profit,
                total_payment=total,
                remaining_balance=grand_total - cumulative,
                cumulative_paid=cumulative,
            )
        )
    return tuple(rows)


class CostPlusSchedule:
    """
    Cost-plus (Murabaha) installment calculator.

    Contract:
        The principal component of each installment is cost_price / N and
        the profit component profit_amount / N, each truncated to the minor
        unit with the last row taking the residual, so every column is
        non-negative.  The installment is their sum.  Installment i falls due
        ``deferment_period + (i - 1) * frequency`` months after the
        contract date.  A lump-sum contract has a single row due
        ``tenor_months`` after the contract date.
    """

    def __init__(self, allocation_engine: AllocationEngine | None = None):
        self._allocation = allocation_engine or AllocationEngine()

    def _split(self, amount: Money, n: int) -> tuple[Money, ...]:
        targets = [AllocationTarget(target_id=str(i)) for i in range(1, n + 1)]
        result = self._allocation.allocate(amount, targets, AllocationMethod.EQUAL)
        return tuple(line.allocated for line in result.lines)

    @staticmethod
    def _installment(terms: CostPlusTerms) -> Money:
        """Regular (non-final) installment, as the schedule rows compute it."""
        n = terms.number_of_installments
        return (
            (terms.cost_price / n).round(ROUND_DOWN)
            + (terms.profit_amount / n).round(ROUND_DOWN)
        )

    def due_dates(self, terms: CostPlusTerms) -> list[date]:
        if terms.payment_structure == PaymentStructure.LUMP_SUM:
            return [add_months(terms.contract_date, terms.tenor_months)]
        step = terms.installment_frequency.months
        return [
            add_months(terms.contract_date, terms.deferment_period + i * step)
            for i in range(terms.number_of_installments)
        ]

    @traced_engine("cost_plus_schedule", "1.0", fingerprint_fields=("terms",))
    def generate(self, terms: CostPlusTerms) -> tuple[PaymentScheduleEntry, ...]:
        n = terms.number_of_installments
        logger.info("cost_plus_schedule_started", extra={
            "cost_price": str(terms.cost_price.amount),
            "profit_amount": str(terms.profit_amount.amount),
            "currency": terms.currency.code,
            "installments": n,
            "payment_structure": terms.payment_structure.value,
        })

        selling_price = terms.selling_price
        rows = _build_rows(
            self.due_dates(terms),
            self._split(terms.cost_price, n),
            self._split(terms.profit_amount, n),
            selling_price,
        )

        logger.info("cost_plus_schedule_completed", extra={
            "selling_price": str(selling_price.amount),
            "installment_amount": str(rows[0].total_payment.amount),
            "final_installment": str(rows[-1].total_payment.amount),
            "row_count": len(rows),
        })
        return rows

    @traced_engine("cost_plus_early_settlement", "1.0",
                   fingerprint_fields=("terms", "paid_installments"))
    def early_settlement(self, terms: CostPlusTerms, paid_installments: int) -> EarlySettlement:
        """
        Settlement amount after ``paid_installments`` installments.

        The discount applies to the remaining profit only; principal is
        never discounted.
        """
        n = terms.number_of_installments
        if paid_installments < 0:
            logger.warning("early_settlement_rejected", extra={
                "paid_installments": paid_installments,
                "total_installments": n,
            })
            raise NegativeAmountError("paid_installments", Decimal(paid_installments))
        if paid_installments >= n:
            logger.warning("early_settlement_rejected", extra={
                "paid_installments": paid_installments,
                "total_installments": n,
            })
            raise NothingToSettleError(paid_installments, n)

        remaining = n - paid_installments
        fraction = Decimal(remaining) / Decimal(n)
        remaining_principal = (terms.cost_price * fraction).round()
        remaining_profit = (terms.profit_amount * fraction).round()
        discount = Percentage(terms.early_settlement_discount_pct).of_money(remaining_profit).round()
        settlement = remaining_principal + remaining_profit - discount
        paid_amount = terms.selling_price - remaining_principal - remaining_profit

        logger.info("early_settlement_computed", extra={
            "paid_installments": paid_installments,
            "remaining_installments": remaining,
            "discount": str(discount.amount),
            "settlement_amount": str(settlement.amount),
        })
        return EarlySettlement(
            paid_installments=paid_installments,
            remaining_installments=remaining,
            paid_amount=paid_amount,
            remaining_principal=remaining_principal,
            remaining_profit=remaining_profit,
            discount=discount,
            settlement_amount=settlement,
        )

    @traced_engine("cost_plus_metrics", "1.0", fingerprint_fields=("terms",))
    def metrics(self, terms: CostPlusTerms) -> CostPlusMetrics:
        cost = terms.cost_price.amount
        markup = terms.profit_amount
        markup_rate = safe_divide(markup.amount * HUNDRED, cost)
        apr = safe_divide(markup_rate, Decimal(terms.tenor_months)) * MONTHS_PER_YEAR

        advisories: list[Advisory] = []
        if markup_rate > MARKUP_GUIDELINE_PCT:
            advisories.append(Advisory(
                code=MARKUP_ABOVE_GUIDELINE,
                message=(
                    f"Mark-up of {quantize_ratio(markup_rate)}% exceeds the "
                    f"{MARKUP_GUIDELINE_PCT}% review guideline"
                ),
                details={
                    "markup_rate_pct": str(quantize_ratio(markup_rate)),
                    "guideline_pct": str(MARKUP_GUIDELINE_PCT),
                },
            ))
            logger.warning("cost_plus_markup_above_guideline", extra={
                "markup_rate_pct": str(quantize_ratio(markup_rate)),
            })

        return CostPlusMetrics(
            selling_price=terms.selling_price,
            markup=markup,
            markup_rate_pct=quantize_ratio(markup_rate),
            apr_pct=quantize_ratio(apr),
            installment_amount=self._installment(terms),
            number_of_installments=terms.number_of_installments,
            tenor_months=terms.tenor_months,
            advisories=tuple(advisories),
        )


class LeaseSchedule:
    """
    Lease (Ijarah) rental calculator.

    Contract:
        One row per month of the lease term, each equal to the monthly
        rental, period i falling due i months after the contract date.
    """

    @traced_engine("lease_schedule", "1.0", fingerprint_fields=("terms",))
    def generate(self, terms: LeaseTerms) -> tuple[PaymentScheduleEntry, ...]:
        n = terms.lease_term_months
        logger.info("lease_schedule_started", extra={
            "monthly_rental": str(terms.monthly_rental.amount),
            "currency": terms.currency.code,
            "lease_term_months": n,
        })

        zero = Money.zero(terms.currency)
        rows = _build_rows(
            [add_months(terms.contract_date, i) for i in range(1, n + 1)],
            (terms.monthly_rental,) * n,
            (zero,) * n,
            terms.total_rental,
        )

        logger.info("lease_schedule_completed", extra={
            "total_rental": str(terms.total_rental.amount),
            "row_count": len(rows),
        })
        return rows

    @traced_engine("lease_metrics", "1.0", fingerprint_fields=("terms",))
    def metrics(self, terms: LeaseTerms) -> LeaseMetrics:
        asset = terms.asset_value
        total_rental = terms.total_rental
        rental_yield = safe_divide(total_rental.amount * HUNDRED, asset.amount)
        months = Decimal(terms.lease_term_months)

        zero = Money.zero(terms.currency)
        total_maintenance = (terms.maintenance_cost or zero) * terms.lease_term_months
        residual = terms.residual_value or zero

        total_cost = None
        asset_markup = None
        if terms.purchase_option:
            total_cost = total_rental + terms.purchase_price
            asset_markup = quantize_ratio(
                safe_divide((total_cost - asset).amount * HUNDRED, asset.amount)
            )

        advisories: list[Advisory] = []
        if rental_yield > RENTAL_GUIDELINE_PCT:
            advisories.append(Advisory(
                code=RENTAL_ABOVE_GUIDELINE,
                message=(
                    f"Total rentals are {quantize_ratio(rental_yield)}% of asset value, "
                    f"above the {RENTAL_GUIDELINE_PCT}% review guideline"
                ),
                details={
                    "total_rental": str(total_rental.amount),
                    "asset_value": str(asset.amount),
                },
            ))
            logger.warning("lease_rental_above_guideline", extra={
                "rental_yield_pct": str(quantize_ratio(rental_yield)),
            })

        return LeaseMetrics(
            total_rental=total_rental,
            rental_yield_pct=quantize_ratio(rental_yield),
            monthly_return_rate_pct=quantize_ratio(rental_yield / months),
            payback_period_months=quantize_ratio(
                safe_divide(asset.amount, terms.monthly_rental.amount)
            ),
            total_maintenance=total_maintenance,
            net_return=total_rental - total_maintenance,
            asset_depreciation=asset - residual,
            residual_value=residual,
            total_cost=total_cost,
            asset_markup_pct=asset_markup,
            advisories=tuple(advisories),
        )

    @traced_engine("lease_rental_progress", "1.0",
                   fingerprint_fields=("terms", "periods_paid"))
    def rental_progress(self, terms: LeaseTerms, periods_paid: int) -> RentalProgress:
        n = terms.lease_term_months
        if periods_paid < 0 or periods_paid > n:
            logger.warning("rental_progress_rejected", extra={
                "periods_paid": periods_paid,
                "lease_term_months": n,
            })
        if periods_paid < 0:
            raise NegativeAmountError("periods_paid", Decimal(periods_paid))
        if periods_paid > n:
            raise ProgressExceedsContractError("periods_paid", periods_paid, n)

        amount_paid = terms.monthly_rental * periods_paid
        return RentalProgress(
            periods_paid=periods_paid,
            periods_remaining=n - periods_paid,
            amount_paid=amount_paid,
            amount_remaining=terms.total_rental - amount_paid,
            progress_pct=quantize_ratio(Decimal(periods_paid) * HUNDRED / Decimal(n)),
        )

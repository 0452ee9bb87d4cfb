"""
Module: contract_engines.distribution
Responsibility:
    Profit and loss allocation for the two partnership archetypes:
    silent partnership (Mudarabah) and joint venture (Musharakah).  Also
    spreads the investor's share across an investor pool and reports the
    partnership's return figures.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Profit-split conservation: investor share + counterparty share ==
      total profit exactly; the larger share absorbs the rounding residual.
    - Silent partnership loss: 100% borne by the capital provider, 0% by
      the effort provider, whatever the profit ratio or the
      ``capital_guaranteed`` flag.  This rule has no parameter.
    - Joint venture loss: proportional to capital contributions.  Without
      per-party contributions the profit ratio stands in, and the result
      is marked as an approximation with an advisory.
    - Totals are magnitudes: negative profit or loss is rejected.

Failure modes:
    - NegativeAmountError for a negative total.
    - CurrencyMismatchError when the total is not in the terms' currency.
    - InvalidInputError for non-partnership terms, a total below the
      currency's minor unit, or an investor pool with no holdings.
    - InconsistentTermsError when an explicit contract type disagrees
      with the terms.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from contract_engines.allocation import (
    AllocationEngine,
    AllocationMethod,
    AllocationResult,
    AllocationTarget,
)
from contract_engines.tracer import traced_engine
from contract_kernel.domain.advisory import (
    CAPITAL_GUARANTEE_DECLARED,
    LOSS_SPLIT_APPROXIMATED,
    Advisory,
)
from contract_kernel.domain.terms import (
    ContractType,
    JointVentureTerms,
    PartnershipTerms,
    SilentPartnershipTerms,
)
from contract_kernel.domain.values import (
    HUNDRED,
    ZERO,
    Money,
    quantize_ratio,
    safe_divide,
)
from contract_kernel.exceptions import (
    CurrencyMismatchError,
    InconsistentTermsError,
    InvalidInputError,
    NegativeAmountError,
)
from contract_kernel.logging_config import get_logger

logger = get_logger("engines.distribution")

MONTHS_PER_YEAR = Decimal("12")


class PartyRole(str, Enum):
    INVESTOR = "investor"  # capital provider (rabb-ul-mal)
    COUNTERPARTY = "counterparty"  # mudarib or managing partner


class DistributionRule(str, Enum):
    PROFIT_RATIO = "profit_ratio"
    LOSS_TO_CAPITAL_PROVIDER = "loss_to_capital_provider"
    LOSS_BY_CAPITAL = "loss_by_capital"
    LOSS_BY_PROFIT_RATIO_APPROXIMATION = "loss_by_profit_ratio_approximation"


@dataclass(frozen=True)
class PartyShare:
    party: PartyRole
    amount: Money
    percentage: Decimal
    capital_remaining: Money | None = None


@dataclass(frozen=True)
class ProfitLossResult:
    """
    A profit split or loss allocation between the two parties.

    Guarantees:
        - ``sum(share.amount) == total_amount``.
        - ``shares`` holds the investor first, then the counterparty.
    """

    contract_type: ContractType
    rule: DistributionRule
    total_amount: Money
    shares: tuple[PartyShare, ...]
    advisories: tuple[Advisory, ...] = ()

    def share_for(self, party: PartyRole) -> PartyShare:
        for share in self.shares:
            if share.party == party:
                return share
        raise KeyError(party)

    @property
    def investor_share(self) -> Money:
        return self.share_for(PartyRole.INVESTOR).amount

    @property
    def counterparty_share(self) -> Money:
        return self.share_for(PartyRole.COUNTERPARTY).amount

    @property
    def is_approximation(self) -> bool:
        return self.rule == DistributionRule.LOSS_BY_PROFIT_RATIO_APPROXIMATION


@dataclass(frozen=True)
class InvestorPayout:
    investor_id: str
    invested: Money
    share_pct: Decimal
    amount: Money


@dataclass(frozen=True)
class PartnershipMetrics:
    capital_amount: Money
    projected_roi_pct: Decimal
    actual_roi_pct: Decimal | None
    investor_expected_return: Money
    counterparty_expected_return: Money
    investor_equity_pct: Decimal | None = None
    counterparty_equity_pct: Decimal | None = None
    advisories: tuple[Advisory, ...] = ()


def _larger_index(first: Decimal, second: Decimal) -> int:
    """Index of the larger of two weights; the first wins a tie."""
    return 0 if first >= second else 1


def _capital_guarantee_advisory(terms: PartnershipTerms) -> tuple[Advisory, ...]:
    if not (isinstance(terms, SilentPartnershipTerms) and terms.capital_guaranteed):
        return ()
    return (Advisory(
        code=CAPITAL_GUARANTEE_DECLARED,
        message=(
            "Capital guarantee is declared on a silent partnership; the "
            "capital provider still bears any loss"
        ),
        details={"capital_amount": str(terms.capital_amount.amount)},
    ),)


class ProfitLossDistributor:
    """
    Profit/loss allocator for partnership contracts.

    Contract:
        Routes on the terms' contract type.  Amounts are rounded to the
        currency's minor unit through the allocation engine.
    """

    def __init__(self, allocation_engine: AllocationEngine | None = None):
        self._allocation = allocation_engine or AllocationEngine()

    def _check_total(self, field: str, terms: PartnershipTerms, total: Money) -> None:
        if not isinstance(terms, (SilentPartnershipTerms, JointVentureTerms)):
            raise InvalidInputError(
                "terms",
                f"{type(terms).__name__} is not a partnership contract",
            )
        if total.currency != terms.currency:
            raise CurrencyMismatchError(field, terms.currency.code, total.currency.code)
        if total.is_negative:
            logger.warning("distribution_rejected", extra={
                "field": field,
                "amount": str(total.amount),
            })
            raise NegativeAmountError(field, total.amount)
        if total.round().amount != total.amount:
            raise InvalidInputError(
                field, f"{field} must be expressed in whole minor units: {total.amount}"
            )

    def _two_party(
        self,
        total: Money,
        method: AllocationMethod,
        targets: list[AllocationTarget],
        rounding_index: int,
    ) -> AllocationResult:
        return self._allocation.allocate(total, targets, method, rounding_index)

    @traced_engine("profit_distribution", "1.0", fingerprint_fields=("terms", "total_profit"))
    def distribute_profit(self, terms: PartnershipTerms, total_profit: Money) -> ProfitLossResult:
        """Split profit by the agreed ratio."""
        self._check_total("total_profit", terms, total_profit)
        investor_pct = terms.investor_profit_share_pct
        counterparty_pct = terms.counterparty_profit_share_pct

        result = self._two_party(
            total_profit,
            AllocationMethod.WEIGHTED,
            [
                AllocationTarget(PartyRole.INVESTOR.value, weight=investor_pct),
                AllocationTarget(PartyRole.COUNTERPARTY.value, weight=counterparty_pct),
            ],
            _larger_index(investor_pct, counterparty_pct),
        )

        logger.info("profit_distributed", extra={
            "contract_type": terms.contract_type.value,
            "total_profit": str(total_profit.amount),
            "investor_share": str(result.lines[0].allocated.amount),
            "counterparty_share": str(result.lines[1].allocated.amount),
        })
        return ProfitLossResult(
            contract_type=terms.contract_type,
            rule=DistributionRule.PROFIT_RATIO,
            total_amount=total_profit,
            shares=(
                PartyShare(PartyRole.INVESTOR, result.lines[0].allocated, investor_pct),
                PartyShare(PartyRole.COUNTERPARTY, result.lines[1].allocated, counterparty_pct),
            ),
        )

    @traced_engine("loss_allocation", "1.0",
                   fingerprint_fields=("terms", "total_loss", "contract_type"))
    def allocate_loss(
        self,
        terms: PartnershipTerms,
        total_loss: Money,
        contract_type: ContractType | None = None,
    ) -> ProfitLossResult:
        """
        Allocate a loss by the archetype's rule.

        ``contract_type`` is optional; when given it must match the terms.
        """
        self._check_total("total_loss", terms, total_loss)
        if contract_type is not None and ContractType(contract_type) != terms.contract_type:
            raise InconsistentTermsError(
                "contract_type", terms.contract_type.value, ContractType(contract_type).value
            )

        match terms:
            case SilentPartnershipTerms():
                result = self._silent_partnership_loss(terms, total_loss)
            case JointVentureTerms() if terms.has_capital_contributions:
                result = self._capital_weighted_loss(terms, total_loss)
            case JointVentureTerms():
                result = self._approximated_loss(terms, total_loss)

        log = logger.warning if result.is_approximation else logger.info
        log("loss_allocated", extra={
            "contract_type": terms.contract_type.value,
            "rule": result.rule.value,
            "total_loss": str(total_loss.amount),
            "investor_share": str(result.investor_share.amount),
            "counterparty_share": str(result.counterparty_share.amount),
        })
        return result

    def _silent_partnership_loss(
        self, terms: SilentPartnershipTerms, total_loss: Money
    ) -> ProfitLossResult:
        zero = Money.zero(terms.currency)
        remaining = terms.capital_amount - total_loss
        return ProfitLossResult(
            contract_type=terms.contract_type,
            rule=DistributionRule.LOSS_TO_CAPITAL_PROVIDER,
            total_amount=total_loss,
            shares=(
                PartyShare(
                    PartyRole.INVESTOR,
                    total_loss,
                    HUNDRED,
                    capital_remaining=remaining if remaining.is_positive else zero,
                ),
                PartyShare(PartyRole.COUNTERPARTY, zero, ZERO),
            ),
            advisories=_capital_guarantee_advisory(terms),
        )

    def _capital_weighted_loss(
        self, terms: JointVentureTerms, total_loss: Money
    ) -> ProfitLossResult:
        investor_capital = terms.investor_capital
        counterparty_capital = terms.counterparty_capital
        if terms.capital_amount.is_zero:
            raise InvalidInputError(
                "capital_amount", "Cannot allocate a loss against zero capital"
            )

        result = self._two_party(
            total_loss,
            AllocationMethod.PRORATA,
            [
                AllocationTarget(PartyRole.INVESTOR.value, eligible_amount=investor_capital),
                AllocationTarget(PartyRole.COUNTERPARTY.value, eligible_amount=counterparty_capital),
            ],
            _larger_index(investor_capital.amount, counterparty_capital.amount),
        )

        shares = []
        for role, line, capital in (
            (PartyRole.INVESTOR, result.lines[0], investor_capital),
            (PartyRole.COUNTERPARTY, result.lines[1], counterparty_capital),
        ):
            remaining = capital - line.allocated
            shares.append(PartyShare(
                role,
                line.allocated,
                quantize_ratio(line.ratio * HUNDRED),
                capital_remaining=remaining if remaining.is_positive else Money.zero(terms.currency),
            ))

        return ProfitLossResult(
            contract_type=terms.contract_type,
            rule=DistributionRule.LOSS_BY_CAPITAL,
            total_amount=total_loss,
            shares=tuple(shares),
        )

    def _approximated_loss(
        self, terms: JointVentureTerms, total_loss: Money
    ) -> ProfitLossResult:
        investor_pct = terms.investor_profit_share_pct
        counterparty_pct = terms.counterparty_profit_share_pct
        result = self._two_party(
            total_loss,
            AllocationMethod.WEIGHTED,
            [
                AllocationTarget(PartyRole.INVESTOR.value, weight=investor_pct),
                AllocationTarget(PartyRole.COUNTERPARTY.value, weight=counterparty_pct),
            ],
            _larger_index(investor_pct, counterparty_pct),
        )
        advisory = Advisory(
            code=LOSS_SPLIT_APPROXIMATED,
            message=(
                "Per-party capital contributions are not recorded; loss was split "
                "by the profit ratio and is not authoritative"
            ),
            details={
                "investor_profit_share_pct": str(investor_pct),
                "counterparty_profit_share_pct": str(counterparty_pct),
            },
        )
        return ProfitLossResult(
            contract_type=terms.contract_type,
            rule=DistributionRule.LOSS_BY_PROFIT_RATIO_APPROXIMATION,
            total_amount=total_loss,
            shares=(
                PartyShare(PartyRole.INVESTOR, result.lines[0].allocated, investor_pct),
                PartyShare(PartyRole.COUNTERPARTY, result.lines[1].allocated, counterparty_pct),
            ),
            advisories=(advisory,),
        )

    @traced_engine("investor_pool_distribution", "1.0", fingerprint_fields=("pool", "holdings"))
    def distribute_to_investors(
        self,
        pool: Money,
        holdings: Mapping[str, Money],
    ) -> tuple[InvestorPayout, ...]:
        """
        Spread an amount across investors pro rata to their holdings.

        The largest holder (first in iteration order on a tie) absorbs
        the rounding residual, so payouts sum to ``pool`` exactly.
        """
        if pool.is_negative:
            raise NegativeAmountError("pool", pool.amount)
        if not holdings:
            raise InvalidInputError("holdings", "At least one investor holding is required")
        for investor_id, invested in holdings.items():
            if invested.is_negative:
                raise NegativeAmountError(f"holdings[{investor_id}]", invested.amount)

        ids = list(holdings)
        total_invested = sum((h.amount for h in holdings.values()), ZERO)
        if total_invested == ZERO:
            raise InvalidInputError("holdings", "Total invested amount cannot be zero")

        largest = max(range(len(ids)), key=lambda i: (holdings[ids[i]].amount, -i))
        result = self._allocation.allocate(
            pool,
            [AllocationTarget(i, eligible_amount=holdings[i]) for i in ids],
            AllocationMethod.PRORATA,
            largest,
        )

        payouts = tuple(
            InvestorPayout(
                investor_id=line.target_id,
                invested=holdings[line.target_id],
                share_pct=quantize_ratio(line.ratio * HUNDRED),
                amount=line.allocated,
            )
            for line in result.lines
        )
        logger.info("investor_pool_distributed", extra={
            "pool": str(pool.amount),
            "investor_count": len(payouts),
            "total_invested": str(total_invested),
        })
        return payouts

    @traced_engine("partnership_metrics", "1.0", fingerprint_fields=("terms", "actual_profit"))
    def metrics(
        self,
        terms: PartnershipTerms,
        actual_profit: Money | None = None,
    ) -> PartnershipMetrics:
        """
        Return figures for a partnership.

        Projected ROI is the declared expected return rate.  Actual ROI is
        annualized over the contract duration.  Expected returns split the
        projected profit by the agreed ratio.
        """
        zero = Money.zero(terms.currency)
        projected = self.distribute_profit(terms, terms.projected_profit or zero)

        capital = terms.capital_amount.amount
        actual_roi = None
        if actual_profit is not None:
            if actual_profit.currency != terms.currency:
                raise CurrencyMismatchError(
                    "actual_profit", terms.currency.code, actual_profit.currency.code
                )
            actual_roi = quantize_ratio(
                safe_divide(actual_profit.amount * HUNDRED, capital)
                * MONTHS_PER_YEAR
                / Decimal(terms.duration_months)
            )

        investor_equity = counterparty_equity = None
        if isinstance(terms, JointVentureTerms) and terms.has_capital_contributions:
            investor_equity = quantize_ratio(
                safe_divide(terms.investor_capital.amount * HUNDRED, capital)
            )
            counterparty_equity = quantize_ratio(
                safe_divide(terms.counterparty_capital.amount * HUNDRED, capital)
            )

        return PartnershipMetrics(
            capital_amount=terms.capital_amount,
            projected_roi_pct=quantize_ratio(terms.expected_return_rate_pct),
            actual_roi_pct=actual_roi,
            investor_expected_return=projected.investor_share,
            counterparty_expected_return=projected.counterparty_share,
            investor_equity_pct=investor_equity,
            counterparty_equity_pct=counterparty_equity,
            advisories=_capital_guarantee_advisory(terms),
        )

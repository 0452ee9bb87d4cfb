"""
Tests for routing terms to calculators by contract type.

Covers:
- Every contract type has a calculator entry
- Schedules for cost-plus and lease; rejection for the rest
- Metrics routing with pass-through options
"""

from datetime import date
from decimal import Decimal

import pytest

from contract_engines.dispatch import CALCULATORS, compute_metrics, generate_schedule
from contract_engines.distribution import PartnershipMetrics
from contract_engines.forward_sale import ForwardSaleSummary
from contract_engines.schedules import CostPlusMetrics, LeaseMetrics
from contract_kernel.domain.terms import (
    ContractType,
    CostPlusTerms,
    ForwardSaleTerms,
    JointVentureTerms,
    LeaseTerms,
    SilentPartnershipTerms,
)
from contract_kernel.domain.values import Money, Quantity
from contract_kernel.exceptions import InvalidInputError


def ngn(amount) -> Money:
    return Money.of(amount, "NGN")


COST_PLUS = CostPlusTerms(
    cost_price=ngn("1000000"),
    profit_rate=Decimal("15"),
    number_of_installments=12,
    contract_date=date(2024, 1, 15),
)
LEASE = LeaseTerms(
    asset_value=ngn("2000000"),
    monthly_rental=ngn("120000"),
    lease_term_months=24,
    contract_date=date(2024, 1, 1),
)
SILENT_PARTNERSHIP = SilentPartnershipTerms(
    capital_amount=ngn("1000000"), investor_profit_share_pct=Decimal("60")
)
JOINT_VENTURE = JointVentureTerms(
    capital_amount=ngn("1000000"), investor_profit_share_pct=Decimal("50")
)
FORWARD_SALE = ForwardSaleTerms(
    quantity=Quantity.of("100", "tonnes"),
    agreed_price=ngn("5000000"),
    advance_payment=ngn("5000000"),
    delivery_date=date(2024, 7, 1),
    delivery_period_days=180,
)


class TestCalculatorTable:
    """Tests for the routing table."""

    def test_every_contract_type_routed(self):
        assert set(CALCULATORS) == set(ContractType)

    def test_schedules_only_for_cost_plus_and_lease(self):
        with_schedule = {t for t, entry in CALCULATORS.items() if entry.schedule is not None}
        assert with_schedule == {ContractType.COST_PLUS, ContractType.LEASE}


class TestGenerateSchedule:
    """Tests for generate_schedule."""

    def test_cost_plus(self):
        rows = generate_schedule(COST_PLUS)
        assert len(rows) == 12
        assert rows[-1].cumulative_paid == ngn("1150000")

    def test_lease(self):
        assert len(generate_schedule(LEASE)) == 24

    @pytest.mark.parametrize("terms", [SILENT_PARTNERSHIP, JOINT_VENTURE, FORWARD_SALE])
    def test_no_schedule_rejected(self, terms):
        with pytest.raises(InvalidInputError, match="no payment schedule"):
            generate_schedule(terms)

    def test_non_terms_rejected(self):
        with pytest.raises(InvalidInputError):
            generate_schedule(object())


class TestComputeMetrics:
    """Tests for compute_metrics."""

    def test_routes_by_type(self):
        assert isinstance(compute_metrics(COST_PLUS), CostPlusMetrics)
        assert isinstance(compute_metrics(LEASE), LeaseMetrics)
        assert isinstance(compute_metrics(SILENT_PARTNERSHIP), PartnershipMetrics)
        assert isinstance(compute_metrics(JOINT_VENTURE), PartnershipMetrics)

    def test_forward_sale_as_of_passes_through(self):
        summary = compute_metrics(FORWARD_SALE, as_of=date(2024, 6, 21))
        assert isinstance(summary, ForwardSaleSummary)
        assert summary.days_until_delivery == 10

    def test_partnership_actual_profit_passes_through(self):
        metrics = compute_metrics(SILENT_PARTNERSHIP, actual_profit=ngn("100000"))
        assert metrics.actual_roi_pct == Decimal("10.00")

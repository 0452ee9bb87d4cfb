"""
Tests for the contract-terms records.

Covers:
- Cost-plus rate / amount derivation and consistency
- Partnership profit-share validation
- Joint venture capital contributions
- Lease purchase option and residual value checks
- Forward-sale quantity and date checks
- Rejection of negative, fractional and mixed-currency money
"""

from datetime import date
from decimal import Decimal

import pytest

from contract_kernel.domain.terms import (
    ContractType,
    CostPlusTerms,
    ForwardSaleTerms,
    InstallmentFrequency,
    JointVentureTerms,
    LeaseTerms,
    MaintenanceResponsibility,
    PaymentStructure,
    SilentPartnershipTerms,
)
from contract_kernel.domain.values import Money, Percentage, Quantity
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


def ngn(amount) -> Money:
    return Money.of(amount, "NGN")


class TestCostPlusTerms:
    """Tests for CostPlusTerms."""

    def setup_method(self):
        self.contract_date = date(2024, 1, 15)

    def _terms(self, **overrides):
        values = {
            "cost_price": ngn("1000000"),
            "number_of_installments": 12,
            "contract_date": self.contract_date,
            "profit_rate": Decimal("15"),
        }
        values.update(overrides)
        return CostPlusTerms(**values)

    def test_rate_derives_amount(self):
        """A 15% rate on 1,000,000 gives a 150,000 mark-up."""
        terms = self._terms()
        assert terms.profit_amount == ngn("150000")
        assert terms.selling_price == ngn("1150000")
        assert terms.contract_type == ContractType.COST_PLUS

    def test_amount_derives_rate(self):
        """A 150,000 mark-up on 1,000,000 is a 15% rate."""
        terms = self._terms(profit_rate=None, profit_amount=ngn("150000"))
        assert terms.profit_rate == Decimal("15")

    def test_derived_amount_rounds_to_minor_unit(self):
        """Rate-derived profit is rounded half up to kobo."""
        terms = self._terms(cost_price=ngn("333.33"), profit_rate=Decimal("10"))
        assert terms.profit_amount == ngn("33.33")

    def test_derived_amount_is_percentage_of_cost(self):
        """12.5% of 1,000.05 is 125.00625, which rounds half up to 125.01."""
        cost = ngn("1000.05")
        terms = self._terms(cost_price=cost, profit_rate=Decimal("12.5"))
        assert terms.profit_amount == Percentage.of("12.5").of_money(cost).round()
        assert terms.profit_amount == ngn("125.01")

    def test_half_kobo_mark_up_rounds_up(self):
        terms = self._terms(cost_price=ngn("0.10"), profit_rate=Decimal("5"))
        assert terms.profit_amount == ngn("0.01")

    def test_consistent_rate_and_amount_accepted(self):
        terms = self._terms(profit_amount=ngn("150000"))
        assert terms.profit_amount == ngn("150000")

    def test_inconsistent_rate_and_amount_rejected(self):
        """Rate and amount that disagree are rejected, never silently reconciled."""
        with pytest.raises(InconsistentTermsError) as exc_info:
            self._terms(profit_amount=ngn("140000"))
        assert exc_info.value.code == "INCONSISTENT_TERMS"

    def test_neither_rate_nor_amount_rejected(self):
        with pytest.raises(InvalidInputError):
            self._terms(profit_rate=None)

    def test_positive_profit_on_zero_cost_rejected(self):
        """A mark-up on nothing has no defined rate."""
        with pytest.raises(InconsistentTermsError):
            self._terms(cost_price=ngn("0"), profit_rate=None, profit_amount=ngn("10"))

    def test_amount_implying_rate_above_hundred_rejected(self):
        with pytest.raises(PercentageOutOfRangeError):
            self._terms(profit_rate=None, profit_amount=ngn("1000001"))

    def test_with_profit_rate_recomputes_amount(self):
        terms = self._terms().with_profit_rate("20")
        assert terms.profit_amount == ngn("200000")

    def test_with_profit_amount_recomputes_rate(self):
        terms = self._terms().with_profit_amount(ngn("50000"))
        assert terms.profit_rate == Decimal("5")

    def test_lump_sum_forces_single_installment(self):
        terms = self._terms(payment_structure="lump-sum")
        assert terms.payment_structure == PaymentStructure.LUMP_SUM
        assert terms.number_of_installments == 1

    def test_tenor_from_frequency(self):
        """Without an explicit duration the tenor is N x frequency months."""
        terms = self._terms(number_of_installments=4, installment_frequency="quarterly")
        assert terms.installment_frequency == InstallmentFrequency.QUARTERLY
        assert terms.tenor_months == 12

    def test_explicit_duration_overrides_tenor(self):
        assert self._terms(duration_months=18).tenor_months == 18

    @pytest.mark.parametrize("count", [0, -3])
    def test_non_positive_installments_rejected(self, count):
        with pytest.raises(NonPositiveTermError):
            self._terms(number_of_installments=count)

    def test_negative_cost_rejected(self):
        with pytest.raises(NegativeAmountError) as exc_info:
            self._terms(cost_price=ngn("-1"))
        assert exc_info.value.field == "cost_price"

    def test_fractional_minor_unit_rejected(self):
        """Money fields carry whole kobo only."""
        with pytest.raises(InvalidInputError):
            self._terms(cost_price=ngn("100.005"))

    def test_profit_amount_currency_must_match(self):
        with pytest.raises(CurrencyMismatchError):
            self._terms(profit_rate=None, profit_amount=Money.of("100", "USD"))

    def test_rate_out_of_range_rejected(self):
        with pytest.raises(PercentageOutOfRangeError):
            self._terms(profit_rate=Decimal("101"))

    def test_unknown_frequency_rejected(self):
        with pytest.raises(InvalidInputError):
            self._terms(installment_frequency="fortnightly")


class TestPartnershipTerms:
    """Tests for silent partnership and joint venture terms."""

    def test_counterparty_share_defaults_to_complement(self):
        terms = SilentPartnershipTerms(capital_amount=ngn("1000000"), investor_profit_share_pct=60)
        assert terms.counterparty_profit_share_pct == Decimal("40")
        assert terms.contract_type == ContractType.SILENT_PARTNERSHIP

    def test_fractional_investor_share_complemented(self):
        terms = SilentPartnershipTerms(
            capital_amount=ngn("1000000"), investor_profit_share_pct=Decimal("62.5")
        )
        assert terms.counterparty_profit_share_pct == Percentage.of("62.5").complement.value
        assert terms.counterparty_profit_share_pct == Decimal("37.5")

    def test_shares_must_sum_to_hundred(self):
        """60 + 30 is rejected with both shares on the error."""
        with pytest.raises(ProfitShareMismatchError) as exc_info:
            SilentPartnershipTerms(
                capital_amount=ngn("1000000"),
                investor_profit_share_pct=Decimal("60"),
                counterparty_profit_share_pct=Decimal("30"),
            )
        assert exc_info.value.investor_share_pct == Decimal("60")
        assert exc_info.value.counterparty_share_pct == Decimal("30")

    def test_non_positive_duration_rejected(self):
        with pytest.raises(NonPositiveTermError):
            SilentPartnershipTerms(
                capital_amount=ngn("1000"), investor_profit_share_pct=50, duration_months=0
            )

    def test_joint_venture_contributions_must_sum_to_capital(self):
        with pytest.raises(InconsistentTermsError):
            JointVentureTerms(
                capital_amount=ngn("1000000"),
                investor_profit_share_pct=Decimal("70"),
                investor_capital=ngn("600000"),
                counterparty_capital=ngn("300000"),
            )

    def test_joint_venture_contributions_supplied_together(self):
        with pytest.raises(InvalidInputError):
            JointVentureTerms(
                capital_amount=ngn("1000000"),
                investor_profit_share_pct=Decimal("70"),
                investor_capital=ngn("600000"),
            )

    def test_joint_venture_with_contributions(self):
        terms = JointVentureTerms(
            capital_amount=ngn("1000000"),
            investor_profit_share_pct=Decimal("70"),
            investor_capital=ngn("600000"),
            counterparty_capital=ngn("400000"),
        )
        assert terms.has_capital_contributions
        assert terms.contract_type == ContractType.JOINT_VENTURE

    def test_joint_venture_without_contributions(self):
        terms = JointVentureTerms(
            capital_amount=ngn("1000000"), investor_profit_share_pct=Decimal("70")
        )
        assert not terms.has_capital_contributions


class TestLeaseTerms:
    """Tests for LeaseTerms."""

    def _terms(self, **overrides):
        values = {
            "asset_value": ngn("2000000"),
            "monthly_rental": ngn("120000"),
            "lease_term_months": 24,
            "contract_date": date(2024, 1, 1),
        }
        values.update(overrides)
        return LeaseTerms(**values)

    def test_total_rental(self):
        assert self._terms().total_rental == ngn("2880000")

    def test_purchase_option_requires_price(self):
        with pytest.raises(MissingPurchasePriceError) as exc_info:
            self._terms(purchase_option=True)
        assert exc_info.value.code == "PURCHASE_PRICE_REQUIRED"

    def test_purchase_option_with_price(self):
        terms = self._terms(purchase_option=True, purchase_price=ngn("200000"))
        assert terms.purchase_price == ngn("200000")

    def test_residual_above_asset_rejected(self):
        with pytest.raises(InconsistentTermsError):
            self._terms(residual_value=ngn("2000001"))

    def test_zero_term_rejected(self):
        with pytest.raises(NonPositiveTermError):
            self._terms(lease_term_months=0)

    def test_maintenance_responsibility_coerced(self):
        terms = self._terms(maintenance_responsibility="lessee")
        assert terms.maintenance_responsibility == MaintenanceResponsibility.LESSEE

    def test_rental_currency_must_match(self):
        with pytest.raises(CurrencyMismatchError):
            self._terms(monthly_rental=Money.of("100", "USD"))


class TestForwardSaleTerms:
    """Tests for ForwardSaleTerms."""

    def _terms(self, **overrides):
        values = {
            "quantity": Quantity.of("100", "tonnes"),
            "agreed_price": ngn("5000000"),
            "advance_payment": ngn("5000000"),
            "delivery_date": date(2024, 7, 1),
            "delivery_period_days": 180,
        }
        values.update(overrides)
        return ForwardSaleTerms(**values)

    def test_delivery_value_is_agreed_price(self):
        terms = self._terms()
        assert terms.delivery_value == ngn("5000000")
        assert terms.contract_type == ContractType.FORWARD_SALE

    def test_advance_mismatch_is_not_rejected(self):
        """A partial advance is valid terms; the calculator reports it."""
        terms = self._terms(advance_payment=ngn("4500000"))
        assert terms.advance_payment == ngn("4500000")

    def test_negative_quantity_rejected(self):
        with pytest.raises(NegativeAmountError):
            self._terms(quantity=Quantity.of("-1", "tonnes"))

    def test_quantity_type_required(self):
        with pytest.raises(InvalidInputError):
            self._terms(quantity=Decimal("100"))

    def test_payment_after_delivery_rejected(self):
        with pytest.raises(InconsistentTermsError):
            self._terms(payment_date=date(2024, 7, 2))

    def test_non_positive_delivery_period_rejected(self):
        with pytest.raises(NonPositiveTermError):
            self._terms(delivery_period_days=0)

    def test_penalty_rate_range(self):
        with pytest.raises(PercentageOutOfRangeError):
            self._terms(late_delivery_penalty_pct_per_day=Decimal("-0.1"))

"""
Tests for UnderwritingPolicy.

Covers:
- House defaults
- Validation of weights, bands and the amount cap
- Tier suggestion lookup
"""

from decimal import Decimal

import pytest

from contract_kernel.domain.policy import TierSuggestion, UnderwritingPolicy
from contract_kernel.domain.values import Money


class TestDefaults:
    """Tests for the house policy."""

    def setup_method(self):
        self.policy = UnderwritingPolicy.with_defaults()

    def test_weights(self):
        assert self.policy.due_diligence_weight == Decimal("0.3")
        assert self.policy.risk_weight == Decimal("0.7")

    def test_bands(self):
        assert self.policy.approve_min_score == Decimal("70")
        assert self.policy.conditional_min_score == Decimal("50")
        assert self.policy.request_info_min_score == Decimal("35")

    def test_tier_suggestions(self):
        assert self.policy.suggestion_for("low") == TierSuggestion(Decimal("10"), 24)
        assert self.policy.suggestion_for("medium") == TierSuggestion(Decimal("12"), 18)
        assert self.policy.suggestion_for("high") == TierSuggestion(Decimal("15"), 12)

    def test_unknown_tier_rejected(self):
        with pytest.raises(ValueError):
            self.policy.suggestion_for("extreme")

    def test_currency_from_cap(self):
        assert self.policy.currency == "NGN"

    def test_initialization_logged(self, captured_logs):
        UnderwritingPolicy(name="audit")
        records = [r for r in captured_logs() if r["message"] == "underwriting_policy_initialized"]
        assert records
        assert records[-1]["policy_name"] == "audit"


class TestValidation:
    """Tests for policy validation."""

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValueError, match="must equal 1"):
            UnderwritingPolicy(due_diligence_weight=Decimal("0.5"), risk_weight=Decimal("0.6"))

    def test_bands_must_be_ordered(self):
        with pytest.raises(ValueError, match="ordered"):
            UnderwritingPolicy(conditional_min_score=Decimal("80"))

    def test_negative_concern_limit_rejected(self):
        with pytest.raises(ValueError):
            UnderwritingPolicy(approve_max_concerns=-1)

    def test_cap_currency_must_match(self):
        with pytest.raises(ValueError, match="share a currency"):
            UnderwritingPolicy(high_risk_capped_amount=Money.of("3000000", "USD"))

    def test_capped_amount_not_above_ceiling(self):
        with pytest.raises(ValueError):
            UnderwritingPolicy(high_risk_capped_amount=Money.of("6000000", "NGN"))

    def test_tier_suggestion_validation(self):
        with pytest.raises(ValueError):
            TierSuggestion(Decimal("101"), 12)
        with pytest.raises(ValueError):
            TierSuggestion(Decimal("10"), 0)

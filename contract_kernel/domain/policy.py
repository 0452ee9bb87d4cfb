"""
Underwriting policy -- the tunable knobs of the recommendation rule chain.

Holds composite-score weights, decision bands, the suggested profit rate
and term per risk tier, and the high-risk amount ceiling.  Loaded from
YAML by ``contract_config``; ``with_defaults()`` gives the house policy
without touching the filesystem.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Self

from contract_kernel.domain.values import HUNDRED, ZERO, Money
from contract_kernel.logging_config import get_logger

logger = get_logger("domain.policy")

ONE = Decimal("1")


@dataclass(frozen=True)
class TierSuggestion:
    """Suggested pricing for one risk tier."""

    profit_rate_pct: Decimal
    term_months: int

    def __post_init__(self):
        if self.profit_rate_pct < ZERO or self.profit_rate_pct > HUNDRED:
            raise ValueError(f"profit_rate_pct must be in [0, 100], got {self.profit_rate_pct}")
        if self.term_months <= 0:
            raise ValueError(f"term_months must be positive, got {self.term_months}")


@dataclass(frozen=True)
class UnderwritingPolicy:
    """Configuration schema for the underwriting recommender."""

    name: str = "default"
    version: str = "1.0"

    # Composite score = dd * due_diligence_weight + risk * risk_weight
    due_diligence_weight: Decimal = Decimal("0.3")
    risk_weight: Decimal = Decimal("0.7")

    # Decision bands
    approve_min_score: Decimal = Decimal("70")
    approve_max_concerns: int = 2
    conditional_min_score: Decimal = Decimal("50")
    conditional_max_concerns: int = 4
    request_info_min_score: Decimal = Decimal("35")

    # Suggested pricing per risk tier
    low_risk: TierSuggestion = field(
        default_factory=lambda: TierSuggestion(Decimal("10"), 24)
    )
    medium_risk: TierSuggestion = field(
        default_factory=lambda: TierSuggestion(Decimal("12"), 18)
    )
    high_risk: TierSuggestion = field(
        default_factory=lambda: TierSuggestion(Decimal("15"), 12)
    )

    # High-risk requests above the ceiling are cut back to the capped amount
    high_risk_amount_ceiling: Money = field(
        default_factory=lambda: Money.of("5000000", "NGN")
    )
    high_risk_capped_amount: Money = field(
        default_factory=lambda: Money.of("3000000", "NGN")
    )

    def __post_init__(self):
        for name in ("due_diligence_weight", "risk_weight"):
            weight = getattr(self, name)
            if weight < ZERO or weight > ONE:
                raise ValueError(f"{name} must be in [0, 1], got {weight}")
        if self.due_diligence_weight + self.risk_weight != ONE:
            raise ValueError(
                "due_diligence_weight + risk_weight must equal 1, got "
                f"{self.due_diligence_weight + self.risk_weight}"
            )
        if not (
            self.approve_min_score >= self.conditional_min_score >= self.request_info_min_score >= ZERO
        ):
            raise ValueError(
                "decision bands must be ordered approve >= conditional >= request_info >= 0"
            )
        if self.approve_max_concerns < 0 or self.conditional_max_concerns < 0:
            raise ValueError("concern limits cannot be negative")
        if self.high_risk_amount_ceiling.currency != self.high_risk_capped_amount.currency:
            raise ValueError("amount ceiling and capped amount must share a currency")
        if self.high_risk_capped_amount > self.high_risk_amount_ceiling:
            raise ValueError("high_risk_capped_amount cannot exceed high_risk_amount_ceiling")

        logger.info(
            "underwriting_policy_initialized",
            extra={
                "policy_name": self.name,
                "policy_version": self.version,
                "approve_min_score": str(self.approve_min_score),
                "high_risk_amount_ceiling": str(self.high_risk_amount_ceiling.amount),
                "currency": self.currency,
            },
        )

    @property
    def currency(self) -> str:
        return self.high_risk_amount_ceiling.currency.code

    def suggestion_for(self, tier: str) -> TierSuggestion:
        """Suggested pricing for a risk tier value ("low", "medium", "high")."""
        match tier:
            case "low":
                return self.low_risk
            case "medium":
                return self.medium_risk
            case "high":
                return self.high_risk
            case _:
                raise ValueError(f"Unknown risk tier: {tier!r}")

    @classmethod
    def with_defaults(cls) -> Self:
        """House underwriting policy."""
        return cls()

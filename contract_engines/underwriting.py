"""
Module: contract_engines.underwriting
Responsibility:
    Rule-based underwriting recommendation.  Consumes a due-diligence
    checklist, a risk assessment and the financing request, and produces
    a decision, composite score, reasoning text, suggested pricing and
    the strengths / concerns / conditions annotations.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Tunable knobs come
    from an ``UnderwritingPolicy`` value object passed at construction.

Invariants enforced:
    - Any failed Shariah check forces ``reject`` whatever the score.
    - composite = due_diligence * 0.3 + risk_percentage * 0.7 (policy
      weights); bands are evaluated in order approve, conditional,
      request-info, reject.
    - Annotations never change the decision except through the number
      of concerns gating the approve and conditional bands.
    - Threshold annotations are ordered data tables, evaluated in table
      order, so the output lists are deterministic.
    - Recomputing with the same inputs yields an equal Recommendation.

Failure modes:
    - CurrencyMismatchError when a high-risk request is not in the
      policy's ceiling currency.
    - NegativeAmountError for a negative requested amount or years in
      operation.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from contract_engines.ratios import CreditRating, FinancialRatios, RiskAssessment, RiskTier
from contract_engines.tracer import traced_engine
from contract_kernel.domain.checklist import ChecklistCategory, DueDiligenceChecklist
from contract_kernel.domain.policy import UnderwritingPolicy
from contract_kernel.domain.terms import ContractType
from contract_kernel.domain.values import HUNDRED, Money, quantize_score
from contract_kernel.exceptions import CurrencyMismatchError, NegativeAmountError
from contract_kernel.logging_config import get_logger

logger = get_logger("engines.underwriting")

MILLION = Decimal("1000000")


class Decision(str, Enum):
    APPROVE = "approve"
    CONDITIONAL_APPROVE = "conditional-approve"
    REQUEST_INFO = "request-info"
    REJECT = "reject"


@dataclass(frozen=True)
class FinancingRequest:
    """What the applicant asked for."""

    requested_amount: Money
    requested_instrument: ContractType = ContractType.COST_PLUS
    years_in_operation: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "requested_instrument", ContractType(self.requested_instrument))
        if self.requested_amount.is_negative:
            raise NegativeAmountError("requested_amount", self.requested_amount.amount)
        if self.years_in_operation < 0:
            raise NegativeAmountError("years_in_operation", Decimal(self.years_in_operation))


@dataclass(frozen=True)
class Recommendation:
    decision: Decision
    composite_score: Decimal  # one decimal place
    due_diligence_score: int
    risk_percentage: Decimal
    risk_tier: RiskTier
    credit_rating: CreditRating
    reasoning: str
    strengths: tuple[str, ...]
    concerns: tuple[str, ...]
    conditions: tuple[str, ...]
    suggested_instrument: ContractType
    suggested_profit_rate_pct: Decimal
    suggested_term_months: int
    recommended_amount: Money


@dataclass(frozen=True)
class RatioAnnotation:
    """
    Strength / concern thresholds for one ratio.

    Higher-is-better: value >= strength_at is a strength, else value <
    concern_at is a concern.  Lower-is-better flips both comparisons.
    Templates take ``{value}``.
    """

    ratio: str
    strength_at: Decimal
    strength: str
    concern_at: Decimal
    concern: str
    condition: str | None = None
    higher_is_better: bool = True

    def evaluate(self, value: Decimal) -> tuple[str | None, str | None, str | None]:
        """(strength, concern, condition) texts; at most one of strength / concern."""
        shown = _display(value)
        if self.higher_is_better:
            is_strength, is_concern = value >= self.strength_at, value < self.concern_at
        else:
            is_strength, is_concern = value <= self.strength_at, value > self.concern_at
        if is_strength:
            return self.strength.format(value=shown), None, None
        if is_concern:
            return None, self.concern.format(value=shown), self.condition
        return None, None, None


RATIO_ANNOTATIONS: tuple[RatioAnnotation, ...] = (
    RatioAnnotation(
        "current_ratio",
        Decimal("2"), "Strong liquidity position (Current Ratio: {value})",
        Decimal("1"), "Weak liquidity (Current Ratio: {value})",
        condition="Require cash flow monitoring and liquidity improvement plan",
    ),
    RatioAnnotation(
        "debt_to_equity",
        Decimal("1"), "Healthy leverage (Debt-to-Equity: {value})",
        Decimal("2"), "High leverage risk (Debt-to-Equity: {value})",
        condition="Cap additional debt until ratio improves below 1.5",
        higher_is_better=False,
    ),
    RatioAnnotation(
        "return_on_equity",
        Decimal("15"), "Excellent profitability (ROE: {value}%)",
        Decimal("5"), "Low profitability (ROE: {value}%)",
    ),
    RatioAnnotation(
        "profit_margin",
        Decimal("15"), "Strong profit margins ({value}%)",
        Decimal("5"), "Thin profit margins ({value}%)",
    ),
)

# Due-diligence completion: strengths best first, then the concern floor
DUE_DILIGENCE_STRENGTHS: tuple[tuple[int, str], ...] = (
    (80, "Excellent due diligence completion ({score}%)"),
    (60, "Good due diligence progress ({score}%)"),
)
DUE_DILIGENCE_CONCERN_BELOW = 40

# Per tier: (is_strength, annotation, extra conditions)
TIER_ANNOTATIONS: dict[RiskTier, tuple[bool, str, tuple[str, ...]]] = {
    RiskTier.LOW: (True, "Low risk profile (Credit Rating: {rating})", ()),
    RiskTier.MEDIUM: (True, "Moderate risk profile (Credit Rating: {rating})", ()),
    RiskTier.HIGH: (False, "High risk profile (Credit Rating: {rating})", (
        "Require enhanced collateral coverage (minimum 150%)",
        "Monthly financial reporting and covenant monitoring",
    )),
}

SHARIAH_REJECT_REASON = "REJECT: Business activities not Shariah-compliant. "


def _display(value: Decimal) -> str:
    """Render a ratio without trailing zeros (2.50 -> 2.5, 3.00 -> 3)."""
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


class UnderwritingRecommender:
    """
    Deterministic underwriting rule chain.

    Contract:
        ``recommend`` is a pure function of its inputs and the policy.
        Strengths, concerns and conditions are appended in a fixed
        order: due diligence, ratios, risk tier, instrument, Shariah,
        legal, decision band, amount cap.
    """

    def __init__(self, policy: UnderwritingPolicy | None = None):
        self.policy = policy or UnderwritingPolicy.with_defaults()

    def due_diligence_score(self, checklist: DueDiligenceChecklist) -> int:
        """Passed checks over applicable (non-na) checks, whole percent; 0 when none apply."""
        applicable = checklist.applicable_count
        if applicable == 0:
            return 0
        pct = Decimal(checklist.passed_count) * HUNDRED / Decimal(applicable)
        return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def suggest_instrument(
        self, ratios: FinancialRatios, request: FinancingRequest
    ) -> tuple[ContractType, str, str | None]:
        """(instrument, reasoning fragment, condition) from the financial profile."""
        if (
            ratios.current_ratio >= Decimal("1.5")
            and ratios.debt_to_equity <= Decimal("1")
            and ratios.profit_margin >= Decimal("10")
        ):
            return (
                ContractType.COST_PLUS,
                "Murabaha recommended due to strong financial health and stable cash flows. ",
                None,
            )
        if ratios.return_on_equity >= Decimal("12") and request.years_in_operation >= 3:
            return (
                ContractType.JOINT_VENTURE,
                "Musharakah partnership suitable given established operations "
                "and profit track record. ",
                None,
            )
        if request.years_in_operation < 2:
            return (
                ContractType.SILENT_PARTNERSHIP,
                "Mudarabah structure appropriate for newer business with growth potential. ",
                "Platform takes active monitoring role as Rabb-ul-Mal",
            )
        return request.requested_instrument, "", None

    @traced_engine("underwriting_recommendation", "1.0",
                   fingerprint_fields=("checklist", "assessment", "request"))
    def recommend(
        self,
        checklist: DueDiligenceChecklist,
        assessment: RiskAssessment,
        request: FinancingRequest,
    ) -> Recommendation:
        policy = self.policy
        strengths: list[str] = []
        concerns: list[str] = []
        conditions: list[str] = []

        dd_score = self.due_diligence_score(checklist)
        for minimum, text in DUE_DILIGENCE_STRENGTHS:
            if dd_score >= minimum:
                strengths.append(text.format(score=dd_score))
                break
        else:
            if dd_score < DUE_DILIGENCE_CONCERN_BELOW:
                concerns.append(f"Incomplete due diligence ({dd_score}% completed)")
                conditions.append("Complete all required due diligence checks before approval")

        ratios = assessment.ratios
        for rule in RATIO_ANNOTATIONS:
            strength, concern, condition = rule.evaluate(getattr(ratios, rule.ratio))
            if strength:
                strengths.append(strength)
            if concern:
                concerns.append(concern)
            if condition:
                conditions.append(condition)

        tier = assessment.risk_tier
        is_strength, text, tier_conditions = TIER_ANNOTATIONS[tier]
        (strengths if is_strength else concerns).append(
            text.format(rating=assessment.credit_rating.value)
        )
        conditions.extend(tier_conditions)
        suggestion = policy.suggestion_for(tier.value)

        instrument, reasoning, instrument_condition = self.suggest_instrument(ratios, request)
        if instrument_condition:
            conditions.append(instrument_condition)

        decision = None
        if checklist.all_pass(ChecklistCategory.SHARIAH):
            strengths.append("Full Shariah compliance confirmed")
        elif checklist.has_failure(ChecklistCategory.SHARIAH):
            concerns.append("Shariah compliance issues identified")
            decision = Decision.REJECT
            reasoning = SHARIAH_REJECT_REASON + reasoning

        if checklist.has_failure(ChecklistCategory.LEGAL):
            concerns.append("Legal compliance deficiencies found")
            conditions.append("Resolve all legal and regulatory issues before disbursement")

        composite = (
            Decimal(dd_score) * policy.due_diligence_weight
            + assessment.percentage * policy.risk_weight
        )
        shown = quantize_score(composite)
        if decision is None:
            if composite >= policy.approve_min_score and len(concerns) <= policy.approve_max_concerns:
                decision = Decision.APPROVE
                reasoning = f"APPROVE: Strong overall assessment ({shown}/100). " + reasoning
            elif (
                composite >= policy.conditional_min_score
                and len(concerns) <= policy.conditional_max_concerns
            ):
                decision = Decision.CONDITIONAL_APPROVE
                reasoning = (
                    f"CONDITIONAL APPROVE: Acceptable risk with conditions ({shown}/100). "
                    + reasoning
                )
                conditions.append("Regular quarterly reviews for first 12 months")
            elif composite >= policy.request_info_min_score:
                decision = Decision.REQUEST_INFO
                reasoning = (
                    f"REQUEST MORE INFO: Insufficient data for decision ({shown}/100). "
                    + reasoning
                )
                conditions.append("Complete all due diligence items")
                conditions.append("Provide additional financial documentation")
            else:
                decision = Decision.REJECT
                reasoning = (
                    f"REJECT: High risk with insufficient mitigation ({shown}/100). " + reasoning
                )

        recommended_amount = self._cap_amount(tier, request.requested_amount, conditions)

        logger.info("underwriting_recommendation_generated", extra={
            "decision": decision.value,
            "composite_score": str(shown),
            "due_diligence_score": dd_score,
            "risk_tier": tier.value,
            "concern_count": len(concerns),
            "suggested_instrument": instrument.value,
        })

        return Recommendation(
            decision=decision,
            composite_score=shown,
            due_diligence_score=dd_score,
            risk_percentage=assessment.percentage,
            risk_tier=tier,
            credit_rating=assessment.credit_rating,
            reasoning=reasoning.strip(),
            strengths=tuple(strengths),
            concerns=tuple(concerns),
            conditions=tuple(conditions),
            suggested_instrument=instrument,
            suggested_profit_rate_pct=suggestion.profit_rate_pct,
            suggested_term_months=suggestion.term_months,
            recommended_amount=recommended_amount,
        )

    def _cap_amount(self, tier: RiskTier, requested: Money, conditions: list[str]) -> Money:
        if tier != RiskTier.HIGH:
            return requested
        ceiling = self.policy.high_risk_amount_ceiling
        if requested.currency != ceiling.currency:
            raise CurrencyMismatchError(
                "requested_amount", ceiling.currency.code, requested.currency.code
            )
        if requested <= ceiling:
            return requested

        capped = min(requested, self.policy.high_risk_capped_amount)
        millions = (capped.amount / MILLION).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        conditions.append(
            f"Reduce initial financing to {capped.currency.code} {millions}M due to risk profile"
        )
        logger.warning("underwriting_amount_capped", extra={
            "requested_amount": str(requested.amount),
            "recommended_amount": str(capped.amount),
        })
        return capped

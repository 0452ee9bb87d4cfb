"""
Module: contract_engines.ratios
Responsibility:
    Compute standard financial ratios from raw statement figures, score
    them against fixed band tables, and map the score to a risk tier and
    letter credit rating.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Every division is guarded: a zero denominator yields a ratio of
      0.00, never an exception, NaN or Infinity.
    - Ratios are reported to two decimal places (ROUND_HALF_UP) and the
      bands score the reported values.
    - Band tables are ordered data, best band first.  Raising a
      higher-is-better ratio (or lowering debt-to-equity) with the other
      ratios fixed never lowers the score.
    - The rating lookup uses the fixed breakpoints 85/75/65/55/45/35/25.

Failure modes:
    - NegativeAmountError for a negative statement figure.
    - InvalidInputError for a non-numeric statement figure.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from enum import Enum

from contract_engines.tracer import traced_engine
from contract_kernel.domain.values import (
    HUNDRED,
    ZERO,
    quantize_ratio,
    quantize_score,
    safe_divide,
    to_decimal,
)
from contract_kernel.exceptions import NegativeAmountError
from contract_kernel.logging_config import get_logger

logger = get_logger("engines.ratios")


class RiskTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CreditRating(str, Enum):
    A_PLUS = "A+"
    A = "A"
    B_PLUS = "B+"
    B = "B"
    B_MINUS = "B-"
    C_PLUS = "C+"
    C = "C"
    D = "D"


@dataclass(frozen=True)
class FinancialStatement:
    """Raw balance-sheet and income figures; every field defaults to 0."""

    current_assets: Decimal = ZERO
    current_liabilities: Decimal = ZERO
    total_assets: Decimal = ZERO
    total_liabilities: Decimal = ZERO
    total_equity: Decimal = ZERO
    revenue: Decimal = ZERO
    net_income: Decimal = ZERO
    operating_income: Decimal = ZERO
    inventory: Decimal = ZERO
    cost_of_goods_sold: Decimal = ZERO

    def __post_init__(self) -> None:
        for f in fields(self):
            value = to_decimal(getattr(self, f.name), f.name)
            if value < ZERO:
                raise NegativeAmountError(f.name, value)
            object.__setattr__(self, f.name, value)


@dataclass(frozen=True)
class FinancialRatios:
    """
    Derived ratios, two decimal places.

    Returns and margins are percentages (18 means 18%); current ratio,
    debt-to-equity and inventory turnover are plain multiples.
    """

    current_ratio: Decimal = ZERO
    debt_to_equity: Decimal = ZERO
    return_on_assets: Decimal = ZERO
    return_on_equity: Decimal = ZERO
    profit_margin: Decimal = ZERO
    operating_margin: Decimal = ZERO
    inventory_turnover: Decimal = ZERO

    def __post_init__(self) -> None:
        for f in fields(self):
            object.__setattr__(self, f.name, to_decimal(getattr(self, f.name), f.name))


@dataclass(frozen=True)
class RatioBandTable:
    """
    Points awarded for one ratio.

    ``bands`` is ordered best first: (threshold, points).  For a
    higher-is-better ratio the first band whose threshold the value
    meets or exceeds wins; otherwise the first whose threshold the value
    does not exceed.  No band matched means zero points.
    """

    ratio: str
    max_points: int
    bands: tuple[tuple[Decimal, int], ...]
    higher_is_better: bool = True

    def points(self, value: Decimal) -> int:
        for threshold, points in self.bands:
            if (value >= threshold) if self.higher_is_better else (value <= threshold):
                return points
        return 0


SCORE_BANDS: tuple[RatioBandTable, ...] = (
    RatioBandTable("current_ratio", 20, (
        (Decimal("2"), 20), (Decimal("1.5"), 15), (Decimal("1"), 10), (Decimal("0.5"), 5),
    )),
    RatioBandTable("debt_to_equity", 20, (
        (Decimal("0.5"), 20), (Decimal("1"), 15), (Decimal("2"), 10), (Decimal("3"), 5),
    ), higher_is_better=False),
    RatioBandTable("return_on_assets", 15, (
        (Decimal("10"), 15), (Decimal("5"), 10), (Decimal("2"), 5),
    )),
    RatioBandTable("return_on_equity", 15, (
        (Decimal("15"), 15), (Decimal("10"), 10), (Decimal("5"), 5),
    )),
    RatioBandTable("profit_margin", 15, (
        (Decimal("15"), 15), (Decimal("10"), 10), (Decimal("5"), 5),
    )),
    RatioBandTable("operating_margin", 15, (
        (Decimal("20"), 15), (Decimal("15"), 10), (Decimal("10"), 5),
    )),
)

MAX_SCORE = sum(table.max_points for table in SCORE_BANDS)

# (minimum percentage, tier, rating), best first; below the last row is (high, D)
RATING_BANDS: tuple[tuple[Decimal, RiskTier, CreditRating], ...] = (
    (Decimal("85"), RiskTier.LOW, CreditRating.A_PLUS),
    (Decimal("75"), RiskTier.LOW, CreditRating.A),
    (Decimal("65"), RiskTier.MEDIUM, CreditRating.B_PLUS),
    (Decimal("55"), RiskTier.MEDIUM, CreditRating.B),
    (Decimal("45"), RiskTier.MEDIUM, CreditRating.B_MINUS),
    (Decimal("35"), RiskTier.HIGH, CreditRating.C_PLUS),
    (Decimal("25"), RiskTier.HIGH, CreditRating.C),
)
FLOOR_RATING = (RiskTier.HIGH, CreditRating.D)


def rating_for(percentage: Decimal) -> tuple[RiskTier, CreditRating]:
    """Map a 0-100 percentage to its (tier, rating) band."""
    for minimum, tier, rating in RATING_BANDS:
        if percentage >= minimum:
            return tier, rating
    return FLOOR_RATING


@dataclass(frozen=True)
class RiskAssessment:
    score: int
    max_score: int
    percentage: Decimal  # one decimal place
    risk_tier: RiskTier
    credit_rating: CreditRating
    ratios: FinancialRatios
    breakdown: tuple[tuple[str, int], ...] = ()


class RatioAnalyzer:
    """
    Financial ratio calculator and risk scorer.

    Contract:
        ``compute_ratios`` is total over valid statements.  ``assess``
        scores a ratio set out of 100 and looks up the band; the band is
        chosen on the unrounded percentage and the percentage is reported
        to one decimal place.
    """

    @traced_engine("ratio_analysis", "1.0", fingerprint_fields=("statement",))
    def compute_ratios(self, statement: FinancialStatement) -> FinancialRatios:
        s = statement
        return FinancialRatios(
            current_ratio=quantize_ratio(safe_divide(s.current_assets, s.current_liabilities)),
            debt_to_equity=quantize_ratio(safe_divide(s.total_liabilities, s.total_equity)),
            return_on_assets=quantize_ratio(safe_divide(s.net_income * HUNDRED, s.total_assets)),
            return_on_equity=quantize_ratio(safe_divide(s.net_income * HUNDRED, s.total_equity)),
            profit_margin=quantize_ratio(safe_divide(s.net_income * HUNDRED, s.revenue)),
            operating_margin=quantize_ratio(safe_divide(s.operating_income * HUNDRED, s.revenue)),
            inventory_turnover=quantize_ratio(safe_divide(s.cost_of_goods_sold, s.inventory)),
        )

    def breakdown(self, ratios: FinancialRatios) -> tuple[tuple[str, int], ...]:
        return tuple(
            (table.ratio, table.points(getattr(ratios, table.ratio)))
            for table in SCORE_BANDS
        )

    def score(self, ratios: FinancialRatios) -> int:
        return sum(points for _, points in self.breakdown(ratios))

    @traced_engine("risk_assessment", "1.0", fingerprint_fields=("ratios",))
    def assess(self, ratios: FinancialRatios) -> RiskAssessment:
        breakdown = self.breakdown(ratios)
        score = sum(points for _, points in breakdown)
        percentage = Decimal(score) * HUNDRED / Decimal(MAX_SCORE)
        tier, rating = rating_for(percentage)

        logger.info("risk_assessed", extra={
            "score": score,
            "percentage": str(quantize_score(percentage)),
            "risk_tier": tier.value,
            "credit_rating": rating.value,
        })
        return RiskAssessment(
            score=score,
            max_score=MAX_SCORE,
            percentage=quantize_score(percentage),
            risk_tier=tier,
            credit_rating=rating,
            ratios=ratios,
            breakdown=breakdown,
        )

    def analyze(self, statement: FinancialStatement) -> RiskAssessment:
        """Ratios then assessment in one call."""
        return self.assess(self.compute_ratios(statement))

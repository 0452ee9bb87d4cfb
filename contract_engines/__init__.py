"""
Module: contract_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    contract calculators.  This is the canonical import surface for
    callers (form layers, review screens, report builders).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import contract_kernel (and sibling engine modules).

Invariants enforced:
    - Purity: engines never read the clock directly.  The forward-sale
      calculator takes an injected Clock or an explicit ``as_of`` date.
    - Decimal-only arithmetic: all monetary amounts use ``Decimal``.
    - Determinism: identical inputs always produce identical outputs.

Failure modes:
    - ContractEngineError subclasses propagated from individual engines
      on invalid input or inconsistent progress counters.

Audit relevance:
    Every engine entry point is traced via ``@traced_engine`` (see
    ``contract_engines.tracer``), emitting CONTRACT_ENGINE_TRACE log
    records with engine name, version, input fingerprint and duration.

Usage:
    from contract_engines import CostPlusSchedule, ProfitLossDistributor
    from contract_engines import RatioAnalyzer, UnderwritingRecommender
"""

from contract_engines.allocation import (
    AllocationEngine,
    AllocationLine,
    AllocationMethod,
    AllocationResult,
    AllocationTarget,
)
from contract_engines.dispatch import (
    CALCULATORS,
    CalculatorEntry,
    compute_metrics,
    generate_schedule,
)
from contract_engines.distribution import (
    DistributionRule,
    InvestorPayout,
    PartnershipMetrics,
    PartyRole,
    PartyShare,
    ProfitLossDistributor,
    ProfitLossResult,
)
from contract_engines.forward_sale import (
    DeliveryProgress,
    ForwardSaleMetrics,
    ForwardSaleSummary,
)
from contract_engines.ratios import (
    CreditRating,
    FinancialRatios,
    FinancialStatement,
    RatioAnalyzer,
    RiskAssessment,
    RiskTier,
)
from contract_engines.schedules import (
    CostPlusMetrics,
    CostPlusSchedule,
    EarlySettlement,
    LeaseMetrics,
    LeaseSchedule,
    PaymentScheduleEntry,
    RentalProgress,
    add_months,
)
from contract_engines.tracer import compute_input_fingerprint, traced_engine
from contract_engines.underwriting import (
    Decision,
    FinancingRequest,
    Recommendation,
    UnderwritingRecommender,
)

__all__ = [
    # Allocation
    "AllocationEngine",
    "AllocationLine",
    "AllocationMethod",
    "AllocationResult",
    "AllocationTarget",
    # Dispatch
    "CALCULATORS",
    "CalculatorEntry",
    "compute_metrics",
    "generate_schedule",
    # Distribution
    "DistributionRule",
    "InvestorPayout",
    "PartnershipMetrics",
    "PartyRole",
    "PartyShare",
    "ProfitLossDistributor",
    "ProfitLossResult",
    # Forward sale
    "DeliveryProgress",
    "ForwardSaleMetrics",
    "ForwardSaleSummary",
    # Ratios
    "CreditRating",
    "FinancialRatios",
    "FinancialStatement",
    "RatioAnalyzer",
    "RiskAssessment",
    "RiskTier",
    # Schedules
    "CostPlusMetrics",
    "CostPlusSchedule",
    "EarlySettlement",
    "LeaseMetrics",
    "LeaseSchedule",
    "PaymentScheduleEntry",
    "RentalProgress",
    "add_months",
    # Tracer
    "compute_input_fingerprint",
    "traced_engine",
    # Underwriting
    "Decision",
    "FinancingRequest",
    "Recommendation",
    "UnderwritingRecommender",
]

"""
Kernel domain layer -- pure value objects shared by every calculator.

No I/O, no clock reads outside ``clock.py``, no engine imports.
"""

from contract_kernel.domain.advisory import Advisory
from contract_kernel.domain.checklist import (
    DEFAULT_CHECKS,
    CheckStatus,
    ChecklistCategory,
    DueDiligenceChecklist,
)
from contract_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from contract_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from contract_kernel.domain.policy import TierSuggestion, UnderwritingPolicy
from contract_kernel.domain.terms import (
    ContractTerms,
    ContractType,
    CostPlusTerms,
    DistributionFrequency,
    ForwardSaleTerms,
    InstallmentFrequency,
    JointVentureTerms,
    LatePaymentPolicy,
    LeaseTerms,
    MaintenanceResponsibility,
    PartnershipTerms,
    PaymentStructure,
    SilentPartnershipTerms,
)
from contract_kernel.domain.values import (
    HUNDRED,
    ZERO,
    Currency,
    Money,
    Percentage,
    Quantity,
    quantize_ratio,
    quantize_score,
    safe_divide,
    to_decimal,
)

__all__ = [
    "Advisory",
    "CheckStatus",
    "ChecklistCategory",
    "Clock",
    "ContractTerms",
    "ContractType",
    "CostPlusTerms",
    "Currency",
    "CurrencyInfo",
    "CurrencyRegistry",
    "DEFAULT_CHECKS",
    "DeterministicClock",
    "DistributionFrequency",
    "DueDiligenceChecklist",
    "ForwardSaleTerms",
    "HUNDRED",
    "InstallmentFrequency",
    "JointVentureTerms",
    "LatePaymentPolicy",
    "LeaseTerms",
    "MaintenanceResponsibility",
    "Money",
    "PartnershipTerms",
    "PaymentStructure",
    "Percentage",
    "Quantity",
    "SilentPartnershipTerms",
    "SystemClock",
    "TierSuggestion",
    "UnderwritingPolicy",
    "ZERO",
    "quantize_ratio",
    "quantize_score",
    "safe_divide",
    "to_decimal",
]

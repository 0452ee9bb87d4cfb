"""
Module: contract_engines.dispatch
Responsibility:
    Route a terms snapshot to its calculators by the contract-type
    discriminant.  One table, keyed by ContractType, so a reporting
    collaborator never needs to know which class handles which archetype.

Architecture position:
    Engines -- pure routing over the calculator instances.

Failure modes:
    - InvalidInputError when a schedule is requested for an archetype
      that has none (partnerships, forward sale), or for an object that
      is not a contract-terms record.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from contract_engines.distribution import ProfitLossDistributor
from contract_engines.forward_sale import ForwardSaleMetrics
from contract_engines.schedules import (
    CostPlusSchedule,
    LeaseSchedule,
    PaymentScheduleEntry,
)
from contract_kernel.domain.terms import ContractTerms, ContractType
from contract_kernel.exceptions import InvalidInputError


@dataclass(frozen=True)
class CalculatorEntry:
    """Calculators for one archetype; ``schedule`` is None when it has no schedule."""

    metrics: Callable[..., Any]
    schedule: Callable[[ContractTerms], tuple[PaymentScheduleEntry, ...]] | None = None


_cost_plus = CostPlusSchedule()
_lease = LeaseSchedule()
_distributor = ProfitLossDistributor()
_forward_sale = ForwardSaleMetrics()

CALCULATORS: Mapping[ContractType, CalculatorEntry] = MappingProxyType({
    ContractType.COST_PLUS: CalculatorEntry(_cost_plus.metrics, _cost_plus.generate),
    ContractType.SILENT_PARTNERSHIP: CalculatorEntry(_distributor.metrics),
    ContractType.JOINT_VENTURE: CalculatorEntry(_distributor.metrics),
    ContractType.LEASE: CalculatorEntry(_lease.metrics, _lease.generate),
    ContractType.FORWARD_SALE: CalculatorEntry(_forward_sale.compute),
})


def _entry_for(terms: ContractTerms) -> CalculatorEntry:
    contract_type = getattr(terms, "contract_type", None)
    if contract_type not in CALCULATORS:
        raise InvalidInputError(
            "terms", f"{type(terms).__name__} is not a contract-terms record"
        )
    return CALCULATORS[contract_type]


def generate_schedule(terms: ContractTerms) -> tuple[PaymentScheduleEntry, ...]:
    """Payment schedule for cost-plus or lease terms."""
    entry = _entry_for(terms)
    if entry.schedule is None:
        raise InvalidInputError(
            "terms",
            f"{terms.contract_type.value} contracts have no payment schedule",
        )
    return entry.schedule(terms)


def compute_metrics(terms: ContractTerms, **options: Any) -> Any:
    """
    Summary metrics for any archetype.

    ``options`` pass through to the archetype's calculator:
    ``actual_profit`` for partnerships, ``as_of`` for forward sales.
    """
    return _entry_for(terms).metrics(terms, **options)

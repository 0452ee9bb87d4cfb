"""
Module: contract_engines.allocation
Responsibility:
    Split a monetary amount across several targets (installments,
    partners, investors) by pro-rata eligible amount, explicit weight or
    equal shares, with deterministic rounding.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import contract_kernel.

Invariants enforced:
    - Conservation: sum of allocated amounts == source amount exactly.
    - Rounding: every share except one is truncated to the currency's
      minor unit; the designated rounding target absorbs the residual,
      so no minor unit is created or lost.
    - Sign: truncation never overshoots, so for a non-negative amount
      every share, the residual included, is non-negative and the
      residual exceeds the target's exact share by less than one minor
      unit per target.
    - Currency consistency across source and targets.
    - Purity: no clock access, no I/O.

Failure modes:
    - CurrencyMismatchError when a target's eligible amount is in another
      currency.
    - InvalidInputError on zero total weight, a missing eligible amount
      for pro-rata, or an out-of-range rounding target.
    - NegativeAmountError on a negative weight.

Usage:
    from contract_engines.allocation import AllocationEngine, AllocationTarget, AllocationMethod
    from contract_kernel.domain.values import Money

    engine = AllocationEngine()
    result = engine.allocate(
        amount=Money.of("1000.00", "NGN"),
        targets=[
            AllocationTarget(target_id="investor-1", eligible_amount=Money.of("300.00", "NGN")),
            AllocationTarget(target_id="investor-2", eligible_amount=Money.of("700.00", "NGN")),
        ],
        method=AllocationMethod.PRORATA,
    )
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from enum import Enum

from contract_engines.tracer import traced_engine
from contract_kernel.domain.values import ZERO, Money
from contract_kernel.exceptions import (
    CurrencyMismatchError,
    InvalidInputError,
    NegativeAmountError,
)
from contract_kernel.logging_config import get_logger

logger = get_logger("engines.allocation")


class AllocationMethod(str, Enum):
    """Method for allocating amounts."""

    PRORATA = "prorata"  # By relative eligible amount
    WEIGHTED = "weighted"  # By explicit weight factor
    EQUAL = "equal"  # Split evenly


@dataclass(frozen=True)
class AllocationTarget:
    """
    A recipient of an allocation.

    Guarantees:
        - ``weight`` is non-negative.
    Non-goals:
        - Does not validate currency of ``eligible_amount``; the engine
          performs that check at allocation time.
    """

    target_id: str
    eligible_amount: Money | None = None
    weight: Decimal = Decimal("1")

    def __post_init__(self) -> None:
        if self.weight < ZERO:
            raise NegativeAmountError("weight", self.weight)


@dataclass(frozen=True)
class AllocationLine:
    """Result of allocation to a single target."""

    target_id: str
    allocated: Money
    ratio: Decimal  # unrounded share of the source amount, in [0, 1]
    is_rounding_target: bool = False


@dataclass(frozen=True)
class AllocationResult:
    """
    Complete allocation result.

    Guarantees:
        - ``total_allocated + unallocated == source_amount``.
        - ``rounding_adjustment`` records the deterministic residual
          assigned to the rounding target.
    """

    source_amount: Money
    method: AllocationMethod
    lines: tuple[AllocationLine, ...]
    total_allocated: Money
    unallocated: Money
    rounding_adjustment: Money


class AllocationEngine:
    """
    Allocate amounts across multiple targets.

    Contract:
        Pure functions with deterministic rounding.
    Guarantees:
        - All intermediate calculations use full precision.
        - Final amounts truncated to currency decimal places (ROUND_DOWN).
        - Rounding difference assigned to the designated target (last by
          default), so the total allocated always equals the source.
    Non-goals:
        - Does not decide *which* method to use; callers select it.
    """

    @traced_engine("allocation", "1.0", fingerprint_fields=("amount", "method"))
    def allocate(
        self,
        amount: Money,
        targets: Sequence[AllocationTarget],
        method: AllocationMethod,
        rounding_target_index: int | None = None,
    ) -> AllocationResult:
        """
        Allocate amount to targets using the specified method.

        Args:
            amount: Amount to allocate.
            targets: Sequence of allocation targets.
            method: Allocation method to use.
            rounding_target_index: Which target absorbs the rounding
                residual (default: last).
        """
        logger.debug("allocation_started", extra={
            "amount": str(amount.amount),
            "currency": amount.currency.code,
            "method": method.value,
            "target_count": len(targets),
        })

        if not targets:
            logger.warning("allocation_no_targets", extra={
                "amount": str(amount.amount),
                "method": method.value,
            })
            return AllocationResult(
                source_amount=amount,
                method=method,
                lines=(),
                total_allocated=Money.zero(amount.currency),
                unallocated=amount,
                rounding_adjustment=Money.zero(amount.currency),
            )

        if rounding_target_index is None:
            rounding_target_index = len(targets) - 1
        if not 0 <= rounding_target_index < len(targets):
            raise InvalidInputError(
                "rounding_target_index",
                f"rounding_target_index {rounding_target_index} out of range "
                f"for {len(targets)} targets",
            )

        match method:
            case AllocationMethod.PRORATA:
                return self._allocate_prorata(amount, targets, rounding_target_index)
            case AllocationMethod.WEIGHTED:
                return self._allocate_weighted(amount, targets, rounding_target_index)
            case AllocationMethod.EQUAL:
                return self._allocate_equal(amount, targets, rounding_target_index)
            case _:
                raise InvalidInputError("method", f"Unknown allocation method: {method}")

    def _allocate_prorata(
        self,
        amount: Money,
        targets: Sequence[AllocationTarget],
        rounding_target_index: int,
    ) -> AllocationResult:
        """Allocate proportionally by eligible amount."""
        total_eligible = ZERO
        for target in targets:
            if target.eligible_amount is None:
                raise InvalidInputError(
                    "eligible_amount",
                    f"Target {target.target_id} missing eligible_amount for prorata",
                )
            if target.eligible_amount.currency != amount.currency:
                raise CurrencyMismatchError(
                    "eligible_amount",
                    amount.currency.code,
                    target.eligible_amount.currency.code,
                )
            total_eligible += target.eligible_amount.amount

        if total_eligible == ZERO:
            # Nothing eligible, leave the whole amount unallocated
            zero = Money.zero(amount.currency)
            return AllocationResult(
                source_amount=amount,
                method=AllocationMethod.PRORATA,
                lines=tuple(
                    AllocationLine(target_id=t.target_id, allocated=zero, ratio=ZERO)
                    for t in targets
                ),
                total_allocated=zero,
                unallocated=amount,
                rounding_adjustment=zero,
            )

        return self._allocate_by_ratio(
            amount=amount,
            targets=targets,
            method=AllocationMethod.PRORATA,
            get_weight=lambda t: t.eligible_amount.amount,
            total_weight=total_eligible,
            rounding_target_index=rounding_target_index,
        )

    def _allocate_weighted(
        self,
        amount: Money,
        targets: Sequence[AllocationTarget],
        rounding_target_index: int,
    ) -> AllocationResult:
        """Allocate by explicit weight factors."""
        total_weight = sum((t.weight for t in targets), ZERO)

        if total_weight == ZERO:
            raise InvalidInputError("weight", "Total weight cannot be zero")

        return self._allocate_by_ratio(
            amount=amount,
            targets=targets,
            method=AllocationMethod.WEIGHTED,
            get_weight=lambda t: t.weight,
            total_weight=total_weight,
            rounding_target_index=rounding_target_index,
        )

    def _allocate_equal(
        self,
        amount: Money,
        targets: Sequence[AllocationTarget],
        rounding_target_index: int,
    ) -> AllocationResult:
        """Allocate equally to all targets."""
        count = Decimal(len(targets))
        return self._allocate_by_ratio(
            amount=amount,
            targets=targets,
            method=AllocationMethod.EQUAL,
            get_weight=lambda t: Decimal("1"),
            total_weight=count,
            rounding_target_index=rounding_target_index,
        )

    def _allocate_by_ratio(
        self,
        amount: Money,
        targets: Sequence[AllocationTarget],
        method: AllocationMethod,
        get_weight: Callable[[AllocationTarget], Decimal],
        total_weight: Decimal,
        rounding_target_index: int,
    ) -> AllocationResult:
        """Common logic for ratio-based allocations.

        Preconditions:
            - ``targets`` is non-empty.
            - ``get_weight`` returns a non-negative Decimal for each target
              and the weights sum to ``total_weight`` (non-zero).
            - Each share is computed as ``amount * weight / total_weight``,
              multiplying first, so exact divisions stay exact before
              truncation.
        Postconditions:
            - Sum of all ``allocated`` amounts == ``amount`` (the rounding
              target absorbs the residual).
        """
        currency = amount.currency
        minor_unit = currency.minor_unit

        rounded: dict[int, Decimal] = {}
        for i, target in enumerate(targets):
            if i != rounding_target_index:
                rounded[i] = (amount.amount * get_weight(target) / total_weight).quantize(
                    minor_unit, rounding=ROUND_DOWN
                )
        residual = amount.amount - sum(rounded.values(), ZERO)

        lines = tuple(
            AllocationLine(
                target_id=target.target_id,
                allocated=Money(rounded.get(i, residual), currency),
                ratio=get_weight(target) / total_weight,
                is_rounding_target=i == rounding_target_index,
            )
            for i, target in enumerate(targets)
        )

        total_allocated = Money(sum((line.allocated.amount for line in lines), ZERO), currency)
        unallocated = amount - total_allocated

        assert total_allocated.amount + unallocated.amount == amount.amount, (
            f"Allocation conservation violated: "
            f"{total_allocated.amount} + {unallocated.amount} != {amount.amount}"
        )

        naive = (
            amount.amount * get_weight(targets[rounding_target_index]) / total_weight
        ).quantize(minor_unit, rounding=ROUND_DOWN)
        rounding_adjustment = Money(residual - naive, currency)

        logger.debug("allocation_by_ratio_completed", extra={
            "method": method.value,
            "source_amount": str(amount.amount),
            "total_allocated": str(total_allocated.amount),
            "rounding_adjustment": str(rounding_adjustment.amount),
            "line_count": len(lines),
        })

        return AllocationResult(
            source_amount=amount,
            method=method,
            lines=lines,
            total_allocated=total_allocated,
            unallocated=unallocated,
            rounding_adjustment=rounding_adjustment,
        )

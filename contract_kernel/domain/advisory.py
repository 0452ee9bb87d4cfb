"""
Advisory -- non-fatal findings returned alongside calculation results.

An advisory never blocks a calculation.  It records something a human
reviewer should look at (a Salam advance below the delivery value, a
joint-venture loss split approximated by the profit ratio) and travels on
the result record so that whoever persists the result persists the
finding with it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Advisory codes
ADVANCE_BELOW_DELIVERY_VALUE = "ADVANCE_BELOW_DELIVERY_VALUE"
ADVANCE_ABOVE_DELIVERY_VALUE = "ADVANCE_ABOVE_DELIVERY_VALUE"
LOSS_SPLIT_APPROXIMATED = "LOSS_SPLIT_APPROXIMATED"
CAPITAL_GUARANTEE_DECLARED = "CAPITAL_GUARANTEE_DECLARED"
MARKUP_ABOVE_GUIDELINE = "MARKUP_ABOVE_GUIDELINE"
RENTAL_ABOVE_GUIDELINE = "RENTAL_ABOVE_GUIDELINE"


@dataclass(frozen=True)
class Advisory:
    """
    A single non-fatal finding.

    Attributes:
        code: Machine-readable advisory code (module-level constants above).
        message: Human-readable explanation.
        details: Structured context (amounts as strings).
    """

    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict, hash=False)

"""
Due-diligence checklist -- six fixed categories of named checks.

Each check holds one of pass / fail / na / unknown.  The checklist is an
immutable snapshot: ``with_status`` returns a new checklist, so a
recommendation computed from one snapshot can never drift when a reviewer
ticks another box.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from contract_kernel.exceptions import InvalidInputError


class CheckStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    NA = "na"
    UNKNOWN = "unknown"


class ChecklistCategory(str, Enum):
    FINANCIAL = "financial"
    LEGAL = "legal"
    IDENTITY = "identity"
    OPERATIONAL = "operational"
    COLLATERAL = "collateral"
    SHARIAH = "shariah"


DEFAULT_CHECKS: Mapping[ChecklistCategory, tuple[str, ...]] = MappingProxyType({
    ChecklistCategory.FINANCIAL: (
        "financial_statements_reviewed",
        "bank_statements_verified",
        "cash_flow_analyzed",
        "debt_equity_ratio_acceptable",
        "profitability_acceptable",
    ),
    ChecklistCategory.LEGAL: (
        "business_registration_valid",
        "licenses_verified",
        "tax_compliance_confirmed",
        "regulatory_approvals_obtained",
    ),
    ChecklistCategory.IDENTITY: (
        "bvn_verified",
        "identity_documents_valid",
        "background_check_cleared",
        "ownership_structure_confirmed",
    ),
    ChecklistCategory.OPERATIONAL: (
        "business_viability_confirmed",
        "industry_analysis_completed",
        "business_model_assessed",
        "market_position_evaluated",
    ),
    ChecklistCategory.COLLATERAL: (
        "asset_valuation_completed",
        "title_documents_verified",
        "insurance_coverage_confirmed",
        "legal_encumbrances_checked",
    ),
    ChecklistCategory.SHARIAH: (
        "business_activities_halal",
        "no_interest_based_operations",
        "no_prohibited_sectors",
    ),
})


def _coerce_category(value: ChecklistCategory | str) -> ChecklistCategory:
    try:
        return ChecklistCategory(value)
    except ValueError as e:
        raise InvalidInputError("category", f"Unknown checklist category: {value!r}") from e


def _coerce_status(check: str, value: CheckStatus | str) -> CheckStatus:
    try:
        return CheckStatus(value)
    except ValueError as e:
        raise InvalidInputError(check, f"Unknown status for {check}: {value!r}") from e


@dataclass(frozen=True)
class DueDiligenceChecklist:
    """
    Immutable checklist snapshot.

    Contract:
        ``categories`` maps a category to its named checks.  A category
        may be missing or empty; it then contributes nothing to the
        completion score.  Raw strings are accepted and coerced.

    Guarantees:
        - Every key is a ChecklistCategory and every status a CheckStatus.
        - The stored mappings are read-only.
    """

    categories: Mapping[ChecklistCategory, Mapping[str, CheckStatus]] = field(
        default_factory=dict, hash=False
    )

    def __post_init__(self) -> None:
        normalized: dict[ChecklistCategory, Mapping[str, CheckStatus]] = {}
        for raw_category, checks in self.categories.items():
            category = _coerce_category(raw_category)
            normalized[category] = MappingProxyType({
                name: _coerce_status(name, status) for name, status in checks.items()
            })
        object.__setattr__(self, "categories", MappingProxyType(normalized))

    @classmethod
    def blank(cls) -> DueDiligenceChecklist:
        """Every default check in every category, all unknown."""
        return cls({
            category: {name: CheckStatus.UNKNOWN for name in names}
            for category, names in DEFAULT_CHECKS.items()
        })

    def with_status(
        self,
        category: ChecklistCategory | str,
        check: str,
        status: CheckStatus | str,
    ) -> DueDiligenceChecklist:
        """New checklist with one check set; unlisted checks are added."""
        category = _coerce_category(category)
        updated = {cat: dict(checks) for cat, checks in self.categories.items()}
        updated.setdefault(category, {})[check] = _coerce_status(check, status)
        return DueDiligenceChecklist(updated)

    def statuses(self, category: ChecklistCategory | str) -> Mapping[str, CheckStatus]:
        return self.categories.get(_coerce_category(category), MappingProxyType({}))

    def iter_statuses(self) -> Iterator[CheckStatus]:
        for checks in self.categories.values():
            yield from checks.values()

    def has_failure(self, category: ChecklistCategory | str) -> bool:
        return any(s == CheckStatus.FAIL for s in self.statuses(category).values())

    def all_pass(self, category: ChecklistCategory | str) -> bool:
        """True when the category has checks and every one passed."""
        checks = self.statuses(category)
        return bool(checks) and all(s == CheckStatus.PASS for s in checks.values())

    @property
    def passed_count(self) -> int:
        return sum(1 for s in self.iter_statuses() if s == CheckStatus.PASS)

    @property
    def applicable_count(self) -> int:
        """Checks not marked na (unknown counts as applicable)."""
        return sum(1 for s in self.iter_statuses() if s != CheckStatus.NA)

"""
Configuration Loader (``contract_config.loader``).

Responsibility
--------------
Loads an underwriting-policy YAML file and parses it into the kernel's
``UnderwritingPolicy`` value object.  Runtime callers go through
``contract_config.get_active_policy()``; this module is the parsing
half, exposed for tooling and tests.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends on the kernel's
domain types; the kernel and the engines never import this package.

Invariants enforced
-------------------
* Every parse error raises ``ValueError`` or ``KeyError`` with a
  descriptive message; no silent defaults for required keys.
* Numbers are parsed to ``Decimal`` through their string form, never
  kept as binary floats.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Non-numeric or out-of-range values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from contract_kernel.domain.policy import TierSuggestion, UnderwritingPolicy
from contract_kernel.domain.values import Money
from contract_kernel.exceptions import InvalidInputError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level, got {type(data).__name__}")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization (sorted keys)."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _decimal(value: Any, key: str) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"{key}: expected a number, got {value!r}")
    try:
        result = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"{key}: expected a number, got {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"{key}: expected a finite number, got {value!r}")
    return result


def _int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key}: expected an integer, got {value!r}")
    return value


def _money(value: Any, currency: str, key: str) -> Money:
    try:
        return Money.of(_decimal(value, key), currency)
    except InvalidInputError as e:
        raise ValueError(f"{key}: {e}") from e


def parse_tier(data: dict[str, Any], tier: str) -> TierSuggestion:
    return TierSuggestion(
        profit_rate_pct=_decimal(data["profit_rate_pct"], f"risk_tiers.{tier}.profit_rate_pct"),
        term_months=_int(data["term_months"], f"risk_tiers.{tier}.term_months"),
    )


def parse_underwriting_policy(data: dict[str, Any]) -> UnderwritingPolicy:
    """
    Parse a policy document into an ``UnderwritingPolicy``.

    Raises:
        KeyError: if a required section or key is missing.
        ValueError: if a value is malformed or the policy is inconsistent.
    """
    currency = str(data["currency"])
    weights = data["weights"]
    bands = data["decision_bands"]
    tiers = data["risk_tiers"]
    cap = data["amount_cap"]

    return UnderwritingPolicy(
        name=str(data["name"]),
        version=str(data["version"]),
        due_diligence_weight=_decimal(weights["due_diligence"], "weights.due_diligence"),
        risk_weight=_decimal(weights["risk"], "weights.risk"),
        approve_min_score=_decimal(
            bands["approve"]["min_score"], "decision_bands.approve.min_score"
        ),
        approve_max_concerns=_int(
            bands["approve"]["max_concerns"], "decision_bands.approve.max_concerns"
        ),
        conditional_min_score=_decimal(
            bands["conditional_approve"]["min_score"],
            "decision_bands.conditional_approve.min_score",
        ),
        conditional_max_concerns=_int(
            bands["conditional_approve"]["max_concerns"],
            "decision_bands.conditional_approve.max_concerns",
        ),
        request_info_min_score=_decimal(
            bands["request_info"]["min_score"], "decision_bands.request_info.min_score"
        ),
        low_risk=parse_tier(tiers["low"], "low"),
        medium_risk=parse_tier(tiers["medium"], "medium"),
        high_risk=parse_tier(tiers["high"], "high"),
        high_risk_amount_ceiling=_money(cap["ceiling"], currency, "amount_cap.ceiling"),
        high_risk_capped_amount=_money(
            cap["capped_amount"], currency, "amount_cap.capped_amount"
        ),
    )


def load_underwriting_policy(path: Path | str) -> UnderwritingPolicy:
    """Load and parse a policy YAML file."""
    return parse_underwriting_policy(load_yaml_file(Path(path)))

"""
Tests for YAML-driven underwriting policy loading.

Covers:
- The packaged default policy matches the house defaults
- get_active_policy trace record and checksum
- Parse errors for missing keys and malformed values
"""

from copy import deepcopy
from decimal import Decimal

import pytest
import yaml

from contract_config import DEFAULT_POLICY_PATH, get_active_policy
from contract_config.loader import (
    compute_checksum,
    load_underwriting_policy,
    load_yaml_file,
    parse_underwriting_policy,
)
from contract_kernel.domain.policy import UnderwritingPolicy
from contract_kernel.domain.values import Money


@pytest.fixture
def default_document():
    return load_yaml_file(DEFAULT_POLICY_PATH)


def _write(tmp_path, data, name="policy.yaml"):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data))
    return path


class TestDefaultPolicy:
    """The packaged YAML agrees with the in-code defaults."""

    def test_packaged_policy_equals_defaults(self):
        assert load_underwriting_policy(DEFAULT_POLICY_PATH) == UnderwritingPolicy.with_defaults()

    def test_values_are_decimal(self, default_document):
        policy = parse_underwriting_policy(default_document)
        assert isinstance(policy.due_diligence_weight, Decimal)
        assert policy.high_risk_amount_ceiling == Money.of("5000000", "NGN")


class TestGetActivePolicy:
    """Tests for the single configuration entrypoint."""

    def test_default_path(self):
        assert get_active_policy().name == "default"

    def test_trace_record(self, captured_logs, default_document):
        get_active_policy()
        trace = [r for r in captured_logs() if r["message"] == "CONTRACT_CONFIG_TRACE"][-1]
        assert trace["policy_name"] == "default"
        assert trace["policy_version"] == "1.0"
        assert trace["checksum"] == compute_checksum(default_document)

    def test_custom_path(self, tmp_path, default_document):
        data = deepcopy(default_document)
        data["name"] = "sme-pilot"
        data["decision_bands"]["approve"]["min_score"] = 75
        policy = get_active_policy(_write(tmp_path, data))
        assert policy.name == "sme-pilot"
        assert policy.approve_min_score == Decimal("75")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_policy(tmp_path / "absent.yaml")


class TestChecksum:
    """Tests for compute_checksum."""

    def test_key_order_irrelevant(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_changes_with_content(self, default_document):
        changed = deepcopy(default_document)
        changed["version"] = "1.1"
        assert compute_checksum(changed) != compute_checksum(default_document)


class TestParseErrors:
    """Tests for malformed policy documents."""

    def test_missing_section(self, default_document):
        data = deepcopy(default_document)
        del data["amount_cap"]
        with pytest.raises(KeyError):
            parse_underwriting_policy(data)

    def test_non_numeric_weight(self, default_document):
        data = deepcopy(default_document)
        data["weights"]["risk"] = "most"
        with pytest.raises(ValueError, match="weights.risk"):
            parse_underwriting_policy(data)

    def test_fractional_term_rejected(self, default_document):
        data = deepcopy(default_document)
        data["risk_tiers"]["low"]["term_months"] = 24.5
        with pytest.raises(ValueError, match="term_months"):
            parse_underwriting_policy(data)

    def test_inconsistent_weights_rejected(self, default_document):
        data = deepcopy(default_document)
        data["weights"]["risk"] = "0.8"
        with pytest.raises(ValueError, match="must equal 1"):
            parse_underwriting_policy(data)

    def test_unknown_currency_rejected(self, default_document):
        data = deepcopy(default_document)
        data["currency"] = "XXY"
        with pytest.raises(ValueError, match="amount_cap.ceiling"):
            parse_underwriting_policy(data)

    def test_empty_file_is_empty_mapping(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_file(path) == {}

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError, match="mapping"):
            load_yaml_file(path)

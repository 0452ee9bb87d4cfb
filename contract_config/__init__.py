"""
contract_config -- single public entrypoint for underwriting configuration.

Responsibility:
    Provides the one way to obtain the underwriting policy at runtime
    through ``get_active_policy()``.  Engines never read files or
    environment variables; they receive an ``UnderwritingPolicy``.

Architecture position:
    Configuration -- YAML-driven policy loading.  Sits above
    ``contract_kernel``; the kernel and engines MUST NEVER import from
    ``contract_config``.

Invariants enforced:
    - Single entrypoint: runtime policy flows through ``get_active_policy()``.
    - Deterministic identity: the same YAML document always yields the
      same checksum in the trace record.

Failure modes:
    - ``FileNotFoundError`` -- the requested policy file does not exist.
    - ``yaml.YAMLError`` -- malformed YAML.
    - ``KeyError`` / ``ValueError`` -- missing keys or invalid values.

Audit relevance:
    Every successful ``get_active_policy()`` call emits a
    ``CONTRACT_CONFIG_TRACE`` log entry with the policy name, version and
    checksum, tying each recommendation back to the policy that shaped it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from contract_config.loader import (
    compute_checksum,
    load_underwriting_policy,
    load_yaml_file,
    parse_underwriting_policy,
)
from contract_kernel.domain.policy import UnderwritingPolicy

_logger = logging.getLogger("contract_kernel.config")

DEFAULT_POLICY_PATH = Path(__file__).parent / "sets" / "default_underwriting.yaml"


def get_active_policy(path: Path | str | None = None) -> UnderwritingPolicy:
    """The ONLY public configuration entrypoint.

    Args:
        path: Policy YAML file.  Defaults to the packaged
            ``contract_config/sets/default_underwriting.yaml``.

    Returns:
        The parsed, validated ``UnderwritingPolicy``.

    Raises:
        FileNotFoundError: If the policy file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        KeyError: If a required key is missing.
        ValueError: If a value is malformed or inconsistent.
    """
    policy_path = Path(path) if path is not None else DEFAULT_POLICY_PATH
    data = load_yaml_file(policy_path)
    policy = parse_underwriting_policy(data)

    _logger.info(
        "CONTRACT_CONFIG_TRACE",
        extra={
            "trace_type": "CONTRACT_CONFIG_TRACE",
            "policy_name": policy.name,
            "policy_version": policy.version,
            "checksum": compute_checksum(data),
            "source": str(policy_path),
        },
    )
    return policy


__all__ = [
    "DEFAULT_POLICY_PATH",
    "compute_checksum",
    "get_active_policy",
    "load_underwriting_policy",
    "load_yaml_file",
    "parse_underwriting_policy",
]

"""
valuation_config -- single public entrypoint for asset-universe configuration.

Responsibility:
    Provides ``get_value_interpreter()``: load a YAML asset universe,
    validate it, and return a ready ``ValueInterpreter`` wired to the
    declared registry, rate table and decomposers.

Architecture position:
    Configuration -- sits above ``valuation_kernel`` and
    ``valuation_engines``.  The kernel MUST NEVER import from
    ``valuation_config``; bridges in this package translate parsed
    configuration into kernel collaborators.

Invariants enforced:
    - Validation before use: a configuration with errors is never turned
      into an interpreter.
    - Deterministic checksum: the same YAML always yields the same
      ``ValuationConfigSet.checksum``.

Failure modes:
    - ``FileNotFoundError`` -- configuration file missing.
    - ``ValueError`` -- parse or validation failures.
    - ``ValuationKernelError`` subclasses -- malformed asset or rate data
      rejected by the kernel types.

Audit relevance:
    Every successful call emits a ``VALUATION_CONFIG_TRACE`` log entry
    with config_id, version, checksum and asset counts, tying each
    valuation back to the exact configuration that produced it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from valuation_config.bridges import RATE_BASED_DECOMPOSER_ID, build_value_interpreter
from valuation_config.loader import load_config_set
from valuation_config.schema import ValuationConfigSet
from valuation_config.validator import ConfigValidationResult, validate_configuration
from valuation_engines.value_interpreter import ValueInterpreter
from valuation_kernel.domain.decomposer import DerivativeDecomposer

_logger = logging.getLogger("valuation_kernel.config")

# Bundled example universe
DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "example.yaml"

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "RATE_BASED_DECOMPOSER_ID",
    "ConfigValidationResult",
    "ValuationConfigSet",
    "get_value_interpreter",
    "load_config_set",
    "validate_configuration",
]


def get_value_interpreter(
    config_path: Path | None = None,
    decomposers: Mapping[str, DerivativeDecomposer] | None = None,
) -> ValueInterpreter:
    """Load, validate and assemble a ValueInterpreter.

    Args:
        config_path: YAML file to load.  Defaults to the bundled example.
        decomposers: Externally implemented decomposers, keyed by the ids
            that derivatives reference with ``decomposer:``.

    Returns:
        A ValueInterpreter over an immutable snapshot of the configuration.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the configuration fails to parse or validate.
    """
    config_set = load_config_set(config_path or DEFAULT_CONFIG_PATH)

    validation = validate_configuration(config_set, decomposer_ids=set(decomposers or {}))
    for warning in validation.warnings:
        _logger.warning(
            "valuation_config_warning",
            extra={"config_id": config_set.config_id, "warning": warning},
        )
    if not validation.is_valid:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )

    interpreter = build_value_interpreter(config_set, decomposers)

    _logger.info(
        "VALUATION_CONFIG_TRACE",
        extra={
            "trace_type": "VALUATION_CONFIG_TRACE",
            "config_id": config_set.config_id,
            "config_version": config_set.version,
            "checksum": config_set.checksum,
            "primitive_count": len(config_set.primitives),
            "derivative_count": len(config_set.derivatives),
            "rate_count": len(config_set.rates),
            "max_depth": config_set.engine.max_depth,
        },
    )
    return interpreter

"""
Module: valuation_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the
    valuation engine.  This is the canonical import surface for callers
    embedding the engine.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import valuation_kernel (and sibling engine modules).
    MUST NOT import valuation_config.

Invariants enforced:
    - Purity: engines never read clocks, files or the network.
    - Integer-only arithmetic: amounts, rates and values are ``int``.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every public engine invocation is traced via ``@traced_engine``
    (see ``valuation_engines.tracer``), emitting VALUATION_ENGINE_TRACE
    log records with engine name, version, input fingerprint, duration
    and outcome.

Usage:
    from valuation_engines import ValueInterpreter
"""

from valuation_engines.tracer import compute_input_fingerprint, traced_engine
from valuation_engines.value_interpreter import (
    DEFAULT_MAX_DEPTH,
    ENGINE_NAME,
    ENGINE_VERSION,
    ValueInterpreter,
)

__all__ = [
    "ValueInterpreter",
    "DEFAULT_MAX_DEPTH",
    "ENGINE_NAME",
    "ENGINE_VERSION",
    "traced_engine",
    "compute_input_fingerprint",
]

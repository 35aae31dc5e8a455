"""
Pure domain layer.

This module contains the value objects, fixed-point helpers and
collaborator protocols of the valuation kernel, with NO dependencies on:
- Databases or network
- Time/clock
- Floating point

All domain objects are immutable and deterministic.
"""

from valuation_kernel.domain.decomposer import (
    DecomposerRegistry,
    DerivativeDecomposer,
    RateBasedDecomposer,
)
from valuation_kernel.domain.fixed_point import (
    MAX_DECIMALS,
    RATE_DECIMALS,
    RATE_UNIT,
    convert_with_rate,
    is_amount,
    require_amount,
    to_units,
)
from valuation_kernel.domain.rate_source import RateSource, StaticRateSource, get_rate
from valuation_kernel.domain.registry import AssetRegistry, AssetUniverse
from valuation_kernel.domain.values import (
    Asset,
    AssetRole,
    Classification,
    DecompositionLeg,
    RateQuote,
    RateRegime,
    ValuationResult,
)

__all__ = [
    # Values
    "Asset",
    "AssetRole",
    "Classification",
    "DecompositionLeg",
    "RateQuote",
    "RateRegime",
    "ValuationResult",
    # Fixed point
    "MAX_DECIMALS",
    "RATE_DECIMALS",
    "RATE_UNIT",
    "convert_with_rate",
    "is_amount",
    "require_amount",
    "to_units",
    # Collaborators
    "AssetRegistry",
    "AssetUniverse",
    "RateSource",
    "StaticRateSource",
    "get_rate",
    "DerivativeDecomposer",
    "DecomposerRegistry",
    "RateBasedDecomposer",
]

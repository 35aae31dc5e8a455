"""
Config-to-kernel bridges.

Turns a parsed ``ValuationConfigSet`` into the read-only collaborators
the engine consumes: an ``AssetUniverse``, a ``StaticRateSource`` and a
``DecomposerRegistry``.  Kernel types are built here so the kernel never
imports the config layer.
"""

from __future__ import annotations

from collections.abc import Mapping

from valuation_config.schema import AssetDef, ValuationConfigSet
from valuation_engines.value_interpreter import ValueInterpreter
from valuation_kernel.domain.decomposer import (
    DecomposerRegistry,
    DerivativeDecomposer,
    RateBasedDecomposer,
)
from valuation_kernel.domain.rate_source import StaticRateSource
from valuation_kernel.domain.registry import AssetUniverse
from valuation_kernel.domain.values import Asset, RateQuote, RateRegime

# Decomposer id under which derivatives declared with underlying_rates are served.
RATE_BASED_DECOMPOSER_ID = "rate_based"


def _asset(asset_def: AssetDef) -> Asset:
    return Asset(asset_id=asset_def.asset_id, decimals=asset_def.decimals, symbol=asset_def.symbol)


def build_asset_universe(config: ValuationConfigSet) -> AssetUniverse:
    """Build the AssetUniverse snapshot declared by ``config``."""
    return AssetUniverse.build(
        primitives=[_asset(p) for p in config.primitives],
        derivatives=[
            (
                _asset(d.asset),
                RATE_BASED_DECOMPOSER_ID if d.is_rate_based else d.decomposer,
            )
            for d in config.derivatives
        ],
    )


def build_rate_source(config: ValuationConfigSet) -> StaticRateSource:
    """Build a StaticRateSource from the configured rate table."""
    rates: dict[tuple[str, str, RateRegime], RateQuote] = {}
    for rate in config.rates:
        if rate.canonical is not None:
            rates[(rate.base, rate.quote, RateRegime.CANONICAL)] = RateQuote(
                rate=rate.canonical, is_valid=rate.canonical_valid
            )
        if rate.live is not None:
            rates[(rate.base, rate.quote, RateRegime.LIVE)] = RateQuote(
                rate=rate.live, is_valid=rate.live_valid
            )
    return StaticRateSource(rates)


def build_decomposer_registry(
    config: ValuationConfigSet,
    universe: AssetUniverse,
    decomposers: Mapping[str, DerivativeDecomposer] | None = None,
) -> DecomposerRegistry:
    """
    Combine external decomposers with the built-in rate-based one.

    Raises:
        ValueError: If an external decomposer uses the reserved
            ``RATE_BASED_DECOMPOSER_ID``.
    """
    combined: dict[str, DerivativeDecomposer] = dict(decomposers or {})
    if RATE_BASED_DECOMPOSER_ID in combined:
        raise ValueError(f"Decomposer id '{RATE_BASED_DECOMPOSER_ID}' is reserved")

    rate_based = {
        d.asset.asset_id: [(u.asset_id, u.rate) for u in d.underlying_rates]
        for d in config.derivatives
        if d.is_rate_based
    }
    if rate_based:
        combined[RATE_BASED_DECOMPOSER_ID] = RateBasedDecomposer(universe, rate_based)
    return DecomposerRegistry(combined)


def build_value_interpreter(
    config: ValuationConfigSet,
    decomposers: Mapping[str, DerivativeDecomposer] | None = None,
) -> ValueInterpreter:
    """Assemble a ValueInterpreter from a configuration set."""
    universe = build_asset_universe(config)
    return ValueInterpreter(
        universe,
        build_rate_source(config),
        build_decomposer_registry(config, universe, decomposers),
        max_depth=config.engine.max_depth,
    )

"""
ValuationConfigSet schema.

Defines the human-authored, reviewable source artifact describing an
asset universe: which assets are primitives, which are derivatives and
how they decompose, the rate table, and engine settings.  YAML files are
parsed into these types by the loader, checked by the validator, and
turned into kernel collaborators by the bridges.

All figures are already scaled integers here; the loader does the
conversion from human-readable strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from valuation_engines.value_interpreter import DEFAULT_MAX_DEPTH


@dataclass(frozen=True)
class EngineSettings:
    """Tunables for the ValueInterpreter."""

    max_depth: int = DEFAULT_MAX_DEPTH


@dataclass(frozen=True)
class AssetDef:
    """An asset declaration (id + precision)."""

    asset_id: str
    decimals: int
    symbol: str | None = None


@dataclass(frozen=True)
class UnderlyingRateDef:
    """Underlying units (smallest denomination) per 1.0 derivative."""

    asset_id: str
    rate: int


@dataclass(frozen=True)
class DerivativeDef:
    """
    A derivative declaration.

    Exactly one of ``decomposer`` (id of an externally supplied
    decomposer) or ``underlying_rates`` (handled by the built-in
    rate-based decomposer) is set.
    """

    asset: AssetDef
    decomposer: str | None = None
    underlying_rates: tuple[UnderlyingRateDef, ...] = ()

    @property
    def is_rate_based(self) -> bool:
        return self.decomposer is None


@dataclass(frozen=True)
class RateDef:
    """Canonical and/or live rate for one primitive pair, in quote units."""

    base: str
    quote: str
    canonical: int | None = None
    live: int | None = None
    canonical_valid: bool = True
    live_valid: bool = True


@dataclass(frozen=True)
class ValuationConfigSet:
    """Complete, parsed configuration for one asset universe."""

    config_id: str
    version: int
    engine: EngineSettings = field(default_factory=EngineSettings)
    primitives: tuple[AssetDef, ...] = ()
    derivatives: tuple[DerivativeDef, ...] = ()
    rates: tuple[RateDef, ...] = ()
    description: str = ""
    checksum: str = ""

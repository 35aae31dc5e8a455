"""
Values -- Immutable value objects for asset valuation.

Responsibility:
    Defines the small set of frozen types that flow through a valuation:
    ``Asset``, ``Classification``, ``RateQuote``, ``DecompositionLeg`` and
    ``ValuationResult``, plus the ``AssetRole`` and ``RateRegime`` tags.

Architecture position:
    Kernel > Domain -- pure value objects, zero I/O.

Invariants enforced:
    - An ``Asset`` has a non-empty id and ``0 <= decimals <= MAX_DECIMALS``.
    - A ``Classification`` carries a decomposer reference if and only if
      its role is DERIVATIVE.
    - Amounts, rates and values are Python ``int`` (arbitrary precision);
      floats are never accepted.

Failure modes:
    - InvalidAssetError on malformed asset definitions.
    - ValueError on inconsistent Classification construction.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from valuation_kernel.domain.fixed_point import MAX_DECIMALS
from valuation_kernel.exceptions import InvalidAssetError


class AssetRole(str, Enum):
    """Role of an asset in the asset universe."""

    UNREGISTERED = "unregistered"
    PRIMITIVE = "primitive"  # Priced directly by a RateSource
    DERIVATIVE = "derivative"  # Priced through its underlyings


class RateRegime(str, Enum):
    """Which rate a RateSource is asked for."""

    CANONICAL = "canonical"  # Committed, manipulation-resistant
    LIVE = "live"  # Instantaneous / spot


@dataclass(frozen=True, slots=True)
class Asset:
    """An asset identifier with its fixed-point precision."""

    asset_id: str
    decimals: int
    symbol: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.asset_id, str) or not self.asset_id:
            raise InvalidAssetError(str(self.asset_id), "asset_id must be a non-empty string")
        if isinstance(self.decimals, bool) or not isinstance(self.decimals, int):
            raise InvalidAssetError(self.asset_id, f"decimals must be an int, got {self.decimals!r}")
        if not 0 <= self.decimals <= MAX_DECIMALS:
            raise InvalidAssetError(
                self.asset_id, f"decimals must be within 0..{MAX_DECIMALS}, got {self.decimals}"
            )

    @property
    def unit(self) -> int:
        """Integer amount representing 1.0 of this asset."""
        return 10**self.decimals


@dataclass(frozen=True, slots=True)
class Classification:
    """
    Tagged variant: Unregistered | Primitive | Derivative(decomposer_id).

    Use the named constructors rather than building one by hand.
    """

    role: AssetRole
    decomposer_id: str | None = None

    def __post_init__(self) -> None:
        if self.role == AssetRole.DERIVATIVE:
            if not self.decomposer_id:
                raise ValueError("Derivative classification requires a decomposer_id")
        elif self.decomposer_id is not None:
            raise ValueError(f"{self.role.value} classification cannot carry a decomposer_id")

    @classmethod
    def unregistered(cls) -> Classification:
        return cls(AssetRole.UNREGISTERED)

    @classmethod
    def primitive(cls) -> Classification:
        return cls(AssetRole.PRIMITIVE)

    @classmethod
    def derivative(cls, decomposer_id: str) -> Classification:
        return cls(AssetRole.DERIVATIVE, decomposer_id)

    @property
    def is_registered(self) -> bool:
        return self.role != AssetRole.UNREGISTERED

    @property
    def is_primitive(self) -> bool:
        return self.role == AssetRole.PRIMITIVE

    @property
    def is_derivative(self) -> bool:
        return self.role == AssetRole.DERIVATIVE


@dataclass(frozen=True, slots=True)
class RateQuote:
    """
    Rate reported by a RateSource.

    ``rate`` is the amount of quote asset (in its smallest units) worth
    1.0 of the base asset.  For an 18-decimal quote that is ``RATE_UNIT``
    scale.
    When ``is_valid`` is False the rate must be discarded, not read as zero.
    """

    rate: int
    is_valid: bool

    @classmethod
    def invalid(cls) -> RateQuote:
        """Unavailable or stale rate."""
        return cls(rate=0, is_valid=False)


@dataclass(frozen=True, slots=True)
class DecompositionLeg:
    """One underlying position of a decomposed derivative amount."""

    asset_id: str
    amount: int


@dataclass(frozen=True, slots=True)
class ValuationResult:
    """
    Result of a valuation.

    Attributes:
        value: Amount in quote asset units.
        is_valid: False if any rate or classification along any path was
            unusable.  Callers must gate every use of ``value`` on it.
        quote_asset: Asset the value is denominated in.
        regime: Rate regime used at every depth.
    """

    value: int
    is_valid: bool
    quote_asset: str
    regime: RateRegime

    @classmethod
    def valid(cls, value: int, quote_asset: str, regime: RateRegime) -> ValuationResult:
        return cls(value=value, is_valid=True, quote_asset=quote_asset, regime=regime)

    @classmethod
    def invalid(cls, quote_asset: str, regime: RateRegime) -> ValuationResult:
        """Soft invalidity: value 0, do not use."""
        return cls(value=0, is_valid=False, quote_asset=quote_asset, regime=regime)

    @classmethod
    def combine(
        cls,
        results: Iterable[ValuationResult],
        quote_asset: str,
        regime: RateRegime,
    ) -> ValuationResult:
        """Sum values and AND validity.  An empty iterable is validly zero."""
        value = 0
        is_valid = True
        for result in results:
            value += result.value
            is_valid = is_valid and result.is_valid
        return cls(value=value, is_valid=is_valid, quote_asset=quote_asset, regime=regime)

    def as_tuple(self) -> tuple[int, bool]:
        """The ``(value, is_valid)`` pair."""
        return self.value, self.is_valid

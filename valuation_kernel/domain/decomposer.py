"""
DerivativeDecomposer -- Express a derivative amount as underlying amounts.

Responsibility:
    Defines the decomposer protocol (one implementation per derivative
    family), the ``DecomposerRegistry`` that resolves the decomposer id
    stored in a derivative's classification, and ``RateBasedDecomposer``,
    a family that prices each underlying with a fixed
    "underlying per derivative" rate.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Decomposers are selected by id (tagged dispatch), never by type.
    - An empty leg list is a legitimate answer ("worth nothing right
      now"); raising is reserved for malformed input.

Failure modes:
    - DecomposerNotFoundError from ``DecomposerRegistry.get`` for unknown ids.
    - ValueError from ``RateBasedDecomposer`` for derivatives it does not
      know; the engine turns any decomposer exception into a hard failure.
    - InvalidRateError when a RateBasedDecomposer is configured with a
      negative or non-integer rate.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Protocol, runtime_checkable

from valuation_kernel.domain.fixed_point import convert_with_rate, is_amount
from valuation_kernel.domain.registry import AssetRegistry
from valuation_kernel.domain.values import DecompositionLeg
from valuation_kernel.exceptions import DecomposerNotFoundError, InvalidRateError
from valuation_kernel.logging_config import get_logger

logger = get_logger("domain.decomposer")


@runtime_checkable
class DerivativeDecomposer(Protocol):
    """Protocol for a derivative family's decomposition logic."""

    def get_underlying_amounts(
        self, derivative: str, amount: int
    ) -> Sequence[DecompositionLeg]:
        """Return the underlying legs equivalent to ``amount`` of ``derivative``.

        Raises:
            Any exception on malformed input.  Callers treat it as a hard
            failure, never as soft invalidity.
        """
        ...


class DecomposerRegistry:
    """
    Immutable map from decomposer id to decomposer.

    Contract:
        ``get()`` returns the decomposer or raises; there is no fallback.
    """

    __slots__ = ("_decomposers",)

    def __init__(self, decomposers: Mapping[str, DerivativeDecomposer] | None = None):
        checked: dict[str, DerivativeDecomposer] = {}
        for decomposer_id, decomposer in (decomposers or {}).items():
            if not isinstance(decomposer, DerivativeDecomposer):
                raise TypeError(
                    f"Decomposer {decomposer_id!r} does not implement get_underlying_amounts"
                )
            checked[decomposer_id] = decomposer
        self._decomposers = MappingProxyType(checked)

    def get(self, decomposer_id: str, derivative: str) -> DerivativeDecomposer:
        """
        Resolve the decomposer referenced by ``derivative``'s classification.

        Raises:
            DecomposerNotFoundError: If ``decomposer_id`` is not registered.
        """
        try:
            return self._decomposers[decomposer_id]
        except KeyError:
            raise DecomposerNotFoundError(derivative, decomposer_id) from None

    def ids(self) -> list[str]:
        return sorted(self._decomposers)

    def __contains__(self, decomposer_id: object) -> bool:
        return decomposer_id in self._decomposers


class RateBasedDecomposer:
    """
    Decomposer driven by "underlying units per 1.0 derivative" rates.

    For each configured underlying:

        underlying_amount = floor(amount * rate / 10**decimals(derivative))

    Rates are integers in the underlying's smallest units.  Each leg is
    truncated independently.

    Contract:
        Knows a fixed set of derivatives.  Asking for any other derivative
        raises ValueError.  A derivative configured with no underlyings
        decomposes to an empty list.
    """

    def __init__(
        self,
        registry: AssetRegistry,
        underlying_rates: Mapping[str, Sequence[tuple[str, int]]],
    ):
        table: dict[str, tuple[tuple[str, int], ...]] = {}
        for derivative, pairs in underlying_rates.items():
            for underlying, rate in pairs:
                if not is_amount(rate):
                    raise InvalidRateError(derivative, underlying, rate)
            table[derivative] = tuple(pairs)
        self._registry = registry
        self._rates = MappingProxyType(table)

    def is_supported_asset(self, derivative: str) -> bool:
        return derivative in self._rates

    def get_underlying_amounts(
        self, derivative: str, amount: int
    ) -> list[DecompositionLeg]:
        if derivative not in self._rates:
            raise ValueError(f"Unsupported derivative: {derivative}")

        decimals = self._registry.get_asset(derivative).decimals
        legs = [
            DecompositionLeg(
                asset_id=underlying,
                amount=convert_with_rate(amount, rate, decimals),
            )
            for underlying, rate in self._rates[derivative]
        ]
        logger.debug(
            "derivative_decomposed",
            extra={
                "derivative": derivative,
                "amount": amount,
                "leg_count": len(legs),
            },
        )
        return legs

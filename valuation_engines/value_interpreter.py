"""
valuation_engines.value_interpreter -- Recursive asset valuation.

Responsibility:
    Compute the value of an amount of a base asset in a quote asset.
    Primitives are converted with a single rate; derivatives are
    decomposed into underlying legs, each leg is valued recursively, and
    the leg values are summed.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumes three injected, read-only collaborators from the kernel:
    ``AssetRegistry``, ``RateSource`` and ``DecomposerRegistry``.

Invariants enforced:
    - Integer arithmetic only.  Each primitive leg is converted with
      floor(amount * rate / 10**decimals(base)); truncation happens
      independently at every level and on every leg (sum of floors),
      never through one combined rate.
    - Regime isolation: a canonical valuation asks only for canonical
      rates at every depth, a live valuation only for live rates.
    - Validity is conjunctive and total: every leg is visited (no early
      exit) and ``is_valid`` is the AND of all of them.
    - Determinism: identical inputs against unchanged collaborators give
      identical results, independent of leg order.

Failure modes:
    Soft (returned as data, ``is_valid=False``):
        - Unregistered asset anywhere in the tree.
        - RateSource reports an invalid rate.
    Hard (raised, abort the whole call):
        - InvalidAmountError for a negative or non-int root amount.
        - DecomposerNotFoundError, DecomposerRejectedInputError,
          InconsistentDecompositionError from the derivative branch.
        - RecursionDepthExceededError past ``max_depth`` levels.
        - InvalidRateError if a RateSource reports a valid negative rate.

Usage:
    from valuation_engines.value_interpreter import ValueInterpreter

    interpreter = ValueInterpreter(universe, rate_source, decomposers)
    result = interpreter.calc_canonical_asset_value("wrapped-cdai", 10**18, "usdc")
    if result.is_valid:
        use(result.value)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import NoReturn

from valuation_engines.tracer import traced_engine
from valuation_kernel.domain.decomposer import DecomposerRegistry
from valuation_kernel.domain.fixed_point import convert_with_rate, is_amount, require_amount
from valuation_kernel.domain.rate_source import RateSource, get_rate
from valuation_kernel.domain.registry import AssetRegistry
from valuation_kernel.domain.values import (
    Classification,
    DecompositionLeg,
    RateRegime,
    ValuationResult,
)
from valuation_kernel.exceptions import (
    ArrayLengthMismatchError,
    DecomposerRejectedInputError,
    InconsistentDecompositionError,
    InvalidRateError,
    RecursionDepthExceededError,
    ValuationKernelError,
)
from valuation_kernel.logging_config import get_logger

logger = get_logger("engines.value_interpreter")

ENGINE_NAME = "value_interpreter"
ENGINE_VERSION = "1.0"

DEFAULT_MAX_DEPTH = 16


class ValueInterpreter:
    """
    Values assets against a consistent snapshot of its collaborators.

    Contract:
        Stateless between calls.  Holds only references to read-only
        collaborators and the depth limit, so independent calls may run
        in parallel.
    Guarantees:
        - ``value`` is exact: Python ints never overflow.
        - A hard failure never yields a partial result.
        - ``base == quote`` for a registered base is the identity
          ``(amount, True)``, checked at every depth.
    Non-goals:
        - Does not discover prices, cache rates or register assets.
        - Does not validate the quote asset; an unsupported quote shows
          up as an invalid rate from the RateSource.
    """

    def __init__(
        self,
        registry: AssetRegistry,
        rate_source: RateSource,
        decomposers: DecomposerRegistry,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 0:
            raise ValueError(f"max_depth must be a non-negative int, got {max_depth!r}")
        self._registry = registry
        self._rate_source = rate_source
        self._decomposers = decomposers
        self._max_depth = max_depth

    @property
    def max_depth(self) -> int:
        return self._max_depth

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    @traced_engine(ENGINE_NAME, ENGINE_VERSION, fingerprint_fields=("base_asset", "amount", "quote_asset"))
    def calc_canonical_asset_value(
        self, base_asset: str, amount: int, quote_asset: str
    ) -> ValuationResult:
        """Value ``amount`` of ``base_asset`` in ``quote_asset`` using canonical rates."""
        return self.resolve_value(base_asset, amount, quote_asset, RateRegime.CANONICAL)

    @traced_engine(ENGINE_NAME, ENGINE_VERSION, fingerprint_fields=("base_asset", "amount", "quote_asset"))
    def calc_live_asset_value(
        self, base_asset: str, amount: int, quote_asset: str
    ) -> ValuationResult:
        """Value ``amount`` of ``base_asset`` in ``quote_asset`` using live rates."""
        return self.resolve_value(base_asset, amount, quote_asset, RateRegime.LIVE)

    @traced_engine(ENGINE_NAME, ENGINE_VERSION, fingerprint_fields=("base_assets", "amounts", "quote_asset"))
    def calc_canonical_assets_total_value(
        self,
        base_assets: Sequence[str],
        amounts: Sequence[int],
        quote_asset: str,
    ) -> ValuationResult:
        """Sum of canonical values of several holdings, valid only if all are."""
        return self.resolve_total_value(base_assets, amounts, quote_asset, RateRegime.CANONICAL)

    @traced_engine(ENGINE_NAME, ENGINE_VERSION, fingerprint_fields=("base_assets", "amounts", "quote_asset"))
    def calc_live_assets_total_value(
        self,
        base_assets: Sequence[str],
        amounts: Sequence[int],
        quote_asset: str,
    ) -> ValuationResult:
        """Sum of live values of several holdings, valid only if all are."""
        return self.resolve_total_value(base_assets, amounts, quote_asset, RateRegime.LIVE)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_value(
        self,
        base_asset: str,
        amount: int,
        quote_asset: str,
        regime: RateRegime,
    ) -> ValuationResult:
        """
        Resolve the value of one holding under a single rate regime.

        Preconditions:
            ``amount`` is a non-negative int scaled by the base asset's
            decimals.

        Postconditions:
            Returns ValuationResult(value, is_valid) per the recursive
            algorithm; hard failures raise and return nothing.

        Raises:
            InvalidAmountError, DecompositionError subclasses,
            InvalidRateError.
        """
        require_amount(base_asset, amount)
        regime = RateRegime(regime)

        result = self._resolve(base_asset, amount, quote_asset, regime, ())

        logger.info(
            "asset_value_resolved",
            extra={
                "base_asset": base_asset,
                "amount": amount,
                "quote_asset": quote_asset,
                "regime": regime.value,
                "value": result.value,
                "is_valid": result.is_valid,
            },
        )
        return result

    def resolve_total_value(
        self,
        base_assets: Sequence[str],
        amounts: Sequence[int],
        quote_asset: str,
        regime: RateRegime,
    ) -> ValuationResult:
        """
        Resolve several holdings and combine them.

        Every holding is resolved; the total is the sum of the values and
        is valid only if every holding is.  An empty list is validly zero.

        Raises:
            ArrayLengthMismatchError: If the two sequences differ in length.
        """
        if len(base_assets) != len(amounts):
            logger.error(
                "assets_total_value_length_mismatch",
                extra={"assets_count": len(base_assets), "amounts_count": len(amounts)},
            )
            raise ArrayLengthMismatchError(len(base_assets), len(amounts))

        regime = RateRegime(regime)
        results = [
            self.resolve_value(base_asset, amount, quote_asset, regime)
            for base_asset, amount in zip(base_assets, amounts)
        ]
        return ValuationResult.combine(results, quote_asset, regime)

    def _resolve(
        self,
        asset_id: str,
        amount: int,
        quote_asset: str,
        regime: RateRegime,
        path: tuple[str, ...],
    ) -> ValuationResult:
        path = path + (asset_id,)
        depth = len(path) - 1
        if depth > self._max_depth:
            logger.error(
                "recursion_depth_exceeded",
                extra={"asset_id": asset_id, "max_depth": self._max_depth, "path": list(path)},
            )
            raise RecursionDepthExceededError(asset_id, self._max_depth, path)

        classification = self._registry.classify(asset_id)

        if not classification.is_registered:
            logger.info(
                "asset_unregistered",
                extra={"asset_id": asset_id, "depth": depth, "regime": regime.value},
            )
            return ValuationResult.invalid(quote_asset, regime)

        if asset_id == quote_asset:
            return ValuationResult.valid(amount, quote_asset, regime)

        if classification.is_primitive:
            return self._resolve_primitive(asset_id, amount, quote_asset, regime, depth)

        return self._resolve_derivative(
            asset_id, amount, quote_asset, regime, classification, path
        )

    def _resolve_primitive(
        self,
        asset_id: str,
        amount: int,
        quote_asset: str,
        regime: RateRegime,
        depth: int,
    ) -> ValuationResult:
        rate_quote = get_rate(self._rate_source, asset_id, quote_asset, regime)

        if not rate_quote.is_valid:
            logger.info(
                "primitive_rate_invalid",
                extra={
                    "asset_id": asset_id,
                    "quote_asset": quote_asset,
                    "regime": regime.value,
                    "depth": depth,
                },
            )
            return ValuationResult.invalid(quote_asset, regime)

        if not is_amount(rate_quote.rate):
            logger.error(
                "primitive_rate_malformed",
                extra={"asset_id": asset_id, "quote_asset": quote_asset, "rate": str(rate_quote.rate)},
            )
            raise InvalidRateError(asset_id, quote_asset, rate_quote.rate)

        decimals = self._registry.get_asset(asset_id).decimals
        value = convert_with_rate(amount, rate_quote.rate, decimals)

        logger.debug(
            "primitive_valued",
            extra={
                "asset_id": asset_id,
                "amount": amount,
                "rate": rate_quote.rate,
                "value": value,
                "depth": depth,
            },
        )
        return ValuationResult.valid(value, quote_asset, regime)

    def _resolve_derivative(
        self,
        asset_id: str,
        amount: int,
        quote_asset: str,
        regime: RateRegime,
        classification: Classification,
        path: tuple[str, ...],
    ) -> ValuationResult:
        decomposer_id = classification.decomposer_id
        try:
            decomposer = self._decomposers.get(decomposer_id, asset_id)
        except ValuationKernelError:
            logger.error(
                "decomposer_not_found",
                extra={"asset_id": asset_id, "decomposer_id": decomposer_id},
                exc_info=True,
            )
            raise

        try:
            raw_legs = decomposer.get_underlying_amounts(asset_id, amount)
        except ValuationKernelError:
            logger.error(
                "decomposition_failed",
                extra={"asset_id": asset_id, "amount": amount, "decomposer_id": decomposer_id},
                exc_info=True,
            )
            raise
        except Exception as exc:
            logger.error(
                "decomposer_rejected_input",
                extra={"asset_id": asset_id, "amount": amount, "decomposer_id": decomposer_id},
                exc_info=True,
            )
            raise DecomposerRejectedInputError(
                asset_id, amount, decomposer_id, f"{type(exc).__name__}: {exc}"
            ) from exc

        legs = self._check_legs(asset_id, raw_legs)

        if not legs:
            logger.debug(
                "derivative_has_no_underlyings",
                extra={"asset_id": asset_id, "amount": amount, "depth": len(path) - 1},
            )
            return ValuationResult.valid(0, quote_asset, regime)

        # Every leg is visited; no early exit on an invalid leg.
        leg_results = [
            self._resolve(leg.asset_id, leg.amount, quote_asset, regime, path)
            for leg in legs
        ]
        result = ValuationResult.combine(leg_results, quote_asset, regime)

        logger.debug(
            "derivative_valued",
            extra={
                "asset_id": asset_id,
                "amount": amount,
                "leg_count": len(legs),
                "value": result.value,
                "is_valid": result.is_valid,
                "depth": len(path) - 1,
            },
        )
        return result

    def _check_legs(self, derivative: str, raw_legs: object) -> list[DecompositionLeg]:
        """Normalize decomposer output to legs, or raise InconsistentDecompositionError."""
        if raw_legs is None or isinstance(raw_legs, (str, bytes)):
            self._inconsistent(derivative, f"expected a sequence of legs, got {raw_legs!r}")

        try:
            items = list(raw_legs)  # type: ignore[call-overload]
        except TypeError:
            self._inconsistent(derivative, f"expected a sequence of legs, got {raw_legs!r}")

        legs: list[DecompositionLeg] = []
        for index, item in enumerate(items):
            if isinstance(item, DecompositionLeg):
                leg = item
            elif isinstance(item, tuple) and len(item) == 2:
                leg = DecompositionLeg(asset_id=item[0], amount=item[1])
            else:
                self._inconsistent(derivative, f"leg {index} is not an (asset, amount) pair: {item!r}")

            if not isinstance(leg.asset_id, str) or not leg.asset_id:
                self._inconsistent(derivative, f"leg {index} has an invalid asset id {leg.asset_id!r}")
            if not is_amount(leg.amount):
                self._inconsistent(derivative, f"leg {index} has an invalid amount {leg.amount!r}")
            legs.append(leg)
        return legs

    def _inconsistent(self, derivative: str, reason: str) -> NoReturn:
        logger.error(
            "inconsistent_decomposition",
            extra={"asset_id": derivative, "reason": reason},
        )
        raise InconsistentDecompositionError(derivative, reason)

"""
Typed Exception Hierarchy for the Valuation Kernel.

===============================================================================
TWO KINDS OF FAILURE
===============================================================================

A valuation can go wrong in two ways, and callers must be able to tell
them apart:

  SOFT INVALIDITY (routine, expected)
    An asset is unregistered, or an oracle reports a stale/unavailable
    rate.  This is DATA, not an exception:

        result = interpreter.calc_live_asset_value(base, amount, quote)
        if not result.is_valid:
            ...  # no trustworthy price right now; do not use result.value

  HARD FAILURE (configuration defect or bug)
    A decomposer rejects its input, a decomposition is internally
    inconsistent, or resolution runs past the recursion limit.  These
    RAISE one of the exceptions below and abort the whole call.  No
    partial value is returned, and they are never folded into
    ``is_valid=False``.

Every exception carries:
  1. A TYPED class (catch by type, not message)
  2. A class-level CODE attribute (machine-readable)
  3. Structured DATA attributes (not just a message string)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ValuationKernelError (base)
    |
    +-- AssetError
    |   +-- AssetNotRegisteredError
    |   +-- DuplicateAssetError
    |   +-- InvalidAssetError
    |
    +-- RateError
    |   +-- InvalidRateError
    |
    +-- AmountError
    |   +-- InvalidAmountError
    |   +-- ArrayLengthMismatchError
    |
    +-- DecompositionError
        +-- DecomposerNotFoundError
        +-- DecomposerRejectedInputError
        +-- InconsistentDecompositionError
        +-- RecursionDepthExceededError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Asset           | ASSET_NOT_REGISTERED        | Decimals requested for an unknown asset
                | DUPLICATE_ASSET             | Asset id registered twice in a universe
                | INVALID_ASSET               | Empty id or out-of-range decimals
----------------|-----------------------------|-----------------------------------------
Rate            | INVALID_RATE                | Negative or non-integer rate configured
----------------|-----------------------------|-----------------------------------------
Amount          | INVALID_AMOUNT              | Negative or non-integer amount
                | ARRAY_LENGTH_MISMATCH       | bases/amounts lists differ in length
----------------|-----------------------------|-----------------------------------------
Decomposition   | DECOMPOSER_NOT_FOUND        | Derivative references unknown decomposer
                | DECOMPOSER_REJECTED_INPUT   | Decomposer raised on its input
                | INCONSISTENT_DECOMPOSITION  | Decomposer returned malformed legs
                | RECURSION_DEPTH_EXCEEDED    | Derivative graph deeper than max_depth

===============================================================================
HANDLING PATTERNS
===============================================================================

    try:
        result = interpreter.calc_canonical_asset_value(base, amount, quote)
    except DecompositionError as e:
        # The system is broken: alert, do not retry blindly
        log.error("valuation_hard_failure", extra={"code": e.code})
        raise
    if not result.is_valid:
        # No trustworthy price right now: reject / no-op
        return None
    return result.value
"""


class ValuationKernelError(Exception):
    """
    Base exception for all valuation kernel errors.

    All subclasses must have a `code` class attribute for
    machine-readable error identification.
    """

    code: str = "VALUATION_KERNEL_ERROR"


# Asset-related exceptions


class AssetError(ValuationKernelError):
    """Base exception for asset registry errors."""

    code: str = "ASSET_ERROR"


class AssetNotRegisteredError(AssetError):
    """Asset is not present in the asset universe."""

    code: str = "ASSET_NOT_REGISTERED"

    def __init__(self, asset_id: str):
        self.asset_id = asset_id
        super().__init__(f"Asset not registered: {asset_id}")


class DuplicateAssetError(AssetError):
    """Asset id was declared more than once in one universe."""

    code: str = "DUPLICATE_ASSET"

    def __init__(self, asset_id: str):
        self.asset_id = asset_id
        super().__init__(f"Asset registered more than once: {asset_id}")


class InvalidAssetError(AssetError):
    """Asset definition is malformed."""

    code: str = "INVALID_ASSET"

    def __init__(self, asset_id: str, reason: str):
        self.asset_id = asset_id
        self.reason = reason
        super().__init__(f"Invalid asset {asset_id!r}: {reason}")


# Rate-related exceptions


class RateError(ValuationKernelError):
    """Base exception for rate errors."""

    code: str = "RATE_ERROR"


class InvalidRateError(RateError):
    """Configured rate is negative or not an integer."""

    code: str = "INVALID_RATE"

    def __init__(self, base_asset: str, quote_asset: str, rate: object):
        self.base_asset = base_asset
        self.quote_asset = quote_asset
        self.rate = str(rate)
        super().__init__(
            f"Invalid rate {rate!r} for {base_asset} -> {quote_asset}"
        )


# Amount-related exceptions


class AmountError(ValuationKernelError):
    """Base exception for amount errors."""

    code: str = "AMOUNT_ERROR"


class InvalidAmountError(AmountError):
    """Amount is negative or not an integer."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, asset_id: str, amount: object):
        self.asset_id = asset_id
        self.amount = str(amount)
        super().__init__(
            f"Invalid amount {amount!r} for asset {asset_id}: "
            "amounts must be non-negative integers"
        )


class ArrayLengthMismatchError(AmountError):
    """Parallel asset and amount sequences differ in length."""

    code: str = "ARRAY_LENGTH_MISMATCH"

    def __init__(self, assets_count: int, amounts_count: int):
        self.assets_count = assets_count
        self.amounts_count = amounts_count
        super().__init__(
            f"Got {assets_count} assets but {amounts_count} amounts"
        )


# Decomposition-related exceptions (hard failures)


class DecompositionError(ValuationKernelError):
    """Base exception for derivative decomposition failures."""

    code: str = "DECOMPOSITION_ERROR"


class DecomposerNotFoundError(DecompositionError):
    """Derivative references a decomposer that is not registered."""

    code: str = "DECOMPOSER_NOT_FOUND"

    def __init__(self, derivative: str, decomposer_id: str):
        self.derivative = derivative
        self.decomposer_id = decomposer_id
        super().__init__(
            f"No decomposer {decomposer_id!r} registered for derivative {derivative}"
        )


class DecomposerRejectedInputError(DecompositionError):
    """Decomposer raised while decomposing a derivative amount."""

    code: str = "DECOMPOSER_REJECTED_INPUT"

    def __init__(self, derivative: str, amount: int, decomposer_id: str, reason: str):
        self.derivative = derivative
        self.amount = amount
        self.decomposer_id = decomposer_id
        self.reason = reason
        super().__init__(
            f"Decomposer {decomposer_id!r} rejected {amount} of {derivative}: {reason}"
        )


class InconsistentDecompositionError(DecompositionError):
    """Decomposer returned legs that cannot be valued."""

    code: str = "INCONSISTENT_DECOMPOSITION"

    def __init__(self, derivative: str, reason: str):
        self.derivative = derivative
        self.reason = reason
        super().__init__(
            f"Inconsistent decomposition of {derivative}: {reason}"
        )


class RecursionDepthExceededError(DecompositionError):
    """
    Derivative graph is deeper than the configured limit.

    Usually a cycle in the derivative configuration.  Fails closed:
    the sum is never silently truncated.
    """

    code: str = "RECURSION_DEPTH_EXCEEDED"

    def __init__(self, asset_id: str, max_depth: int, path: tuple[str, ...]):
        self.asset_id = asset_id
        self.max_depth = max_depth
        self.path = list(path)
        super().__init__(
            f"Resolution of {asset_id} exceeded max depth {max_depth}: "
            f"{' -> '.join(path)}"
        )

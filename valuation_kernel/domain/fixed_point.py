"""
Fixed-point integer helpers.

Every amount, rate and value in the valuation pipeline is a plain Python
``int`` scaled by a power of ten.  Division always truncates toward zero
(all operands are non-negative, so this is floor).  ``Decimal`` appears
only in ``to_units`` to parse human-written figures such as ``"0.25"``.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext

from valuation_kernel.exceptions import InvalidAmountError

# Scale of an 18-decimal quote: a rate of RATE_UNIT means 1.0 quote per 1.0 base.
RATE_DECIMALS: int = 18
RATE_UNIT: int = 10**RATE_DECIMALS

# 10**77 is the largest power of ten below 2**256.
MAX_DECIMALS: int = 77


def is_amount(value: object) -> bool:
    """True for non-negative ints (bools excluded)."""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def require_amount(asset_id: str, amount: object) -> int:
    """Return ``amount`` unchanged or raise InvalidAmountError."""
    if not is_amount(amount):
        raise InvalidAmountError(asset_id, amount)
    return amount  # type: ignore[return-value]


def convert_with_rate(amount: int, rate: int, base_decimals: int) -> int:
    """
    Convert ``amount`` of a base asset with ``rate``.

    Formula: floor(amount * rate / 10**base_decimals)

    Never rounds up.  The product is computed exactly before dividing.
    """
    return (amount * rate) // 10**base_decimals


def to_units(value: str | int | Decimal, decimals: int) -> int:
    """
    Parse a human-readable figure into an integer at ``decimals`` scale.

    ``to_units("0.25", 18) == 250000000000000000``.  Ints are taken as
    whole units.  Figures with more fractional digits than ``decimals``
    allows, negatives, and non-finite values raise ValueError.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"Refusing to parse {value!r}: use str, int or Decimal")
    try:
        parsed = Decimal(value)
    except InvalidOperation as exc:
        raise ValueError(f"Not a number: {value!r}") from exc
    if not parsed.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    if parsed < 0:
        raise ValueError(f"Negative figures are not allowed: {value!r}")

    # Exact: the default 28-digit context would round wide figures.
    with localcontext() as ctx:
        ctx.prec = 2 * MAX_DECIMALS + 10
        scaled = parsed.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"{value!r} has more than {decimals} fractional digits")
    return int(scaled)

"""RateSource -- Canonical and live exchange rates between primitives.

The engine only ever reads rates; oracle implementations live outside the
kernel.  ``StaticRateSource`` is a fixed table, used for configuration-
driven setups and as a test double.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Protocol, runtime_checkable

from valuation_kernel.domain.fixed_point import is_amount
from valuation_kernel.domain.values import RateQuote, RateRegime
from valuation_kernel.exceptions import InvalidRateError
from valuation_kernel.logging_config import get_logger

logger = get_logger("domain.rate_source")

RateKey = tuple[str, str, RateRegime]


@runtime_checkable
class RateSource(Protocol):
    """Protocol for primitive-to-primitive rates.

    A rate is the amount of quote asset, in its smallest units, worth 1.0
    of the base asset.
    A quote with ``is_valid=False`` is unusable and must be discarded.
    """

    def get_canonical_rate(self, base_asset: str, quote_asset: str) -> RateQuote:
        ...

    def get_live_rate(self, base_asset: str, quote_asset: str) -> RateQuote:
        ...


def get_rate(
    source: RateSource,
    base_asset: str,
    quote_asset: str,
    regime: RateRegime,
) -> RateQuote:
    """Dispatch to the RateSource method matching ``regime``."""
    if regime == RateRegime.CANONICAL:
        return source.get_canonical_rate(base_asset, quote_asset)
    return source.get_live_rate(base_asset, quote_asset)


class StaticRateSource:
    """
    RateSource backed by an immutable table.

    Contract:
        Keys are ``(base, quote, regime)``.  Missing pairs report
        ``RateQuote.invalid()``; nothing is inferred (no inversion, no
        cross rates).

    Guarantees:
        - Every rate flagged valid is a non-negative int.  Rates flagged
          invalid are stored as given; callers discard them unread.
    """

    __slots__ = ("_rates",)

    def __init__(self, rates: Mapping[RateKey, RateQuote] | None = None):
        checked: dict[RateKey, RateQuote] = {}
        for (base, quote, regime), rate_quote in (rates or {}).items():
            if rate_quote.is_valid and not is_amount(rate_quote.rate):
                raise InvalidRateError(base, quote, rate_quote.rate)
            checked[(base, quote, RateRegime(regime))] = rate_quote
        self._rates = MappingProxyType(checked)

    @classmethod
    def from_pairs(
        cls,
        canonical: Mapping[tuple[str, str], int] | None = None,
        live: Mapping[tuple[str, str], int] | None = None,
        invalid: frozenset[RateKey] = frozenset(),
    ) -> StaticRateSource:
        """
        Build from plain ``{(base, quote): rate}`` tables.

        Keys listed in ``invalid`` keep their rate but report
        ``is_valid=False`` (stale oracle).
        """
        rates: dict[RateKey, RateQuote] = {}
        for regime, table in ((RateRegime.CANONICAL, canonical), (RateRegime.LIVE, live)):
            for (base, quote), rate in (table or {}).items():
                key = (base, quote, regime)
                rates[key] = RateQuote(rate=rate, is_valid=key not in invalid)
        return cls(rates)

    def get_canonical_rate(self, base_asset: str, quote_asset: str) -> RateQuote:
        return self._lookup(base_asset, quote_asset, RateRegime.CANONICAL)

    def get_live_rate(self, base_asset: str, quote_asset: str) -> RateQuote:
        return self._lookup(base_asset, quote_asset, RateRegime.LIVE)

    def _lookup(self, base_asset: str, quote_asset: str, regime: RateRegime) -> RateQuote:
        quote = self._rates.get((base_asset, quote_asset, regime))
        if quote is None:
            logger.debug(
                "rate_not_configured",
                extra={"base_asset": base_asset, "quote_asset": quote_asset, "regime": regime.value},
            )
            return RateQuote.invalid()
        return quote

    def __len__(self) -> int:
        return len(self._rates)

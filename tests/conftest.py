"""
Pytest fixtures for the valuation test suite.

Provides:
- Call-recording test doubles for the RateSource and DerivativeDecomposer
  collaborators
- A small asset universe factory
- Structured log capture
"""

import json
import logging
from collections.abc import Callable, Sequence
from io import StringIO

import pytest

from valuation_engines.value_interpreter import ValueInterpreter
from valuation_kernel.domain.decomposer import DecomposerRegistry
from valuation_kernel.domain.registry import AssetUniverse
from valuation_kernel.domain.values import Asset, DecompositionLeg, RateQuote
from valuation_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

E18 = 10**18


class RecordingRateSource:
    """RateSource double that records every call.

    ``canonical`` / ``live`` map (base, quote) to a rate; pairs listed in
    ``invalid`` report is_valid=False.  Unknown pairs are invalid.
    """

    def __init__(
        self,
        canonical: dict[tuple[str, str], int] | None = None,
        live: dict[tuple[str, str], int] | None = None,
        invalid: set[tuple[str, str, str]] | None = None,
    ):
        self.canonical = dict(canonical or {})
        self.live = dict(live or {})
        self.invalid = set(invalid or ())
        self.calls: list[tuple[str, str, str]] = []

    def get_canonical_rate(self, base_asset: str, quote_asset: str) -> RateQuote:
        self.calls.append(("canonical", base_asset, quote_asset))
        return self._quote(self.canonical, "canonical", base_asset, quote_asset)

    def get_live_rate(self, base_asset: str, quote_asset: str) -> RateQuote:
        self.calls.append(("live", base_asset, quote_asset))
        return self._quote(self.live, "live", base_asset, quote_asset)

    def _quote(self, table, regime, base_asset, quote_asset) -> RateQuote:
        if (base_asset, quote_asset) not in table:
            return RateQuote.invalid()
        return RateQuote(
            rate=table[(base_asset, quote_asset)],
            is_valid=(regime, base_asset, quote_asset) not in self.invalid,
        )

    def regimes_called(self) -> set[str]:
        return {regime for regime, _, _ in self.calls}


class StubDecomposer:
    """Decomposer double.

    ``legs_per_unit`` maps a derivative to [(underlying, rate)] pairs and
    decomposes as floor(amount * rate / 10**decimals).  ``fixed`` maps a
    derivative to a literal leg list returned as-is.  ``errors`` maps a
    derivative to an exception to raise.
    """

    def __init__(
        self,
        decimals: dict[str, int] | None = None,
        legs_per_unit: dict[str, Sequence[tuple[str, int]]] | None = None,
        fixed: dict[str, object] | None = None,
        errors: dict[str, Exception] | None = None,
    ):
        self.decimals = dict(decimals or {})
        self.legs_per_unit = dict(legs_per_unit or {})
        self.fixed = dict(fixed or {})
        self.errors = dict(errors or {})
        self.calls: list[tuple[str, int]] = []

    def get_underlying_amounts(self, derivative: str, amount: int):
        self.calls.append((derivative, amount))
        if derivative in self.errors:
            raise self.errors[derivative]
        if derivative in self.fixed:
            return self.fixed[derivative]
        unit = 10 ** self.decimals.get(derivative, 18)
        return [
            DecompositionLeg(asset_id=underlying, amount=amount * rate // unit)
            for underlying, rate in self.legs_per_unit[derivative]
        ]


@pytest.fixture
def make_interpreter() -> Callable[..., ValueInterpreter]:
    """Factory: build a ValueInterpreter from plain declarations.

    primitives: {asset_id: decimals}
    derivatives: {asset_id: (decimals, decomposer_id)}
    """

    def _make(
        primitives: dict[str, int],
        rate_source,
        derivatives: dict[str, tuple[int, str]] | None = None,
        decomposers: dict[str, object] | None = None,
        max_depth: int = 16,
    ) -> ValueInterpreter:
        universe = AssetUniverse.build(
            primitives=[Asset(asset_id, decimals) for asset_id, decimals in primitives.items()],
            derivatives=[
                (Asset(asset_id, decimals), decomposer_id)
                for asset_id, (decimals, decomposer_id) in (derivatives or {}).items()
            ],
        )
        return ValueInterpreter(
            universe,
            rate_source,
            DecomposerRegistry(decomposers or {}),
            max_depth=max_depth,
        )

    return _make


@pytest.fixture
def log_stream():
    """Route valuation_kernel logs (DEBUG and up) into a StringIO as JSON lines."""
    reset_logging()
    LogContext.clear()
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    configure_logging(level=logging.DEBUG, handler=handler)
    yield stream
    LogContext.clear()
    reset_logging()


def parse_logs(stream: StringIO) -> list[dict]:
    """Parse all JSON log lines from a stream."""
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]

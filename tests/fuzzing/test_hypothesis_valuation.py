"""
Hypothesis-based property tests for the ValueInterpreter.

Properties fuzzed here:
- Primitive conversion equals floor(amount * rate / 10**decimals)
- Leg order permutation never changes the result
- Fan-out value is the sum of independently floored legs
- Repeated calls are bit-identical
- Regime isolation holds for arbitrary trees
- Unregistered bases are invalid for any amount
- Fixed-point parsing of generated figures is exact

Boundaries not fuzzed here (covered by explicit tests):
- Hard failures from decomposers (tests/engines/test_value_interpreter.py)
- Configuration parsing (tests/config/test_valuation_config.py)
"""

from decimal import Decimal

from hypothesis import HealthCheck, assume, given, settings
from hypothesis import strategies as st

from tests.conftest import RecordingRateSource, StubDecomposer
from valuation_engines.value_interpreter import ValueInterpreter
from valuation_kernel.domain.decomposer import DecomposerRegistry
from valuation_kernel.domain.fixed_point import to_units
from valuation_kernel.domain.registry import AssetUniverse
from valuation_kernel.domain.values import Asset

amounts = st.integers(min_value=0, max_value=10**40)
rates = st.integers(min_value=0, max_value=10**30)
decimals = st.integers(min_value=0, max_value=30)

PRIMITIVES = ["p0", "p1", "p2", "p3"]

legs_strategy = st.lists(
    st.tuples(st.sampled_from(PRIMITIVES), st.integers(min_value=0, max_value=10**30)),
    min_size=0,
    max_size=8,
)

FUZZ_SETTINGS = settings(
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.filter_too_much],
)


def _interpreter(rate_source, legs):
    universe = AssetUniverse.build(
        primitives=[Asset(p, 18) for p in PRIMITIVES] + [Asset("q", 18)],
        derivatives=[(Asset("d", 18), "stub")],
    )
    decomposer = StubDecomposer(fixed={"d": legs})
    return ValueInterpreter(universe, rate_source, DecomposerRegistry({"stub": decomposer}))


def _rate_tables(canonical_rates, live_rates):
    return RecordingRateSource(
        canonical={(p, "q"): r for p, r in zip(PRIMITIVES, canonical_rates)},
        live={(p, "q"): r for p, r in zip(PRIMITIVES, live_rates)},
    )


class TestPrimitiveProperties:
    @FUZZ_SETTINGS
    @given(amount=amounts, rate=rates, base_decimals=decimals)
    def test_floor_formula(self, amount, rate, base_decimals):
        universe = AssetUniverse.build(primitives=[Asset("b", base_decimals), Asset("q", 18)])
        source = RecordingRateSource(canonical={("b", "q"): rate})
        interpreter = ValueInterpreter(universe, source, DecomposerRegistry())

        result = interpreter.calc_canonical_asset_value("b", amount, "q")

        assert result.is_valid
        assert result.value == amount * rate // 10**base_decimals
        assert result.value * 10**base_decimals <= amount * rate

    @FUZZ_SETTINGS
    @given(amount=amounts, asset=st.text(min_size=1, max_size=12))
    def test_unregistered_always_invalid(self, amount, asset):
        assume(asset != "q")
        universe = AssetUniverse.build(primitives=[Asset("q", 18)])
        interpreter = ValueInterpreter(universe, RecordingRateSource(), DecomposerRegistry())

        assert interpreter.calc_canonical_asset_value(asset, amount, "q").as_tuple() == (0, False)
        assert interpreter.calc_live_asset_value(asset, amount, "q").as_tuple() == (0, False)


class TestDerivativeProperties:
    @FUZZ_SETTINGS
    @given(
        legs=legs_strategy,
        canonical_rates=st.lists(rates, min_size=4, max_size=4),
        data=st.data(),
    )
    def test_leg_order_independent(self, legs, canonical_rates, data):
        permuted = data.draw(st.permutations(legs))
        source = _rate_tables(canonical_rates, canonical_rates)

        original = _interpreter(source, legs).calc_canonical_asset_value("d", 1, "q")
        shuffled = _interpreter(source, permuted).calc_canonical_asset_value("d", 1, "q")

        assert original.as_tuple() == shuffled.as_tuple()

    @FUZZ_SETTINGS
    @given(legs=legs_strategy, canonical_rates=st.lists(rates, min_size=4, max_size=4))
    def test_sum_of_floors(self, legs, canonical_rates):
        source = _rate_tables(canonical_rates, canonical_rates)
        by_asset = dict(zip(PRIMITIVES, canonical_rates))

        result = _interpreter(source, legs).calc_canonical_asset_value("d", 1, "q")

        expected = sum(amount * by_asset[asset] // 10**18 for asset, amount in legs)
        assert result.as_tuple() == (expected, True)

    @FUZZ_SETTINGS
    @given(
        legs=legs_strategy,
        canonical_rates=st.lists(rates, min_size=4, max_size=4),
        live_rates=st.lists(rates, min_size=4, max_size=4),
    )
    def test_repeated_calls_identical(self, legs, canonical_rates, live_rates):
        interpreter = _interpreter(_rate_tables(canonical_rates, live_rates), legs)

        for method in (interpreter.calc_canonical_asset_value, interpreter.calc_live_asset_value):
            assert method("d", 1, "q") == method("d", 1, "q")

    @FUZZ_SETTINGS
    @given(
        legs=legs_strategy,
        canonical_rates=st.lists(rates, min_size=4, max_size=4),
        live_rates=st.lists(rates, min_size=4, max_size=4),
        use_live=st.booleans(),
    )
    def test_regime_isolation(self, legs, canonical_rates, live_rates, use_live):
        source = _rate_tables(canonical_rates, live_rates)
        interpreter = _interpreter(source, legs)

        if use_live:
            interpreter.calc_live_asset_value("d", 1, "q")
            expected = {"live"} if legs else set()
        else:
            interpreter.calc_canonical_asset_value("d", 1, "q")
            expected = {"canonical"} if legs else set()

        assert source.regimes_called() == expected
        assert len(source.calls) == len(legs)

    @FUZZ_SETTINGS
    @given(
        legs=legs_strategy.filter(lambda legs: any(asset == "p0" for asset, _ in legs)),
        canonical_rates=st.lists(rates, min_size=4, max_size=4),
    )
    def test_any_invalid_leg_taints_result(self, legs, canonical_rates):
        source = RecordingRateSource(
            canonical={(p, "q"): r for p, r in zip(PRIMITIVES, canonical_rates)},
            invalid={("canonical", "p0", "q")},
        )

        result = _interpreter(source, legs).calc_canonical_asset_value("d", 1, "q")

        assert result.is_valid is False
        assert len(source.calls) == len(legs)


class TestFixedPointParsing:
    @FUZZ_SETTINGS
    @given(
        whole=st.integers(min_value=0, max_value=10**30),
        fraction=st.integers(min_value=0, max_value=10**18 - 1),
    )
    def test_to_units_exact(self, whole, fraction):
        figure = f"{whole}.{fraction:018d}"
        assert to_units(figure, 18) == whole * 10**18 + fraction
        assert to_units(Decimal(figure), 18) == whole * 10**18 + fraction

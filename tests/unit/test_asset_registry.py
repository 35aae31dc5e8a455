"""Tests for the AssetUniverse registry snapshot."""

import pytest

from valuation_kernel.domain.registry import AssetRegistry, AssetUniverse
from valuation_kernel.domain.values import Asset, Classification
from valuation_kernel.exceptions import AssetNotRegisteredError, DuplicateAssetError


class TestAssetUniverse:
    def setup_method(self):
        self.universe = AssetUniverse.build(
            primitives=[Asset("usdc", 6), Asset("dai", 18)],
            derivatives=[(Asset("cdai", 8), "compound"), (Asset("lp", 18), "curve")],
        )

    def test_satisfies_protocol(self):
        assert isinstance(self.universe, AssetRegistry)

    def test_classify(self):
        assert self.universe.classify("usdc") == Classification.primitive()
        assert self.universe.classify("cdai") == Classification.derivative("compound")
        assert self.universe.classify("nope") == Classification.unregistered()

    def test_get_asset(self):
        assert self.universe.get_asset("usdc").decimals == 6
        assert self.universe.get_asset("cdai").decimals == 8

    def test_get_unknown_asset_raises(self):
        with pytest.raises(AssetNotRegisteredError) as exc_info:
            self.universe.get_asset("nope")
        assert exc_info.value.asset_id == "nope"

    def test_is_supported(self):
        assert self.universe.is_supported("dai")
        assert self.universe.is_supported("lp")
        assert not self.universe.is_supported("nope")

    def test_listing(self):
        assert self.universe.primitives() == ["dai", "usdc"]
        assert self.universe.derivatives() == ["cdai", "lp"]
        assert len(self.universe) == 4
        assert "dai" in self.universe
        assert "nope" not in self.universe

    def test_empty_universe(self):
        empty = AssetUniverse.build()
        assert len(empty) == 0
        assert not empty.classify("dai").is_registered

    def test_duplicate_primitive(self):
        with pytest.raises(DuplicateAssetError) as exc_info:
            AssetUniverse.build(primitives=[Asset("dai", 18), Asset("dai", 6)])
        assert exc_info.value.asset_id == "dai"

    def test_primitive_and_derivative_collision(self):
        with pytest.raises(DuplicateAssetError):
            AssetUniverse.build(
                primitives=[Asset("dai", 18)],
                derivatives=[(Asset("dai", 18), "wrap")],
            )

    def test_snapshot_is_read_only(self):
        with pytest.raises(AttributeError):
            self.universe.extra = 1
        with pytest.raises(TypeError):
            self.universe._assets["x"] = Asset("x", 1)

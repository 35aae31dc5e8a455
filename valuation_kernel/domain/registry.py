"""
AssetRegistry -- Read-only classification of assets.

Responsibility:
    Answers "what role does this asset play?" (unregistered / primitive /
    derivative-with-decomposer) and "what is its precision?".  The engine
    receives an ``AssetRegistry`` handle by injection; there is no global
    registry.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - An asset id appears at most once in an ``AssetUniverse``, as either
      a primitive or a derivative, never both.
    - ``AssetUniverse`` is frozen after construction; registration and
      governance happen elsewhere and produce a new snapshot.

Failure modes:
    - DuplicateAssetError when a universe is built with a repeated id.
    - AssetNotRegisteredError from ``get_asset`` for unknown ids.
      ``classify`` never raises for unknown ids; it reports UNREGISTERED.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Protocol, runtime_checkable

from valuation_kernel.domain.values import Asset, Classification
from valuation_kernel.exceptions import AssetNotRegisteredError, DuplicateAssetError
from valuation_kernel.logging_config import get_logger

logger = get_logger("domain.registry")


@runtime_checkable
class AssetRegistry(Protocol):
    """Protocol for the read-only asset registry consulted by the engine."""

    def classify(self, asset_id: str) -> Classification:
        """Return the asset's classification; UNREGISTERED if unknown."""
        ...

    def get_asset(self, asset_id: str) -> Asset:
        """Return the registered asset.

        Raises:
            AssetNotRegisteredError: When the asset is not registered.
        """
        ...


class AssetUniverse:
    """
    Immutable in-memory AssetRegistry snapshot.

    Contract:
        Built once via ``build()``; never mutated afterwards.  Lookups are
        O(1) dict reads.

    Guarantees:
        - ``classify()`` is total: unknown ids are UNREGISTERED.
        - Two lookups against the same universe always agree.

    Non-goals:
        - Does NOT add, remove or update assets after construction.
        - Does NOT check that a derivative's decomposer id resolves; the
          engine reports a missing decomposer as a hard failure at use.
    """

    __slots__ = ("_assets", "_classifications")

    def __init__(
        self,
        assets: Mapping[str, Asset],
        classifications: Mapping[str, Classification],
    ):
        self._assets = MappingProxyType(dict(assets))
        self._classifications = MappingProxyType(dict(classifications))

    @classmethod
    def build(
        cls,
        primitives: Iterable[Asset] = (),
        derivatives: Iterable[tuple[Asset, str]] = (),
    ) -> AssetUniverse:
        """
        Build a universe from primitive assets and (derivative, decomposer_id) pairs.

        Raises:
            DuplicateAssetError: If any asset id is declared more than once.
        """
        assets: dict[str, Asset] = {}
        classifications: dict[str, Classification] = {}

        for asset in primitives:
            if asset.asset_id in assets:
                raise DuplicateAssetError(asset.asset_id)
            assets[asset.asset_id] = asset
            classifications[asset.asset_id] = Classification.primitive()

        for asset, decomposer_id in derivatives:
            if asset.asset_id in assets:
                raise DuplicateAssetError(asset.asset_id)
            assets[asset.asset_id] = asset
            classifications[asset.asset_id] = Classification.derivative(decomposer_id)

        universe = cls(assets, classifications)
        logger.debug(
            "asset_universe_built",
            extra={
                "primitive_count": len(universe.primitives()),
                "derivative_count": len(universe.derivatives()),
            },
        )
        return universe

    def classify(self, asset_id: str) -> Classification:
        return self._classifications.get(asset_id, Classification.unregistered())

    def get_asset(self, asset_id: str) -> Asset:
        try:
            return self._assets[asset_id]
        except KeyError:
            raise AssetNotRegisteredError(asset_id) from None

    def is_supported(self, asset_id: str) -> bool:
        """True if the asset is registered as a primitive or a derivative."""
        return asset_id in self._classifications

    def primitives(self) -> list[str]:
        """Sorted ids of registered primitives."""
        return sorted(
            asset_id for asset_id, c in self._classifications.items() if c.is_primitive
        )

    def derivatives(self) -> list[str]:
        """Sorted ids of registered derivatives."""
        return sorted(
            asset_id for asset_id, c in self._classifications.items() if c.is_derivative
        )

    def __len__(self) -> int:
        return len(self._assets)

    def __contains__(self, asset_id: object) -> bool:
        return asset_id in self._assets

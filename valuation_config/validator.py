"""
Configuration Validator (``valuation_config.validator``).

Responsibility
--------------
Validates a ``ValuationConfigSet`` before it is turned into kernel
collaborators, so that configuration defects surface at load time
rather than as hard failures in the middle of a valuation.

Invariants enforced
-------------------
* Asset id uniqueness across primitives and derivatives.
* Every rate pair references registered primitives.
* Every underlying of a rate-based derivative is a registered asset.
* Every external decomposer id is among the supplied decomposers.
* No derivative lists itself as its own underlying.
* Rate-based derivatives form no cycles (a -> b -> a), which would
  otherwise only surface as RecursionDepthExceededError at valuation.

Failure modes
-------------
* Errors (``ConfigValidationResult.errors``)  -> configuration MUST NOT
  be used.
* Warnings (``ConfigValidationResult.warnings``)  -> usable, but should
  be reviewed (e.g. a primitive with no rates at all).
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Collection
from dataclasses import dataclass, field

from valuation_config.schema import ValuationConfigSet


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    Contract
    --------
    * ``is_valid`` returns ``True`` only when ``errors`` is empty.
    * Warnings do not block use but should be reviewed.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_configuration(
    config: ValuationConfigSet,
    decomposer_ids: Collection[str] = (),
) -> ConfigValidationResult:
    """
    Validate a configuration set.

    Args:
        config: Parsed configuration set.
        decomposer_ids: Ids of the externally supplied decomposers.

    Returns:
        ConfigValidationResult; never raises for content problems.
    """
    result = ConfigValidationResult()
    _validate_unique_assets(config, result)
    _validate_rates(config, result)
    _validate_derivatives(config, decomposer_ids, result)
    _validate_acyclic(config, result)
    return result


def _validate_unique_assets(config: ValuationConfigSet, result: ConfigValidationResult) -> None:
    ids = [a.asset_id for a in config.primitives] + [d.asset.asset_id for d in config.derivatives]
    for asset_id, count in sorted(Counter(ids).items()):
        if count > 1:
            result.add_error(f"Asset '{asset_id}' is declared {count} times")


def _validate_rates(config: ValuationConfigSet, result: ConfigValidationResult) -> None:
    primitives = {a.asset_id for a in config.primitives}
    seen: set[tuple[str, str]] = set()
    for rate in config.rates:
        pair = (rate.base, rate.quote)
        if pair in seen:
            result.add_error(f"Rate {rate.base}->{rate.quote} is declared more than once")
        seen.add(pair)
        for side, asset_id in (("base", rate.base), ("quote", rate.quote)):
            if asset_id not in primitives:
                result.add_error(
                    f"Rate {rate.base}->{rate.quote}: {side} '{asset_id}' is not a registered primitive"
                )

    priced = {rate.base for rate in config.rates} | {rate.quote for rate in config.rates}
    for asset_id in sorted(primitives - priced):
        result.add_warning(f"Primitive '{asset_id}' has no configured rates")


def _validate_derivatives(
    config: ValuationConfigSet,
    decomposer_ids: Collection[str],
    result: ConfigValidationResult,
) -> None:
    known = {a.asset_id for a in config.primitives} | {d.asset.asset_id for d in config.derivatives}
    for derivative in config.derivatives:
        asset_id = derivative.asset.asset_id
        if not derivative.is_rate_based:
            if derivative.decomposer not in decomposer_ids:
                result.add_error(
                    f"Derivative '{asset_id}' references unknown decomposer '{derivative.decomposer}'"
                )
            continue

        if not derivative.underlying_rates:
            result.add_warning(f"Derivative '{asset_id}' has no underlyings and always values to 0")
        for underlying in derivative.underlying_rates:
            if underlying.asset_id == asset_id:
                result.add_error(f"Derivative '{asset_id}' lists itself as an underlying")
            elif underlying.asset_id not in known:
                result.add_error(
                    f"Derivative '{asset_id}': underlying '{underlying.asset_id}' is not registered"
                )


def _validate_acyclic(config: ValuationConfigSet, result: ConfigValidationResult) -> None:
    """
    Depth-first search over rate-based underlyings; one error per back edge.

    Self-references are reported by ``_validate_derivatives`` and skipped
    here.  External decomposers are opaque, so only rate-based edges count.
    """
    edges = {
        d.asset.asset_id: sorted(
            {u.asset_id for u in d.underlying_rates if u.asset_id != d.asset.asset_id}
        )
        for d in config.derivatives
        if d.is_rate_based
    }
    done: set[str] = set()
    path: list[str] = []

    def visit(asset_id: str) -> None:
        path.append(asset_id)
        for child in edges.get(asset_id, ()):
            if child in path:
                cycle = path[path.index(child):] + [child]
                result.add_error(f"Derivatives form a cycle: {' -> '.join(cycle)}")
            elif child in edges and child not in done:
                visit(child)
        path.pop()
        done.add(asset_id)

    for asset_id in sorted(edges):
        if asset_id not in done:
            visit(asset_id)

"""
Configuration Loader (``valuation_config.loader``).

Responsibility
--------------
Loads a YAML asset-universe file and parses it into typed
``valuation_config.schema`` dataclass instances.  Human-readable figures
(``"0.25"``) are converted to scaled integers here, so nothing
downstream ever sees a float.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Consumed by
``valuation_config.get_value_interpreter``.  Depends on the kernel only
for fixed-point parsing.

Invariants enforced
-------------------
* All parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required fields.
* Unquoted decimal figures (YAML floats) are rejected: binary floats
  cannot represent most rates exactly.
* Validity flags must be YAML booleans; ``"false"`` is an error, not True.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Non-boolean validity flags  -> ``ValueError``.
* Bad figures or inconsistent derivative declarations  -> ``ValueError``.

Expected layout::

    config_id: example-universe
    version: 1
    engine:
      max_depth: 16
    primitives:
      - {asset_id: usdc, decimals: 6, symbol: USDC}
    derivatives:
      - asset_id: cdai
        decimals: 8
        underlying_rates:
          - {asset_id: dai, rate: "0.0215"}
      - {asset_id: curve-lp, decimals: 18, decomposer: curve}
    rates:
      - {base: dai, quote: usdc, canonical: "1", live: "0.9998"}
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any

import yaml

from valuation_config.schema import (
    AssetDef,
    DerivativeDef,
    EngineSettings,
    RateDef,
    UnderlyingRateDef,
    ValuationConfigSet,
)
from valuation_kernel.domain.fixed_point import RATE_DECIMALS, to_units


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def parse_rate_figure(value: Any, decimals: int, where: str) -> int:
    """
    Parse a whole-unit ratio (``"0.25"``, ``1``) into an int at ``decimals`` scale.

    ``decimals`` is the precision of the asset the rate is denominated in
    (the quote of a rate pair, the underlying of a derivative), so that
    floor(amount * rate / 10**decimals(base)) lands in that asset's units.
    For 18-decimal assets this is exactly the RATE_UNIT scale.
    """
    if isinstance(value, float):
        raise ValueError(f"{where}: quote decimal figures as strings, got float {value!r}")
    try:
        return to_units(value, decimals)
    except ValueError as exc:
        raise ValueError(f"{where}: {exc}") from exc


def parse_validity_flag(data: Mapping[str, Any], key: str, where: str) -> bool:
    """Read an optional validity flag; absent means valid, anything but a bool is an error."""
    value = data.get(key, True)
    if not isinstance(value, bool):
        raise ValueError(f"{where}.{key}: must be true or false, got {value!r}")
    return value


def _decimals(decimals_of: Mapping[str, int], asset_id: str) -> int:
    # Unknown assets are reported by the validator; scale them as RATE_UNIT.
    decimals = decimals_of.get(asset_id, RATE_DECIMALS)
    return decimals if isinstance(decimals, int) else RATE_DECIMALS


def parse_engine_settings(data: dict[str, Any] | None) -> EngineSettings:
    """Parse engine settings; absent section means defaults."""
    if not data:
        return EngineSettings()
    max_depth = data.get("max_depth", EngineSettings().max_depth)
    if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 0:
        raise ValueError(f"engine.max_depth must be a non-negative int, got {max_depth!r}")
    return EngineSettings(max_depth=max_depth)


def parse_asset(data: dict[str, Any]) -> AssetDef:
    """Parse an AssetDef from a dict."""
    return AssetDef(
        asset_id=str(data["asset_id"]),
        decimals=data["decimals"],
        symbol=data.get("symbol"),
    )


def parse_derivative(data: dict[str, Any], decimals_of: Mapping[str, int]) -> DerivativeDef:
    """
    Parse a DerivativeDef from a dict.

    Underlying rates are scaled by each underlying's decimals (see
    ``parse_rate_figure``).

    Raises:
        KeyError: if ``asset_id`` or ``decimals`` is missing.
        ValueError: if both or neither of ``decomposer`` and
            ``underlying_rates`` are given.
    """
    asset = parse_asset(data)
    decomposer = data.get("decomposer")
    raw_rates = data.get("underlying_rates")

    if decomposer is not None and raw_rates is not None:
        raise ValueError(
            f"Derivative {asset.asset_id}: give either 'decomposer' or "
            "'underlying_rates', not both"
        )
    if decomposer is None and raw_rates is None:
        raise ValueError(
            f"Derivative {asset.asset_id}: one of 'decomposer' or "
            "'underlying_rates' is required"
        )

    underlying_rates = tuple(
        UnderlyingRateDef(
            asset_id=str(item["asset_id"]),
            rate=parse_rate_figure(
                item["rate"],
                _decimals(decimals_of, str(item["asset_id"])),
                f"{asset.asset_id}.underlying_rates[{i}]",
            ),
        )
        for i, item in enumerate(raw_rates or [])
    )
    return DerivativeDef(
        asset=asset,
        decomposer=str(decomposer) if decomposer is not None else None,
        underlying_rates=underlying_rates,
    )


def parse_rate(data: dict[str, Any], decimals_of: Mapping[str, int]) -> RateDef:
    """
    Parse a RateDef from a dict; at least one of canonical/live is required.

    Figures are scaled by the quote asset's decimals.
    """
    base = str(data["base"])
    quote = str(data["quote"])
    where = f"rates[{base}->{quote}]"
    decimals = _decimals(decimals_of, quote)

    if "canonical" not in data and "live" not in data:
        raise ValueError(f"{where}: at least one of 'canonical' or 'live' is required")

    return RateDef(
        base=base,
        quote=quote,
        canonical=(
            parse_rate_figure(data["canonical"], decimals, f"{where}.canonical")
            if "canonical" in data
            else None
        ),
        live=parse_rate_figure(data["live"], decimals, f"{where}.live") if "live" in data else None,
        canonical_valid=parse_validity_flag(data, "canonical_valid", where),
        live_valid=parse_validity_flag(data, "live_valid", where),
    )


def parse_config_set(data: dict[str, Any]) -> ValuationConfigSet:
    """
    Parse a complete ValuationConfigSet from a dict and stamp its checksum.

    Raises:
        KeyError: if ``config_id`` or ``version`` is missing.
        ValueError: if any section is malformed.
    """
    primitives = tuple(parse_asset(p) for p in data.get("primitives") or [])
    raw_derivatives = data.get("derivatives") or []
    decimals_of = {p.asset_id: p.decimals for p in primitives}
    decimals_of.update(
        (str(d["asset_id"]), d["decimals"]) for d in raw_derivatives
    )

    config_set = ValuationConfigSet(
        config_id=str(data["config_id"]),
        version=int(data["version"]),
        engine=parse_engine_settings(data.get("engine")),
        primitives=primitives,
        derivatives=tuple(parse_derivative(d, decimals_of) for d in raw_derivatives),
        rates=tuple(parse_rate(r, decimals_of) for r in data.get("rates") or []),
        description=str(data.get("description", "")),
    )
    return replace(config_set, checksum=compute_checksum(config_set))


def load_config_set(path: Path) -> ValuationConfigSet:
    """Load and parse a YAML configuration file."""
    return parse_config_set(load_yaml_file(Path(path)))


def compute_checksum(config_set: ValuationConfigSet) -> str:
    """
    Deterministic SHA-256 of a configuration set.

    The ``checksum`` field itself is excluded.  Integers are serialized
    as JSON integers, so wide rates hash exactly.
    """
    payload = asdict(config_set)
    payload.pop("checksum", None)
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

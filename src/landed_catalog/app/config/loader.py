from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from landed_catalog.app.models.config import EngineConfig

SUPPORTED_SCHEMA_VERSIONS = {1}


def _parse_ddp_matrix(raw: str) -> List[Dict[str, str]]:
    try:
        tiers = json.loads(raw)
        if not isinstance(tiers, list):
            raise TypeError("expected a list")
        return [{"max_weight_kg": str(tier["maxKg"]), "price": str(tier["priceSAR"])} for tier in tiers]
    except (ValueError, KeyError, TypeError) as exc:
        raise ValueError(
            f"KSA_DDP_MATRIX_JSON must be a JSON list of {{maxKg, priceSAR}} objects: {exc!r}"
        ) from exc


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    pricing: Dict[str, Any] = {}
    if environ.get("PRICE_MARGIN_DEFAULT"):
        pricing["margin"] = environ["PRICE_MARGIN_DEFAULT"]
    if environ.get("PRICE_FLOOR_SAR"):
        pricing["floor_price"] = environ["PRICE_FLOOR_SAR"]
    if environ.get("PRICE_ROUND_STEP"):
        pricing["round_to"] = environ["PRICE_ROUND_STEP"]
    if environ.get("PRICE_ENDINGS"):
        pricing["endings"] = [part.strip() for part in environ["PRICE_ENDINGS"].split(",") if part.strip()]
    if environ.get("KSA_DDP_DIVISOR"):
        pricing["volumetric_divisor"] = environ["KSA_DDP_DIVISOR"]
    if environ.get("KSA_DDP_MATRIX_JSON"):
        pricing["shipping_tiers"] = _parse_ddp_matrix(environ["KSA_DDP_MATRIX_JSON"])
    if environ.get("EXCHANGE_USD_TO_SAR"):
        pricing["fx_rates"] = {"USD": environ["EXCHANGE_USD_TO_SAR"]}

    overrides: Dict[str, Any] = {}
    if pricing:
        overrides["pricing"] = pricing
    if environ.get("CATALOG_TABLE"):
        overrides["catalog"] = {"table_name": environ["CATALOG_TABLE"]}
    return overrides


def _merge(base: Dict[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _merge(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


def load_engine_config(
    path: Optional[str | Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> EngineConfig:
    """Load the engine config from YAML, then apply environment overrides.

    With no path and no overrides every field takes its default.
    """
    data: Dict[str, Any] = {}
    if path is not None:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    data = _merge(data, _env_overrides(os.environ if environ is None else environ))
    config = EngineConfig.model_validate(data)
    if config.schema_version not in SUPPORTED_SCHEMA_VERSIONS:
        raise ValueError(f"Unsupported schema_version {config.schema_version}")
    return config

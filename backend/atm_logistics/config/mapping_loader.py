"""
Utilities for loading the spreadsheet column layout configuration.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

CONFIG_PATH = Path(__file__).resolve().parent / "column_layout.yaml"


@dataclass(frozen=True)
class FieldSpec:
    """How one logical import field is located in a sheet."""
    name: str
    index: int
    exact: Tuple[str, ...] = ()
    prefix: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()
    month_format: bool = False


def _as_tuple(value: Any) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


@lru_cache()
def load_layout_config(path: Optional[str] = None) -> Dict[str, Any]:
    config_path = Path(path) if path else CONFIG_PATH
    if not config_path.exists():
        return {}
    with open(config_path, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def build_field_specs(config: Dict[str, Any]) -> Dict[str, FieldSpec]:
    specs: Dict[str, FieldSpec] = {}
    for name, cfg in (config.get("fields") or {}).items():
        cfg = cfg or {}
        specs[name] = FieldSpec(
            name=name,
            index=int(cfg.get("index", -1)),
            exact=_as_tuple(cfg.get("exact")),
            prefix=_as_tuple(cfg.get("prefix")),
            exclude=_as_tuple(cfg.get("exclude")),
            month_format=bool(cfg.get("month_format", False)),
        )
    return specs


@lru_cache()
def get_column_layout() -> Dict[str, FieldSpec]:
    """Field name -> FieldSpec for the bundled layout."""
    return build_field_specs(load_layout_config())

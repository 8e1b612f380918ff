# conversion_patterns/data/adapters/factory.py
from __future__ import annotations

import importlib
from typing import Any, Dict, Optional

import yaml

from conversion_patterns.analysis.strategies import AnalysisTypeSpec


DEFAULT_ADAPTER_CLASS = "conversion_patterns.data.adapters.table.TableObservationAdapter"


def _import_class(class_path: str):
    """
    class_path looks like "conversion_patterns.data.adapters.table.TableObservationAdapter"
    """
    module_name, cls_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_name)
    return getattr(module, cls_name)


def load_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def build_adapter_from_config(
    adapter_cfg: Optional[Dict[str, Any]],
    spec: AnalysisTypeSpec,
    input_path: Optional[str] = None,
):
    """
    Build an observation adapter for one analysis type:
    - import adapter class (default: TableObservationAdapter)
    - adapter_class(spec=spec, **params)

    `input_path` overrides params.input_path (CLI/API override).
    """
    adapter_cfg = adapter_cfg or {}
    class_path = adapter_cfg.get("class_path", DEFAULT_ADAPTER_CLASS)
    params = dict(adapter_cfg.get("params", {}) or {})
    if input_path is not None:
        params["input_path"] = input_path

    cls = _import_class(class_path)
    return cls(spec=spec, **params)

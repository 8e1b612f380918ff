# conversion_patterns/utils/path_resolver.py
from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Mapping, MutableMapping


def get_project_root() -> Path:
    """
    Repository root (the directory holding `configs/`).

    This file lives in <root>/conversion_patterns/utils/, two levels below it.
    """
    return Path(__file__).resolve().parents[2]


_WIN_ABS_RE = re.compile(r"^[a-zA-Z]:[\\/]")

# keys that end like a path but hold dotted import paths
_NON_PATH_KEYS = ("class_path", "module_path")


def _is_abs_path_str(s: str) -> bool:
    """Absolute path check that also accepts Windows drive and UNC forms."""
    if not s:
        return False
    if _WIN_ABS_RE.match(s) or s.startswith("\\\\"):
        return True
    return s.startswith("/")


def _should_resolve_key(key: str) -> bool:
    k = key.lower()
    if k in _NON_PATH_KEYS:
        return False
    return k.endswith("_path") or k.endswith("_dir") or k.endswith("_root")


def resolve_path(value: str, base: Path | None = None) -> str:
    """
    Expand ${VAR} and ~, then anchor relative paths at `base`
    (project root by default). Absolute paths are returned as-is.
    """
    if base is None:
        base = get_project_root()
    expanded = str(Path(os.path.expandvars(value)).expanduser())
    if _is_abs_path_str(expanded):
        return str(Path(expanded))
    return str((base / expanded).resolve())


def resolve_paths_in_config(cfg: Any, base: Path | None = None) -> Any:
    """
    Walk a YAML-loaded config (dicts/lists) and resolve every value whose key
    looks like a path (`*_path`, `*_dir`, `*_root`). Returns a copy.
    """
    if base is None:
        base = get_project_root()

    if isinstance(cfg, Mapping):
        out: MutableMapping[str, Any] = dict(cfg)
        for k, v in cfg.items():
            if isinstance(v, str) and _should_resolve_key(str(k)):
                out[k] = resolve_path(v, base)
            else:
                out[k] = resolve_paths_in_config(v, base)
        return out

    if isinstance(cfg, list):
        return [resolve_paths_in_config(x, base) for x in cfg]

    return cfg

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict

import yaml


def _manifest_root() -> Path:
    # syspolicy_installer/lib/manifests.py -> syspolicy_installer/manifests
    return Path(__file__).resolve().parents[1] / "manifests"


def load_yaml(path: Path) -> Dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Manifest must be a mapping/dict: {path}")
    return data


def load_manifest(name: str) -> Dict[str, Any]:
    """Load a bundled YAML manifest (manifests/<name>.yaml)."""
    return load_yaml(_manifest_root() / f"{name}.yaml")


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge `override` into a copy of `base`; nested mappings merge, everything else replaces."""

    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = deep_merge(out[key], value)
        else:
            out[key] = copy.deepcopy(value)
    return out

"""Install targets: what a prerequisite is, how to detect it, how to install it."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

DETECTION_KINDS = {"binary", "versioned_binary", "python_module"}


@dataclass(frozen=True)
class Detection:
    kind: str
    names: Tuple[str, ...] = ()
    prefixes: Tuple[str, ...] = ()
    version: Optional[str] = None
    module: Optional[str] = None


@dataclass(frozen=True)
class InstallMethod:
    tag: str
    params: Mapping[str, Any] = field(default_factory=dict)
    requires: Tuple[str, ...] = ()


@dataclass(frozen=True)
class EnvironmentBlock:
    marker: str
    shellenv: bool = False
    exports: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class InstallTarget:
    name: str
    label: str
    detect: Detection
    methods: Tuple[InstallMethod, ...]
    hint: Optional[str] = None
    environment: Optional[EnvironmentBlock] = None


@dataclass(frozen=True)
class MethodOutcome:
    ok: bool
    detail: str = ""


@dataclass(frozen=True)
class Resolution:
    command: str
    installed: bool


def _detection_from_raw(name: str, raw: Dict[str, Any]) -> Detection:
    kind = str(raw.get("kind") or "binary")
    if kind not in DETECTION_KINDS:
        raise ValueError(f"targets.{name}.detect.kind must be one of {sorted(DETECTION_KINDS)}, got {kind!r}")
    names = tuple(str(n) for n in (raw.get("names") or []))
    if kind != "python_module" and not names:
        raise ValueError(f"targets.{name}.detect.names must list at least one binary")
    version = raw.get("version")
    if kind == "versioned_binary" and not version:
        raise ValueError(f"targets.{name}.detect.version is required for versioned_binary")
    if kind == "python_module" and not raw.get("module"):
        raise ValueError(f"targets.{name}.detect.module is required for python_module")
    return Detection(
        kind=kind,
        names=names,
        prefixes=tuple(str(p) for p in (raw.get("prefixes") or [])),
        version=str(version) if version else None,
        module=raw.get("module"),
    )


def _method_from_raw(name: str, raw: Dict[str, Any]) -> InstallMethod:
    tag = raw.get("tag")
    if not tag:
        raise ValueError(f"targets.{name}.methods entries need a tag")
    params = {k: v for k, v in raw.items() if k not in {"tag", "requires"}}
    return InstallMethod(tag=str(tag), params=params, requires=tuple(raw.get("requires") or ()))


def target_from_raw(name: str, raw: Dict[str, Any]) -> InstallTarget:
    env_raw = raw.get("environment")
    environment = None
    if env_raw:
        environment = EnvironmentBlock(
            marker=str(env_raw["marker"]),
            shellenv=bool(env_raw.get("shellenv", False)),
            exports={str(k): str(v) for k, v in (env_raw.get("exports") or {}).items()},
        )
    return InstallTarget(
        name=name,
        label=str(raw.get("label") or name),
        detect=_detection_from_raw(name, raw.get("detect") or {}),
        methods=tuple(_method_from_raw(name, m) for m in (raw.get("methods") or [])),
        hint=raw.get("hint"),
        environment=environment,
    )


def load_targets(targets_raw: Dict[str, Any]) -> Dict[str, InstallTarget]:
    targets = {name: target_from_raw(name, body or {}) for name, body in targets_raw.items()}
    for t in targets.values():
        for m in t.methods:
            missing = [r for r in m.requires if r not in targets]
            if missing:
                raise ValueError(f"targets.{t.name}: method {m.tag} requires unknown target(s) {missing}")
    return targets

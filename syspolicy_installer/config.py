from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .lib.manifests import deep_merge, load_manifest, load_yaml

logger = logging.getLogger(__name__)

PROFILE_ENV = "SYSPOLICY_INSTALLER_PROFILE"
CONFIG_ENV = "SYSPOLICY_INSTALLER_CONFIG"


@dataclass(frozen=True)
class InstallerConfig:
    raw: Dict[str, Any]
    profile: str = "clone"

    def _section(self, name: str) -> Dict[str, Any]:
        return self.raw.get(name) or {}

    @property
    def brew_prefix(self) -> str:
        return str(self._section("paths").get("brew_prefix") or "{home}/.local/homebrew")

    @property
    def bin_dir(self) -> str:
        return str(self._section("paths").get("bin_dir") or "{home}/.local/bin")

    @property
    def project_dir(self) -> str:
        return str(self._section("paths").get("project_dir") or "{home}/.local/share/src/syspolicy")

    @property
    def cache_dir(self) -> str:
        return str(self._section("paths").get("cache_dir") or "{home}/.cache/homebrew")

    @property
    def repo_url(self) -> str:
        return str(self._section("repository")["url"])

    @property
    def repo_archive_url(self) -> str:
        return str(self._section("repository")["archive_url"])

    @property
    def repo_archive_name(self) -> str:
        return str(self._section("repository").get("archive_name") or "repository.zip")

    @property
    def clone_timeout(self) -> Optional[float]:
        v = self._section("repository").get("clone_timeout")
        return float(v) if v else None

    @property
    def download_timeout(self) -> Optional[float]:
        v = self._section("repository").get("download_timeout")
        return float(v) if v else None

    @property
    def requirements_candidates(self) -> List[str]:
        return list(self._section("requirements").get("candidates") or ["requirements.txt"])

    @property
    def launcher_name(self) -> str:
        return str(self._section("launcher").get("name") or "syspolicy")

    @property
    def entry_point(self) -> str:
        return str(self._section("launcher").get("entry_point") or "syspolicy.py")

    @property
    def entry_point_candidates(self) -> List[str]:
        return list(self._section("launcher").get("entry_point_candidates") or [self.entry_point])

    @property
    def update_args(self) -> List[str]:
        return [str(a) for a in (self._section("package_manager_update").get("args") or ["update"])]

    @property
    def targets(self) -> Dict[str, Any]:
        return self._section("targets")


def load_installer_config(
    *,
    profile: Optional[str] = None,
    extra_path: Optional[str] = None,
) -> InstallerConfig:
    """Bundled manifest, then the selected profile, then an optional operator file."""

    raw = load_manifest("installer")
    chosen = profile or str(raw.get("default_profile") or "clone")

    profiles = raw.get("profiles") or {}
    if chosen not in profiles:
        raise ValueError(f"Unknown installer profile {chosen!r} (known: {', '.join(sorted(profiles))})")
    merged = deep_merge(raw, profiles[chosen] or {})

    if extra_path:
        p = Path(extra_path).expanduser()
        if not p.exists():
            raise FileNotFoundError(extra_path)
        if p.suffix.lower() not in {".yaml", ".yml"}:
            raise ValueError("installer config override must be YAML")
        merged = deep_merge(merged, load_yaml(p))
        logger.debug("Applied config override %s", p)

    return InstallerConfig(raw=merged, profile=chosen)

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, MutableMapping, Optional

from .config import InstallerConfig
from .lib.command import Runner, run_cmd
from .lib.confirm import ConfirmationGate
from .state import ProvisioningState
from .targets import InstallTarget, load_targets


@dataclass
class InstallerCtx:
    """Everything a step needs besides the ProvisioningState."""

    cfg: InstallerConfig
    gate: ConfirmationGate
    home: Path
    env: MutableMapping[str, str] = field(default_factory=lambda: os.environ)
    run: Runner = run_cmd
    project_dir_override: Optional[str] = None
    _targets: Optional[Dict[str, InstallTarget]] = field(default=None, repr=False)

    @property
    def targets(self) -> Dict[str, InstallTarget]:
        if self._targets is None:
            self._targets = load_targets(self.cfg.targets)
        return self._targets

    def target(self, name: str) -> InstallTarget:
        try:
            return self.targets[name]
        except KeyError:
            raise KeyError(f"No install target named {name!r} in installer manifest") from None

    def variables(self, state: Optional[ProvisioningState] = None) -> Dict[str, str]:
        home = str(self.home)
        brew_prefix = self.cfg.brew_prefix.format(home=home)
        out = {
            "home": home,
            "brew_prefix": brew_prefix,
            "bin_dir": self.cfg.bin_dir.format(home=home),
            "cache_dir": self.cfg.cache_dir.format(home=home),
            "pm_prefix": brew_prefix,
        }
        out["project_dir"] = str(self.project_dir)
        if state is not None and state.package_manager_prefix:
            out["pm_prefix"] = state.package_manager_prefix
        return out

    def expand(self, template: str, state: Optional[ProvisioningState] = None) -> str:
        return str(template).format_map(self.variables(state))

    @property
    def path(self) -> str:
        return self.env.get("PATH", "")

    @property
    def brew_prefix(self) -> Path:
        return Path(self.cfg.brew_prefix.format(home=str(self.home)))

    @property
    def bin_dir(self) -> Path:
        return Path(self.cfg.bin_dir.format(home=str(self.home)))

    @property
    def cache_dir(self) -> Path:
        return Path(self.cfg.cache_dir.format(home=str(self.home)))

    @property
    def project_dir(self) -> Path:
        override = self.project_dir_override
        if override:
            # "~" means the operator's home as seen by this run, not the process default.
            if override == "~" or override.startswith("~/"):
                return self.home / override[2:]
            return Path(override).expanduser()
        return Path(self.cfg.project_dir.format(home=str(self.home)))

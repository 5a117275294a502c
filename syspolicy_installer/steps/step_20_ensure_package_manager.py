from __future__ import annotations

import logging
from pathlib import Path

from ..context import InstallerCtx
from ..installer import DependencyInstaller
from ..state import ProvisioningState

logger = logging.getLogger(__name__)


class EnsurePackageManagerStep:
    step_id = "20_ensure_package_manager"
    required = True

    def run(self, ctx: InstallerCtx, state: ProvisioningState) -> ProvisioningState:
        target = ctx.target("package_manager")
        installer = DependencyInstaller(ctx)

        resolution = installer.ensure(target, state)
        state.package_manager = resolution.command

        brew = Path(resolution.command)
        # <prefix>/bin/brew -> <prefix>; a PATH hit keeps the configured prefix.
        state.package_manager_prefix = str(brew.parent.parent) if brew.is_absolute() else str(ctx.brew_prefix)

        if resolution.installed:
            installer.apply_environment(target, resolution.command, state)

        logger.info("Brew command: %s", state.package_manager)
        return state

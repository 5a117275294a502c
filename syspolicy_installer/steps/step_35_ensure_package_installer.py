from __future__ import annotations

import logging

from ..context import InstallerCtx
from ..installer import DependencyInstaller
from ..state import ProvisioningState

logger = logging.getLogger(__name__)


class EnsurePackageInstallerStep:
    step_id = "35_ensure_package_installer"
    required = True

    def run(self, ctx: InstallerCtx, state: ProvisioningState) -> ProvisioningState:
        if not state.runtime:
            raise RuntimeError("runtime not resolved; run 30_ensure_runtime first")

        resolution = DependencyInstaller(ctx).ensure(ctx.target("package_installer"), state)
        state.package_installer = resolution.command
        logger.info("pip command: %s", state.package_installer)
        return state

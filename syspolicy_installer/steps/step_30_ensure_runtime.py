from __future__ import annotations

import logging

from ..context import InstallerCtx
from ..installer import DependencyInstaller
from ..state import ProvisioningState

logger = logging.getLogger(__name__)


class EnsureRuntimeStep:
    step_id = "30_ensure_runtime"
    required = True

    def run(self, ctx: InstallerCtx, state: ProvisioningState) -> ProvisioningState:
        if not state.package_manager:
            raise RuntimeError("package manager not resolved; run 20_ensure_package_manager first")

        resolution = DependencyInstaller(ctx).ensure(ctx.target("runtime"), state)
        state.runtime = resolution.command
        logger.info("Python command: %s", state.runtime)
        return state

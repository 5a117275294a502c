from __future__ import annotations

import logging

from ..context import InstallerCtx
from ..lib.probe import detect_architecture, detect_shell, shell_profile_path
from ..state import ProvisioningState

logger = logging.getLogger(__name__)


class ProbeEnvironmentStep:
    step_id = "10_probe_environment"
    required = True

    def run(self, ctx: InstallerCtx, state: ProvisioningState) -> ProvisioningState:
        state.arch = detect_architecture()
        state.shell = detect_shell(ctx.env)
        state.profile_path = shell_profile_path(state.shell, ctx.home)

        logger.info("Detected architecture: %s", state.arch)
        logger.info("Shell: %s (profile %s)", state.shell, state.profile_path)
        logger.info("Homebrew prefix: %s", ctx.brew_prefix)
        logger.info("Session mode: %s", ctx.gate.mode.value)
        return state

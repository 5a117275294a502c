from __future__ import annotations

import logging

from ..context import InstallerCtx
from ..launcher import synthesize
from ..state import ProvisioningState

logger = logging.getLogger(__name__)


class SynthesizeLauncherStep:
    step_id = "60_synthesize_launcher"
    required = True

    def run(self, ctx: InstallerCtx, state: ProvisioningState) -> ProvisioningState:
        if not state.runtime or not state.project_dir:
            raise RuntimeError("runtime and project dir must be resolved before writing the launcher")

        synthesize(
            state.runtime,
            state.project_dir,
            ctx.bin_dir / ctx.cfg.launcher_name,
            ctx=ctx,
            state=state,
        )
        return state

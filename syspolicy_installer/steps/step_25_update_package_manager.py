from __future__ import annotations

import logging

from ..context import InstallerCtx
from ..errors import StepSkipped, UnresolvedDependency
from ..installer import command_argv
from ..logging_utils import log_success
from ..state import ProvisioningState

logger = logging.getLogger(__name__)


class UpdatePackageManagerStep:
    step_id = "25_update_package_manager"
    required = False

    def run(self, ctx: InstallerCtx, state: ProvisioningState) -> ProvisioningState:
        if not state.package_manager:
            raise RuntimeError("package manager not resolved; run 20_ensure_package_manager first")

        if not ctx.gate.confirm("Update Homebrew before installing Python?"):
            raise StepSkipped("Homebrew update declined")

        r = ctx.run([*command_argv(state.package_manager), *ctx.cfg.update_args], check=False, capture=False)
        if not r.ok:
            raise UnresolvedDependency(
                f"Homebrew update failed (rc={r.returncode})",
                hint=f"Run `{state.package_manager} update` manually to see the error, or decline the update when re-running.",
            )
        log_success(logger, "Homebrew updated")
        return state

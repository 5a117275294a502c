from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from ..context import InstallerCtx
from ..errors import StepSkipped, UnresolvedDependency
from ..installer import command_argv
from ..logging_utils import log_success
from ..state import ProvisioningState

logger = logging.getLogger(__name__)


def find_requirements(project_dir: Path, candidates: Sequence[str]) -> Optional[Path]:
    for rel in candidates:
        p = (project_dir / rel).resolve()
        if p.is_file():
            return p
    return None


class InstallDependenciesStep:
    step_id = "50_install_dependencies"
    required = False

    def run(self, ctx: InstallerCtx, state: ProvisioningState) -> ProvisioningState:
        if not state.project_dir or not state.package_installer:
            raise RuntimeError("project dir and pip must be resolved before installing dependencies")

        req = find_requirements(state.project_dir, ctx.cfg.requirements_candidates)
        if req is None:
            raise UnresolvedDependency(
                f"Could not find requirements.txt in {state.project_dir}",
                hint="Ensure requirements.txt exists in the project directory, then re-run.",
            )
        state.requirements_file = req
        logger.info("Found requirements file: %s", req)

        if not ctx.gate.confirm(f"Install Python dependencies from {req.name}?"):
            raise StepSkipped("dependency installation declined")

        r = ctx.run(
            [*command_argv(state.package_installer), "install", "-r", str(req)],
            check=False,
            cwd=str(state.project_dir),
            capture=False,
        )
        if not r.ok:
            raise UnresolvedDependency(
                f"Dependency installation from {req} failed (pip exited {r.returncode})",
                hint=f"Inspect the pip output above, then retry: {state.package_installer} install -r {req}",
            )
        log_success(logger, "Dependencies installed")
        return state

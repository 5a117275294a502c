from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from ..context import InstallerCtx
from ..logging_utils import log_success
from ..state import ProvisioningState

logger = logging.getLogger(__name__)


def find_entry_point(project_dir: Path, candidates: Sequence[str]) -> Optional[str]:
    for name in candidates:
        if (project_dir / name).is_file():
            return name
    return None


class ReportSummaryStep:
    step_id = "90_report_summary"
    required = True

    def run(self, ctx: InstallerCtx, state: ProvisioningState) -> ProvisioningState:
        if state.project_dir is not None:
            state.entry_point = find_entry_point(state.project_dir, ctx.cfg.entry_point_candidates)

        log_success(logger, "Installation completed successfully!")
        logger.info("Installation summary:")
        for label, value in (
            ("Architecture", state.arch),
            ("Installer profile", ctx.cfg.profile),
            ("Homebrew prefix", state.package_manager_prefix),
            ("Brew command", state.package_manager),
            ("Python command", state.runtime),
            ("pip command", state.package_installer),
            ("Project directory", state.project_dir),
            ("Launcher", state.launcher_path),
            ("Script directory", ctx.bin_dir),
            ("Homebrew cache", ctx.cache_dir),
            ("Installed this run", ", ".join(state.installed) or "nothing"),
            ("Skipped steps", ", ".join(state.skipped_steps) or "none"),
        ):
            logger.info("  - %s: %s", label, value)

        if state.entry_point:
            log_success(logger, "Found main application file: %s", state.entry_point)
            logger.info("Run it with `%s` from anywhere, or: cd %s && %s %s",
                        ctx.cfg.launcher_name, state.project_dir, state.runtime, state.entry_point)
        else:
            logger.warning("No main application file found in %s", state.project_dir)
            py_files = sorted(p.name for p in state.project_dir.glob("*.py")) if state.project_dir else []
            logger.info("Available Python files: %s", ", ".join(py_files) or "none")

        profile = state.profile_path or "~/.profile"
        logger.info("Next steps: restart your terminal or run `source %s`, then run `%s`",
                    profile, ctx.cfg.launcher_name)
        return state

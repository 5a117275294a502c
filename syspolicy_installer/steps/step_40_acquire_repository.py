from __future__ import annotations

import logging

from ..acquire import RepositoryAcquirer
from ..context import InstallerCtx
from ..state import ProvisioningState

logger = logging.getLogger(__name__)


class AcquireRepositoryStep:
    step_id = "40_acquire_repository"
    required = True

    def run(self, ctx: InstallerCtx, state: ProvisioningState) -> ProvisioningState:
        cfg = ctx.cfg
        logger.info("Target project directory: %s", ctx.project_dir)

        state.project_dir = RepositoryAcquirer(ctx).acquire(
            cfg.repo_url,
            cfg.repo_archive_url,
            ctx.project_dir,
            archive_name=cfg.repo_archive_name,
        )
        return state

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Protocol, Sequence

from .context import InstallerCtx
from .errors import StepSkipped
from .state import ProvisioningState

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single idempotent step."""

    step_id: str
    required: bool

    def run(self, ctx: InstallerCtx, state: ProvisioningState) -> ProvisioningState:
        ...


@dataclass(frozen=True)
class PipelineResult:
    state: ProvisioningState
    ran_steps: List[str]
    skipped_steps: List[str]


def run_pipeline(
    *,
    ctx: InstallerCtx,
    state: ProvisioningState,
    steps: Sequence[Step],
) -> PipelineResult:
    """Run steps in order; any InstallerError ends the run.

    Only optional steps may be skipped. A required step that raises
    StepSkipped is a programming error and propagates.
    """

    for step in steps:
        logger.debug("Running step %s", step.step_id)
        try:
            state = step.run(ctx, state)
        except StepSkipped as e:
            if step.required:
                raise RuntimeError(f"Required step {step.step_id} cannot be skipped") from e
            logger.warning("Skipping %s: %s", step.step_id, e)
            state.skipped_steps.append(step.step_id)
            continue
        state.ran_steps.append(step.step_id)

    return PipelineResult(state=state, ran_steps=list(state.ran_steps), skipped_steps=list(state.skipped_steps))

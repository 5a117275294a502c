from __future__ import annotations

import enum
import logging
import sys
from dataclasses import dataclass, field
from typing import Callable, TextIO

from ..errors import NonInteractiveSession

logger = logging.getLogger(__name__)


class SessionMode(enum.Enum):
    INTERACTIVE = "interactive"
    NON_INTERACTIVE = "non_interactive"


class Decision(enum.Enum):
    PROCEED = "proceed"
    ABORT = "abort"
    ASK = "ask"


RERUN_HINT = (
    "For automated installation, re-run with the -y flag, e.g. "
    "`curl -sL <installer-url> | bash -s -- -y`, or download the installer and run it from a terminal."
)

_ACCEPT = {"", "y", "yes"}


def decide(*, auto_yes: bool, mode: SessionMode) -> Decision:
    if auto_yes:
        return Decision.PROCEED
    if mode is SessionMode.INTERACTIVE:
        return Decision.ASK
    return Decision.ABORT


@dataclass
class ConfirmationGate:
    """Decides whether a state-mutating action may proceed.

    Never falls back to the prompt's default answer when there is nobody to
    ask: a non-interactive session without -y raises NonInteractiveSession.
    """

    auto_yes: bool
    mode: SessionMode
    input_fn: Callable[[], str] = field(default=lambda: sys.stdin.readline())
    output: TextIO = field(default_factory=lambda: sys.stdout)

    def decide(self) -> Decision:
        return decide(auto_yes=self.auto_yes, mode=self.mode)

    def confirm(self, message: str) -> bool:
        decision = self.decide()

        if decision is Decision.PROCEED:
            logger.info("%s (auto-confirmed with -y flag)", message)
            return True

        if decision is Decision.ABORT:
            logger.error("Installer is running in non-interactive mode (likely piped from curl)")
            logger.error("Cannot ask: %s", message)
            raise NonInteractiveSession(
                "Confirmation required but the session is non-interactive",
                hint=RERUN_HINT,
            )

        self.output.write(f"[PROMPT] {message} [Y/n]: ")
        self.output.flush()
        line = self.input_fn()
        if not line:
            # EOF: nobody answered.
            logger.info("No answer to %r; treating as declined", message)
            return False
        answer = line.strip().lower()
        accepted = answer in _ACCEPT
        logger.debug("Prompt %r answered %r -> %s", message, answer, "proceed" if accepted else "abort")
        return accepted

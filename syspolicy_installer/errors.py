from __future__ import annotations

from typing import Optional


class InstallerError(Exception):
    """Fatal provisioning failure with an optional remediation hint."""

    def __init__(self, message: str, *, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class DeclinedByOperator(InstallerError):
    pass


class NonInteractiveSession(DeclinedByOperator):
    """Raised when a confirmation is needed but nobody can answer it."""


class UnresolvedDependency(InstallerError):
    pass


class InstallVerificationFailed(InstallerError):
    pass


class AcquisitionFailed(InstallerError):
    pass


class ExtractionFailed(InstallerError):
    pass


class StepSkipped(Exception):
    """An optional step was declined; the pipeline moves on."""


class CommandError(RuntimeError):
    def __init__(self, message: str, *, returncode: int, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr

from __future__ import annotations

import logging
import os
import shlex
import tempfile
from dataclasses import dataclass
from pathlib import Path

from .context import InstallerCtx
from .errors import InstallerError
from .lib.shell_profile import append_line_if_absent, prepend_to_path
from .logging_utils import log_success
from .state import ProvisioningState

logger = logging.getLogger(__name__)

TEMPLATE = """#!/bin/bash
# {name} wrapper script
cd {project_dir} && {runtime} {entry_point} "$@"
"""


@dataclass(frozen=True)
class LauncherScript:
    name: str
    runtime_command: str
    project_dir: Path
    entry_point: str

    def validate(self) -> None:
        if not self.runtime_command.strip():
            raise InstallerError("Launcher runtime command is empty")
        if not str(self.project_dir).strip():
            raise InstallerError("Launcher project directory is empty")
        for value in (self.runtime_command, str(self.project_dir), self.entry_point):
            if "\n" in value or "\r" in value:
                raise InstallerError(f"Launcher value contains a newline: {value!r}")
        if not self.project_dir.is_absolute():
            raise InstallerError(f"Launcher project directory must be absolute: {self.project_dir}")
        if not self.project_dir.is_dir():
            raise InstallerError(
                f"Project directory {self.project_dir} does not exist",
                hint="Re-run the installer and allow the repository download.",
            )

    def render(self) -> str:
        self.validate()
        return TEMPLATE.format(
            name=self.name,
            project_dir=shlex.quote(str(self.project_dir)),
            # The runtime may be "python -m x"; keep word splitting for it.
            runtime=self.runtime_command if not os.path.exists(self.runtime_command) else shlex.quote(self.runtime_command),
            entry_point=shlex.quote(self.entry_point),
        )


def path_export_line(bin_dir: Path, home: Path) -> str:
    try:
        shown = "$HOME/" + bin_dir.relative_to(home).as_posix()
    except ValueError:
        shown = str(bin_dir)
    return f'export PATH="{shown}:$PATH"'


def write_executable(path: Path, content: str) -> None:
    """Write via a temp file in the same dir, chmod, then rename into place."""

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.chmod(tmp, 0o755)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


def synthesize(
    runtime_command: str,
    project_dir: Path,
    script_path: Path,
    *,
    ctx: InstallerCtx,
    state: ProvisioningState,
) -> Path:
    script = LauncherScript(
        name=script_path.name,
        runtime_command=runtime_command,
        project_dir=Path(project_dir),
        entry_point=ctx.cfg.entry_point,
    )
    content = script.render()

    logger.info("Writing %s script to %s", script.name, script_path)
    try:
        write_executable(script_path, content)
    except OSError as e:
        raise InstallerError(
            f"Failed to create {script.name} script at {script_path}: {e}",
            hint=f"You can still run the application directly: cd {project_dir} && {runtime_command} {ctx.cfg.entry_point}",
        ) from e
    log_success(logger, "Created executable %s script at %s", script.name, script_path)

    bin_dir = script_path.parent
    if state.profile_path is not None:
        append_line_if_absent(state.profile_path, path_export_line(bin_dir, ctx.home))
    if prepend_to_path(ctx.env, str(bin_dir)):
        logger.info("Added %s to current session PATH", bin_dir)

    state.launcher_path = script_path
    return script_path

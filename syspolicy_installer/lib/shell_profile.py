from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import MutableMapping, Sequence

logger = logging.getLogger(__name__)


def _read(profile: Path) -> str:
    if not profile.exists():
        return ""
    return profile.read_text(encoding="utf-8", errors="replace")


def _append(profile: Path, text: str) -> None:
    profile.parent.mkdir(parents=True, exist_ok=True)
    existing = _read(profile)
    prefix = "" if (not existing or existing.endswith("\n")) else "\n"
    with profile.open("a", encoding="utf-8") as f:
        f.write(prefix + text)


def append_line_if_absent(profile: Path, line: str) -> bool:
    """Append `line` unless it already appears verbatim. Returns True if written."""

    if line in _read(profile):
        logger.info("%s already contains: %s", profile, line)
        return False
    _append(profile, line + "\n")
    logger.info("Appended to %s: %s", profile, line)
    return True


def append_block_if_absent(profile: Path, marker: str, lines: Sequence[str]) -> bool:
    """Append a marker-headed block unless the marker line is already present."""

    if marker in _read(profile):
        logger.info("%s already configured (%s)", profile, marker)
        return False
    _append(profile, "\n".join(["", marker, *lines]) + "\n")
    logger.info("Appended %d line(s) to %s", len(lines) + 1, profile)
    return True


def prepend_to_path(env: MutableMapping[str, str], directory: str) -> bool:
    """Put `directory` at the front of env['PATH'] unless it is already listed."""

    entries = [e for e in env.get("PATH", "").split(os.pathsep) if e]
    if directory in entries:
        return False
    env["PATH"] = os.pathsep.join([directory, *entries])
    return True

from __future__ import annotations

import logging
import os
import platform
import re
import shutil
import sys
from pathlib import Path
from typing import Iterable, Mapping, Optional, TextIO

from .command import Runner, run_cmd

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"(\d+(?:\.\d+)+)")


def normalize_arch(machine: str) -> str:
    m = machine.lower()
    return {
        "x86_64": "x86_64",
        "amd64": "x86_64",
        "aarch64": "arm64",
        "arm64": "arm64",
    }.get(m, m)


def detect_architecture() -> str:
    return normalize_arch(platform.machine())


def detect_shell(env: Mapping[str, str]) -> str:
    login_shell = env.get("SHELL") or ""
    if "zsh" in login_shell:
        return "zsh"
    if "bash" in login_shell:
        return "bash"
    return "sh"


def shell_profile_path(shell: str, home: Path) -> Path:
    return home / {"zsh": ".zshrc", "bash": ".bashrc"}.get(shell, ".profile")


def is_interactive_session(stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> bool:
    """True only if both standard streams are attached to a terminal.

    `curl ... | bash` style invocations have stdin on a pipe and must not
    be treated as interactive.
    """

    streams = (stdin or sys.stdin, stdout or sys.stdout)
    for s in streams:
        try:
            if not s.isatty():
                return False
        except (AttributeError, ValueError):
            return False
    return True


def _is_executable_file(p: Path) -> bool:
    return p.is_file() and os.access(p, os.X_OK)


def locate_binary(name: str, prefixes: Iterable[str] = (), path: Optional[str] = None) -> Optional[str]:
    """Find `name` in well-known prefix dirs first, then on PATH.

    Prefix hits are returned as absolute paths; PATH hits as the bare name,
    which is how the command will be invoked later.
    """

    for prefix in prefixes:
        candidate = Path(prefix).expanduser() / name
        if _is_executable_file(candidate):
            return str(candidate)
    if shutil.which(name, path=path):
        return name
    return None


def parse_version(text: str) -> Optional[str]:
    m = _VERSION_RE.search(text or "")
    return m.group(1) if m else None


def version_matches(reported: Optional[str], major_minor: str) -> bool:
    return bool(reported) and reported.startswith(f"{major_minor}.")


def locate_versioned_binary(
    name: str,
    prefixes: Iterable[str],
    major_minor: str,
    *,
    path: Optional[str] = None,
    run: Runner = run_cmd,
) -> Optional[str]:
    """Like locate_binary, but the candidate must report version `X.Y.*`."""

    candidates: list[str] = []
    for prefix in prefixes:
        p = Path(prefix).expanduser() / name
        if _is_executable_file(p):
            candidates.append(str(p))
    if shutil.which(name, path=path):
        candidates.append(name)

    for cand in candidates:
        r = run([cand, "--version"], check=False, env={"PATH": path} if path else None)
        # Older interpreters print the version on stderr.
        reported = parse_version(r.stdout or r.stderr)
        if r.ok and version_matches(reported, major_minor):
            return cand
        logger.debug("Rejected %s (reported=%s, want %s.x)", cand, reported, major_minor)
    return None

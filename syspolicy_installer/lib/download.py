from __future__ import annotations

import logging
import shutil
from typing import Optional

from .command import Runner, run_cmd

logger = logging.getLogger(__name__)


def pick_downloader(path: Optional[str] = None) -> Optional[str]:
    """Prefer curl, fall back to wget. None if neither is available."""
    for tool in ("curl", "wget"):
        if shutil.which(tool, path=path):
            return tool
    return None


def download_argv(tool: str, url: str, dest: str) -> list[str]:
    if tool == "curl":
        return ["curl", "-fsSL", "-o", dest, url]
    return ["wget", "-q", "-O", dest, url]


def download(
    url: str,
    dest: str,
    *,
    tool: str,
    run: Runner = run_cmd,
    timeout: Optional[float] = None,
    cwd: Optional[str] = None,
) -> bool:
    r = run(download_argv(tool, url, dest), check=False, timeout=timeout, cwd=cwd)
    if not r.ok:
        logger.warning("Download failed (%s, rc=%s): %s", tool, r.returncode, url)
    return r.ok

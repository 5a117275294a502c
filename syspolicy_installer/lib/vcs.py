from __future__ import annotations

import logging
from typing import Dict, Optional

from .command import Runner, run_cmd

logger = logging.getLogger(__name__)


def git_clone(
    url: str,
    dest: str,
    *,
    run: Runner = run_cmd,
    shallow: bool = False,
    timeout: Optional[float] = None,
    cwd: Optional[str] = None,
) -> bool:
    argv = ["git", "clone"]
    if shallow:
        argv += ["--depth", "1", "--single-branch"]
    argv += [url, dest]
    r = run(argv, check=False, timeout=timeout, cwd=cwd, capture=False)
    if not r.ok:
        logger.warning("git clone failed (rc=%s): %s", r.returncode, url)
    return r.ok


def git_unshallow(repo_dir: str, *, run: Runner = run_cmd, timeout: Optional[float] = None) -> bool:
    """Complete history after a shallow clone. Enrichment only; never fatal."""

    r = run(["git", "-C", repo_dir, "fetch", "--unshallow"], check=False, timeout=timeout)
    if r.ok:
        logger.info("Full repository history fetched for %s", repo_dir)
    else:
        logger.info("Full history fetch skipped for %s (shallow clone is sufficient)", repo_dir)
    return r.ok


def git_describe(repo_dir: str, *, run: Runner = run_cmd) -> Dict[str, str]:
    branch = run(["git", "-C", repo_dir, "branch", "--show-current"], check=False)
    commit = run(["git", "-C", repo_dir, "log", "--oneline", "-1"], check=False)
    return {
        "branch": branch.stdout.strip() if branch.ok and branch.stdout.strip() else "unknown",
        "commit": commit.stdout.strip() if commit.ok and commit.stdout.strip() else "unknown",
    }

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from .context import InstallerCtx
from .errors import AcquisitionFailed, DeclinedByOperator, ExtractionFailed
from .lib.download import download, pick_downloader
from .lib.vcs import git_clone, git_describe
from .logging_utils import log_success

logger = logging.getLogger(__name__)

NETWORK_HINT = "Check your internet connection and repository access, or clone the repository manually and re-run."

# Archive noise that never counts as the project's top-level directory.
_IGNORED_ENTRIES = {"__MACOSX"}


def single_top_level_dir(extracted: Path) -> Path:
    """Return the only directory directly under `extracted`.

    Zero or several candidates means the archive layout is ambiguous.
    """

    dirs = sorted(p for p in extracted.iterdir() if p.is_dir() and p.name not in _IGNORED_ENTRIES)
    if len(dirs) != 1:
        found = ", ".join(p.name for p in dirs) or "none"
        raise ExtractionFailed(
            f"Expected exactly one top-level directory in the archive, found {len(dirs)} ({found})",
            hint=NETWORK_HINT,
        )
    return dirs[0]


class RepositoryAcquirer:
    def __init__(self, ctx: InstallerCtx) -> None:
        self.ctx = ctx

    def acquire(
        self,
        url: str,
        archive_url: str,
        destination: Path,
        *,
        archive_name: str = "repository.zip",
    ) -> Path:
        dest = Path(destination)
        gate = self.ctx.gate

        if dest.exists():
            logger.warning("Directory %s already exists", dest)
            if not gate.confirm("Remove existing project directory and download fresh copy?"):
                logger.info("Using existing project directory %s", dest)
                return dest
            logger.info("Removing existing project directory %s", dest)
            try:
                shutil.rmtree(dest)
            except OSError as e:
                raise AcquisitionFailed(
                    f"Could not remove {dest}: {e}",
                    hint="Remove or rename the path yourself, or set PROJECT_DIR to another directory, then re-run.",
                ) from e
        elif not gate.confirm(f"Download and set up project repository into {dest}?"):
            raise DeclinedByOperator(
                "Repository setup declined. Cannot proceed without the project repository.",
                hint="Clone the repository manually and re-run this installer.",
            )

        dest.parent.mkdir(parents=True, exist_ok=True)

        if self._clone(url, dest):
            return dest

        logger.warning("Falling back to archive download")
        self._fetch_archive(archive_url, dest, archive_name=archive_name)
        return dest

    def _clone(self, url: str, dest: Path) -> bool:
        if not shutil.which("git", path=self.ctx.path):
            logger.warning("Git is not installed, using archive download")
            return False

        logger.info("Cloning %s", url)
        ok = git_clone(url, dest.name, run=self.ctx.run, timeout=self.ctx.cfg.clone_timeout, cwd=str(dest.parent))
        if not ok:
            if dest.exists():
                # Leftover from an interrupted clone started by this run.
                shutil.rmtree(dest, ignore_errors=True)
            return False

        info = git_describe(str(dest), run=self.ctx.run)
        log_success(logger, "Repository cloned into %s", dest)
        logger.info("Branch: %s, latest commit: %s", info["branch"], info["commit"])
        return True

    def _fetch_archive(self, archive_url: str, dest: Path, *, archive_name: str) -> None:
        tool = pick_downloader(path=self.ctx.path)
        if tool is None:
            raise AcquisitionFailed(
                "Neither curl nor wget is available. Cannot download repository.",
                hint="Install curl or wget, or clone the repository manually, then re-run.",
            )
        if not shutil.which("unzip", path=self.ctx.path):
            raise AcquisitionFailed(
                "unzip command not found. Cannot extract repository.",
                hint="Install unzip, or clone the repository manually, then re-run.",
            )

        work_dir = dest.parent
        archive = work_dir / archive_name
        logger.info("Downloading repository archive %s", archive_url)
        if not download(archive_url, str(archive), tool=tool, run=self.ctx.run, timeout=self.ctx.cfg.download_timeout):
            archive.unlink(missing_ok=True)
            raise AcquisitionFailed("Git clone and archive download both failed", hint=NETWORK_HINT)

        staging: Optional[Path] = None
        try:
            staging = Path(tempfile.mkdtemp(prefix=".syspolicy-extract-", dir=str(work_dir)))
            r = self.ctx.run(["unzip", "-q", str(archive), "-d", str(staging)], check=False)
            if not r.ok:
                raise AcquisitionFailed(f"Failed to extract {archive} (unzip exited {r.returncode})", hint=NETWORK_HINT)
            top = single_top_level_dir(staging)
            shutil.move(str(top), str(dest))
        except OSError as e:
            raise AcquisitionFailed(f"Could not move extracted repository into {dest}: {e}") from e
        finally:
            if staging is not None:
                shutil.rmtree(staging, ignore_errors=True)
            archive.unlink(missing_ok=True)

        log_success(logger, "Repository extracted to %s", dest)

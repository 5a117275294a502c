from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import MutableMapping, NoReturn, Optional

import yaml

from .config import CONFIG_ENV, PROFILE_ENV, load_installer_config
from .context import InstallerCtx
from .errors import InstallerError
from .lib.command import Runner, run_cmd
from .lib.confirm import ConfirmationGate, SessionMode
from .lib.probe import is_interactive_session
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import PipelineResult, run_pipeline
from .state import ProvisioningState
from .steps import (
    AcquireRepositoryStep,
    EnsurePackageInstallerStep,
    EnsurePackageManagerStep,
    EnsureRuntimeStep,
    InstallDependenciesStep,
    ProbeEnvironmentStep,
    ReportSummaryStep,
    SynthesizeLauncherStep,
    UpdatePackageManagerStep,
)

logger = logging.getLogger(__name__)

LOG_ENV = "SYSPOLICY_INSTALLER_LOG"

EPILOG = f"""\
Environment Variables:
  PROJECT_DIR  Custom project directory (default: ~/.local/share/src/syspolicy)
  {PROFILE_ENV}  Installer profile: clone (default) or bootstrap
  {CONFIG_ENV}  Extra YAML merged over the bundled manifest
  {LOG_ENV}  Log file (default: {DEFAULT_LOG_PATH})

Examples:
  # Interactive installation (download first)
  curl -sL <installer-url> -o install.sh && bash install.sh

  # Non-interactive installation (requires -y)
  curl -sL <installer-url> | bash -s -- -y

  # Custom directory with auto-install
  PROJECT_DIR=~/my-projects/syspolicy syspolicy-install -y
"""


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"Unknown option: {message}\nUse -h or --help for usage information\n")


def build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(
        prog="syspolicy-install",
        description="Install syspolicy and its prerequisites without admin privileges.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    p.add_argument("-y", "--yes", action="store_true", help="Skip all prompts and install automatically")
    return p


def build_steps():
    return [
        ProbeEnvironmentStep(),
        EnsurePackageManagerStep(),
        UpdatePackageManagerStep(),
        EnsureRuntimeStep(),
        EnsurePackageInstallerStep(),
        AcquireRepositoryStep(),
        InstallDependenciesStep(),
        SynthesizeLauncherStep(),
        ReportSummaryStep(),
    ]


def provision(ctx: InstallerCtx, state: Optional[ProvisioningState] = None) -> PipelineResult:
    """Drive the machine from whatever it has now to a working launcher."""

    return run_pipeline(ctx=ctx, state=state or ProvisioningState(), steps=build_steps())


def build_ctx(
    *,
    auto_yes: bool,
    env: MutableMapping[str, str],
    run: Runner = run_cmd,
    mode: Optional[SessionMode] = None,
) -> InstallerCtx:
    try:
        cfg = load_installer_config(profile=env.get(PROFILE_ENV), extra_path=env.get(CONFIG_ENV))
    except (ValueError, OSError, yaml.YAMLError) as e:
        raise InstallerError(f"Invalid installer configuration: {e}") from e

    if mode is None:
        mode = SessionMode.INTERACTIVE if is_interactive_session() else SessionMode.NON_INTERACTIVE

    return InstallerCtx(
        cfg=cfg,
        gate=ConfirmationGate(auto_yes=auto_yes, mode=mode),
        home=Path(env.get("HOME") or Path.home()),
        env=env,
        run=run,
        project_dir_override=env.get("PROJECT_DIR") or None,
    )


def run(*, auto_yes: bool = False, env: Optional[MutableMapping[str, str]] = None) -> int:
    """Run the installer; returns the process exit code."""

    env = os.environ if env is None else env
    configure_logging(log_path=env.get(LOG_ENV) or DEFAULT_LOG_PATH)

    try:
        ctx = build_ctx(auto_yes=auto_yes, env=env)
        logger.info("Starting syspolicy installation (profile %s, no admin privileges)", ctx.cfg.profile)
        provision(ctx)
    except InstallerError as e:
        logger.error("%s", e.message)
        if e.hint:
            logger.info("%s", e.hint)
        return 1
    except Exception:
        logger.exception("Installer failed")
        raise
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return run(auto_yes=bool(args.yes))


if __name__ == "__main__":
    raise SystemExit(main())

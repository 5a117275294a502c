"""Generic "ensure X is present" installer.

Every prerequisite (Git, the package manager, the runtime, pip) goes through
the same sequence:

1. detect; if present, return the resolved command untouched
2. confirm with the operator
3. try each install method in order until one reports success
4. detect again with the same predicate; anything else is a failure

Method handlers translate tool failures into a MethodOutcome. They never
raise for a failed tool, only for an operator decision.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

from .context import InstallerCtx
from .errors import (
    CommandError,
    DeclinedByOperator,
    InstallerError,
    InstallVerificationFailed,
    UnresolvedDependency,
)
from .lib.download import download, pick_downloader
from .lib.probe import locate_binary, locate_versioned_binary
from .lib.shell_profile import append_block_if_absent, prepend_to_path
from .lib.vcs import git_clone, git_unshallow
from .logging_utils import log_success
from .state import ProvisioningState
from .targets import InstallMethod, InstallTarget, MethodOutcome, Resolution

logger = logging.getLogger(__name__)

MethodHandler = Callable[["DependencyInstaller", InstallTarget, InstallMethod, ProvisioningState], MethodOutcome]


def command_argv(command: str) -> List[str]:
    """Turn a resolved command string back into argv.

    A bare path is kept whole even if it contains spaces.
    """
    if os.path.exists(command):
        return [command]
    return shlex.split(command)


class DependencyInstaller:
    def __init__(self, ctx: InstallerCtx) -> None:
        self.ctx = ctx
        self._in_progress: Set[str] = set()

    # -- detection -----------------------------------------------------

    def detect(self, target: InstallTarget, state: ProvisioningState) -> Optional[str]:
        d = target.detect
        prefixes = [self.ctx.expand(p, state) for p in d.prefixes]

        if d.kind == "binary":
            for name in d.names:
                found = locate_binary(name, prefixes, path=self.ctx.path)
                if found:
                    return found
            return None

        if d.kind == "versioned_binary":
            if not d.version:
                raise ValueError(f"targets.{target.name}.detect.version is required for versioned_binary")
            for name in d.names:
                found = locate_versioned_binary(name, prefixes, d.version, path=self.ctx.path, run=self.ctx.run)
                if found:
                    return found
            return None

        # python_module: only meaningful once the runtime is resolved.
        if not state.runtime or not d.module:
            return None
        r = self.ctx.run([*command_argv(state.runtime), "-m", d.module, "--version"], check=False)
        if r.ok:
            return f"{shlex.quote(state.runtime)} -m {d.module}"
        return None

    # -- ensure --------------------------------------------------------

    def ensure(self, target: InstallTarget, state: ProvisioningState) -> Resolution:
        found = self.detect(target, state)
        if found:
            logger.info("%s is already installed: %s", target.label, found)
            return Resolution(command=found, installed=False)

        if target.name in self._in_progress:
            raise UnresolvedDependency(f"{target.label} requires itself to install")

        if not self.ctx.gate.confirm(f"{target.label} is not installed. Install {target.label} now?"):
            raise DeclinedByOperator(
                f"{target.label} installation declined. Cannot proceed without {target.label}.",
                hint=self._hint(target, state),
            )

        self._in_progress.add(target.name)
        try:
            outcomes = self._run_methods(target, state)
        finally:
            self._in_progress.discard(target.name)

        if not any(o.ok for o in outcomes):
            details = "; ".join(o.detail for o in outcomes if o.detail) or "no install methods configured"
            raise UnresolvedDependency(
                f"{target.label} could not be installed ({details})",
                hint=self._hint(target, state),
            )

        found = self.detect(target, state)
        if not found:
            raise InstallVerificationFailed(
                f"{target.label} was installed but cannot be found in expected locations",
                hint=self._hint(target, state),
            )

        state.installed.append(target.name)
        log_success(logger, "%s installed: %s", target.label, found)
        return Resolution(command=found, installed=True)

    def _hint(self, target: InstallTarget, state: ProvisioningState) -> Optional[str]:
        return self.ctx.expand(target.hint, state) if target.hint else None

    def _run_methods(self, target: InstallTarget, state: ProvisioningState) -> List[MethodOutcome]:
        outcomes: List[MethodOutcome] = []
        for method in target.methods:
            outcome = self._try_method(target, method, state)
            outcomes.append(outcome)
            if outcome.ok:
                logger.info("%s: method %s succeeded", target.label, method.tag)
                break
            logger.warning("%s: method %s failed: %s", target.label, method.tag, outcome.detail)
        return outcomes

    def _try_method(self, target: InstallTarget, method: InstallMethod, state: ProvisioningState) -> MethodOutcome:
        for req in method.requires:
            try:
                self.ensure(self.ctx.target(req), state)
            except DeclinedByOperator:
                raise
            except InstallerError as e:
                detail = f"{method.tag}: requirement {req} unavailable: {e.message}"
                if e.hint:
                    detail += f" ({e.hint})"
                return MethodOutcome(ok=False, detail=detail)

        handler = METHOD_HANDLERS.get(method.tag)
        if handler is None:
            return MethodOutcome(ok=False, detail=f"unknown install method {method.tag!r}")
        try:
            return handler(self, target, method, state)
        except (CommandError, OSError) as e:
            return MethodOutcome(ok=False, detail=f"{method.tag}: {e}")

    # -- post-install environment --------------------------------------

    def apply_environment(self, target: InstallTarget, command: str, state: ProvisioningState) -> None:
        """Persist and apply the target's shell environment after a fresh install."""

        block = target.environment
        if block is None:
            return

        lines: List[str] = []
        if block.shellenv:
            lines.append(f'eval "$({shlex.quote(command)} shellenv)"')
        exports = {k: self.ctx.expand(v, state) for k, v in block.exports.items()}
        lines.extend(f"export {k}={shlex.quote(v)}" for k, v in exports.items())

        if state.profile_path is not None:
            append_block_if_absent(state.profile_path, block.marker, lines)

        bin_dir = Path(command).parent
        if bin_dir.is_absolute():
            prepend_to_path(self.ctx.env, str(bin_dir))
        self.ctx.env.update(exports)
        self.ctx.cache_dir.mkdir(parents=True, exist_ok=True)
        log_success(logger, "%s environment configured", target.label)


# -- method handlers ---------------------------------------------------


def _git_clone(inst: DependencyInstaller, target: InstallTarget, method: InstallMethod, state: ProvisioningState) -> MethodOutcome:
    p = method.params
    dest = Path(inst.ctx.expand(str(p["dest"]), state))

    if dest.exists():
        if not inst.ctx.gate.confirm(f"Remove existing {target.label} directory {dest} and reinstall?"):
            return MethodOutcome(ok=False, detail=f"git_clone: existing {dest} kept")
        logger.info("Removing existing directory %s", dest)
        shutil.rmtree(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)

    shallow = bool(p.get("shallow", False))
    if not git_clone(str(p["url"]), str(dest), run=inst.ctx.run, shallow=shallow, timeout=p.get("timeout")):
        return MethodOutcome(ok=False, detail=f"git_clone: clone of {p['url']} failed")
    if shallow:
        git_unshallow(str(dest), run=inst.ctx.run, timeout=p.get("unshallow_timeout"))
    return MethodOutcome(ok=True)


def _bootstrap_script(inst: DependencyInstaller, target: InstallTarget, method: InstallMethod, state: ProvisioningState) -> MethodOutcome:
    p = method.params
    tool = pick_downloader(path=inst.ctx.path)
    if tool is None:
        return MethodOutcome(ok=False, detail="bootstrap_script: neither curl nor wget is available")

    with tempfile.TemporaryDirectory(prefix="syspolicy-bootstrap-") as tmp:
        script = str(Path(tmp) / "install.sh")
        if not download(str(p["url"]), script, tool=tool, run=inst.ctx.run):
            return MethodOutcome(ok=False, detail=f"bootstrap_script: download of {p['url']} failed")
        r = inst.ctx.run(
            ["/bin/bash", script],
            check=False,
            env={"NONINTERACTIVE": "1"},
            timeout=p.get("timeout"),
            capture=False,
        )
    if not r.ok:
        return MethodOutcome(ok=False, detail=f"bootstrap_script: installer exited {r.returncode}")
    return MethodOutcome(ok=True)


def _package_manager(inst: DependencyInstaller, target: InstallTarget, method: InstallMethod, state: ProvisioningState) -> MethodOutcome:
    if not state.package_manager:
        return MethodOutcome(ok=False, detail="package_manager: no package manager resolved yet")
    args = [str(a) for a in (method.params.get("args") or [])]
    for pkg in method.params.get("packages") or []:
        logger.info("Installing %s via %s", pkg, state.package_manager)
        r = inst.ctx.run(
            [*command_argv(state.package_manager), "install", str(pkg), *args],
            check=False,
            timeout=method.params.get("timeout"),
            capture=False,
        )
        if not r.ok:
            return MethodOutcome(ok=False, detail=f"package_manager: install of {pkg} exited {r.returncode}")
    return MethodOutcome(ok=True)


def _python_module(inst: DependencyInstaller, target: InstallTarget, method: InstallMethod, state: ProvisioningState) -> MethodOutcome:
    if not state.runtime:
        return MethodOutcome(ok=False, detail="python_module: no runtime resolved yet")
    module = str(method.params["module"])
    args = [str(a) for a in (method.params.get("args") or [])]
    r = inst.ctx.run([*command_argv(state.runtime), "-m", module, *args], check=False, capture=False)
    if not r.ok:
        return MethodOutcome(ok=False, detail=f"python_module: {module} exited {r.returncode}")
    return MethodOutcome(ok=True)


def _system_installer(inst: DependencyInstaller, target: InstallTarget, method: InstallMethod, state: ProvisioningState) -> MethodOutcome:
    argv = [inst.ctx.expand(str(a), state) for a in method.params.get("argv") or []]
    if not argv:
        return MethodOutcome(ok=False, detail="system_installer: empty argv")
    r = inst.ctx.run(argv, check=False, timeout=method.params.get("timeout"))
    if not r.ok:
        return MethodOutcome(ok=False, detail=f"system_installer: {argv[0]} exited {r.returncode}")
    return MethodOutcome(ok=True)


METHOD_HANDLERS: Dict[str, MethodHandler] = {
    "git_clone": _git_clone,
    "bootstrap_script": _bootstrap_script,
    "package_manager": _package_manager,
    "python_module": _python_module,
    "system_installer": _system_installer,
}

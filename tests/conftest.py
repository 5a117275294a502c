from __future__ import annotations

import io
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import pytest

from syspolicy_installer.config import load_installer_config
from syspolicy_installer.context import InstallerCtx
from syspolicy_installer.errors import CommandError
from syspolicy_installer.lib.command import CmdResult
from syspolicy_installer.lib.confirm import ConfirmationGate, SessionMode

HandlerReturn = Union[int, Tuple[int, str], CmdResult]
Handler = Callable[[List[str], Optional[str]], HandlerReturn]


def make_exe(path: Path, body: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    path.chmod(0o755)
    return path


@dataclass
class Call:
    argv: List[str]
    cwd: Optional[str]
    env: Optional[Dict[str, str]]


@dataclass
class FakeRunner:
    """Stands in for run_cmd. Unknown commands behave as 'not found' (127)."""

    handlers: List[Tuple[Tuple[str, ...], Handler]] = field(default_factory=list)
    calls: List[Call] = field(default_factory=list)

    def on(self, *prefix: str) -> Callable[[Handler], Handler]:
        def register(fn: Handler) -> Handler:
            self.handlers.append((prefix, fn))
            return fn

        return register

    def called(self, *prefix: str) -> List[Call]:
        return [c for c in self.calls if _matches(prefix, c.argv)]

    def __call__(
        self,
        argv: Sequence[str],
        *,
        check: bool = True,
        env=None,
        cwd: Optional[str] = None,
        input_text: Optional[str] = None,
        timeout: Optional[float] = None,
        capture: bool = True,
    ) -> CmdResult:
        argv_list = list(argv)
        self.calls.append(Call(argv=argv_list, cwd=cwd, env=dict(env) if env else None))

        result = CmdResult(argv=argv_list, returncode=127, stdout="", stderr="not found")
        # Later registrations win.
        for prefix, fn in reversed(self.handlers):
            if _matches(prefix, argv_list):
                result = _to_result(argv_list, fn(argv_list, cwd))
                break

        if check and result.returncode != 0:
            raise CommandError("fake command failed", returncode=result.returncode, stderr=result.stderr)
        return result


def _matches(prefix: Sequence[str], argv: Sequence[str]) -> bool:
    if len(argv) < len(prefix) or not prefix:
        return False
    if os.path.basename(argv[0]) != prefix[0]:
        return False
    return list(argv[1 : len(prefix)]) == list(prefix[1:])


def _to_result(argv: List[str], value: HandlerReturn) -> CmdResult:
    if isinstance(value, CmdResult):
        return value
    if isinstance(value, tuple):
        rc, out = value
        return CmdResult(argv=argv, returncode=rc, stdout=out, stderr="")
    return CmdResult(argv=argv, returncode=int(value), stdout="", stderr="")


class Machine:
    """A fake workstation rooted in tmp_path."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.home = root / "home"
        self.home.mkdir()
        self.sysbin = root / "sysbin"
        self.sysbin.mkdir()
        self.env: Dict[str, str] = {
            "HOME": str(self.home),
            "PATH": str(self.sysbin),
            "SHELL": "/bin/zsh",
        }
        self.runner = FakeRunner()

    @property
    def brew_prefix(self) -> Path:
        return self.home / ".local/homebrew"

    @property
    def project_dir(self) -> Path:
        return self.home / ".local/share/src/syspolicy"

    def provide(self, *tools: str) -> None:
        for t in tools:
            make_exe(self.sysbin / t)

    def install_brew(self) -> Path:
        return make_exe(self.brew_prefix / "bin/brew")

    def install_python(self, version: str = "3.10.14") -> Path:
        major_minor = ".".join(version.split(".")[:2])
        py = make_exe(self.brew_prefix / f"bin/python{major_minor}")
        self.runner.on(py.name, "--version")(lambda argv, cwd: (0, f"Python {version}\n"))
        self.runner.on(py.name, "-m", "pip", "--version")(lambda argv, cwd: (0, "pip 24.0\n"))
        self.runner.on(py.name, "-m", "pip", "install")(lambda argv, cwd: 0)
        return py

    def simulate_world(self, *, project_files: Iterable[str] = ("requirements.txt", "syspolicy.py")) -> None:
        """Handlers for a machine with working network and tools."""

        machine = self
        files = tuple(project_files)

        @self.runner.on("git", "clone")
        def _clone(argv: List[str], cwd: Optional[str]) -> int:
            dest = Path(argv[-1])
            if not dest.is_absolute():
                dest = Path(cwd or ".") / dest
            if "brew" in argv[-2]:
                make_exe(dest / "bin/brew")
            else:
                dest.mkdir(parents=True)
                for name in files:
                    (dest / name).write_text("# fake\n", encoding="utf-8")
            return 0

        @self.runner.on("brew", "install")
        def _brew_install(argv: List[str], cwd: Optional[str]) -> int:
            pkg = argv[2]
            if pkg.startswith("python@"):
                machine.install_python(pkg.split("@", 1)[1] + ".2")
            return 0

        self.runner.on("brew", "update")(lambda argv, cwd: 0)


@pytest.fixture
def machine(tmp_path: Path) -> Machine:
    return Machine(tmp_path)


@pytest.fixture
def make_ctx(machine: Machine):
    def _make(
        *,
        auto_yes: bool = True,
        mode: SessionMode = SessionMode.NON_INTERACTIVE,
        answers: Sequence[str] = (),
        profile: Optional[str] = None,
        project_dir: Optional[str] = None,
    ) -> InstallerCtx:
        pending = list(answers)

        def _input() -> str:
            if not pending:
                raise AssertionError("unexpected prompt")
            return pending.pop(0) + "\n"

        gate = ConfirmationGate(auto_yes=auto_yes, mode=mode, input_fn=_input, output=io.StringIO())
        return InstallerCtx(
            cfg=load_installer_config(profile=profile),
            gate=gate,
            home=machine.home,
            env=machine.env,
            run=machine.runner,
            project_dir_override=project_dir,
        )

    return _make

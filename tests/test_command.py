from __future__ import annotations

import pytest

from syspolicy_installer.errors import CommandError
from syspolicy_installer.lib.command import run_cmd


def test_captures_output_and_exit_code() -> None:
    r = run_cmd(["sh", "-c", "echo out; echo err >&2; exit 3"], check=False)

    assert r.returncode == 3
    assert r.ok is False
    assert r.stdout.strip() == "out"
    assert r.stderr.strip() == "err"


def test_check_raises_command_error() -> None:
    with pytest.raises(CommandError) as exc:
        run_cmd(["sh", "-c", "exit 2"])

    assert exc.value.returncode == 2


def test_missing_executable_is_a_failed_result() -> None:
    r = run_cmd(["definitely-not-a-real-binary-xyz"], check=False)

    assert r.returncode == 127


def test_timeout_is_a_failed_result() -> None:
    r = run_cmd(["sleep", "5"], check=False, timeout=0.2)

    assert r.timed_out is True
    assert r.returncode == 124


def test_env_is_merged_over_process_environment() -> None:
    r = run_cmd(["sh", "-c", 'echo "$NONINTERACTIVE:${PATH:+has-path}"'], env={"NONINTERACTIVE": "1"})

    assert r.stdout.strip() == "1:has-path"

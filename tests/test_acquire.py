from __future__ import annotations

from pathlib import Path

import pytest

from syspolicy_installer.acquire import RepositoryAcquirer, single_top_level_dir
from syspolicy_installer.errors import AcquisitionFailed, DeclinedByOperator, ExtractionFailed
from syspolicy_installer.lib.confirm import SessionMode

URL = "https://example.invalid/app.git"
ARCHIVE_URL = "https://example.invalid/app/archive/main.zip"


def _serve_archive(machine, top_level=("app-main",)) -> None:
    @machine.runner.on("curl")
    def _curl(argv, cwd):
        Path(argv[argv.index("-o") + 1]).write_bytes(b"PK fake zip")
        return 0

    @machine.runner.on("unzip")
    def _unzip(argv, cwd):
        staging = Path(argv[argv.index("-d") + 1])
        for name in top_level:
            (staging / name).mkdir()
            (staging / name / "requirements.txt").write_text("pyyaml\n", encoding="utf-8")
            (staging / name / "syspolicy.py").write_text("print('hi')\n", encoding="utf-8")
        (staging / "README-at-root.txt").write_text("stray file\n", encoding="utf-8")
        return 0


def _tree(root: Path) -> list[str]:
    return sorted(str(p.relative_to(root)) for p in root.rglob("*"))


def _acquire(ctx, dest: Path) -> Path:
    return RepositoryAcquirer(ctx).acquire(URL, ARCHIVE_URL, dest, archive_name="app-main.zip")


def test_archive_fallback_matches_archive_only_result(machine, make_ctx, tmp_path: Path) -> None:
    machine.provide("git", "curl", "unzip")
    machine.runner.on("git", "clone")(lambda argv, cwd: 128)
    _serve_archive(machine)
    dest = machine.home / "src/syspolicy"

    result = _acquire(make_ctx(), dest)

    assert result == dest
    assert machine.runner.called("git", "clone")
    assert _tree(dest) == ["requirements.txt", "syspolicy.py"]
    # Archive and staging dir are cleaned up.
    assert sorted(p.name for p in dest.parent.iterdir()) == ["syspolicy"]

    # Same result from the archive method alone (no git on PATH).
    machine.env["PATH"] = str(tmp_path / "nogit")
    (tmp_path / "nogit").mkdir()
    (tmp_path / "nogit" / "curl").symlink_to(machine.sysbin / "curl")
    (tmp_path / "nogit" / "unzip").symlink_to(machine.sysbin / "unzip")
    other = machine.home / "other/syspolicy"
    _acquire(make_ctx(), other)
    assert _tree(other) == _tree(dest)


def test_clone_success_skips_archive(machine, make_ctx) -> None:
    machine.provide("git", "curl", "unzip")
    machine.simulate_world()
    dest = machine.home / "src/syspolicy"

    _acquire(make_ctx(), dest)

    clone = machine.runner.called("git", "clone")[0]
    assert clone.argv == ["git", "clone", URL, "syspolicy"]
    assert clone.cwd == str(dest.parent)
    assert (dest / "requirements.txt").is_file()
    assert machine.runner.called("curl") == []


@pytest.mark.parametrize("top_level", [(), ("app-main", "docs")])
def test_ambiguous_archive_layout_fails(machine, make_ctx, top_level) -> None:
    machine.provide("curl", "unzip")
    _serve_archive(machine, top_level=top_level)
    dest = machine.home / "src/syspolicy"

    with pytest.raises(ExtractionFailed):
        _acquire(make_ctx(), dest)

    assert not dest.exists()


def test_single_top_level_dir_ignores_files_and_macos_metadata(tmp_path: Path) -> None:
    (tmp_path / "app-main").mkdir()
    (tmp_path / "__MACOSX").mkdir()
    (tmp_path / "notes.txt").write_text("x", encoding="utf-8")

    assert single_top_level_dir(tmp_path) == tmp_path / "app-main"


def test_existing_directory_kept_when_operator_declines(machine, make_ctx) -> None:
    machine.provide("git", "curl", "unzip")
    dest = machine.home / "src/syspolicy"
    dest.mkdir(parents=True)
    (dest / "local-change.txt").write_text("mine", encoding="utf-8")
    ctx = make_ctx(auto_yes=False, mode=SessionMode.INTERACTIVE, answers=["n"])

    assert _acquire(ctx, dest) == dest

    assert (dest / "local-change.txt").read_text(encoding="utf-8") == "mine"
    assert machine.runner.calls == []


def test_existing_directory_replaced_when_operator_agrees(machine, make_ctx) -> None:
    machine.provide("git")
    machine.simulate_world()
    dest = machine.home / "src/syspolicy"
    dest.mkdir(parents=True)
    (dest / "stale.txt").write_text("old", encoding="utf-8")
    # One prompt only: removing implies downloading.
    ctx = make_ctx(auto_yes=False, mode=SessionMode.INTERACTIVE, answers=["y"])

    _acquire(ctx, dest)

    assert not (dest / "stale.txt").exists()
    assert (dest / "syspolicy.py").is_file()


def test_declining_fresh_download_is_fatal(machine, make_ctx) -> None:
    machine.provide("git")
    ctx = make_ctx(auto_yes=False, mode=SessionMode.INTERACTIVE, answers=["n"])

    with pytest.raises(DeclinedByOperator):
        _acquire(ctx, machine.home / "src/syspolicy")

    assert machine.runner.calls == []


def test_no_download_tool_fails(machine, make_ctx) -> None:
    machine.provide("git", "unzip")
    machine.runner.on("git", "clone")(lambda argv, cwd: 128)

    with pytest.raises(AcquisitionFailed) as exc:
        _acquire(make_ctx(), machine.home / "src/syspolicy")

    assert "Neither curl nor wget" in exc.value.message


def test_no_extraction_tool_fails(machine, make_ctx) -> None:
    machine.provide("curl")

    with pytest.raises(AcquisitionFailed) as exc:
        _acquire(make_ctx(), machine.home / "src/syspolicy")

    assert "unzip" in exc.value.message
    assert machine.runner.called("curl") == []


def test_wget_used_when_curl_missing(machine, make_ctx) -> None:
    machine.provide("wget", "unzip")
    _serve_archive(machine)

    @machine.runner.on("wget")
    def _wget(argv, cwd):
        Path(argv[argv.index("-O") + 1]).write_bytes(b"PK fake zip")
        return 0

    dest = machine.home / "src/syspolicy"
    _acquire(make_ctx(), dest)

    assert machine.runner.called("wget")
    assert (dest / "syspolicy.py").is_file()


def test_failed_download_fails_acquisition(machine, make_ctx) -> None:
    machine.provide("curl", "unzip")
    machine.runner.on("curl")(lambda argv, cwd: 22)

    with pytest.raises(AcquisitionFailed):
        _acquire(make_ctx(), machine.home / "src/syspolicy")


@pytest.mark.parametrize("unzip_rc", [0, 9])
def test_archive_removed_when_extraction_fails(machine, make_ctx, unzip_rc) -> None:
    machine.provide("curl", "unzip")
    _serve_archive(machine, top_level=())
    if unzip_rc:
        machine.runner.on("unzip")(lambda argv, cwd: unzip_rc)
    dest = machine.home / "src/syspolicy"

    with pytest.raises((ExtractionFailed, AcquisitionFailed)):
        _acquire(make_ctx(), dest)

    assert list(dest.parent.iterdir()) == []


def test_unremovable_destination_is_an_acquisition_failure(machine, make_ctx) -> None:
    dest = machine.home / "src/syspolicy"
    dest.parent.mkdir(parents=True)
    dest.write_text("not a directory", encoding="utf-8")

    with pytest.raises(AcquisitionFailed, match="Could not remove"):
        _acquire(make_ctx(), dest)

    assert machine.runner.calls == []

"""
End-to-end tests for rcstrap.main.run(): acquisition followed by snippet
generation and rc file merging.
"""

import json

import pytest

from rcstrap.errors import InstallationFailed
from rcstrap.lib.platform_map import PlatformDescriptor
from rcstrap.lib.prompt import FixedAnswer
from rcstrap.main import run

LINUX = PlatformDescriptor("Linux", "x86_64")
UNSUPPORTED = PlatformDescriptor("SunOS", "sparc")
TOOL = "rcstrap-testtool"


@pytest.fixture
def installed(make_config, make_binary, isolated_path):
    """Config whose binary is already in place (no network needed)."""

    def _make(**overrides):
        cfg = make_config(**overrides)
        make_binary(cfg.binary_path)
        return cfg

    return _make


def snapshot(home):
    return {
        str(p.relative_to(home)): p.read_text()
        for p in sorted(home.rglob("*"))
        if p.is_file() and not p.is_symlink() and p.name != "install-state.json"
    }


class TestRun:
    def test_fresh_install(self, installed, home):
        cfg = installed()
        (home / ".bashrc").write_text("export A=1\n")

        state = run(cfg, platform=LINUX, confirm=FixedAnswer(True))

        assert state["binary"]["strategy"] == "reuse"
        assert (home / f".{TOOL}.bash").exists()
        assert (home / f".{TOOL}.zsh").exists()
        assert (home / ".bashrc").read_text() == (
            f"export A=1\n\n[ -f ~/.{TOOL}.bash ] && source ~/.{TOOL}.bash\n"
        )
        assert (home / ".zshrc").read_text() == f"[ -f ~/.{TOOL}.zsh ] && source ~/.{TOOL}.zsh\n"
        assert state["rc_files"][str(home / ".bashrc")]["outcome"] == "added"
        assert state["errors"] == []

    def test_second_run_is_idempotent(self, installed, home):
        cfg = installed()
        (home / ".bashrc").write_text("export A=1\n")

        run(cfg, platform=LINUX, confirm=FixedAnswer(True))
        first = snapshot(home)
        state = run(cfg, platform=LINUX, confirm=FixedAnswer(True))

        assert snapshot(home) == first
        assert {v["outcome"] for v in state["rc_files"].values()} == {"already exists"}

    def test_update_rc_disabled(self, installed, home):
        cfg = installed(update_rc=False)

        state = run(cfg, platform=LINUX, confirm=FixedAnswer(True))

        assert not (home / ".bashrc").exists()
        assert (home / f".{TOOL}.bash").exists()
        assert {v["outcome"] for v in state["rc_files"].values()} == {"skipped"}

    def test_receipt_written(self, installed):
        cfg = installed()

        run(cfg, platform=LINUX, confirm=FixedAnswer(True))

        assert cfg.receipt_path == cfg.base_dir / "install-state.json"
        receipt = json.loads(cfg.receipt_path.read_text())
        assert receipt["binary"]["version"] == "1.2.3"
        assert receipt["current_step"] is None

    def test_receipt_accumulates_across_runs(self, installed, home):
        run(installed(shells=("bash", "zsh")), platform=LINUX, confirm=FixedAnswer(True))
        cfg = installed(shells=("bash",))

        state = run(cfg, platform=LINUX, confirm=FixedAnswer(True))

        receipt = json.loads(cfg.receipt_path.read_text())
        assert sorted(receipt["rc_files"]) == [str(home / ".bashrc"), str(home / ".zshrc")]
        assert str(home / f".{TOOL}.zsh") in receipt["snippets"]
        assert list(state["rc_files"]) == [str(home / ".bashrc")]

    def test_bin_only_stops_after_binary(self, installed, home):
        cfg = installed(bin_only=True)

        state = run(cfg, platform=LINUX, confirm=FixedAnswer(True))

        assert state["ran_steps"] == ["10_acquire_binary"]
        assert not (home / ".bashrc").exists()
        assert not (home / f".{TOOL}.bash").exists()
        assert not cfg.receipt_path.exists()

    def test_rc_failure_is_isolated(self, installed, home):
        cfg = installed()
        (home / ".bashrc").mkdir()

        state = run(cfg, platform=LINUX, confirm=FixedAnswer(True))

        assert (home / ".zshrc").read_text() == f"[ -f ~/.{TOOL}.zsh ] && source ~/.{TOOL}.zsh\n"
        assert [e["path"] for e in state["errors"]] == [str(home / ".bashrc")]


class TestFailure:
    def test_unsupported_without_toolchain_touches_no_config(self, make_config, home, isolated_path, fake_tool):
        cfg = make_config()
        (home / ".bashrc").write_text("export A=1\n")
        tool = fake_tool()
        before = snapshot(home)

        with pytest.raises(InstallationFailed) as exc:
            run(cfg, platform=UNSUPPORTED, confirm=FixedAnswer(True), tools=[tool])

        assert set(exc.value.reasons) == {"download", "build"}
        assert tool.calls == []
        assert snapshot(home) == before
        assert not (home / ".zshrc").exists()

    def test_wrong_binary_is_not_kept(self, make_config, make_binary, isolated_path, home):
        cfg = make_config()
        make_binary(cfg.binary_path, "0.0.1")

        with pytest.raises(InstallationFailed):
            run(cfg, platform=UNSUPPORTED, confirm=FixedAnswer(True))

        assert not cfg.binary_path.exists()
        assert not (home / ".bashrc").exists()

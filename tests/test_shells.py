"""
Tests for shell-specific paths, rc entries and generated snippets.
"""

import pytest

from rcstrap.lib import shells
from rcstrap.lib.shells import available_shells, rc_entry, rc_path, render_snippet, snippet_path

TOOL = "rcstrap-testtool"


class TestPaths:
    def test_default_layout(self, make_config, home):
        cfg = make_config()

        assert snippet_path(cfg, "bash") == home / f".{TOOL}.bash"
        assert rc_path(cfg, "bash") == home / ".bashrc"
        assert rc_path(cfg, "zsh") == home / ".zshrc"

    def test_zdotdir(self, make_config, tmp_path):
        cfg = make_config(zdotdir=str(tmp_path / "zdot"))
        assert rc_path(cfg, "zsh") == tmp_path / "zdot" / ".zshrc"

    def test_xdg_layout(self, make_config, tmp_path):
        cfg = make_config(xdg=True, xdg_config_home=str(tmp_path / "xdg"))
        assert snippet_path(cfg, "zsh") == tmp_path / "xdg" / TOOL / f"{TOOL}.zsh"

    def test_xdg_defaults_to_dot_config(self, make_config, home):
        cfg = make_config(xdg=True)
        assert snippet_path(cfg, "bash") == home / ".config" / TOOL / f"{TOOL}.bash"

    def test_fish_has_no_rc_file(self, make_config):
        with pytest.raises(ValueError):
            rc_path(make_config(), "fish")


class TestRcEntry:
    def test_home_relative_line(self, make_config):
        entry = rc_entry(make_config(), "bash")

        assert entry.line == f"[ -f ~/.{TOOL}.bash ] && source ~/.{TOOL}.bash"
        assert entry.match_text == f"~/.{TOOL}.bash"

    def test_xdg_line_keeps_shell_expression(self, make_config):
        entry = rc_entry(make_config(xdg=True), "zsh")

        ref = f'"${{XDG_CONFIG_HOME:-$HOME/.config}}"/{TOOL}/{TOOL}.zsh'
        assert entry.line == f"[ -f {ref} ] && source {ref}"
        assert entry.match_text == ref


class TestRenderSnippet:
    def test_all_features_enabled(self, make_config):
        cfg = make_config()
        text = render_snippet(cfg, "bash")

        assert f'PATH="${{PATH:+${{PATH}}:}}{cfg.bin_dir}"' in text
        assert f'[[ $- == *i* ]] && source "{cfg.shell_dir}/completion.bash" 2> /dev/null\n' in text
        assert f'\nsource "{cfg.shell_dir}/key-bindings.bash"\n' in text

    def test_disabled_features_are_commented(self, make_config):
        cfg = make_config(completion=False, key_bindings=False)
        text = render_snippet(cfg, "zsh")

        assert f'# [[ $- == *i* ]] && source "{cfg.shell_dir}/completion.zsh"' in text
        assert f'# source "{cfg.shell_dir}/key-bindings.zsh"' in text


def test_available_shells_keeps_bash(monkeypatch):
    monkeypatch.setattr(shells.shutil, "which", lambda name: "/usr/bin/zsh" if name == "zsh" else None)

    assert available_shells(["bash", "zsh", "fish"]) == ("bash", "zsh")

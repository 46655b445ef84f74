from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable, Tuple

from ..config import InstallConfig
from .rcfile import ConfigEntry

logger = logging.getLogger(__name__)

XDG_CONFIG_EXPR = '"${XDG_CONFIG_HOME:-$HOME/.config}"'


def available_shells(requested: Iterable[str]) -> Tuple[str, ...]:
    """Keep bash unconditionally; zsh and fish only when installed."""

    shells = []
    for shell in requested:
        if shell == "bash" or shutil.which(shell):
            shells.append(shell)
        else:
            logger.debug("Shell %s not found; skipping", shell)
    return tuple(shells)


def _home_relative(cfg: InstallConfig, path: Path) -> str:
    try:
        return "~/" + path.relative_to(cfg.home).as_posix()
    except ValueError:
        return str(path)


def snippet_path(cfg: InstallConfig, shell: str) -> Path:
    name = cfg.manifest.name
    if cfg.xdg:
        return cfg.config_home / name / f"{name}.{shell}"
    return cfg.home / f".{name}.{shell}"


def snippet_ref(cfg: InstallConfig, shell: str) -> str:
    """Path of the snippet as written inside the rc file."""

    name = cfg.manifest.name
    if cfg.xdg:
        return f"{XDG_CONFIG_EXPR}/{name}/{name}.{shell}"
    return _home_relative(cfg, snippet_path(cfg, shell))


def rc_path(cfg: InstallConfig, shell: str) -> Path:
    if shell == "zsh":
        return (Path(cfg.zdotdir) if cfg.zdotdir else cfg.home) / ".zshrc"
    if shell == "bash":
        return cfg.home / ".bashrc"
    raise ValueError(f"no rc file for shell: {shell}")


def rc_entry(cfg: InstallConfig, shell: str) -> ConfigEntry:
    ref = snippet_ref(cfg, shell)
    return ConfigEntry(line=f"[ -f {ref} ] && source {ref}", pattern=ref)


def fish_functions_dir(cfg: InstallConfig) -> Path:
    return cfg.config_home / "fish" / "functions"


def fish_bindings_function(cfg: InstallConfig) -> str:
    return f"{cfg.manifest.name}_key_bindings"


def fish_user_bindings_path(cfg: InstallConfig) -> Path:
    return fish_functions_dir(cfg) / "fish_user_key_bindings.fish"


def fish_bindings_link(cfg: InstallConfig) -> Path:
    return fish_functions_dir(cfg) / f"{fish_bindings_function(cfg)}.fish"


def render_snippet(cfg: InstallConfig, shell: str) -> str:
    """Sourcing snippet for bash/zsh: PATH guard plus the two feature scripts.

    Disabled features are written commented out so they are easy to enable.
    """

    bin_dir = str(cfg.bin_dir)
    completion = cfg.shell_dir / f"completion.{shell}"
    bindings = cfg.shell_dir / f"key-bindings.{shell}"

    completion_line = f'[[ $- == *i* ]] && source "{completion}" 2> /dev/null'
    bindings_line = f'source "{bindings}"'
    if not cfg.completion:
        completion_line = "# " + completion_line
    if not cfg.key_bindings:
        bindings_line = "# " + bindings_line

    return (
        f"# Setup {cfg.manifest.name}\n"
        "# ---------\n"
        f'if [[ ! "$PATH" == *{bin_dir}* ]]; then\n'
        f'  PATH="${{PATH:+${{PATH}}:}}{bin_dir}"\n'
        "fi\n"
        "\n"
        "# Auto-completion\n"
        "# ---------------\n"
        f"{completion_line}\n"
        "\n"
        "# Key bindings\n"
        "# ------------\n"
        f"{bindings_line}\n"
    )

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .config import SUPPORTED_SHELLS, InstallConfig, load_manifest
from .errors import ConfigWriteFailure
from .lib.platform_map import detect_platform, executable_name
from .lib.rcfile import remove_line
from .lib.shells import (
    fish_bindings_function,
    fish_bindings_link,
    fish_user_bindings_path,
    rc_entry,
    rc_path,
    snippet_path,
)
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .state_store import load_state

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERRORS = 2

FISH_WRAPPER = ["function fish_user_key_bindings", "end"]


def _planned_removals(config: InstallConfig, receipt: Dict[str, Any]) -> Tuple[List[Tuple[Path, str]], List[Path]]:
    """(rc file, pattern) pairs and plain files to delete.

    The receipt is authoritative; without one the paths are recomputed
    from the config.
    """

    rc_lines: List[Tuple[Path, str]] = []
    files: List[Path] = []

    if receipt:
        for path, info in (receipt.get("rc_files") or {}).items():
            rc_lines.append((Path(path), str(info.get("pattern") or info.get("line"))))
        files.extend(Path(p) for p in receipt.get("snippets") or [])
        fish = receipt.get("fish") or {}
        if fish.get("user_bindings_path"):
            rc_lines.append((Path(fish["user_bindings_path"]), fish_bindings_function(config)))
        if fish.get("bindings_link"):
            files.append(Path(fish["bindings_link"]))
        binary = (receipt.get("binary") or {}).get("path")
        if binary:
            files.append(Path(binary))
    else:
        for shell in SUPPORTED_SHELLS:
            if shell == "fish":
                continue
            rc_lines.append((rc_path(config, shell), rc_entry(config, shell).match_text))
            files.append(snippet_path(config, shell))
        rc_lines.append((fish_user_bindings_path(config), fish_bindings_function(config)))
        files.append(fish_bindings_link(config))
        files.append(config.binary_path)

    files.append(config.receipt_path)
    return rc_lines, files


def _only_fish_wrapper(path: Path) -> bool:
    """True when the file holds nothing but an empty fish_user_key_bindings."""

    text = path.read_text(encoding="utf-8", errors="replace")
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return lines in ([], FISH_WRAPPER)


def run_uninstall(config: InstallConfig) -> Dict[str, Any]:
    """Reverse an install. Failures are reported per file and do not stop the
    remaining removals."""

    receipt = load_state(config.receipt_path)
    rc_lines, files = _planned_removals(config, receipt)
    user_bindings = fish_user_bindings_path(config)
    errors: List[Dict[str, str]] = []

    removed_lines = 0
    for path, pattern in rc_lines:
        try:
            n = remove_line(path, pattern)
            removed_lines += n
            if n and path.name == user_bindings.name and _only_fish_wrapper(path):
                files.append(path)
        except OSError as e:
            err = ConfigWriteFailure(str(path), e)
            logger.error("  ! %s", err)
            errors.append({"path": err.path, "error": str(err)})

    removed_files: List[str] = []
    for p in files:
        if not (p.is_symlink() or p.exists()):
            continue
        try:
            p.unlink()
        except OSError as e:
            err = ConfigWriteFailure(str(p), e)
            logger.error("  ! %s", err)
            errors.append({"path": err.path, "error": str(err)})
            continue
        logger.info("Remove %s", p)
        removed_files.append(str(p))

    return {"removed_lines": removed_lines, "removed_files": removed_files, "errors": errors}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="rcstrap-uninstall", description="Undo what rcstrap added.")
    p.add_argument("--config", default=None, help="Tool manifest (YAML); defaults to the bundled one")
    p.add_argument("--base", default=None, help="Installation base directory (default: ~/.<tool>)")
    p.add_argument("--xdg", action="store_true", help="Files were generated under $XDG_CONFIG_HOME/<tool>")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to installer log")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(log_path=args.log)

    manifest = load_manifest(args.config)
    home = Path.home()
    config = InstallConfig(
        manifest=manifest,
        base_dir=Path(args.base).expanduser() if args.base else home / f".{manifest.name}",
        home=home,
        exe_name=executable_name(detect_platform(), manifest.name),
        xdg=args.xdg,
        xdg_config_home=os.environ.get("XDG_CONFIG_HOME") or None,
        zdotdir=os.environ.get("ZDOTDIR") or None,
    )

    summary = run_uninstall(config)
    logger.info(
        "Removed %d rc line(s) and %d file(s).",
        summary["removed_lines"],
        len(summary["removed_files"]),
    )
    if summary["errors"]:
        return EXIT_CONFIG_ERRORS
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from .config import SUPPORTED_SHELLS, InstallConfig, load_manifest
from .context import InstallCtx
from .errors import InstallationFailed
from .lib.platform_map import PlatformDescriptor, detect_platform, executable_name
from .lib.prompt import Confirm, FixedAnswer, TtyConfirm, resolve_choice
from .lib.shells import available_shells
from .lib.transfer import TransferTool
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import run_pipeline
from .state_store import ensure_defaults, load_state, merge_receipt, save_state
from .steps import AcquireBinaryStep, FishIntegrationStep, UpdateRcFilesStep, WriteShellSnippetsStep

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INSTALL_FAILED = 1
EXIT_CONFIG_ERRORS = 2


def build_steps():
    return [
        AcquireBinaryStep(),
        WriteShellSnippetsStep(),
        UpdateRcFilesStep(),
        FishIntegrationStep(),
    ]


def build_config(
    *,
    manifest_path: Optional[str] = None,
    platform: PlatformDescriptor,
    confirm: Confirm,
    base_dir: Optional[str] = None,
    bin_only: bool = False,
    xdg: bool = False,
    completion: Optional[bool] = None,
    key_bindings: Optional[bool] = None,
    update_rc: Optional[bool] = None,
    shells: Sequence[str] = SUPPORTED_SHELLS,
    home: Optional[Path] = None,
    environ: Optional[Dict[str, str]] = None,
) -> InstallConfig:
    """Resolve every choice once; unspecified ones are asked here."""

    env = os.environ if environ is None else environ
    manifest = load_manifest(manifest_path)
    home = home or Path.home()
    base = Path(base_dir).expanduser() if base_dir else home / f".{manifest.name}"

    if not bin_only:
        completion = resolve_choice(completion, "Do you want to enable fuzzy auto-completion?", confirm)
        key_bindings = resolve_choice(key_bindings, "Do you want to enable key bindings?", confirm)
        update_rc = resolve_choice(update_rc, "Do you want to update your shell configuration files?", confirm)
        shells = available_shells(shells)

    return InstallConfig(
        manifest=manifest,
        base_dir=base,
        home=home,
        exe_name=executable_name(platform, manifest.name),
        bin_only=bin_only,
        xdg=xdg,
        completion=bool(completion),
        key_bindings=bool(key_bindings),
        update_rc=bool(update_rc),
        shells=tuple(shells),
        xdg_config_home=env.get("XDG_CONFIG_HOME") or None,
        zdotdir=env.get("ZDOTDIR") or None,
    )


def _previous_receipt(config: InstallConfig) -> Dict[str, Any]:
    try:
        return load_state(config.receipt_path)
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable install receipt %s: %s", config.receipt_path, e)
        return {}


def run(
    config: InstallConfig,
    *,
    platform: PlatformDescriptor,
    confirm: Confirm,
    tools: Optional[Sequence[TransferTool]] = None,
) -> Dict[str, Any]:
    """Acquire the binary, then (unless bin-only) wire up the shells.

    Raises InstallationFailed when no binary could be obtained; in that case
    no shell configuration has been touched.
    """

    ctx = InstallCtx(config=config, platform=platform, confirm=confirm, tools=tools)
    previous = _previous_receipt(config)
    state = ensure_defaults({})
    stop_after = AcquireBinaryStep.step_id if config.bin_only else None

    try:
        result = run_pipeline(ctx=ctx, state=state, steps=build_steps(), stop_after=stop_after)
        state = result.state
        state["ran_steps"] = result.ran_steps
        return state
    finally:
        if not config.bin_only and state.get("binary"):
            save_state(config.receipt_path, merge_receipt(previous, state))


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="rcstrap", description="Install the binary and set up shell integration.")
    p.add_argument("--config", default=None, help="Tool manifest (YAML); defaults to the bundled one")
    p.add_argument("--base", default=None, help="Installation base directory (default: ~/.<tool>)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to installer log")
    p.add_argument("--bin", dest="bin_only", action="store_true", help="Download binary only")
    p.add_argument("--all", action="store_true", help="Enable completion and key bindings and update rc files")
    p.add_argument("--xdg", action="store_true", help="Generate files under $XDG_CONFIG_HOME/<tool>")

    for name, label in (("key-bindings", "key bindings"), ("completion", "fuzzy completion"), ("update-rc", "rc file updates")):
        dest = name.replace("-", "_")
        p.add_argument(f"--{name}", dest=dest, action="store_true", default=None, help=f"Enable {label}")
        p.add_argument(f"--no-{name}", dest=dest, action="store_false", help=f"Disable {label}")

    for shell in SUPPORTED_SHELLS:
        p.add_argument(f"--no-{shell}", dest=f"no_{shell}", action="store_true", help=f"Do not set up {shell}")

    answer = p.add_mutually_exclusive_group()
    answer.add_argument("--yes", dest="answer", action="store_const", const=True, default=None, help="Answer yes to all questions")
    answer.add_argument("--no", dest="answer", action="store_const", const=False, help="Answer no to all questions")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(log_path=args.log)

    if args.all:
        # explicit --no-<feature> flags win over --all
        for dest in ("key_bindings", "completion", "update_rc"):
            if getattr(args, dest) is None:
                setattr(args, dest, True)

    confirm: Confirm = TtyConfirm() if args.answer is None else FixedAnswer(args.answer)
    platform = detect_platform()
    config = build_config(
        manifest_path=args.config,
        platform=platform,
        confirm=confirm,
        base_dir=args.base,
        bin_only=args.bin_only,
        xdg=args.xdg,
        completion=args.completion,
        key_bindings=args.key_bindings,
        update_rc=args.update_rc,
        shells=[s for s in SUPPORTED_SHELLS if not getattr(args, f"no_{s}")],
    )

    try:
        state = run(config, platform=platform, confirm=confirm)
    except InstallationFailed as e:
        logger.error("%s", e)
        return EXIT_INSTALL_FAILED

    if config.bin_only:
        return EXIT_OK

    logger.info("Finished. Restart your shell or reload config file.")
    for path, info in state.get("rc_files", {}).items():
        logger.info("   source %s  # %s", path, info["shell"])
    logger.info("Use rcstrap-uninstall to remove %s.", config.manifest.name)

    if state.get("errors"):
        for err in state["errors"]:
            logger.error("Failed: %s", err.get("error"))
        return EXIT_CONFIG_ERRORS
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())

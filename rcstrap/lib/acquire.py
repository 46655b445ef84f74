from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Protocol, Sequence

from ..context import InstallCtx
from ..errors import AcquisitionError, BuildToolchainMissing, FetchFailure, InstallationFailed, InvalidBinary
from .command import CommandError, run_cmd
from .platform_map import resolve_asset
from .transfer import fetch_archive
from .version import check_binary, discard_candidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AcquisitionResult:
    path: Path
    version: str
    strategy: str


class Strategy(Protocol):
    """Produce a candidate at the install path, or decline with None."""

    name: str

    def acquire(self, ctx: InstallCtx) -> Optional[Path]:
        ...


def _clear(path: Path) -> None:
    if path.is_symlink() or path.exists():
        path.unlink()


class ReuseStrategy:
    name = "reuse"

    def acquire(self, ctx: InstallCtx) -> Optional[Path]:
        path = ctx.config.binary_path
        if not (path.exists() or path.is_symlink()):
            return None
        logger.info("  - Already exists: %s", path)
        return path


class PathReferenceStrategy:
    name = "path"

    def acquire(self, ctx: InstallCtx) -> Optional[Path]:
        path = ctx.config.binary_path
        found = shutil.which(path.name)
        if not found:
            return None

        found_path = Path(found).resolve()
        if found_path == path.resolve():
            return None

        logger.info("  - Found in $PATH: %s", found)
        path.parent.mkdir(parents=True, exist_ok=True)
        _clear(path)
        try:
            os.symlink(str(found_path), str(path))
        except OSError as e:
            raise AcquisitionError(f"cannot link {found_path}: {e}") from e
        logger.info("  - Creating symlink: %s -> %s", path, found_path)
        return path


class DownloadStrategy:
    name = "download"

    def acquire(self, ctx: InstallCtx) -> Optional[Path]:
        manifest = ctx.config.manifest
        asset = resolve_asset(ctx.platform, name=manifest.name, version=manifest.version)
        url = manifest.url_for(asset)

        path = ctx.config.binary_path
        fetch_archive(url, path.parent, tools=ctx.tools)
        if not path.exists():
            raise FetchFailure(f"Failed to download {asset}")

        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path


class BuildStrategy:
    name = "build"

    def acquire(self, ctx: InstallCtx) -> Optional[Path]:
        manifest = ctx.config.manifest
        toolchain = manifest.build_toolchain
        if not toolchain or shutil.which(toolchain) is None:
            raise BuildToolchainMissing(f"{toolchain or 'build toolchain'} executable not found")
        if not manifest.build_argv:
            raise BuildToolchainMissing("no build command configured")

        if not ctx.confirm(f"Prebuilt binary unavailable. Build from source with {toolchain}?"):
            logger.info("  - Build skipped")
            return None

        path = ctx.config.binary_path
        out_dir = tempfile.mkdtemp(prefix="rcstrap-build-")
        try:
            argv = [a.format(version=manifest.version, module=manifest.build_module) for a in manifest.build_argv]
            logger.info("  - Building binary (%s)", toolchain)
            try:
                run_cmd(argv, env={manifest.build_output_env: out_dir})
            except (CommandError, OSError) as e:
                raise AcquisitionError(f"build failed: {e}") from e

            produced = Path(out_dir) / path.name
            if not produced.exists():
                raise AcquisitionError(f"build produced no {path.name} in {manifest.build_output_env}")

            path.parent.mkdir(parents=True, exist_ok=True)
            _clear(path)
            shutil.copy2(produced, path)
        finally:
            shutil.rmtree(out_dir, ignore_errors=True)
        return path


def default_strategies() -> list[Strategy]:
    return [ReuseStrategy(), PathReferenceStrategy(), DownloadStrategy(), BuildStrategy()]


def acquire_binary(ctx: InstallCtx, strategies: Optional[Sequence[Strategy]] = None) -> AcquisitionResult:
    """Try each strategy in order until one yields a validated binary."""

    manifest = ctx.config.manifest
    reasons: Dict[str, str] = {}

    for strategy in strategies if strategies is not None else default_strategies():
        try:
            candidate = strategy.acquire(ctx)
        except AcquisitionError as e:
            logger.warning("  - %s: %s", strategy.name, e)
            reasons[strategy.name] = str(e)
            continue

        if candidate is None:
            logger.debug("Strategy %s declined", strategy.name)
            continue

        try:
            version = check_binary(candidate, manifest.version, neutralize=manifest.neutralize_env)
        except InvalidBinary as e:
            logger.warning("  - %s: %s", strategy.name, e)
            reasons[strategy.name] = str(e)
            discard_candidate(candidate)
            continue

        logger.info("  - Using %s %s (%s)", manifest.name, version, strategy.name)
        return AcquisitionResult(path=candidate, version=version, strategy=strategy.name)

    raise InstallationFailed(reasons)

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from ..errors import InvalidBinary, VersionMismatch
from .command import run_cmd

logger = logging.getLogger(__name__)


def neutral_env(names: Iterable[str]) -> dict[str, str]:
    return {n: "" for n in names}


def check_binary(path: Path, expected: str, *, neutralize: Iterable[str] = ()) -> str:
    """Ask the binary for its version and compare it with ``expected``.

    The first whitespace-delimited token of ``<path> --version`` must equal
    ``expected`` exactly. Raises InvalidBinary (or VersionMismatch); the
    caller owns deleting the candidate.
    """

    try:
        r = run_cmd([str(path), "--version"], check=False, env=neutral_env(neutralize))
    except OSError as e:
        raise InvalidBinary(f"{path}: cannot execute: {e}") from e

    if r.returncode != 0:
        raise InvalidBinary(f"{path}: exited with {r.returncode}")

    tokens = r.stdout.split()
    if not tokens:
        raise InvalidBinary(f"{path}: empty version output")

    actual = tokens[0]
    if actual != expected:
        raise VersionMismatch(expected=expected, actual=actual)

    logger.debug("Validated %s (version %s)", path, actual)
    return actual


def discard_candidate(path: Path) -> None:
    """Remove a rejected candidate (a symlink is removed, never its target)."""

    if path.is_symlink() or path.exists():
        path.unlink()
        logger.info("  - Removed invalid binary %s", path)

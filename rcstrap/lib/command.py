from __future__ import annotations

import contextlib
import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import IO, Iterator, Mapping, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str


class CommandError(RuntimeError):
    def __init__(self, result: CmdResult) -> None:
        super().__init__(f"Command failed ({result.returncode}): {_fmt_argv(result.argv)}\n{result.stderr}")
        self.result = result


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def _merged_env(env: Mapping[str, str] | None) -> dict[str, str]:
    return dict(os.environ, **(env or {}))


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
    input_text: str | None = None,
) -> CmdResult:
    """Run a command with consistent logging.

    - Always logs the command.
    - Captures stdout/stderr (logged at DEBUG).
    - ``env`` is layered over the current environment.
    """

    argv_list = [str(a) for a in argv]
    logger.debug("CMD %s", _fmt_argv(argv_list))

    p = subprocess.run(
        argv_list,
        input=input_text,
        text=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        cwd=cwd,
        env=_merged_env(env),
    )

    if p.stdout:
        logger.debug("STDOUT %s", p.stdout.strip())
    if p.stderr:
        logger.debug("STDERR %s", p.stderr.strip())

    result = CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout, stderr=p.stderr)
    if check and p.returncode != 0:
        raise CommandError(result)
    return result


@contextlib.contextmanager
def stream_cmd(
    argv: Sequence[str],
    *,
    env: Mapping[str, str] | None = None,
) -> Iterator[IO[bytes]]:
    """Yield the binary stdout of a running command.

    The command must exit 0 once the caller is done reading, otherwise
    CommandError is raised. The process is always reaped.
    """

    argv_list = [str(a) for a in argv]
    logger.debug("CMD %s |", _fmt_argv(argv_list))

    p = subprocess.Popen(
        argv_list,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=_merged_env(env),
    )
    assert p.stdout is not None
    try:
        yield p.stdout
        # Drain whatever the consumer did not read so the process can exit.
        p.stdout.read()
    finally:
        p.stdout.close()
        stderr = p.stderr.read().decode("utf-8", errors="replace") if p.stderr else ""
        if p.stderr:
            p.stderr.close()
        returncode = p.wait()

    if stderr:
        logger.debug("STDERR %s", stderr.strip())
    if returncode != 0:
        raise CommandError(CmdResult(argv=argv_list, returncode=returncode, stdout="", stderr=stderr))

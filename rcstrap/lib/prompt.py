from __future__ import annotations

import logging
import sys
from typing import Callable, Optional, Protocol, TextIO

logger = logging.getLogger(__name__)


class Confirm(Protocol):
    def __call__(self, prompt: str) -> bool:
        ...


class FixedAnswer:
    """Non-interactive policy: answer every question the same way."""

    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.asked: list[str] = []

    def __call__(self, prompt: str) -> bool:
        self.asked.append(prompt)
        logger.info("%s ([y]/n) %s", prompt, "y" if self.answer else "n")
        return self.answer


class TtyConfirm:
    """Ask on the terminal; anything but n/N means yes.

    Without a terminal on stdin the default answer (yes) is used.
    """

    def __init__(
        self,
        *,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        read: Optional[Callable[[], str]] = None,
    ) -> None:
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self._read = read

    def __call__(self, prompt: str) -> bool:
        if self._read is None and not self.stdin.isatty():
            logger.info("%s ([y]/n) y (no terminal)", prompt)
            return True

        self.stdout.write(f"{prompt} ([y]/n) ")
        self.stdout.flush()
        reply = (self._read() if self._read else self.stdin.readline()).strip()
        answer = not reply.lower().startswith("n")
        logger.debug("Prompt %r -> %r (%s)", prompt, reply, answer)
        return answer


def resolve_choice(value: Optional[bool], prompt: str, confirm: Confirm) -> bool:
    """Use a pre-specified choice, otherwise ask once."""

    if value is not None:
        return value
    return confirm(prompt)

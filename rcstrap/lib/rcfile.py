"""Idempotent, append-only edits of shell configuration files.

Existing occurrences are found by literal substring search, either of the
whole line or of a narrower pattern (so that a previously inserted line with a
different embedded path is still recognised). A line whose first
non-whitespace character is ``#`` counts as commented out.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..errors import ConfigWriteFailure
from .prompt import Confirm

logger = logging.getLogger(__name__)

COMMENT_MARKER = "#"


@dataclass(frozen=True)
class ConfigEntry:
    line: str
    pattern: Optional[str] = None

    @property
    def match_text(self) -> str:
        return self.pattern or self.line


@dataclass(frozen=True)
class Occurrence:
    lineno: int
    text: str
    commented: bool


class Decision(enum.Enum):
    APPEND = "append"
    SKIP_ACTIVE = "skip_active"
    SKIP_DISABLED = "skip_disabled"
    PROMPT_ACCEPTED = "prompt_accepted"
    PROMPT_DECLINED = "prompt_declined"

    @property
    def appends(self) -> bool:
        return self in (Decision.APPEND, Decision.PROMPT_ACCEPTED)


class MergeOutcome(enum.Enum):
    ALREADY_EXISTS = "already exists"
    ADDED = "added"
    SKIPPED = "skipped"


def is_commented(text: str) -> bool:
    return text.lstrip().startswith(COMMENT_MARKER)


def find_occurrences(path: Path, entry: ConfigEntry) -> List[Occurrence]:
    if not path.is_file():
        return []

    needle = entry.match_text
    found: List[Occurrence] = []
    with path.open("r", encoding="utf-8", errors="replace") as f:
        for lineno, raw in enumerate(f, start=1):
            text = raw.rstrip("\n")
            if needle in text:
                found.append(Occurrence(lineno=lineno, text=text, commented=is_commented(text)))
    return found


def decide(occurrences: List[Occurrence], *, update: bool, confirm: Confirm, prompt: str) -> Decision:
    """Apply the insertion policy.

    - no occurrence: append when ``update`` is set
    - any active occurrence: never append
    - only commented occurrences: ask, whatever ``update`` says
    """

    if not occurrences:
        return Decision.APPEND if update else Decision.SKIP_DISABLED

    if any(not o.commented for o in occurrences):
        return Decision.SKIP_ACTIVE

    return Decision.PROMPT_ACCEPTED if confirm(prompt) else Decision.PROMPT_DECLINED


def append_line(path: Path, line: str) -> None:
    """Append ``line`` with a single write, preceded by a blank separator
    when the file already has content."""

    prefix = ""
    if path.is_file():
        size = path.stat().st_size
        if size:
            with path.open("rb") as f:
                f.seek(size - 1)
                last = f.read(1)
            prefix = "\n" if last == b"\n" else "\n\n"

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(f"{prefix}{line}\n")


def merge_entry(path: Path, entry: ConfigEntry, *, update: bool, confirm: Confirm) -> MergeOutcome:
    logger.info("Update %s:", path)
    logger.info("  - %s", entry.line)

    try:
        occurrences = find_occurrences(path, entry)
        decision = decide(
            occurrences,
            update=update,
            confirm=confirm,
            prompt=f"    {path} has a commented-out line matching '{entry.match_text}'. Add it anyway?",
        )
        if decision.appends:
            append_line(path, entry.line)
    except OSError as e:
        raise ConfigWriteFailure(str(path), e) from e

    if decision is Decision.SKIP_ACTIVE:
        linenos = " ".join(str(o.lineno) for o in occurrences if not o.commented)
        logger.info("    - Already exists: line #%s", linenos)
        return MergeOutcome.ALREADY_EXISTS
    if decision.appends:
        logger.info("    + Added")
        return MergeOutcome.ADDED
    logger.info("    ~ Skipped")
    return MergeOutcome.SKIPPED


def remove_line(path: Path, pattern: str) -> int:
    """Drop active lines containing ``pattern`` (and the blank line before
    each). Returns the number of lines removed."""

    if not path.is_file():
        return 0

    # surrogateescape keeps bytes that are not UTF-8 intact on rewrite
    lines = path.read_text(encoding="utf-8", errors="surrogateescape").splitlines(keepends=True)
    kept: List[str] = []
    removed = 0
    for text in lines:
        if pattern in text and not is_commented(text):
            if kept and not kept[-1].strip():
                kept.pop()
            removed += 1
            continue
        kept.append(text)

    if removed:
        path.write_text("".join(kept), encoding="utf-8", errors="surrogateescape")
        logger.info("Remove from %s: %d line(s) matching '%s'", path, removed, pattern)
    return removed

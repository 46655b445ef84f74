from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"json", "yaml", "yml"}:
        return ext
    # Default to JSON for unknown extensions.
    return "json"


def _yaml():
    try:
        import yaml  # type: ignore
    except Exception as e:  # pragma: no cover
        raise RuntimeError("YAML receipt requested but PyYAML is not available; use a .json path") from e
    return yaml


def load_state(path: Path) -> Dict[str, Any]:
    """Load an install receipt; a missing file is an empty receipt."""

    if not path.exists():
        return {}

    if _detect_format(path) == "json":
        data = json.loads(path.read_text(encoding="utf-8"))
    else:
        data = _yaml().safe_load(path.read_text(encoding="utf-8")) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Install receipt must be an object/dict, got {type(data)}")
    return data


def save_state(path: Path, state: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)

    if _detect_format(path) == "json":
        path.write_text(json.dumps(state, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    else:
        path.write_text(_yaml().safe_dump(state, sort_keys=False) + "\n", encoding="utf-8")
    logger.debug("Saved install receipt %s", path)


def ensure_defaults(state: Dict[str, Any]) -> Dict[str, Any]:
    """Fill required keys without overriding recorded values."""

    state.setdefault("current_step", None)
    state.setdefault("binary", {})
    state.setdefault("snippets", [])
    state.setdefault("rc_files", {})
    state.setdefault("fish", {})
    state.setdefault("errors", [])
    return state


def record_error(state: Dict[str, Any], *, step: str, error: str, path: str | None = None) -> None:
    e: Dict[str, Any] = {"step": step, "error": error}
    if path:
        e["path"] = path
    state.setdefault("errors", []).append(e)


def merge_receipt(previous: Dict[str, Any], current: Dict[str, Any]) -> Dict[str, Any]:
    """Fold a run's state into the receipt left by earlier runs.

    Paths touched by any run stay listed so uninstall can reverse all of them;
    the binary, step and errors describe the latest run only.
    """

    merged = ensure_defaults(dict(current))
    rc_files = dict(previous.get("rc_files") or {})
    rc_files.update(current.get("rc_files") or {})
    merged["rc_files"] = rc_files

    snippets = list(previous.get("snippets") or [])
    snippets.extend(p for p in current.get("snippets") or [] if p not in snippets)
    merged["snippets"] = snippets

    fish = dict(previous.get("fish") or {})
    fish.update(current.get("fish") or {})
    merged["fish"] = fish
    return merged

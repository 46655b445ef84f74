from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallCtx
from ..errors import ConfigWriteFailure
from ..lib.rcfile import merge_entry
from ..lib.shells import rc_entry, rc_path
from ..state_store import record_error

logger = logging.getLogger(__name__)


class UpdateRcFilesStep:
    step_id = "30_update_rc_files"

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = ctx.config
        rc_files = state.setdefault("rc_files", {})

        for shell in cfg.shells:
            if shell == "fish":
                continue
            path = rc_path(cfg, shell)
            entry = rc_entry(cfg, shell)
            try:
                outcome = merge_entry(path, entry, update=cfg.update_rc, confirm=ctx.confirm)
            except ConfigWriteFailure as e:
                # One broken rc file must not keep the others from being updated.
                logger.error("  ! %s", e)
                record_error(state, step=self.step_id, error=str(e), path=str(path))
                continue

            rc_files[str(path)] = {
                "shell": shell,
                "line": entry.line,
                "pattern": entry.match_text,
                "outcome": outcome.value,
            }
        return state

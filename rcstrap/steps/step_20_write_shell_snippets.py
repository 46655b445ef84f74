from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallCtx
from ..errors import ConfigWriteFailure
from ..lib.shells import render_snippet, snippet_path
from ..state_store import record_error

logger = logging.getLogger(__name__)


class WriteShellSnippetsStep:
    step_id = "20_write_shell_snippets"

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = ctx.config
        written = state.setdefault("snippets", [])

        for shell in cfg.shells:
            if shell == "fish":
                continue
            p = snippet_path(cfg, shell)
            logger.info("Generate %s ...", p)
            try:
                p.parent.mkdir(parents=True, exist_ok=True)
                p.write_text(render_snippet(cfg, shell), encoding="utf-8")
            except OSError as e:
                err = ConfigWriteFailure(str(p), e)
                logger.error("  ! %s", err)
                record_error(state, step=self.step_id, error=str(err), path=str(p))
                continue
            if str(p) not in written:
                written.append(str(p))
        return state

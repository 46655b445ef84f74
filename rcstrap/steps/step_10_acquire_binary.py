from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallCtx
from ..lib.acquire import acquire_binary

logger = logging.getLogger(__name__)


class AcquireBinaryStep:
    step_id = "10_acquire_binary"

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = ctx.config
        logger.info("Downloading bin/%s ...", cfg.binary_path.name)
        state["platform"] = str(ctx.platform)

        # InstallationFailed propagates and stops the pipeline here, before
        # any rc file is touched.
        result = acquire_binary(ctx)
        state["binary"] = {
            "path": str(result.path),
            "version": result.version,
            "strategy": result.strategy,
        }
        return state

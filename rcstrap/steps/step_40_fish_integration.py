from __future__ import annotations

import logging
import os
from typing import Any, Dict

from ..context import InstallCtx
from ..errors import ConfigWriteFailure
from ..lib.command import run_cmd
from ..lib.rcfile import ConfigEntry, find_occurrences
from ..lib.shells import fish_bindings_function, fish_bindings_link, fish_user_bindings_path
from ..state_store import record_error

logger = logging.getLogger(__name__)


class FishIntegrationStep:
    step_id = "40_fish_integration"

    def _add_to_user_paths(self, ctx: InstallCtx) -> bool:
        bin_dir = str(ctx.config.bin_dir)
        logger.info("Update fish_user_paths ...")
        try:
            r = run_cmd(
                [
                    "fish",
                    "-c",
                    f"contains {bin_dir} $fish_user_paths; or set --universal fish_user_paths $fish_user_paths {bin_dir}",
                ],
                check=False,
            )
        except OSError as e:
            logger.warning("  ! fish not runnable: %s", e)
            return False
        if r.returncode != 0:
            logger.warning("  ! fish exited with %s", r.returncode)
            return False
        return True

    def _link_bindings(self, ctx: InstallCtx) -> str:
        cfg = ctx.config
        link = fish_bindings_link(cfg)
        target = cfg.shell_dir / "key-bindings.fish"
        link.parent.mkdir(parents=True, exist_ok=True)
        if link.is_symlink() or link.exists():
            link.unlink()
        os.symlink(str(target), str(link))
        logger.info("Symlink %s -> %s", link, target)
        return str(link)

    def _check_user_bindings(self, ctx: InstallCtx) -> str:
        """Make sure fish_user_key_bindings calls our bindings function.

        A new file gets a complete function; an existing one is only
        inspected, since the call belongs inside its function body.
        """

        cfg = ctx.config
        path = fish_user_bindings_path(cfg)
        func = fish_bindings_function(cfg)

        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(f"function fish_user_key_bindings\n  {func}\nend\n", encoding="utf-8")
            logger.info("Create %s:", path)
            logger.info("    + Added")
            return "added"

        logger.info("Check %s:", path)
        active = [o for o in find_occurrences(path, ConfigEntry(line=func)) if not o.commented]
        if active:
            logger.info("  - Already exists: line #%s", " ".join(str(o.lineno) for o in active))
            return "already exists"

        logger.warning("  ** Please add the following line to the function body:")
        logger.warning("  **   %s", func)
        return "skipped"

    def run(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = ctx.config
        if "fish" not in cfg.shells:
            return state

        fish = state.setdefault("fish", {})
        fish["user_paths"] = self._add_to_user_paths(ctx)

        if not cfg.key_bindings:
            return state

        try:
            fish["bindings_link"] = self._link_bindings(ctx)
            fish["user_bindings_path"] = str(fish_user_bindings_path(cfg))
            fish["user_bindings"] = self._check_user_bindings(ctx)
        except OSError as e:
            err = ConfigWriteFailure(str(fish_user_bindings_path(cfg)), e)
            logger.error("  ! %s", err)
            record_error(state, step=self.step_id, error=str(err), path=err.path)
        return state

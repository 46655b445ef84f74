from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .config import InstallConfig
from .lib.platform_map import PlatformDescriptor
from .lib.prompt import Confirm
from .lib.transfer import TransferTool


@dataclass(frozen=True)
class InstallCtx:
    """Everything a step needs besides the mutable run state."""

    config: InstallConfig
    platform: PlatformDescriptor
    confirm: Confirm
    tools: Optional[Sequence[TransferTool]] = None

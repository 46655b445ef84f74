from .step_10_acquire_binary import AcquireBinaryStep
from .step_20_write_shell_snippets import WriteShellSnippetsStep
from .step_30_update_rc_files import UpdateRcFilesStep
from .step_40_fish_integration import FishIntegrationStep

__all__ = [
    "AcquireBinaryStep",
    "WriteShellSnippetsStep",
    "UpdateRcFilesStep",
    "FishIntegrationStep",
]

from __future__ import annotations

from typing import Dict, Optional


class InstallerError(RuntimeError):
    pass


class ConfigError(ValueError):
    pass


class AcquisitionError(InstallerError):
    """A single acquisition strategy failed; the pipeline moves on."""


class UnsupportedPlatform(AcquisitionError):
    pass


class FetchFailure(AcquisitionError):
    pass


class InvalidBinary(AcquisitionError):
    pass


class VersionMismatch(InvalidBinary):
    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"version mismatch: {actual} != {expected}")
        self.expected = expected
        self.actual = actual


class BuildToolchainMissing(AcquisitionError):
    pass


class InstallationFailed(InstallerError):
    def __init__(self, reasons: Optional[Dict[str, str]] = None) -> None:
        self.reasons = dict(reasons or {})
        detail = "; ".join(f"{k}: {v}" for k, v in self.reasons.items())
        super().__init__(f"Installation failed ({detail})" if detail else "Installation failed")


class ConfigWriteFailure(InstallerError):
    def __init__(self, path: str, error: BaseException) -> None:
        super().__init__(f"Failed to update {path}: {error}")
        self.path = path

from __future__ import annotations

import fnmatch
import logging
import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from ..errors import UnsupportedPlatform

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlatformDescriptor:
    system: str
    machine: str
    variant: str = ""

    def __str__(self) -> str:
        return " ".join(p for p in (self.system, self.machine, self.variant) if p)


# (system, machine, variant, os_arch, extension); first match wins, so the
# narrow rows must stay above the generic "*64" ones.
_ASSET_TABLE: Tuple[Tuple[str, str, str, str, str], ...] = (
    ("Darwin", "arm64*", "*", "darwin_arm64", "tar.gz"),
    ("Darwin", "x86_64*", "*", "darwin_amd64", "tar.gz"),
    ("Linux", "armv5*", "*", "linux_armv5", "tar.gz"),
    ("Linux", "armv6*", "*", "linux_armv6", "tar.gz"),
    ("Linux", "armv7*", "*", "linux_armv7", "tar.gz"),
    ("Linux", "armv8*", "*", "linux_arm64", "tar.gz"),
    ("Linux", "aarch64*", "*Android*", "android_arm64", "tar.gz"),
    ("Linux", "aarch64*", "*", "linux_arm64", "tar.gz"),
    ("Linux", "loongarch64*", "*", "linux_loong64", "tar.gz"),
    ("Linux", "ppc64le*", "*", "linux_ppc64le", "tar.gz"),
    ("Linux", "s390x*", "*", "linux_s390x", "tar.gz"),
    ("Linux", "*64*", "*", "linux_amd64", "tar.gz"),
    ("FreeBSD", "*64*", "*", "freebsd_amd64", "tar.gz"),
    ("OpenBSD", "*64*", "*", "openbsd_amd64", "tar.gz"),
    ("CYGWIN*", "*64*", "*", "windows_amd64", "zip"),
    ("MINGW*", "*64*", "*", "windows_amd64", "zip"),
    ("MSYS*", "*64*", "*", "windows_amd64", "zip"),
    ("Windows*", "*64*", "*", "windows_amd64", "zip"),
)


def _is_android() -> bool:
    return bool(os.environ.get("ANDROID_ROOT")) or Path("/system/build.prop").exists()


def detect_platform() -> PlatformDescriptor:
    u = platform.uname()
    variant = "Android" if u.system == "Linux" and _is_android() else ""
    d = PlatformDescriptor(system=u.system, machine=u.machine, variant=variant)
    logger.debug("Platform: %s", d)
    return d


def lookup(descriptor: PlatformDescriptor) -> Tuple[str, str]:
    """Return (os_arch, extension) for a host descriptor."""

    for system, machine, variant, os_arch, ext in _ASSET_TABLE:
        if (
            fnmatch.fnmatchcase(descriptor.system, system)
            and fnmatch.fnmatchcase(descriptor.machine, machine)
            and fnmatch.fnmatchcase(descriptor.variant, variant)
        ):
            return os_arch, ext
    raise UnsupportedPlatform(f"No prebuilt binary for {descriptor}")


def resolve_asset(descriptor: PlatformDescriptor, *, name: str, version: str) -> str:
    os_arch, ext = lookup(descriptor)
    return f"{name}-{version}-{os_arch}.{ext}"


def is_windows(descriptor: PlatformDescriptor) -> bool:
    return any(fnmatch.fnmatchcase(descriptor.system, p) for p in ("CYGWIN*", "MINGW*", "MSYS*", "Windows*"))


def executable_name(descriptor: PlatformDescriptor, name: str) -> str:
    return f"{name}.exe" if is_windows(descriptor) else name

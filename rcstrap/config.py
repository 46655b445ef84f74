from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .errors import ConfigError

DEFAULT_MANIFEST = Path(__file__).resolve().parent / "manifests" / "tool.yaml"

SUPPORTED_SHELLS: Tuple[str, ...] = ("bash", "zsh", "fish")


@dataclass(frozen=True)
class ToolManifest:
    raw: Dict[str, Any]

    @property
    def name(self) -> str:
        return str(self.raw["name"])

    @property
    def version(self) -> str:
        return str(self.raw["version"])

    @property
    def download_url(self) -> str:
        return str(self.raw["download_url"])

    @property
    def neutralize_env(self) -> List[str]:
        return [str(v) for v in (self.raw.get("neutralize_env") or [])]

    @property
    def build_toolchain(self) -> Optional[str]:
        v = (self.raw.get("build") or {}).get("toolchain")
        return str(v) if v else None

    @property
    def build_module(self) -> str:
        return str((self.raw.get("build") or {}).get("module") or "")

    @property
    def build_argv(self) -> List[str]:
        return [str(a) for a in ((self.raw.get("build") or {}).get("argv") or [])]

    @property
    def build_output_env(self) -> str:
        return str((self.raw.get("build") or {}).get("output_env") or "GOBIN")

    def url_for(self, asset: str) -> str:
        return self.download_url.format(version=self.version, asset=asset, name=self.name)


def load_manifest(path: Optional[str] = None) -> ToolManifest:
    p = Path(path) if path else DEFAULT_MANIFEST
    if not p.exists():
        raise FileNotFoundError(str(p))

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigError("tool manifest must be YAML")

    try:
        import yaml  # type: ignore
    except Exception as e:  # pragma: no cover
        raise RuntimeError("PyYAML is required to read the tool manifest") from e

    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{p}: tool manifest must contain a mapping/object")

    for key in ("name", "version", "download_url"):
        if not raw.get(key):
            raise ConfigError(f"{p}: missing required key '{key}'")

    return ToolManifest(raw=raw)


@dataclass(frozen=True)
class InstallConfig:
    """Resolved installer choices, built once at startup."""

    manifest: ToolManifest
    base_dir: Path
    home: Path
    exe_name: str = ""
    bin_only: bool = False
    xdg: bool = False
    completion: bool = True
    key_bindings: bool = True
    update_rc: bool = True
    shells: Tuple[str, ...] = ("bash", "zsh", "fish")
    xdg_config_home: Optional[str] = None
    zdotdir: Optional[str] = None

    @property
    def bin_dir(self) -> Path:
        return self.base_dir / "bin"

    @property
    def binary_path(self) -> Path:
        return self.bin_dir / (self.exe_name or self.manifest.name)

    @property
    def shell_dir(self) -> Path:
        return self.base_dir / "shell"

    @property
    def config_home(self) -> Path:
        return Path(self.xdg_config_home) if self.xdg_config_home else self.home / ".config"

    @property
    def receipt_path(self) -> Path:
        return self.base_dir / "install-state.json"

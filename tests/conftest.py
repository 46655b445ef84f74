"""
Shared test fixtures: a throwaway tool manifest, fake executables and
fake transfer tools. Nothing here touches the network.
"""

import contextlib
import io
import os
import stat
import tarfile
import textwrap
import zipfile
from pathlib import Path

import pytest

from rcstrap.config import InstallConfig, load_manifest
from rcstrap.context import InstallCtx
from rcstrap.lib.command import CommandError, CmdResult
from rcstrap.lib.platform_map import PlatformDescriptor
from rcstrap.lib.prompt import FixedAnswer

TOOL = "rcstrap-testtool"
VERSION = "1.2.3"
LINUX = PlatformDescriptor(system="Linux", machine="x86_64")


def binary_script(version: str = VERSION) -> str:
    # Prints garbage when the default-options variable leaks through.
    return textwrap.dedent(f"""\
        #!/bin/sh
        if [ -n "$TESTTOOL_DEFAULT_OPTS" ]; then
          echo "garbage"
          exit 0
        fi
        echo "{version} (deadbeef)"
    """)


def write_executable(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def tar_gz_bytes(files: dict) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, content in files.items():
            data = content.encode()
            info = tarfile.TarInfo(name=name)
            info.size = len(data)
            info.mode = 0o755
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def zip_bytes(files: dict) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buf.getvalue()


class FakeTool:
    """Transfer tool serving a fixed payload (or failing)."""

    def __init__(self, name="fake", payload=b"", available=True, fail=False):
        self.name = name
        self.payload = payload
        self._available = available
        self.fail = fail
        self.calls = []

    def available(self):
        return self._available

    @contextlib.contextmanager
    def stream(self, url):
        self.calls.append(("stream", url))
        if self.fail:
            raise CommandError(CmdResult(argv=[self.name, url], returncode=22, stdout="", stderr="404"))
        yield io.BytesIO(self.payload)

    def download(self, url, dest):
        self.calls.append(("download", url))
        if self.fail:
            raise CommandError(CmdResult(argv=[self.name, url], returncode=22, stdout="", stderr="404"))
        Path(dest).write_bytes(self.payload)


@pytest.fixture
def fake_tool():
    """Factory for FakeTool instances."""
    return FakeTool


@pytest.fixture
def tar_payload():
    return tar_gz_bytes


@pytest.fixture
def zip_payload():
    return zip_bytes


@pytest.fixture
def make_binary():
    """Write a fake tool binary reporting the given version."""

    def _make(path: Path, version: str = VERSION) -> Path:
        return write_executable(path, binary_script(version))

    return _make


@pytest.fixture
def make_executable():
    return write_executable


@pytest.fixture
def isolated_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """PATH limited to a private bin dir plus the system dirs."""
    fake_bin = tmp_path / "fakebin"
    fake_bin.mkdir()
    monkeypatch.setenv("PATH", os.pathsep.join([str(fake_bin), "/usr/bin", "/bin"]))
    monkeypatch.delenv("TESTTOOL_DEFAULT_OPTS", raising=False)
    return fake_bin


@pytest.fixture
def manifest_path(tmp_path: Path) -> Path:
    content = textwrap.dedent(f"""\
        name: {TOOL}
        version: "{VERSION}"
        download_url: "https://downloads.invalid/{{version}}/{{asset}}"
        neutralize_env:
          - TESTTOOL_DEFAULT_OPTS
        build:
          toolchain: fakego
          module: example.invalid/testtool
          output_env: FAKE_OUT
          argv: [fakego, build, "{{module}}", "{{version}}"]
    """)
    path = tmp_path / "tool.yaml"
    path.write_text(content)
    return path


@pytest.fixture
def home(tmp_path: Path) -> Path:
    h = tmp_path / "home"
    h.mkdir()
    return h


@pytest.fixture
def make_config(manifest_path: Path, home: Path):
    """Build an InstallConfig rooted in the temporary home."""

    def _make(**overrides) -> InstallConfig:
        kwargs = dict(
            manifest=load_manifest(str(manifest_path)),
            base_dir=home / f".{TOOL}",
            home=home,
            exe_name=TOOL,
            shells=("bash", "zsh"),
        )
        kwargs.update(overrides)
        return InstallConfig(**kwargs)

    return _make


@pytest.fixture
def make_ctx(make_config):
    def _make(platform=LINUX, answer=True, tools=(), **overrides) -> InstallCtx:
        return InstallCtx(
            config=make_config(**overrides),
            platform=platform,
            confirm=FixedAnswer(answer),
            tools=list(tools),
        )

    return _make


@pytest.fixture
def script_text():
    """Source of a fake binary reporting the given version."""
    return binary_script

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import tarfile
import tempfile
import zipfile
from pathlib import Path
from typing import IO, ContextManager, Dict, Iterator, Optional, Protocol, Sequence

import requests

from ..errors import FetchFailure
from .command import CommandError, run_cmd, stream_cmd

logger = logging.getLogger(__name__)

# Python >= 3.12 (and security backports) can refuse unsafe tar members.
_TAR_EXTRACT_KWARGS = {"filter": "data"} if hasattr(tarfile, "data_filter") else {}


class TransferTool(Protocol):
    name: str

    def available(self) -> bool:
        ...

    def stream(self, url: str) -> ContextManager[IO[bytes]]:
        ...

    def download(self, url: str, dest: Path) -> None:
        ...


class CurlTool:
    name = "curl"

    def available(self) -> bool:
        return shutil.which("curl") is not None

    def stream(self, url: str) -> ContextManager[IO[bytes]]:
        return stream_cmd(["curl", "-fsSL", url])

    def download(self, url: str, dest: Path) -> None:
        run_cmd(["curl", "-fsSL", "-o", str(dest), url])


class WgetTool:
    name = "wget"

    def available(self) -> bool:
        return shutil.which("wget") is not None

    def stream(self, url: str) -> ContextManager[IO[bytes]]:
        return stream_cmd(["wget", "-q", "-O", "-", url])

    def download(self, url: str, dest: Path) -> None:
        run_cmd(["wget", "-q", "-O", str(dest), url])


class RequestsTool:
    name = "requests"

    def __init__(self, session: Optional[requests.Session] = None) -> None:
        self.session = session or requests.Session()

    def available(self) -> bool:
        return True

    @contextlib.contextmanager
    def stream(self, url: str) -> Iterator[IO[bytes]]:
        logger.debug("GET %s", url)
        with self.session.get(url, stream=True) as r:
            r.raise_for_status()
            r.raw.decode_content = True
            yield r.raw

    def download(self, url: str, dest: Path) -> None:
        logger.debug("GET %s -> %s", url, dest)
        with self.session.get(url, stream=True) as r:
            r.raise_for_status()
            with open(dest, "wb") as f:
                for chunk in r.iter_content(chunk_size=8192):
                    f.write(chunk)


def default_tools() -> list[TransferTool]:
    return [CurlTool(), WgetTool(), RequestsTool()]


def _fetch_tarball(tool: TransferTool, url: str, staging: Path) -> None:
    with tool.stream(url) as payload:
        with tarfile.open(fileobj=payload, mode="r|gz") as tar:
            tar.extractall(path=staging, **_TAR_EXTRACT_KWARGS)


def _fetch_zip(tool: TransferTool, url: str, staging: Path) -> None:
    fd, tmp = tempfile.mkstemp(prefix="rcstrap-", suffix=".zip")
    os.close(fd)
    try:
        tool.download(url, Path(tmp))
        with zipfile.ZipFile(tmp) as zf:
            zf.extractall(path=staging)
    finally:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp)


def _promote(staging: Path, dest_dir: Path) -> None:
    for item in staging.iterdir():
        target = dest_dir / item.name
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        elif target.exists() or target.is_symlink():
            target.unlink()
        os.replace(item, target)


def fetch_archive(url: str, dest_dir: Path, *, tools: Optional[Sequence[TransferTool]] = None) -> Path:
    """Download an archive and unpack it into ``dest_dir``.

    Tools are tried in order; an unavailable tool is skipped, a failing one
    is logged and the next is tried. Nothing is left in ``dest_dir`` unless
    an extraction completed.
    """

    dest_dir.mkdir(parents=True, exist_ok=True)
    is_zip = url.endswith(".zip")
    failures: Dict[str, str] = {}

    for tool in tools if tools is not None else default_tools():
        if not tool.available():
            logger.debug("Transfer tool %s not available", tool.name)
            continue

        logger.info("  - Downloading %s (%s)", url, tool.name)
        staging = Path(tempfile.mkdtemp(prefix=".rcstrap-", dir=str(dest_dir)))
        try:
            if is_zip:
                _fetch_zip(tool, url, staging)
            else:
                _fetch_tarball(tool, url, staging)
            _promote(staging, dest_dir)
            return dest_dir
        except (CommandError, OSError, EOFError, tarfile.TarError, zipfile.BadZipFile, requests.RequestException) as e:
            logger.warning("  - %s failed: %s", tool.name, e)
            failures[tool.name] = str(e)
        finally:
            shutil.rmtree(staging, ignore_errors=True)

    if not failures:
        raise FetchFailure("No transfer tool available")
    raise FetchFailure("Failed to download with " + ", ".join(failures))

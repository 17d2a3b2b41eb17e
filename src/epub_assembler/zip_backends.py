#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright 2025 Emasoft
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
zip_backends.py - Archive writers for EPUB packaging
====================================================

The package assembler streams (path, bytes, compress) entries into a backend
and asks it to write the finished archive to an output stream. Entry order
is preserved, so the stored `mimetype` entry written first stays first.

Backends:
- ZipLibrary: in-process, Python's zipfile module
- ZipCommand: the external Info-ZIP `zip` program
- ZipLibraryOrCommand: the library when zlib is usable, else the command
"""

from __future__ import annotations

import io
import logging
import shutil
import subprocess
import tempfile
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Optional

from .epub_errors import PackagingError

logger = logging.getLogger(__name__)

DEFAULT_ZIP_COMMAND = "zip"
BACKEND_NAMES = ("auto", "library", "command")


def check_entry_path(path: str) -> str:
    """
    Validate an archive entry path.

    Raises:
        PackagingError: If the path is empty, absolute or climbs out of the archive root
    """
    normalized = path.replace("\\", "/")
    pure = PurePosixPath(normalized)
    if not normalized or pure.is_absolute() or ".." in pure.parts or normalized.endswith("/"):
        raise PackagingError("invalid archive entry path", path=path)
    return normalized


class ZipBackend(ABC):
    """Sink for archive entries."""

    name = "abstract"

    @abstractmethod
    def begin(self) -> None:
        """Start a new archive. Discards anything written before."""

    @abstractmethod
    def write_entry(self, path: str, data: bytes, compress: bool = True) -> None:
        """Add one entry; entries keep the order in which they were written."""

    @abstractmethod
    def finish(self, output: BinaryIO) -> None:
        """Write the complete archive to output."""


class ZipLibrary(ZipBackend):
    """Archive built in memory with the zipfile module."""

    name = "library"

    def __init__(self) -> None:
        self._buffer: Optional[io.BytesIO] = None
        self._zip: Optional[zipfile.ZipFile] = None

    @staticmethod
    def is_available() -> bool:
        """Deflate support needs zlib, which some minimal interpreters lack."""
        try:
            import zlib  # noqa: F401
        except ImportError:
            return False
        return True

    def begin(self) -> None:
        self._buffer = io.BytesIO()
        self._zip = zipfile.ZipFile(self._buffer, "w")

    def write_entry(self, path: str, data: bytes, compress: bool = True) -> None:
        if self._zip is None:
            self.begin()
        assert self._zip is not None
        name = check_entry_path(path)
        info = zipfile.ZipInfo(name)
        info.compress_type = zipfile.ZIP_DEFLATED if compress else zipfile.ZIP_STORED
        info.external_attr = 0o644 << 16
        try:
            self._zip.writestr(info, data)
        except (OSError, ValueError, zipfile.LargeZipFile) as e:
            raise PackagingError(f"cannot add entry: {e}", path=name) from e
        logger.debug(f"zip: {name} ({len(data)} bytes, {'deflated' if compress else 'stored'})")

    def finish(self, output: BinaryIO) -> None:
        if self._zip is None or self._buffer is None:
            self.begin()
        assert self._zip is not None and self._buffer is not None
        self._zip.comment = b""
        self._zip.close()
        output.write(self._buffer.getvalue())
        self._zip = None
        self._buffer = None


class ZipCommand(ZipBackend):
    """
    Archive built by the external `zip` program.

    Entries are staged as files in a temporary directory. At finish the
    program is run once per run of consecutive entries sharing the same
    compression flag, so stored and deflated entries keep their order.
    """

    name = "command"

    def __init__(self, command: str = DEFAULT_ZIP_COMMAND, temp_dir: Optional[str] = None) -> None:
        self.command = command
        self.temp_dir = temp_dir
        self._workdir: Optional[tempfile.TemporaryDirectory] = None
        self._entries: list[tuple[str, bool]] = []

    def is_available(self) -> bool:
        return shutil.which(self.command) is not None

    def test(self) -> None:
        """
        Check that the command can be run.

        Raises:
            PackagingError: If `<command> -v` cannot be run or fails
        """
        try:
            subprocess.run([self.command, "-v"], check=True, capture_output=True)
        except (OSError, subprocess.CalledProcessError) as e:
            raise PackagingError(f"zip command '{self.command}' is not usable: {e}") from e

    def begin(self) -> None:
        self._cleanup()
        self._workdir = tempfile.TemporaryDirectory(prefix="epub_assembler_", dir=self.temp_dir)
        self._entries = []

    @property
    def _root(self) -> Path:
        if self._workdir is None:
            self.begin()
        assert self._workdir is not None
        return Path(self._workdir.name) / "content"

    def write_entry(self, path: str, data: bytes, compress: bool = True) -> None:
        name = check_entry_path(path)
        target = self._root / name
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise PackagingError(f"cannot stage entry: {e}", path=name) from e
        self._entries.append((name, compress))
        logger.debug(f"zip: staged {name} ({len(data)} bytes)")

    def _runs(self) -> list[tuple[bool, list[str]]]:
        runs: list[tuple[bool, list[str]]] = []
        for name, compress in self._entries:
            if runs and runs[-1][0] == compress:
                runs[-1][1].append(name)
            else:
                runs.append((compress, [name]))
        return runs

    def finish(self, output: BinaryIO) -> None:
        root = self._root
        archive = root.parent / "book.epub"
        try:
            if not self._entries:
                raise PackagingError("no entries to archive")
            for compress, names in self._runs():
                flags = ["-X", "-9"] if compress else ["-X0"]
                cmd = [self.command, *flags, str(archive), *names]
                logger.debug(f"zip: running {' '.join(cmd[:3])} ... ({len(names)} entries)")
                try:
                    subprocess.run(cmd, cwd=root, check=True, capture_output=True)
                except (OSError, subprocess.CalledProcessError) as e:
                    raise PackagingError(f"zip command failed: {e}", path=names[0]) from e
            with open(archive, "rb") as f:
                shutil.copyfileobj(f, output)
        finally:
            self._cleanup()

    def _cleanup(self) -> None:
        if self._workdir is not None:
            self._workdir.cleanup()
            self._workdir = None
        self._entries = []


class ZipLibraryOrCommand(ZipBackend):
    """
    Use ZipLibrary when it works, else fall back to ZipCommand.

    Availability is checked once at construction. Entries are kept until
    finish so a library failure can be retried with the command.
    """

    name = "auto"

    def __init__(self, command: str = DEFAULT_ZIP_COMMAND, temp_dir: Optional[str] = None) -> None:
        self.candidates: list[ZipBackend] = []
        if ZipLibrary.is_available():
            self.candidates.append(ZipLibrary())
        zip_command = ZipCommand(command, temp_dir)
        if zip_command.is_available():
            self.candidates.append(zip_command)
        logger.debug(f"zip backends available: {[c.name for c in self.candidates]}")
        self._entries: list[tuple[str, bytes, bool]] = []

    def begin(self) -> None:
        self._entries = []

    def write_entry(self, path: str, data: bytes, compress: bool = True) -> None:
        self._entries.append((check_entry_path(path), data, compress))

    def finish(self, output: BinaryIO) -> None:
        if not self.candidates:
            raise PackagingError("no zip backend available: zlib is missing and no zip command was found")
        last_error: Optional[PackagingError] = None
        for backend in self.candidates:
            try:
                backend.begin()
                for path, data, compress in self._entries:
                    backend.write_entry(path, data, compress)
                backend.finish(output)
                return
            except PackagingError as e:
                logger.warning(f"zip backend '{backend.name}' failed: {e}")
                last_error = e
        assert last_error is not None
        raise last_error


def create_backend(name: str = "auto", command: str = DEFAULT_ZIP_COMMAND) -> ZipBackend:
    """
    Create a backend by name.

    Args:
        name: "auto", "library" or "command"
        command: Program used by the command backend

    Raises:
        PackagingError: If the name is unknown
    """
    if name == "library":
        return ZipLibrary()
    if name == "command":
        return ZipCommand(command)
    if name == "auto":
        return ZipLibraryOrCommand(command)
    raise PackagingError(f"unknown zip backend '{name}', expected one of {', '.join(BACKEND_NAMES)}")

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Test suite for zip_backends module.
"""

import io
import shutil
import subprocess
import zipfile
from unittest.mock import patch

import pytest

from epub_assembler.epub_errors import PackagingError
from epub_assembler.zip_backends import (
    ZipCommand,
    ZipLibrary,
    ZipLibraryOrCommand,
    check_entry_path,
    create_backend,
)


class TestCheckEntryPath:
    """Test archive path validation."""

    @pytest.mark.parametrize("path", ["mimetype", "OEBPS/content.opf", "OEBPS/a..b.xhtml"])
    def test_valid(self, path):
        assert check_entry_path(path) == path

    @pytest.mark.parametrize("path", ["", "/etc/passwd", "../evil", "OEBPS/../../evil", "OEBPS/"])
    def test_invalid(self, path):
        with pytest.raises(PackagingError):
            check_entry_path(path)

    def test_backslashes_normalized(self):
        assert check_entry_path("OEBPS\\a.xhtml") == "OEBPS/a.xhtml"


class TestZipLibrary:
    """Test the zipfile backend."""

    def test_entries_in_order_with_compression(self):
        backend = ZipLibrary()
        backend.begin()
        backend.write_entry("mimetype", b"application/epub+zip", compress=False)
        backend.write_entry("OEBPS/a.xhtml", b"<html/>" * 100)
        out = io.BytesIO()
        backend.finish(out)

        archive = zipfile.ZipFile(io.BytesIO(out.getvalue()))
        infos = archive.infolist()
        assert [i.filename for i in infos] == ["mimetype", "OEBPS/a.xhtml"]
        assert infos[0].compress_type == zipfile.ZIP_STORED
        assert infos[1].compress_type == zipfile.ZIP_DEFLATED
        assert archive.comment == b""
        assert archive.read("OEBPS/a.xhtml") == b"<html/>" * 100

    def test_begin_discards_previous_entries(self):
        backend = ZipLibrary()
        backend.begin()
        backend.write_entry("old", b"x")
        backend.begin()
        backend.write_entry("new", b"y")
        out = io.BytesIO()
        backend.finish(out)
        assert zipfile.ZipFile(io.BytesIO(out.getvalue())).namelist() == ["new"]

    def test_rejects_bad_path(self):
        backend = ZipLibrary()
        backend.begin()
        with pytest.raises(PackagingError):
            backend.write_entry("../x", b"")

    def test_is_available(self):
        assert ZipLibrary.is_available() is True


class TestZipCommand:
    """Test the external zip program backend."""

    def test_stages_files_and_runs_zip_per_compression_run(self, temp_dir):
        backend = ZipCommand("zip", temp_dir=str(temp_dir))
        backend.begin()
        backend.write_entry("mimetype", b"application/epub+zip", compress=False)
        backend.write_entry("META-INF/container.xml", b"<container/>")
        backend.write_entry("OEBPS/a.xhtml", b"<html/>")
        staged = backend._root
        assert (staged / "META-INF" / "container.xml").read_bytes() == b"<container/>"

        def fake_run(cmd, cwd, check, capture_output):
            (staged.parent / "book.epub").write_bytes(b"PK fake")
            return subprocess.CompletedProcess(cmd, 0)

        out = io.BytesIO()
        with patch("epub_assembler.zip_backends.subprocess.run", side_effect=fake_run) as mock_run:
            backend.finish(out)

        commands = [c.args[0] for c in mock_run.call_args_list]
        assert len(commands) == 2
        assert commands[0][:2] == ["zip", "-X0"]
        assert commands[0][3:] == ["mimetype"]
        assert commands[1][:3] == ["zip", "-X", "-9"]
        assert commands[1][4:] == ["META-INF/container.xml", "OEBPS/a.xhtml"]
        assert out.getvalue() == b"PK fake"
        assert not staged.exists()

    def test_command_failure(self, temp_dir):
        backend = ZipCommand("zip", temp_dir=str(temp_dir))
        backend.begin()
        backend.write_entry("mimetype", b"application/epub+zip", compress=False)
        error = subprocess.CalledProcessError(12, ["zip"])
        with patch("epub_assembler.zip_backends.subprocess.run", side_effect=error):
            with pytest.raises(PackagingError) as exc_info:
                backend.finish(io.BytesIO())
        assert exc_info.value.__cause__ is error
        assert exc_info.value.path == "mimetype"

    def test_missing_program(self):
        backend = ZipCommand("definitely-not-a-zip-program")
        assert backend.is_available() is False
        with pytest.raises(PackagingError):
            backend.test()

    def test_test_runs_version(self):
        with patch("epub_assembler.zip_backends.subprocess.run") as mock_run:
            ZipCommand("myzip").test()
        assert mock_run.call_args.args[0] == ["myzip", "-v"]

    def test_rejects_absolute_path(self, temp_dir):
        backend = ZipCommand(temp_dir=str(temp_dir))
        backend.begin()
        with pytest.raises(PackagingError):
            backend.write_entry("/tmp/evil", b"")

    def test_finish_without_entries(self, temp_dir):
        backend = ZipCommand(temp_dir=str(temp_dir))
        backend.begin()
        with pytest.raises(PackagingError):
            backend.finish(io.BytesIO())

    @pytest.mark.requires_zip
    @pytest.mark.skipif(shutil.which("zip") is None, reason="zip program not installed")
    def test_real_zip_keeps_mimetype_first(self):
        backend = ZipCommand()
        backend.begin()
        backend.write_entry("mimetype", b"application/epub+zip", compress=False)
        backend.write_entry("OEBPS/a.xhtml", b"<html/>")
        out = io.BytesIO()
        backend.finish(out)
        archive = zipfile.ZipFile(io.BytesIO(out.getvalue()))
        first = archive.infolist()[0]
        assert first.filename == "mimetype"
        assert first.compress_type == zipfile.ZIP_STORED


class TestZipLibraryOrCommand:
    """Test the composite backend."""

    def test_prefers_library(self):
        backend = ZipLibraryOrCommand()
        assert isinstance(backend.candidates[0], ZipLibrary)
        backend.begin()
        backend.write_entry("mimetype", b"application/epub+zip", compress=False)
        out = io.BytesIO()
        backend.finish(out)
        assert zipfile.ZipFile(io.BytesIO(out.getvalue())).namelist() == ["mimetype"]

    def test_falls_back_to_command(self):
        with patch.object(ZipLibrary, "is_available", return_value=False), patch.object(
            ZipCommand, "is_available", return_value=True
        ):
            backend = ZipLibraryOrCommand()
        assert [c.name for c in backend.candidates] == ["command"]

    def test_library_failure_retried_with_command(self):
        with patch.object(ZipCommand, "is_available", return_value=True):
            backend = ZipLibraryOrCommand()
        backend.begin()
        backend.write_entry("mimetype", b"application/epub+zip", compress=False)
        with patch.object(ZipLibrary, "finish", side_effect=PackagingError("broken")), patch.object(
            ZipCommand, "finish"
        ) as command_finish:
            backend.finish(io.BytesIO())
        command_finish.assert_called_once()

    def test_nothing_available(self):
        with patch.object(ZipLibrary, "is_available", return_value=False), patch.object(
            ZipCommand, "is_available", return_value=False
        ):
            backend = ZipLibraryOrCommand()
        backend.begin()
        with pytest.raises(PackagingError):
            backend.finish(io.BytesIO())


class TestCreateBackend:
    """Test create_backend."""

    def test_names(self):
        assert isinstance(create_backend("library"), ZipLibrary)
        assert isinstance(create_backend("command", "7zip-wrapper"), ZipCommand)
        assert create_backend("command", "7zip-wrapper").command == "7zip-wrapper"
        assert isinstance(create_backend("auto"), ZipLibraryOrCommand)

    def test_unknown(self):
        with pytest.raises(PackagingError):
            create_backend("tar")

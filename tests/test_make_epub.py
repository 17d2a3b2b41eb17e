#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Tests for the epub-assemble command line.
"""

import zipfile

import pytest
import yaml

from epub_assembler.cli_parser import build_overrides, create_parser, output_path
from epub_assembler.make_epub import main


@pytest.fixture
def manifest(temp_dir, make_page):
    """A two chapter book manifest."""
    (temp_dir / "ch1.xhtml").write_bytes(make_page(title="Chapter One"))
    (temp_dir / "ch2.xhtml").write_bytes(make_page(title="Chapter Two"))
    path = temp_dir / "book.yml"
    path.write_text(
        yaml.safe_dump(
            {
                "metadata": {"title": "CLI Book", "author": "Ann"},
                "chapters": [{"file": "ch1.xhtml", "auto_title": True}, {"file": "ch2.xhtml", "title": "Two"}],
            }
        ),
        encoding="utf-8",
    )
    return path


class TestMain:
    """Test the main entry point."""

    def test_default_output_next_to_manifest(self, manifest):
        assert main([str(manifest)]) == 0
        epub = manifest.with_suffix(".epub")
        with zipfile.ZipFile(epub) as archive:
            names = archive.namelist()
            opf = archive.read("OEBPS/content.opf").decode("utf-8")
        assert names[0] == "mimetype"
        assert "OEBPS/ch1.xhtml" in names
        assert 'version="2.0"' in opf
        assert "CLI Book" in opf

    def test_version_and_inline_toc(self, manifest, temp_dir):
        out = temp_dir / "dist" / "book.epub"
        assert main([str(manifest), "-o", str(out), "--epub-version", "3", "--inline-toc"]) == 0
        with zipfile.ZipFile(out) as archive:
            names = archive.namelist()
            opf = archive.read("OEBPS/content.opf").decode("utf-8")
        assert 'version="3.0"' in opf
        assert "OEBPS/toc.xhtml" in names
        assert names.index("OEBPS/toc.xhtml") < names.index("OEBPS/ch1.xhtml")

    def test_config_file_and_flags(self, manifest, temp_dir):
        config = temp_dir / "config.yml"
        config.write_text(yaml.safe_dump({"epub": {"epub_version": 3, "direction": "rtl"}}), encoding="utf-8")
        out = temp_dir / "out.epub"
        assert main([str(manifest), "-o", str(out), "--config", str(config), "--direction", "ltr"]) == 0
        with zipfile.ZipFile(out) as archive:
            opf = archive.read("OEBPS/content.opf").decode("utf-8")
        assert 'version="3.0"' in opf
        assert 'page-progression-direction="ltr"' in opf

    def test_invalid_manifest(self, manifest, capsys):
        manifest.write_text(yaml.safe_dump({"chapters": ["ch1.xhtml"], "bogus": True}), encoding="utf-8")
        assert main([str(manifest)]) == 1
        assert "bogus" in capsys.readouterr().err
        assert not manifest.with_suffix(".epub").exists()

    def test_book_without_chapters(self, manifest):
        manifest.write_text(yaml.safe_dump({"metadata": {"title": "Empty"}}), encoding="utf-8")
        assert main([str(manifest)]) == 1

    def test_missing_manifest(self, temp_dir):
        with pytest.raises(SystemExit) as exc_info:
            main([str(temp_dir / "nope.yml")])
        assert exc_info.value.code == 2

    def test_output_is_directory(self, manifest, temp_dir):
        with pytest.raises(SystemExit):
            main([str(manifest), "-o", str(temp_dir)])


class TestParser:
    """Test argument parsing helpers."""

    def test_no_overrides_by_default(self):
        args = create_parser().parse_args(["book.yml"])
        assert build_overrides(args) == {}
        assert args.log_level == "WARNING"

    def test_overrides(self):
        args = create_parser().parse_args(
            [
                "book.yml",
                "--epub-version",
                "3",
                "--no-escape",
                "--inline-toc",
                "--direction",
                "rtl",
                "--zip-backend",
                "command",
                "--zip-command",
                "/opt/zip",
            ]
        )
        assert build_overrides(args) == {
            "epub_version": "3",
            "escape_html": False,
            "generate_inline_toc": True,
            "direction": "rtl",
            "zip_backend": "command",
            "zip_command": "/opt/zip",
        }

    def test_log_level_case_insensitive(self):
        assert create_parser().parse_args(["book.yml", "--log-level", "debug"]).log_level == "DEBUG"

    def test_output_path(self):
        parser = create_parser()
        assert output_path(parser.parse_args(["books/novel.yml"])).as_posix() == "books/novel.epub"
        assert output_path(parser.parse_args(["novel.yml", "-o", "x.epub"])).as_posix() == "x.epub"

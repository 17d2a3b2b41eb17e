#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Test suite for config_loader module.
"""

import io
import zipfile

import pytest
import yaml

from epub_assembler.config_loader import (
    BookManifest,
    ConfigError,
    build_config_from_mapping,
    load_book_manifest,
    load_build_config,
    read_build_options,
)
from epub_assembler.epub_constants import EpubVersion, PageDirection, ReferenceType
from epub_assembler.epub_content import ContentEntry, ResourceEntry
from epub_assembler.zip_backends import ZipLibrary


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return path


@pytest.fixture
def book_dir(temp_dir, make_page):
    """A directory with two chapters, a stylesheet and two images."""
    (temp_dir / "text").mkdir()
    (temp_dir / "images").mkdir()
    (temp_dir / "text" / "ch1.xhtml").write_bytes(make_page(title="Chapter One"))
    (temp_dir / "text" / "ch2.xhtml").write_bytes(make_page(title="Chapter Two"))
    (temp_dir / "style.css").write_text("p { margin: 0; }", encoding="utf-8")
    (temp_dir / "images" / "cover.jpg").write_bytes(b"\xff\xd8\xff")
    (temp_dir / "images" / "map.png").write_bytes(b"\x89PNG")
    return temp_dir


class TestBuildConfigFromMapping:
    """Test the build_config_from_mapping function."""

    def test_empty_mapping_gives_defaults(self):
        config = build_config_from_mapping({})
        assert config.epub_version is EpubVersion.V20
        assert config.escape_html is True

    def test_all_options(self):
        config = build_config_from_mapping(
            {
                "epub_version": 3,
                "escape_html": False,
                "generate_inline_toc": True,
                "direction": "rtl",
                "ibooks_display_options": False,
                "zip_backend": "library",
                "zip_command": "/usr/bin/zip",
            }
        )
        assert config.epub_version is EpubVersion.V30
        assert config.escape_html is False
        assert config.generate_inline_toc is True
        assert config.direction is PageDirection.RTL
        assert config.ibooks_display_options is False
        assert config.zip_backend == "library"
        assert config.zip_command == "/usr/bin/zip"

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="colour"):
            build_config_from_mapping({"colour": "blue"})

    @pytest.mark.parametrize(
        "data",
        [
            {"epub_version": 4},
            {"escape_html": "yes"},
            {"direction": "up"},
            {"zip_backend": "tar"},
            {"zip_command": ""},
        ],
    )
    def test_invalid_values(self, data):
        with pytest.raises(ConfigError):
            build_config_from_mapping(data)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            build_config_from_mapping({"nope": 1})


class TestLoadBuildConfig:
    """Test loading build options from YAML files."""

    def test_epub_section(self, temp_dir):
        path = write_yaml(temp_dir / "config.yml", {"epub": {"epub_version": "3.0", "generate_inline_toc": True}})
        config = load_build_config(path)
        assert config.epub_version is EpubVersion.V30
        assert config.generate_inline_toc is True

    def test_missing_section(self, temp_dir):
        path = write_yaml(temp_dir / "config.yml", {"other": 1})
        assert load_build_config(path).epub_version is EpubVersion.V20

    def test_missing_file(self, temp_dir):
        with pytest.raises(ConfigError, match="not found"):
            load_build_config(temp_dir / "missing.yml")

    def test_invalid_yaml(self, temp_dir):
        path = temp_dir / "bad.yml"
        path.write_text("epub: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_build_config(path)

    def test_section_not_mapping(self, temp_dir):
        path = write_yaml(temp_dir / "config.yml", {"epub": [1, 2]})
        with pytest.raises(ConfigError):
            read_build_options(path)

    def test_read_build_options_returns_raw_mapping(self, temp_dir):
        path = write_yaml(temp_dir / "config.yml", {"epub": {"escape_html": False}})
        assert read_build_options(path) == {"escape_html": False}


class TestLoadBookManifest:
    """Test the load_book_manifest function."""

    def test_full_manifest(self, book_dir):
        path = write_yaml(
            book_dir / "book.yml",
            {
                "metadata": {"title": "My Book", "author": ["Ann", "Bob"], "lang": "it"},
                "epub": {"epub_version": 3},
                "stylesheet": "style.css",
                "cover": "images/cover.jpg",
                "chapters": [
                    {"file": "text/ch1.xhtml", "title": "One", "reftype": "text"},
                    {"file": "text/ch2.xhtml", "auto_title": True, "level": 2, "linear": False},
                ],
                "resources": [{"file": "images/map.png"}],
                "opf_meta": [{"name": "calibre:series", "content": "Saga"}],
            },
        )
        manifest = load_book_manifest(path)
        assert isinstance(manifest, BookManifest)
        assert manifest.config.epub_version is EpubVersion.V30
        assert manifest.metadata == [("title", "My Book"), ("author", "Ann"), ("author", "Bob"), ("lang", "it")]
        assert manifest.opf_meta == [("calibre:series", "Saga")]
        assert manifest.stylesheet == b"p { margin: 0; }"
        assert manifest.cover.path == "images/cover.jpg"
        assert manifest.cover.mime_type == "image/jpeg"
        assert manifest.cover.cover is True

        ch1, ch2, image = manifest.entries
        assert isinstance(ch1, ContentEntry)
        assert ch1.path == "text/ch1.xhtml"
        assert ch1.reftype is ReferenceType.TEXT
        assert ch2.title == "Chapter Two"
        assert ch2.level == 2
        assert ch2.linear is False
        assert isinstance(image, ResourceEntry)
        assert image.mime_type == "image/png"

    def test_to_builder_produces_epub(self, book_dir):
        path = write_yaml(
            book_dir / "book.yml",
            {
                "metadata": {"title": "My Book"},
                "cover": {"file": "images/cover.jpg"},
                "chapters": ["text/ch1.xhtml", {"file": "text/ch2.xhtml", "path": "chapter-2.xhtml"}],
            },
        )
        builder = load_book_manifest(path).to_builder(backend=ZipLibrary())
        out = io.BytesIO()
        builder.generate(out)
        names = zipfile.ZipFile(io.BytesIO(out.getvalue())).namelist()
        assert names[0] == "mimetype"
        assert "OEBPS/images/cover.jpg" in names
        assert "OEBPS/text/ch1.xhtml" in names
        assert "OEBPS/chapter-2.xhtml" in names

    def test_overrides_win(self, book_dir):
        path = write_yaml(
            book_dir / "book.yml",
            {"epub": {"epub_version": 3, "escape_html": True}, "chapters": ["text/ch1.xhtml"]},
        )
        manifest = load_book_manifest(path, {"epub_version": "2", "escape_html": False})
        assert manifest.config.epub_version is EpubVersion.V20
        assert manifest.config.escape_html is False

    def test_auto_title_escaped_for_verbatim_mode(self, temp_dir, make_page):
        (temp_dir / "a.xhtml").write_bytes(make_page(title="Q &amp; A"))
        path = write_yaml(
            temp_dir / "book.yml",
            {"epub": {"escape_html": False}, "chapters": [{"file": "a.xhtml", "auto_title": True}]},
        )
        assert load_book_manifest(path).entries[0].title == "Q &amp; A"

    def test_yaml_dates_become_strings(self, book_dir):
        path = book_dir / "book.yml"
        path.write_text("metadata:\n  date: 2020-01-02\nchapters: [text/ch1.xhtml]\n", encoding="utf-8")
        assert load_book_manifest(path).metadata == [("date", "2020-01-02")]

    def test_unknown_top_level_key(self, book_dir):
        path = write_yaml(book_dir / "book.yml", {"chapters": [], "extras": 1})
        with pytest.raises(ConfigError, match="extras"):
            load_book_manifest(path)

    def test_unknown_chapter_key(self, book_dir):
        path = write_yaml(book_dir / "book.yml", {"chapters": [{"file": "text/ch1.xhtml", "colour": "red"}]})
        with pytest.raises(ConfigError, match="colour"):
            load_book_manifest(path)

    def test_missing_chapter_file(self, book_dir):
        path = write_yaml(book_dir / "book.yml", {"chapters": ["text/missing.xhtml"]})
        with pytest.raises(ConfigError, match="chapters\\[0\\]"):
            load_book_manifest(path)

    def test_invalid_level(self, book_dir):
        path = write_yaml(book_dir / "book.yml", {"chapters": [{"file": "text/ch1.xhtml", "level": 0}]})
        with pytest.raises(ConfigError):
            load_book_manifest(path)

    def test_chapters_not_a_list(self, book_dir):
        path = write_yaml(book_dir / "book.yml", {"chapters": "text/ch1.xhtml"})
        with pytest.raises(ConfigError):
            load_book_manifest(path)

    def test_unknown_resource_type_guess(self, book_dir):
        (book_dir / "data.unknownext").write_bytes(b"?")
        path = write_yaml(book_dir / "book.yml", {"resources": ["data.unknownext"]})
        assert load_book_manifest(path).entries[0].mime_type == "application/octet-stream"

    def test_chapter_path_outside_book(self, book_dir):
        path = write_yaml(book_dir / "book.yml", {"chapters": [{"file": "text/ch1.xhtml", "path": "/abs/c.xhtml"}]})
        with pytest.raises(ConfigError, match="/abs/c.xhtml"):
            load_book_manifest(path)

    def test_builders_get_their_own_config(self, book_dir):
        path = write_yaml(book_dir / "book.yml", {"chapters": ["text/ch1.xhtml"]})
        manifest = load_book_manifest(path)
        first = manifest.to_builder(backend=ZipLibrary())
        first.epub_version(3)
        assert manifest.config.epub_version is EpubVersion.V20
        assert manifest.to_builder(backend=ZipLibrary()).config.epub_version is EpubVersion.V20

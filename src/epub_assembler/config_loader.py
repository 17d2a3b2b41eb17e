#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# HERE IS THE CHANGELOG FOR THIS VERSION OF THE CODE:
# - Replaced the application config loader with build config and book
#   manifest loading
# - Unknown keys are rejected with ConfigError instead of being merged
#   with defaults
# - Files referenced by a manifest resolve relative to the manifest
#

"""
config_loader.py - Build configuration and book manifests from YAML

A book manifest describes a whole book:

    metadata:
      title: My Book
      author: [Jane Doe, John Roe]
      lang: en
    epub:
      epub_version: 3
      generate_inline_toc: true
    stylesheet: style.css
    cover: images/cover.jpg
    chapters:
      - file: text/intro.xhtml
        title: Introduction
        reftype: text
      - file: text/ch1.xhtml
        auto_title: true
        level: 2
    resources:
      - file: images/map.png
"""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from .common_yaml_utils import load_safe_yaml, require_list, require_mapping
from .epub_constants import XHTML_MIME, EpubVersion, PageDirection
from .epub_content import ContentEntry, Entry, ResourceEntry
from .epub_errors import InvalidMetadataValue
from .epub_generator import BuildConfig, EpubBuilder
from .html_escaping import escape_for_xml
from .html_processing import extract_title
from .zip_backends import BACKEND_NAMES, ZipBackend

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"
MANIFEST_KEYS = frozenset({"metadata", "epub", "stylesheet", "cover", "chapters", "resources", "opf_meta"})
CHAPTER_KEYS = frozenset({"file", "path", "title", "raw_title", "level", "reftype", "linear", "auto_title", "mime_type"})
RESOURCE_KEYS = frozenset({"file", "path", "mime_type"})
BOOL_OPTIONS = ("escape_html", "generate_inline_toc", "ibooks_display_options")


class ConfigError(ValueError):
    """Raised for invalid build configs and book manifests."""

    pass


def _check_keys(data: dict[str, Any], allowed: frozenset[str], where: str) -> None:
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ConfigError(f"Unknown key(s) in {where}: {', '.join(unknown)}")


def build_config_from_mapping(data: dict[str, Any], base: Optional[BuildConfig] = None) -> BuildConfig:
    """
    Validate an `epub:` mapping and turn it into a BuildConfig.

    Args:
        data: Option name -> value
        base: Config whose values are kept for options not in data

    Raises:
        ConfigError: On unknown options or invalid values
    """
    allowed = frozenset(f.name for f in fields(BuildConfig))
    _check_keys(data, allowed, "epub config")
    config = base or BuildConfig()
    values = {f.name: getattr(config, f.name) for f in fields(BuildConfig)}

    for name in BOOL_OPTIONS:
        if name in data:
            if not isinstance(data[name], bool):
                raise ConfigError(f"epub.{name} must be true or false, got {data[name]!r}")
            values[name] = data[name]
    try:
        if "epub_version" in data:
            values["epub_version"] = EpubVersion.parse(data["epub_version"])
        if "direction" in data:
            values["direction"] = PageDirection.parse(data["direction"])
    except (ValueError, InvalidMetadataValue) as e:
        raise ConfigError(f"Invalid epub config: {e}") from e
    if "zip_backend" in data:
        if data["zip_backend"] not in BACKEND_NAMES:
            raise ConfigError(f"epub.zip_backend must be one of {', '.join(BACKEND_NAMES)}, got {data['zip_backend']!r}")
        values["zip_backend"] = data["zip_backend"]
    if "zip_command" in data:
        if not isinstance(data["zip_command"], str) or not data["zip_command"].strip():
            raise ConfigError("epub.zip_command must be a non-empty string")
        values["zip_command"] = data["zip_command"]

    return BuildConfig(**values)


def read_build_options(config_path: str | Path) -> dict[str, Any]:
    """
    Read and validate the `epub:` section of a YAML file.

    Returns:
        The raw option mapping, suitable as overrides for load_book_manifest

    Raises:
        ConfigError: If the file cannot be read or holds invalid options
    """
    try:
        data = load_safe_yaml(config_path)
        section = require_mapping(data.get("epub"), "epub")
    except ValueError as e:
        raise ConfigError(str(e)) from e
    build_config_from_mapping(section)
    return section


def load_build_config(config_path: str | Path) -> BuildConfig:
    """Load a BuildConfig from the `epub:` section of a YAML file."""
    return build_config_from_mapping(read_build_options(config_path))


def _yaml_scalar(value: Any) -> str:
    """YAML turns unquoted dates into date objects; hand them back as ISO strings."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


@dataclass
class BookManifest:
    """A book described by a YAML manifest, with every referenced file read."""

    source: Path
    config: BuildConfig
    metadata: list[tuple[str, str]] = field(default_factory=list)
    opf_meta: list[tuple[str, str]] = field(default_factory=list)
    stylesheet: Optional[bytes] = None
    cover: Optional[ResourceEntry] = None
    entries: list[Entry] = field(default_factory=list)

    def to_builder(self, backend: Optional[ZipBackend] = None) -> EpubBuilder:
        """Create an EpubBuilder holding everything the manifest describes."""
        builder = EpubBuilder(backend=backend, config=self.config)
        for key, value in self.metadata:
            builder.metadata(key, value)
        for name, content in self.opf_meta:
            builder.add_metadata_opf(name, content)
        if self.stylesheet is not None:
            builder.stylesheet(self.stylesheet)
        if self.cover is not None:
            builder.add_cover_image(self.cover.path, self.cover.data, self.cover.mime_type)
        for entry in self.entries:
            if isinstance(entry, ContentEntry):
                builder.add_content(entry)
            else:
                builder.add_resource(entry.path, entry.data, entry.mime_type)
        return builder


def _read(base: Path, name: Any, where: str) -> tuple[str, bytes]:
    if not isinstance(name, str) or not name.strip():
        raise ConfigError(f"{where}: 'file' must be a non-empty string")
    file_path = base / name
    try:
        return Path(name).as_posix(), file_path.read_bytes()
    except OSError as e:
        raise ConfigError(f"{where}: cannot read {file_path}: {e}") from e


def _resource(base: Path, item: Any, where: str) -> ResourceEntry:
    if isinstance(item, str):
        item = {"file": item}
    item = require_mapping(item, where)
    _check_keys(item, RESOURCE_KEYS, where)
    name, data = _read(base, item.get("file"), where)
    path = str(item.get("path") or name)
    mime_type = item.get("mime_type") or mimetypes.guess_type(path)[0] or DEFAULT_MIME_TYPE
    return ResourceEntry(path, data, mime_type)


def _chapter(base: Path, item: Any, where: str, escape_html: bool) -> ContentEntry:
    if isinstance(item, str):
        item = {"file": item}
    item = require_mapping(item, where)
    _check_keys(item, CHAPTER_KEYS, where)
    name, data = _read(base, item.get("file"), where)

    title = item.get("title")
    raw_title = item.get("raw_title")
    if title is None and item.get("auto_title", False):
        title = extract_title(data)
        if title is not None and not escape_html:
            # verbatim mode expects ready-to-insert markup
            title = escape_for_xml(title)
        logger.debug(f"{name}: title taken from document: {title!r}")

    linear = item.get("linear", True)
    if not isinstance(linear, bool):
        raise ConfigError(f"{where}: 'linear' must be true or false")
    try:
        return ContentEntry(
            path=str(item.get("path") or name),
            data=data,
            title=None if title is None else _yaml_scalar(title),
            raw_title=None if raw_title is None else _yaml_scalar(raw_title),
            level=item.get("level", 1),
            reftype=item.get("reftype"),
            linear=linear,
            mime_type=item.get("mime_type") or XHTML_MIME,
        )
    except ValueError as e:
        raise ConfigError(f"{where}: {e}") from e


def load_book_manifest(manifest_path: str | Path, overrides: Optional[dict[str, Any]] = None) -> BookManifest:
    """
    Load a book manifest and read every file it references.

    Args:
        manifest_path: YAML manifest
        overrides: Build options applied on top of the manifest's `epub:` section

    Returns:
        BookManifest ready to be turned into an EpubBuilder

    Raises:
        ConfigError: On unreadable files, unknown keys or invalid values
    """
    manifest_path = Path(manifest_path)
    try:
        return _build_manifest(manifest_path, overrides or {})
    except ConfigError:
        raise
    except ValueError as e:
        raise ConfigError(f"{manifest_path}: {e}") from e


def _build_manifest(manifest_path: Path, overrides: dict[str, Any]) -> BookManifest:
    base = manifest_path.parent
    data = load_safe_yaml(manifest_path)
    _check_keys(data, MANIFEST_KEYS, str(manifest_path))
    epub = require_mapping(data.get("epub"), "epub")
    metadata = require_mapping(data.get("metadata"), "metadata")
    chapters = require_list(data.get("chapters"), "chapters")
    resources = require_list(data.get("resources"), "resources")
    opf_meta = require_list(data.get("opf_meta"), "opf_meta")

    manifest = BookManifest(source=manifest_path, config=build_config_from_mapping({**epub, **overrides}))

    for key, value in metadata.items():
        values = value if isinstance(value, list) else [value]
        manifest.metadata.extend((str(key), "" if v is None else _yaml_scalar(v)) for v in values)

    for i, item in enumerate(opf_meta):
        item = require_mapping(item, f"opf_meta[{i}]")
        if set(item) != {"name", "content"}:
            raise ConfigError(f"opf_meta[{i}] needs exactly 'name' and 'content'")
        manifest.opf_meta.append((str(item["name"]), _yaml_scalar(item["content"])))

    if data.get("stylesheet") is not None:
        _name, manifest.stylesheet = _read(base, data["stylesheet"], "stylesheet")

    if data.get("cover") is not None:
        manifest.cover = _resource(base, data["cover"], "cover")
        manifest.cover.cover = True

    for i, item in enumerate(chapters):
        manifest.entries.append(_chapter(base, item, f"chapters[{i}]", manifest.config.escape_html))
    for i, item in enumerate(resources):
        manifest.entries.append(_resource(base, item, f"resources[{i}]"))

    logger.info(f"Loaded manifest {manifest_path}: {len(chapters)} chapters, {len(resources)} resources")
    return manifest

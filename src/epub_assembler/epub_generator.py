#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# HERE IS THE CHANGELOG FOR THIS VERSION OF THE CODE:
# - write_new_epub replaced by EpubBuilder, which accumulates metadata,
#   content documents and resources and packages them once
# - Archive writing goes through a pluggable zip backend instead of a
#   temporary directory tree
# - Added EPUB 3.0.1 output, inline table of contents, cover image and
#   iBooks display options
# - Removed extend_epub: existing archives are never read back
#

"""
epub_generator.py - EPUB package assembly
=========================================

EpubBuilder collects everything that goes into the book, then generate()
finalizes it: the table of contents is built, the package and navigation
documents are rendered, and every file is streamed to a zip backend with the
`mimetype` entry stored first.

Example:
    builder = EpubBuilder()
    builder.set_title("A Book").add_author("Jane Doe")
    builder.add_content(ContentEntry("chapter_1.xhtml", page, title="Chapter 1"))
    builder.generate(Path("book.epub"))
"""

from __future__ import annotations

import enum
import logging
import os
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, BinaryIO, Iterable, Mapping, Optional, Union

from .common_utils import IdAllocator
from .epub_builders import (
    ManifestItem,
    RenderContext,
    build_container_xml,
    build_content_opf,
    build_ibooks_display_options,
    build_nav_xhtml,
    build_toc_ncx,
    package_ids,
)
from .epub_constants import (
    CONTAINER_PATH,
    CONTENT_OPF,
    COVER_IMAGE_ID,
    CSS_MIME,
    ENCODING,
    GENERATED_PATHS,
    IBOOKS_OPTIONS_PATH,
    INLINE_TOC_XHTML,
    MIMETYPE,
    MIMETYPE_PATH,
    NAV_XHTML,
    OEBPS_DIR,
    RESERVED_IDS,
    STYLESHEET_CSS,
    TOC_NCX,
    EpubVersion,
    PageDirection,
    ReferenceType,
)
from .epub_content import ContentEntry, ContentRegistry, Entry, ResourceEntry
from .epub_errors import AlreadyGenerated, EmptyBook, EpubError, PackagingError
from .epub_metadata import Metadata, MetadataKey, MetaOpf
from .epub_toc import TocTree, build_toc_tree
from .zip_backends import BACKEND_NAMES, DEFAULT_ZIP_COMMAND, ZipBackend, create_backend

logger = logging.getLogger(__name__)

Output = Union[str, "os.PathLike[str]", BinaryIO]


@dataclass
class BuildConfig:
    """Build-wide settings. Everything here can also come from a YAML config file."""

    epub_version: EpubVersion = EpubVersion.V20
    escape_html: bool = True
    generate_inline_toc: bool = False
    direction: PageDirection = PageDirection.LTR
    ibooks_display_options: bool = True
    zip_backend: str = "auto"
    zip_command: str = DEFAULT_ZIP_COMMAND

    def __post_init__(self) -> None:
        self.epub_version = EpubVersion.parse(self.epub_version)
        self.direction = PageDirection.parse(self.direction)
        if self.zip_backend not in BACKEND_NAMES:
            raise ValueError(f"zip_backend must be one of {', '.join(BACKEND_NAMES)}, got {self.zip_backend!r}")


class BuildPhase(enum.Enum):
    BUILDING = "building"
    FINALIZING = "finalizing"
    WRITTEN = "written"


class EpubBuilder:
    """
    Assembles one EPUB package.

    The builder is single-use. Every mutator is only accepted while the
    builder is BUILDING; generate() moves it to FINALIZING and, once the
    archive is complete, WRITTEN. A failed generate() leaves it unusable.
    """

    def __init__(self, backend: Optional[ZipBackend] = None, config: Optional[BuildConfig] = None) -> None:
        self.config = replace(config) if config is not None else BuildConfig()
        self.backend = backend
        self.meta = Metadata()
        self.registry = ContentRegistry(GENERATED_PATHS)
        self.phase = BuildPhase.BUILDING
        self._inline_toc: Optional[ContentEntry] = None
        if self.config.generate_inline_toc:
            self.inline_toc()

    def _check_building(self, operation: str) -> None:
        if self.phase is not BuildPhase.BUILDING:
            raise AlreadyGenerated(operation)

    # Metadata

    def metadata(self, key: str | MetadataKey, value: Any) -> EpubBuilder:
        """
        Set a metadata value by key name.

        Raises:
            InvalidMetadataKey: If the key is not recognized
            InvalidMetadataValue: If a date or direction cannot be parsed
            AlreadyGenerated: After generate()
        """
        self._check_building("metadata")
        self.meta.set(key, value)
        return self

    def add_metadata_opf(self, name: str, content: str) -> EpubBuilder:
        """Add a custom `<meta name=.. content=..>` element to content.opf."""
        self._check_building("add_metadata_opf")
        self.meta.extra_meta.append(MetaOpf(name, content))
        return self

    def set_title(self, title: str) -> EpubBuilder:
        return self.metadata(MetadataKey.TITLE, title)

    def add_author(self, author: str) -> EpubBuilder:
        return self.metadata(MetadataKey.AUTHOR, author)

    def set_authors(self, authors: Iterable[str]) -> EpubBuilder:
        self.clear_authors()
        for author in authors:
            self.add_author(author)
        return self

    def clear_authors(self) -> EpubBuilder:
        return self.metadata(MetadataKey.AUTHOR, "")

    def add_description(self, description: str) -> EpubBuilder:
        return self.metadata(MetadataKey.DESCRIPTION, description)

    def add_subject(self, subject: str) -> EpubBuilder:
        return self.metadata(MetadataKey.SUBJECT, subject)

    def set_uuid(self, value: uuid.UUID | str) -> EpubBuilder:
        self._check_building("set_uuid")
        self.meta.set_identifier(value)
        return self

    def set_publication_date(self, date: datetime | str) -> EpubBuilder:
        return self.metadata(MetadataKey.DATE, date)

    def set_modified_date(self, date: datetime | str) -> EpubBuilder:
        return self.metadata(MetadataKey.MODIFIED, date)

    def set_lang(self, lang: str) -> EpubBuilder:
        return self.metadata(MetadataKey.LANG, lang)

    def set_generator(self, generator: str) -> EpubBuilder:
        return self.metadata(MetadataKey.GENERATOR, generator)

    def set_toc_name(self, toc_name: str) -> EpubBuilder:
        return self.metadata(MetadataKey.TOC_NAME, toc_name)

    def set_license(self, license: str) -> EpubBuilder:
        return self.metadata(MetadataKey.LICENSE, license)

    # Build configuration

    def epub_version(self, version: EpubVersion | str | int) -> EpubBuilder:
        self._check_building("epub_version")
        self.config.epub_version = EpubVersion.parse(version)
        return self

    def epub_direction(self, direction: PageDirection | str) -> EpubBuilder:
        """Set the page progression direction. Overrides a direction given as metadata."""
        self._check_building("epub_direction")
        self.config.direction = PageDirection.parse(direction)
        self.meta.direction = None
        return self

    def escape_html(self, escape: bool) -> EpubBuilder:
        self._check_building("escape_html")
        self.config.escape_html = bool(escape)
        return self

    # Files

    def add_content(self, entry: ContentEntry) -> EpubBuilder:
        """
        Register a content document. Registration order is spine order.

        Raises:
            DuplicatePath: If the path is already used by another file
            AlreadyGenerated: After generate()
        """
        self._check_building("add_content")
        if not isinstance(entry, ContentEntry):
            raise TypeError(f"add_content expects a ContentEntry, got {type(entry).__name__}")
        self.registry.add(entry)
        return self

    def add_resource(self, path: str, data: bytes | str, mime_type: str) -> EpubBuilder:
        """Register an image, font or any other non-document file."""
        self._check_building("add_resource")
        self.registry.add(ResourceEntry(path, data, mime_type))
        return self

    def stylesheet(self, data: bytes | str) -> EpubBuilder:
        """Register the book stylesheet, linked from the navigation documents."""
        self._check_building("stylesheet")
        self.registry.add(ResourceEntry(STYLESHEET_CSS, data, CSS_MIME))
        return self

    def add_cover_image(self, path: str, data: bytes, mime_type: str) -> EpubBuilder:
        """Register the cover image. It gets the manifest id `cover-image`."""
        self._check_building("add_cover_image")
        self.registry.add(ResourceEntry(path, data, mime_type, cover=True))
        return self

    def inline_toc(self) -> EpubBuilder:
        """
        Add a table of contents page to the book at the current spine position.

        The page is rendered at finalize and titled with the toc_name metadata.
        """
        self._check_building("inline_toc")
        entry = ContentEntry(INLINE_TOC_XHTML, b"", reftype=ReferenceType.TOC, generated=True)
        self.registry.add(entry)
        self._inline_toc = entry
        return self

    # Packaging

    def _manifest_items(self) -> list[ManifestItem]:
        ids = IdAllocator([*RESERVED_IDS, *package_ids(self.meta)])
        items = []
        cover_assigned = False
        for entry in self.registry:
            if isinstance(entry, ResourceEntry):
                first_cover = entry.cover and not cover_assigned
                item_id = COVER_IMAGE_ID if first_cover else ids.claim(entry.path)
                cover_assigned = cover_assigned or first_cover
                items.append(ManifestItem(item_id, entry.path, entry.mime_type, cover=first_cover))
            else:
                items.append(
                    ManifestItem(
                        ids.claim(entry.path),
                        entry.path,
                        entry.mime_type,
                        in_spine=True,
                        linear=entry.linear,
                        reftype=entry.reftype,
                        title=entry.title or "",
                        raw_title=entry.raw_title,
                    )
                )
            logger.debug(f"manifest: {items[-1].id} -> {entry.path}")
        return items

    def _render_context(self) -> RenderContext:
        if STYLESHEET_CSS not in self.registry:
            self.registry.add(ResourceEntry(STYLESHEET_CSS, b"", CSS_MIME))
        if self._inline_toc is not None:
            self._inline_toc.title = self.meta.toc_name

        contents = self.registry.contents()
        fallback = next((c.path for c in contents if c.linear and not c.generated), None)
        return RenderContext(
            version=self.config.epub_version,
            metadata=self.meta,
            identifier=self.meta.unique_identifier(),
            modified=self.meta.modified_or_now(),
            items=self._manifest_items(),
            toc=build_toc_tree(contents),
            direction=self.meta.direction or self.config.direction,
            escape_html=self.config.escape_html,
            ibooks=self.config.ibooks_display_options,
            fallback_href=fallback,
        )

    def toc(self) -> TocTree:
        """Table of contents as it would be generated from the files registered so far."""
        return build_toc_tree(self.registry.contents())

    def generate(self, output: Output) -> None:
        """
        Package the book and write the archive.

        Args:
            output: File path, or a writable binary stream

        Raises:
            EmptyBook: If no linear content document was added (the builder stays usable)
            AlreadyGenerated: If generate() was already called
            PackagingError: If rendering or archiving fails; the cause is chained
        """
        self._check_building("generate")
        if not self.registry.has_linear_content():
            raise EmptyBook()
        self.phase = BuildPhase.FINALIZING

        ctx = self._render_context()
        if self._inline_toc is not None:
            self._inline_toc.data = build_nav_xhtml(ctx, numbered=False, inline=True).encode(ENCODING)
        generated = [
            (CONTENT_OPF, build_content_opf(ctx)),
            (TOC_NCX, build_toc_ncx(ctx)),
            (NAV_XHTML, build_nav_xhtml(ctx)),
        ]

        backend = self.backend or create_backend(self.config.zip_backend, self.config.zip_command)
        current = MIMETYPE_PATH
        try:
            backend.begin()
            backend.write_entry(MIMETYPE_PATH, MIMETYPE.encode("ascii"), compress=False)
            current = CONTAINER_PATH
            backend.write_entry(CONTAINER_PATH, build_container_xml().encode(ENCODING))
            if self.config.ibooks_display_options:
                current = IBOOKS_OPTIONS_PATH
                backend.write_entry(IBOOKS_OPTIONS_PATH, build_ibooks_display_options().encode(ENCODING))
            for entry in self.registry:
                current = f"{OEBPS_DIR}/{entry.path}"
                backend.write_entry(current, entry.data)
            for name, text in generated:
                current = f"{OEBPS_DIR}/{name}"
                backend.write_entry(current, text.encode(ENCODING))
            current = str(output) if isinstance(output, (str, os.PathLike)) else "<stream>"
            if isinstance(output, (str, os.PathLike)):
                with open(output, "wb") as f:
                    backend.finish(f)
            else:
                backend.finish(output)
        except (EpubError, OSError, TypeError, ValueError) as e:
            logger.error(f"Packaging failed at {current}: {e}")
            raise PackagingError(f"failed to package EPUB: {e}", path=current) from e

        self.phase = BuildPhase.WRITTEN
        logger.info(
            f"EPUB {ctx.version.value} written to {current}: "
            f"{len(self.registry)} files, {ctx.toc.node_count()} TOC entries"
        )


def write_epub(
    entries: Iterable[Entry],
    output: Output,
    metadata: Optional[Mapping[str, Any]] = None,
    config: Optional[BuildConfig] = None,
    backend: Optional[ZipBackend] = None,
) -> EpubBuilder:
    """Create an EPUB file in one call.

    Args:
        entries: Content documents and resources, in book order
        output: Path or binary stream for the archive
        metadata: Metadata key -> value, or a list of values for multi-valued keys
        config: Build settings
        backend: Zip backend, chosen from config when None

    Returns:
        The builder, in WRITTEN phase
    """
    builder = EpubBuilder(backend=backend, config=config)
    for key, value in (metadata or {}).items():
        values = value if isinstance(value, (list, tuple)) else [value]
        for v in values:
            builder.metadata(key, v)
    for entry in entries:
        if isinstance(entry, ContentEntry):
            builder.add_content(entry)
        elif entry.cover:
            builder.add_cover_image(entry.path, entry.data, entry.mime_type)
        else:
            builder.add_resource(entry.path, entry.data, entry.mime_type)
    builder.generate(output)
    return builder


__all__ = ["BuildConfig", "BuildPhase", "EpubBuilder", "write_epub"]

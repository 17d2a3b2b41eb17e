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
epub_content.py - Content documents, resources and their registry
=================================================================

A book is an ordered list of files. Content documents (XHTML pages) take part
in the spine and may appear in the table of contents; resources (images,
stylesheets, fonts) are only listed in the manifest. Both share a single path
namespace inside the OEBPS directory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, Union

from .common_utils import normalize_path
from .epub_constants import XHTML_MIME, ReferenceType
from .epub_errors import DuplicatePath, InvalidPath

logger = logging.getLogger(__name__)


def _to_bytes(data: bytes | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


@dataclass
class TocElement:
    """An entry of the table of contents, possibly with nested entries."""

    url: str
    title: str
    raw_title: str | None = None
    level: int = 1
    children: list[TocElement] = field(default_factory=list)

    def child(self, element: TocElement) -> TocElement:
        """
        Append a nested entry and return self.

        The child (and its own descendants) are re-levelled so that every
        entry sits deeper than its parent.
        """
        pending = [(self.level, element)]
        while pending:
            parent_level, node = pending.pop()
            if node.level <= parent_level:
                node.level = parent_level + 1
            pending.extend((node.level, c) for c in node.children)
        self.children.append(element)
        return self


@dataclass
class ContentEntry:
    """
    An XHTML document of the book.

    Entries without a title still occupy their position in the spine but are
    left out of the table of contents.
    """

    path: str
    data: bytes
    title: str | None = None
    raw_title: str | None = None
    level: int = 1
    reftype: ReferenceType | None = None
    children: list[TocElement] = field(default_factory=list)
    linear: bool = True
    mime_type: str = XHTML_MIME
    generated: bool = False

    def __post_init__(self) -> None:
        self.path = normalize_path(self.path)
        self.data = _to_bytes(self.data)
        if isinstance(self.level, bool) or not isinstance(self.level, int) or self.level < 1:
            raise ValueError(f"Level of '{self.path}' must be a positive integer, got {self.level!r}")
        if self.reftype is not None:
            self.reftype = ReferenceType.parse(self.reftype)

    def with_title(self, title: str, raw_title: str | None = None) -> ContentEntry:
        self.title = title
        if raw_title is not None:
            self.raw_title = raw_title
        return self

    def with_level(self, level: int) -> ContentEntry:
        if isinstance(level, bool) or not isinstance(level, int) or level < 1:
            raise ValueError(f"Level of '{self.path}' must be a positive integer, got {level!r}")
        self.level = level
        return self

    def with_reftype(self, reftype: ReferenceType | str) -> ContentEntry:
        self.reftype = ReferenceType.parse(reftype)
        return self

    def with_child(self, element: TocElement) -> ContentEntry:
        self.children.append(element)
        return self

    def non_linear(self) -> ContentEntry:
        self.linear = False
        return self

    def toc_element(self) -> TocElement:
        """Build the TOC entry of this document. Requires a title."""
        if not self.title:
            raise ValueError(f"'{self.path}' has no title")
        element = TocElement(url=self.path, title=self.title, raw_title=self.raw_title, level=self.level)
        for c in self.children:
            element.child(c)
        return element


@dataclass
class ResourceEntry:
    """A non-document file: image, font, stylesheet, ..."""

    path: str
    data: bytes
    mime_type: str
    cover: bool = False

    def __post_init__(self) -> None:
        self.path = normalize_path(self.path)
        self.data = _to_bytes(self.data)


Entry = Union[ContentEntry, ResourceEntry]


class ContentRegistry:
    """Ordered registry of every file the caller adds to the book."""

    def __init__(self, reserved: frozenset[str] | set[str] = frozenset()) -> None:
        self._files: list[Entry] = []
        self._paths: set[str] = set(reserved)

    def reserve(self, path: str) -> None:
        """Claim a path for a generated document."""
        path = normalize_path(path)
        if path in self._paths:
            raise DuplicatePath(path)
        self._paths.add(path)

    def add(self, entry: Entry) -> Entry:
        """
        Register a content document or a resource.

        Raises:
            DuplicatePath: If the path is already taken; the registry is left unchanged
        """
        if entry.path in self._paths:
            raise DuplicatePath(entry.path)
        self._paths.add(entry.path)
        self._files.append(entry)
        kind = "content" if isinstance(entry, ContentEntry) else "resource"
        logger.debug(f"Add {kind}: {entry.path} ({entry.mime_type}, {len(entry.data)} bytes)")
        return entry

    def __contains__(self, path: str) -> bool:
        try:
            return normalize_path(path) in self._paths
        except InvalidPath:
            return False

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def contents(self) -> list[ContentEntry]:
        return [f for f in self._files if isinstance(f, ContentEntry)]

    def resources(self) -> list[ResourceEntry]:
        return [f for f in self._files if isinstance(f, ResourceEntry)]

    def has_linear_content(self) -> bool:
        return any(c.linear and not c.generated for c in self.contents())

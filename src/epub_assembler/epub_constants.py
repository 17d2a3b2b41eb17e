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
Shared constants and enumerations for the EPUB modules.
"""

from __future__ import annotations

import enum

from .epub_errors import InvalidMetadataValue

# Constants
ENCODING = "utf-8"
MIMETYPE = "application/epub+zip"

# Fixed archive layout
MIMETYPE_PATH = "mimetype"
CONTAINER_PATH = "META-INF/container.xml"
IBOOKS_OPTIONS_PATH = "META-INF/com.apple.ibooks.display-options.xml"
OEBPS_DIR = "OEBPS"

# Generated documents, relative to OEBPS
CONTENT_OPF = "content.opf"
TOC_NCX = "toc.ncx"
NAV_XHTML = "nav.xhtml"
INLINE_TOC_XHTML = "toc.xhtml"
STYLESHEET_CSS = "stylesheet.css"

GENERATED_PATHS = frozenset({CONTENT_OPF, TOC_NCX, NAV_XHTML})

# Media types
XHTML_MIME = "application/xhtml+xml"
NCX_MIME = "application/x-dtbncx+xml"
CSS_MIME = "text/css"
OPF_MIME = "application/oebps-package+xml"

# Manifest ids owned by the package document itself
NCX_ID = "ncx"
NAV_ID = "nav"
COVER_IMAGE_ID = "cover-image"
RESERVED_IDS = (NCX_ID, NAV_ID, COVER_IMAGE_ID)

DEFAULT_LANGUAGE = "en"
DEFAULT_GENERATOR = "epub-assembler"
DEFAULT_TOC_NAME = "Table Of Contents"

# Timestamp format used in the package document
DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class EpubVersion(enum.Enum):
    """Supported EPUB generations."""

    V20 = "2.0"
    V30 = "3.0"

    @classmethod
    def parse(cls, value: str | int | float | EpubVersion) -> EpubVersion:
        """Accept `2`, `"2.0"`, `"3"`, `"V30"` and friends."""
        if isinstance(value, EpubVersion):
            return value
        text = str(value).strip().upper().lstrip("V")
        if text in {"2", "2.0", "20", "2.0.1"}:
            return cls.V20
        if text in {"3", "3.0", "30", "3.0.1"}:
            return cls.V30
        raise ValueError(f"Unsupported EPUB version: {value!r}")


class PageDirection(enum.Enum):
    """Page progression direction of the whole book."""

    LTR = "ltr"
    RTL = "rtl"

    @classmethod
    def parse(cls, value: str | PageDirection) -> PageDirection:
        if isinstance(value, PageDirection):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidMetadataValue("direction", str(value)) from None


class ReferenceType(enum.Enum):
    """
    Structural role of a content document.

    Listed in the EPUB2 guide and in the EPUB3 landmarks navigation. The enum
    value is the guide vocabulary term; `landmark` gives the EPUB3
    structural-semantics term.
    """

    COVER = "cover"
    TITLE_PAGE = "title-page"
    TEXT = "text"
    TOC = "toc"
    GLOSSARY = "glossary"
    ACKNOWLEDGEMENTS = "acknowledgements"
    BIBLIOGRAPHY = "bibliography"
    COLOPHON = "colophon"
    COPYRIGHT = "copyright"
    DEDICATION = "dedication"
    EPIGRAPH = "epigraph"
    FOREWORD = "foreword"
    LOI = "loi"
    LOT = "lot"
    NOTES = "notes"
    PREFACE = "preface"
    INDEX = "index"

    @property
    def guide(self) -> str:
        return self.value

    @property
    def landmark(self) -> str:
        return _LANDMARKS[self]

    @classmethod
    def parse(cls, value: str | ReferenceType) -> ReferenceType:
        """Look up by guide term or member name, case-insensitively."""
        if isinstance(value, ReferenceType):
            return value
        key = str(value).strip().lower().replace("_", "-")
        for member in cls:
            if key in (member.value, member.name.lower().replace("_", "-"), member.landmark):
                return member
        raise ValueError(f"Unknown reference type: {value!r}")


_LANDMARKS = {
    ReferenceType.COVER: "cover",
    ReferenceType.TITLE_PAGE: "titlepage",
    ReferenceType.TEXT: "bodymatter",
    ReferenceType.TOC: "toc",
    ReferenceType.GLOSSARY: "glossary",
    ReferenceType.ACKNOWLEDGEMENTS: "acknowledgements",
    ReferenceType.BIBLIOGRAPHY: "bibliography",
    ReferenceType.COLOPHON: "colophon",
    ReferenceType.COPYRIGHT: "copyright-page",
    ReferenceType.DEDICATION: "dedication",
    ReferenceType.EPIGRAPH: "epigraph",
    ReferenceType.FOREWORD: "foreword",
    ReferenceType.LOI: "loi",
    ReferenceType.LOT: "lot",
    ReferenceType.NOTES: "endnotes",
    ReferenceType.PREFACE: "preface",
    ReferenceType.INDEX: "index",
}

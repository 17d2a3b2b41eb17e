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
epub-assembler - EPUB 2.0.1 / 3.0.1 package assembler

Packages caller-supplied XHTML pages and resources into a valid EPUB archive,
generating the package document, NCX and navigation documents.
"""

__version__ = "1.0.0"
__author__ = "Emasoft"
__email__ = "713559+Emasoft@users.noreply.github.com"
__license__ = "Apache-2.0"

from .epub_constants import EpubVersion, PageDirection, ReferenceType
from .epub_content import ContentEntry, ResourceEntry, TocElement
from .epub_errors import (
    AlreadyGenerated,
    DuplicatePath,
    EmptyBook,
    EpubError,
    InvalidMetadataKey,
    InvalidMetadataValue,
    InvalidPath,
    PackagingError,
)
from .epub_generator import BuildConfig, BuildPhase, EpubBuilder, write_epub
from .epub_metadata import MetadataKey
from .zip_backends import ZipBackend, ZipCommand, ZipLibrary, ZipLibraryOrCommand, create_backend

__all__ = [
    "AlreadyGenerated",
    "BuildConfig",
    "BuildPhase",
    "ContentEntry",
    "DuplicatePath",
    "EmptyBook",
    "EpubBuilder",
    "EpubError",
    "EpubVersion",
    "InvalidMetadataKey",
    "InvalidMetadataValue",
    "InvalidPath",
    "MetadataKey",
    "PackagingError",
    "PageDirection",
    "ReferenceType",
    "ResourceEntry",
    "TocElement",
    "ZipBackend",
    "ZipCommand",
    "ZipLibrary",
    "ZipLibraryOrCommand",
    "create_backend",
    "write_epub",
]

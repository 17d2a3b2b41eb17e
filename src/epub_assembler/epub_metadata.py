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

# HERE IS THE CHANGELOG FOR THIS VERSION OF THE CODE:
# - Replaced the free-form metadata dict with a closed set of keys
# - Unknown keys now raise InvalidMetadataKey instead of being ignored
# - Multi-valued fields (author, description, subject) append; "" clears them
# - Identifier is fixed once at finalize so OPF and NCX share the same value
#

"""
epub_metadata.py - Book metadata store
======================================

Accumulates title, authors, language, identifier, dates and the other
Dublin Core fields written to the package document.
"""

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .epub_constants import (
    DEFAULT_GENERATOR,
    DEFAULT_LANGUAGE,
    DEFAULT_TOC_NAME,
    PageDirection,
)
from .epub_errors import InvalidMetadataKey, InvalidMetadataValue

logger = logging.getLogger(__name__)


class MetadataKey(enum.Enum):
    """Recognized metadata keys."""

    TITLE = "title"
    AUTHOR = "author"
    IDENTIFIER = "identifier"
    LANG = "lang"
    DESCRIPTION = "description"
    SUBJECT = "subject"
    DATE = "date"
    MODIFIED = "modified"
    PUBLISHER = "publisher"
    LICENSE = "license"
    GENERATOR = "generator"
    TOC_NAME = "toc_name"
    DIRECTION = "direction"

    @classmethod
    def parse(cls, key: str | MetadataKey) -> MetadataKey:
        if isinstance(key, MetadataKey):
            return key
        normalized = str(key).strip().lower()
        normalized = _ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            raise InvalidMetadataKey(str(key)) from None


_ALIASES = {
    "creator": "author",
    "language": "lang",
    "rights": "license",
    "date_published": "date",
    "date_modified": "modified",
    "uuid": "identifier",
}

MULTI_VALUED = frozenset({MetadataKey.AUTHOR, MetadataKey.DESCRIPTION, MetadataKey.SUBJECT})


def parse_date(key: str, value: str | datetime) -> datetime:
    """Parse an ISO-8601 date or timestamp, assuming UTC when no offset is given."""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidMetadataValue(key, str(value)) from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass
class MetaOpf:
    """A custom `<meta name="..." content="..."/>` entry of content.opf."""

    name: str
    content: str


@dataclass
class Metadata:
    """Metadata of the book, mutable until the builder finalizes."""

    title: str = ""
    authors: list[str] = field(default_factory=list)
    identifier: str | None = None
    lang: str = DEFAULT_LANGUAGE
    descriptions: list[str] = field(default_factory=list)
    subjects: list[str] = field(default_factory=list)
    date_published: datetime | None = None
    date_modified: datetime | None = None
    publisher: str | None = None
    license: str | None = None
    generator: str = DEFAULT_GENERATOR
    toc_name: str = DEFAULT_TOC_NAME
    direction: PageDirection | None = None
    extra_meta: list[MetaOpf] = field(default_factory=list)

    def set(self, key: str | MetadataKey, value: str) -> None:
        """
        Set one metadata value.

        Multi-valued keys append, and the empty string clears every value
        stored under that key. Single-valued keys replace.

        Raises:
            InvalidMetadataKey: If key is not recognized
            InvalidMetadataValue: If a date or direction cannot be parsed
        """
        mkey = MetadataKey.parse(key)
        value = "" if value is None else value
        logger.debug(f"metadata {mkey.value} = {value!r}")

        if mkey in MULTI_VALUED:
            target = self._multi(mkey)
            if value == "":
                target.clear()
            else:
                target.append(str(value))
            return

        if mkey is MetadataKey.TITLE:
            self.title = str(value)
        elif mkey is MetadataKey.IDENTIFIER:
            self.set_identifier(str(value))
        elif mkey is MetadataKey.LANG:
            self.lang = str(value)
        elif mkey is MetadataKey.DATE:
            self.date_published = parse_date(mkey.value, value) if value != "" else None
        elif mkey is MetadataKey.MODIFIED:
            self.date_modified = parse_date(mkey.value, value) if value != "" else None
        elif mkey is MetadataKey.PUBLISHER:
            self.publisher = str(value) or None
        elif mkey is MetadataKey.LICENSE:
            self.license = str(value) or None
        elif mkey is MetadataKey.GENERATOR:
            self.generator = str(value)
        elif mkey is MetadataKey.TOC_NAME:
            self.toc_name = str(value)
        elif mkey is MetadataKey.DIRECTION:
            self.direction = PageDirection.parse(value)

    def _multi(self, key: MetadataKey) -> list[str]:
        if key is MetadataKey.AUTHOR:
            return self.authors
        if key is MetadataKey.DESCRIPTION:
            return self.descriptions
        return self.subjects

    def set_identifier(self, value: str | uuid.UUID) -> None:
        """UUIDs are stored in URN form; any other non-empty identifier is kept verbatim."""
        if isinstance(value, uuid.UUID):
            self.identifier = value.urn
            return
        text = value.strip()
        if not text:
            self.identifier = None
            return
        try:
            self.identifier = uuid.UUID(text).urn
        except ValueError:
            self.identifier = text

    def unique_identifier(self) -> str:
        """Return the identifier, generating a random UUID the first time if none was set."""
        if self.identifier is None:
            self.identifier = uuid.uuid4().urn
            logger.debug(f"generated identifier {self.identifier}")
        return self.identifier

    def modified_or_now(self) -> datetime:
        return self.date_modified or datetime.now(timezone.utc)

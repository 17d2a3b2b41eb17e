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
common_utils.py - Shared helpers for names and paths inside the EPUB archive
"""

import logging
import re
from pathlib import PurePosixPath
from typing import Iterable

from .epub_errors import InvalidPath

logger = logging.getLogger(__name__)

_INVALID_ID_CHARS = re.compile(r"[^A-Za-z0-9_.\-]")
_VALID_ID_START = re.compile(r"[A-Za-z_]")
ID_PREFIX = "id_"


def sanitize_id(raw: str) -> str:
    """
    Map an arbitrary string to a legal XML Name usable as an `id`.

    Characters outside `[A-Za-z0-9_.-]` become underscores. When the result
    is empty or does not start with a letter or underscore, `id_` is
    prepended. The function never fails and is idempotent, but two different
    inputs may give the same id; see IdAllocator.

    Args:
        raw: Any string, typically a path inside the archive

    Returns:
        A string matching the XML Name grammar
    """
    cleaned = _INVALID_ID_CHARS.sub("_", raw)
    if not cleaned or not _VALID_ID_START.match(cleaned):
        cleaned = ID_PREFIX + cleaned
    return cleaned


class IdAllocator:
    """
    Hands out document-unique ids.

    The first holder of a sanitized id keeps it. Later collisions get the
    first free numeric suffix, starting at `-2`.
    """

    def __init__(self, reserved: Iterable[str] = ()) -> None:
        self._taken: set[str] = set(reserved)

    def claim(self, raw: str) -> str:
        base = sanitize_id(raw)
        candidate = base
        n = 1
        while candidate in self._taken:
            n += 1
            candidate = f"{base}-{n}"
        if candidate != base:
            logger.debug(f"id '{base}' already in use, assigned '{candidate}' to {raw!r}")
        self._taken.add(candidate)
        return candidate

    def __contains__(self, item: str) -> bool:
        return item in self._taken


def normalize_path(path: str) -> str:
    """
    Use forward slashes and drop any leading './' segments.

    Raises:
        InvalidPath: If the path is empty, absolute, names a directory or contains '..'
    """
    normalized = str(path).replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    pure = PurePosixPath(normalized)
    if not normalized or pure.is_absolute() or ".." in pure.parts or normalized.endswith("/"):
        raise InvalidPath(str(path))
    return normalized


def indent(text: str, level: int) -> str:
    """Indent every non-empty line by two spaces per level."""
    pad = "  " * level
    return "\n".join(pad + line if line else line for line in text.splitlines())

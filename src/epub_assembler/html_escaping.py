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
html_escaping.py - Escaping policy for text placed in generated documents
=========================================================================

Titles, descriptions and other caller text are HTML-escaped by default.
With escaping disabled the caller is in charge: text is inserted verbatim,
and contexts that cannot carry markup (attribute values, NCX labels,
landmark labels) use the plain-text `raw_title` alternative when one was
supplied.
"""

from __future__ import annotations

import enum
import html


class EscapeMode(enum.Enum):
    ESCAPE = "escape"
    RAW = "raw"


def mode_for(escape_html: bool) -> EscapeMode:
    return EscapeMode.ESCAPE if escape_html else EscapeMode.RAW


def escape_for_xml(text: str, mode: EscapeMode = EscapeMode.ESCAPE) -> str:
    """
    Apply or bypass entity escaping.

    Escape mode replaces `&`, `<`, `>`, `"` and `'`; raw mode returns the
    text unchanged.
    """
    if mode is EscapeMode.RAW:
        return text
    return html.escape(text, quote=True)


def escape_attribute(value: str) -> str:
    """Escape a structural attribute value (href, id, media type). Always applied."""
    return html.escape(value, quote=True)


def plain_title(title: str, raw_title: str | None, escape_html: bool) -> str:
    """
    Title for contexts that must stay markup-free.

    Args:
        title: Display title, possibly containing caller HTML when escaping is off
        raw_title: Plain-text alternative supplied by the caller
        escape_html: Build-wide escaping flag

    Returns:
        Text ready to be inserted in an attribute or a text-only element
    """
    if escape_html:
        return escape_for_xml(title, EscapeMode.ESCAPE)
    return raw_title if raw_title is not None else title


def markup_title(title: str, escape_html: bool) -> str:
    """Title for XHTML link text, where caller markup is allowed when escaping is off."""
    return escape_for_xml(title, mode_for(escape_html))

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
HTML processing helpers for content documents.

Pages are packaged byte for byte; these helpers only read them, to pick up a
title for the table of contents when the manifest does not give one.
"""

from __future__ import annotations

import logging
import warnings

from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning

logger = logging.getLogger(__name__)

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")


def _parse(document: bytes | str) -> BeautifulSoup:
    with warnings.catch_warnings():
        # XHTML pages start with an XML declaration; html.parser reads them fine
        warnings.simplefilter("ignore", XMLParsedAsHTMLWarning)
        return BeautifulSoup(document, "html.parser")


def extract_title(document: bytes | str) -> str | None:
    """
    Find the title of an (X)HTML document.

    The `<title>` element wins; otherwise the text of the first heading,
    trying h1 through h6 in that order.

    Args:
        document: Page source

    Returns:
        Whitespace-normalized plain text, or None when nothing usable is found
    """
    soup = _parse(document)
    if soup.title is not None:
        text = " ".join(soup.title.get_text().split())
        if text:
            return text
    for tag in HEADING_TAGS:
        heading = soup.find(tag)
        if heading is not None:
            text = " ".join(heading.get_text(" ").split())
            if text:
                return text
    logger.debug("No <title> or heading found in document")
    return None


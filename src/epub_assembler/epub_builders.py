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
# - Builders now take a single RenderContext instead of loose arguments
# - Added EPUB 3.0.1 package document and navigation document
# - Added guide / landmarks from the reference type of each document
# - NCX navPoints are nested and numbered from the shared TocTree walk
# - Removed chapter/cover XHTML builders: pages are supplied by the caller
#

"""
epub_builders.py - EPUB structural document builders
====================================================

Pure functions producing container.xml, the iBooks display options,
content.opf, toc.ncx and the navigation documents. They read a RenderContext
and return text; none of them performs I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .common_utils import indent
from .epub_constants import (
    CONTAINER_PATH,
    CONTENT_OPF,
    COVER_IMAGE_ID,
    DATE_FORMAT,
    NAV_ID,
    NAV_XHTML,
    NCX_ID,
    NCX_MIME,
    OEBPS_DIR,
    OPF_MIME,
    STYLESHEET_CSS,
    TOC_NCX,
    XHTML_MIME,
    EpubVersion,
    PageDirection,
    ReferenceType,
)
from .epub_metadata import Metadata
from .epub_toc import TocTree, WalkEvent
from .html_escaping import (
    escape_attribute,
    escape_for_xml,
    markup_title,
    mode_for,
    plain_title,
)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
PACKAGE_ID = "epub-id-1"


def creator_id(index: int) -> str:
    return f"epub-creator-{index}"


def package_ids(metadata: Metadata) -> list[str]:
    """Fixed ids content.opf uses besides the manifest items; manifest ids must avoid them."""
    return [PACKAGE_ID, *(creator_id(i) for i in range(len(metadata.authors)))]


@dataclass
class ManifestItem:
    """One registered file as it appears in the manifest, spine and guide."""

    id: str
    href: str
    media_type: str
    in_spine: bool = False
    linear: bool = True
    cover: bool = False
    reftype: ReferenceType | None = None
    title: str = ""
    raw_title: str | None = None


@dataclass
class RenderContext:
    """Everything the builders need, fixed at finalize time."""

    version: EpubVersion
    metadata: Metadata
    identifier: str
    modified: datetime
    items: list[ManifestItem]
    toc: TocTree
    direction: PageDirection = PageDirection.LTR
    escape_html: bool = True
    ibooks: bool = True
    fallback_href: str | None = None

    def text(self, value: str) -> str:
        """Caller text in element content, escaped according to the build setting."""
        return escape_for_xml(value, mode_for(self.escape_html))


def build_container_xml() -> str:
    """
    Build META-INF/container.xml pointing at the package document.

    Returns:
        Container XML as string
    """
    return f"""{XML_DECLARATION}
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{OEBPS_DIR}/{CONTENT_OPF}" media-type="{OPF_MIME}"/>
  </rootfiles>
</container>
"""


def build_ibooks_display_options() -> str:
    """Apple Books display options: honour the fonts embedded in the book."""
    return f"""{XML_DECLARATION}
<display_options>
  <platform name="*">
    <option name="specified-fonts">true</option>
  </platform>
</display_options>
"""


def _optional_metadata(ctx: RenderContext) -> list[str]:
    meta = ctx.metadata
    lines = []
    if meta.date_published is not None:
        published = meta.date_published.strftime(DATE_FORMAT)
        if ctx.version is EpubVersion.V20:
            lines.append(f'<dc:date opf:event="publication">{published}</dc:date>')
        else:
            lines.append(f"<dc:date>{published}</dc:date>")
    for desc in meta.descriptions:
        lines.append(f"<dc:description>{ctx.text(desc)}</dc:description>")
    for subject in meta.subjects:
        lines.append(f"<dc:subject>{ctx.text(subject)}</dc:subject>")
    if meta.publisher:
        lines.append(f"<dc:publisher>{ctx.text(meta.publisher)}</dc:publisher>")
    if meta.license:
        lines.append(f"<dc:rights>{ctx.text(meta.license)}</dc:rights>")
    for extra in meta.extra_meta:
        lines.append(f'<meta name="{escape_attribute(extra.name)}" content="{escape_attribute(extra.content)}"/>')
    if any(item.cover for item in ctx.items):
        lines.append(f'<meta name="cover" content="{COVER_IMAGE_ID}"/>')
    return lines


def _creators(ctx: RenderContext) -> list[str]:
    lines = []
    for i, author in enumerate(ctx.metadata.authors):
        if ctx.version is EpubVersion.V20:
            lines.append(f'<dc:creator opf:role="aut">{ctx.text(author)}</dc:creator>')
        else:
            lines.append(f'<dc:creator id="{creator_id(i)}">{ctx.text(author)}</dc:creator>')
            lines.append(f'<meta refines="#{creator_id(i)}" property="role" scheme="marc:relators">aut</meta>')
    return lines


def _manifest_items(ctx: RenderContext) -> list[str]:
    nav_properties = ' properties="nav"' if ctx.version is EpubVersion.V30 else ""
    lines = [
        f'<item id="{NCX_ID}" href="{TOC_NCX}" media-type="{NCX_MIME}"/>',
        f'<item id="{NAV_ID}" href="{NAV_XHTML}" media-type="{XHTML_MIME}"{nav_properties}/>',
    ]
    for item in ctx.items:
        properties = ' properties="cover-image"' if item.cover and ctx.version is EpubVersion.V30 else ""
        lines.append(
            f'<item id="{escape_attribute(item.id)}" href="{escape_attribute(item.href)}" '
            f'media-type="{escape_attribute(item.media_type)}"{properties}/>'
        )
    return lines


def _spine_itemrefs(ctx: RenderContext) -> list[str]:
    lines = []
    for item in ctx.items:
        if not item.in_spine:
            continue
        linear = "" if item.linear else ' linear="no"'
        lines.append(f'<itemref idref="{escape_attribute(item.id)}"{linear}/>')
    return lines


def _guide_references(ctx: RenderContext) -> list[str]:
    toc_name = plain_title(ctx.metadata.toc_name, None, ctx.escape_html)
    lines = [f'<reference type="toc" title="{toc_name}" href="{NAV_XHTML}"/>']
    for item in ctx.items:
        if item.reftype is None:
            continue
        title = plain_title(item.title, item.raw_title, ctx.escape_html)
        lines.append(f'<reference type="{item.reftype.guide}" title="{title}" href="{escape_attribute(item.href)}"/>')
    return lines


def build_content_opf(ctx: RenderContext) -> str:
    """
    Build the package document (content.opf).

    Args:
        ctx: Finalized render context

    Returns:
        Complete OPF XML as string, EPUB 2.0.1 or 3.0.1 depending on ctx.version
    """
    meta = ctx.metadata
    modified = ctx.modified.strftime(DATE_FORMAT)
    generator = escape_attribute(meta.generator)

    if ctx.version is EpubVersion.V20:
        package_open = f'<package version="2.0" xmlns="http://www.idpf.org/2007/opf" unique-identifier="{PACKAGE_ID}">'
        metadata_open = '<metadata xmlns:dc="http://purl.org/dc/elements/1.1/" xmlns:opf="http://www.idpf.org/2007/opf">'
        dates = [f'<dc:date opf:event="modification">{modified}</dc:date>']
        spine_open = '<spine toc="ncx">'
        trailing_meta: list[str] = []
    else:
        package_open = (
            f'<package version="3.0" xmlns="http://www.idpf.org/2007/opf" unique-identifier="{PACKAGE_ID}" '
            'prefix="ibooks: http://vocabulary.itunes.apple.com/rdf/ibooks/vocabulary-extensions-1.0/">'
        )
        metadata_open = '<metadata xmlns:dc="http://purl.org/dc/elements/1.1/">'
        dates = [f'<meta property="dcterms:modified">{modified}</meta>']
        spine_open = f'<spine toc="ncx" page-progression-direction="{ctx.direction.value}">'
        trailing_meta = ['<meta property="ibooks:specified-fonts">true</meta>'] if ctx.ibooks else []

    metadata_lines = [
        f'<dc:identifier id="{PACKAGE_ID}">{escape_for_xml(ctx.identifier)}</dc:identifier>',
        f"<dc:title>{ctx.text(meta.title)}</dc:title>",
        *dates,
        f"<dc:language>{escape_for_xml(meta.lang)}</dc:language>",
        *_creators(ctx),
        *_optional_metadata(ctx),
        f'<meta name="generator" content="{generator}"/>',
        *trailing_meta,
    ]

    return f"""{XML_DECLARATION}
{package_open}
  {metadata_open}
{indent(chr(10).join(metadata_lines), 2)}
  </metadata>
  <manifest>
{indent(chr(10).join(_manifest_items(ctx)), 2)}
  </manifest>
  {spine_open}
{indent(chr(10).join(_spine_itemrefs(ctx)), 2)}
  </spine>
  <guide>
{indent(chr(10).join(_guide_references(ctx)), 2)}
  </guide>
</package>
"""


def build_nav_points(ctx: RenderContext) -> list[str]:
    """
    Render the TOC tree as nested NCX navPoints.

    navPoint ids and playOrder values are numbered 1..N in document order.
    When the tree is empty a single navPoint to the first document is
    emitted, since the NCX navMap may not be empty.
    """
    lines: list[str] = []
    play_order = 0
    for event, element, depth in ctx.toc.walk():
        pad = "  " * (depth - 1)
        if event is WalkEvent.LEAVE:
            lines.append(f"{pad}</navPoint>")
            continue
        play_order += 1
        label = plain_title(element.title, element.raw_title, ctx.escape_html)
        lines.append(f'{pad}<navPoint id="navPoint-{play_order}" playOrder="{play_order}">')
        lines.append(f"{pad}  <navLabel>")
        lines.append(f"{pad}    <text>{label}</text>")
        lines.append(f"{pad}  </navLabel>")
        lines.append(f'{pad}  <content src="{escape_attribute(element.url)}"/>')
    if not lines and ctx.fallback_href:
        label = plain_title(ctx.metadata.title or ctx.metadata.toc_name, None, ctx.escape_html)
        lines = [
            '<navPoint id="navPoint-1" playOrder="1">',
            f"  <navLabel>\n    <text>{label}</text>\n  </navLabel>",
            f'  <content src="{escape_attribute(ctx.fallback_href)}"/>',
            "</navPoint>",
        ]
    return lines


def build_toc_ncx(ctx: RenderContext) -> str:
    """Build the EPUB2 navigation control file (toc.ncx).

    Args:
        ctx: Finalized render context

    Returns:
        Complete NCX XML as string
    """
    doc_title = plain_title(ctx.metadata.title or ctx.metadata.toc_name, None, ctx.escape_html)
    return f"""{XML_DECLARATION}
<ncx version="2005-1" xmlns="http://www.daisy.org/z3986/2005/ncx/">
  <head>
    <meta name="dtb:uid" content="{escape_attribute(ctx.identifier)}"/>
    <meta name="dtb:depth" content="{ctx.toc.depth()}"/>
    <meta name="dtb:totalPageCount" content="0"/>
    <meta name="dtb:maxPageNumber" content="0"/>
  </head>
  <docTitle>
    <text>{doc_title}</text>
  </docTitle>
  <navMap>
{indent(chr(10).join(build_nav_points(ctx)), 2)}
  </navMap>
</ncx>
"""


def build_toc_list(ctx: RenderContext, numbered: bool = True) -> list[str]:
    """
    Render the TOC tree as nested XHTML lists.

    Args:
        ctx: Finalized render context
        numbered: `<ol>` when True, `<ul>` otherwise

    Returns:
        Lines of the outer list, including its opening and closing tags
    """
    tag = "ol" if numbered else "ul"
    lines = [f"<{tag}>"]
    for event, element, depth in ctx.toc.walk():
        pad = "  " * (2 * depth - 1)
        if event is WalkEvent.LEAVE:
            if element.children:
                lines.append(f"{pad}  </{tag}>")
                lines.append(f"{pad}</li>")
            continue
        link = f'<a href="{escape_attribute(element.url)}">{markup_title(element.title, ctx.escape_html)}</a>'
        if element.children:
            lines.append(f"{pad}<li>{link}")
            lines.append(f"{pad}  <{tag}>")
        else:
            lines.append(f"{pad}<li>{link}</li>")
    if len(lines) == 1 and ctx.fallback_href:
        label = markup_title(ctx.metadata.title or ctx.metadata.toc_name, ctx.escape_html)
        lines.append(f'  <li><a href="{escape_attribute(ctx.fallback_href)}">{label}</a></li>')
    lines.append(f"</{tag}>")
    return lines


def build_landmarks(ctx: RenderContext) -> list[str]:
    """EPUB3 landmarks entries for every titled document with a reference type."""
    lines = []
    for item in ctx.items:
        if item.reftype is None or not item.title:
            continue
        label = plain_title(item.title, item.raw_title, ctx.escape_html)
        lines.append(f'<li><a epub:type="{item.reftype.landmark}" href="{escape_attribute(item.href)}">{label}</a></li>')
    return lines


def build_nav_xhtml(ctx: RenderContext, numbered: bool = True, inline: bool = False) -> str:
    """
    Build the navigation document, or the inline table of contents page.

    Args:
        ctx: Finalized render context
        numbered: Use an ordered list
        inline: Render the in-book TOC page instead of nav.xhtml (no landmarks,
            no epub:type on the nav element)

    Returns:
        Complete XHTML document as string
    """
    meta = ctx.metadata
    toc_name = ctx.text(meta.toc_name)
    generator = escape_attribute(meta.generator)
    lang = escape_attribute(meta.lang)
    toc_list = indent("\n".join(build_toc_list(ctx, numbered)), 3)
    stylesheet = f'<link rel="stylesheet" type="text/css" href="{STYLESHEET_CSS}"/>'

    if ctx.version is EpubVersion.V20:
        return f"""{XML_DECLARATION}
<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.1//EN" "http://www.w3.org/TR/xhtml11/DTD/xhtml11.dtd">
<html xmlns="http://www.w3.org/1999/xhtml" xml:lang="{lang}">
  <head>
    <meta http-equiv="Content-Type" content="application/xhtml+xml; charset=utf-8"/>
    <meta name="generator" content="{generator}"/>
    <title>{toc_name}</title>
    {stylesheet}
  </head>
  <body>
    <div id="toc">
      <h1>{toc_name}</h1>
{toc_list}
    </div>
  </body>
</html>
"""

    nav_type = "" if inline else ' epub:type="toc"'
    landmarks = [] if inline else build_landmarks(ctx)
    landmarks_nav = ""
    if landmarks:
        landmarks_nav = f"""
    <nav epub:type="landmarks" id="landmarks" hidden="hidden">
      <ol>
{indent(chr(10).join(landmarks), 4)}
      </ol>
    </nav>"""

    return f"""{XML_DECLARATION}
<!DOCTYPE html>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops" lang="{lang}" xml:lang="{lang}" dir="{ctx.direction.value}">
  <head>
    <meta charset="utf-8"/>
    <meta name="generator" content="{generator}"/>
    <title>{toc_name}</title>
    {stylesheet}
  </head>
  <body>
    <nav{nav_type} id="toc">
      <h1>{toc_name}</h1>
{toc_list}
    </nav>{landmarks_nav}
  </body>
</html>
"""

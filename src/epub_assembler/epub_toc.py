#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# HERE IS THE CHANGELOG FOR THIS VERSION OF THE CODE:
# - Hierarchy now comes from the declared level of each content document
#   instead of guessing Part/Book/Section from the chapter title
# - Replaced recursive nesting and rendering with explicit stacks
# - NCX and NAV renderers consume the same walk() events
#

"""
Table of contents tree for EPUB files.

Turns the ordered, level-annotated content documents into a forest of
TocElement, the way heading levels shape a document outline.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple

from .epub_content import ContentEntry, TocElement


class WalkEvent(enum.Enum):
    ENTER = "enter"
    LEAVE = "leave"


@dataclass(frozen=True)
class TocTree:
    """Finalized table of contents. Built once, never mutated afterwards."""

    roots: Tuple[TocElement, ...] = ()

    def is_empty(self) -> bool:
        return not self.roots

    def walk(self) -> Iterator[Tuple[WalkEvent, TocElement, int]]:
        """
        Yield (event, element, depth) in document order.

        Every element produces an ENTER event before its children and a LEAVE
        event after them. Depth starts at 1 for roots.
        """
        stack: List[Tuple[TocElement, int, bool]] = [(r, 1, False) for r in reversed(self.roots)]
        while stack:
            element, depth, visited = stack.pop()
            if visited:
                yield WalkEvent.LEAVE, element, depth
                continue
            yield WalkEvent.ENTER, element, depth
            stack.append((element, depth, True))
            stack.extend((c, depth + 1, False) for c in reversed(element.children))

    def elements(self) -> Iterator[TocElement]:
        """Every element in document order."""
        for event, element, _depth in self.walk():
            if event is WalkEvent.ENTER:
                yield element

    def node_count(self) -> int:
        return sum(1 for _ in self.elements())

    def depth(self) -> int:
        """Maximum nesting depth, at least 1 so it can go straight into dtb:depth."""
        return max((d for e, _el, d in self.walk() if e is WalkEvent.ENTER), default=1)


def build_toc_tree(entries: Iterable[ContentEntry]) -> TocTree:
    """
    Build the table of contents from content documents in registration order.

    Untitled documents are skipped. A titled document closes every open entry
    whose level is greater than or equal to its own, then becomes a child of
    the entry left on top, or a new root when nothing is left open. A
    document whose level exceeds anything before it (including a first
    document at level 3) simply opens below whatever is there, or becomes a
    root.

    Args:
        entries: Content documents in spine order

    Returns:
        The finalized TocTree
    """
    roots: List[TocElement] = []
    stack: List[Tuple[int, TocElement]] = []

    for entry in entries:
        if not entry.title:
            continue
        element = entry.toc_element()
        while stack and stack[-1][0] >= entry.level:
            stack.pop()
        if stack:
            stack[-1][1].children.append(element)
        else:
            roots.append(element)
        stack.append((entry.level, element))

    return TocTree(roots=tuple(roots))

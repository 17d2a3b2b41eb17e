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
epub_errors.py - Exceptions raised while assembling an EPUB
===========================================================

Every failure is reported synchronously to the caller of the failing
operation. Nothing is retried internally.
"""

from __future__ import annotations


class EpubError(Exception):
    """Base class for all EPUB assembly errors."""

    pass


class DuplicatePath(EpubError):
    """Raised when a path is registered twice (content and resources share one namespace)."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Path '{path}' is already registered in this book.")


class InvalidMetadataKey(EpubError):
    """Raised when a metadata key is not one of the recognized keys."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Unrecognized metadata key '{key}'.")


class InvalidMetadataValue(EpubError):
    """Raised when a recognized metadata key gets a value it cannot hold."""

    def __init__(self, key: str, value: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid value {value!r} for metadata key '{key}'.")


class EmptyBook(EpubError):
    """Raised by generate() when no linear content document was registered."""

    def __init__(self) -> None:
        super().__init__("Cannot generate an EPUB without any linear content document.")


class AlreadyGenerated(EpubError):
    """Raised on any use of a builder after generate() was called."""

    def __init__(self, operation: str = "generate") -> None:
        self.operation = operation
        super().__init__(f"Cannot call {operation}(): this EPUB has already been generated.")


class PackagingError(EpubError):
    """Raised when the archive backend fails. The cause is chained as __cause__."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(f"{message} ({path})" if path else message)


class InvalidPath(EpubError, ValueError):
    """Raised when a file path is empty, absolute or climbs out of the book."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Path '{path}' must be a non-empty path relative to the book root.")

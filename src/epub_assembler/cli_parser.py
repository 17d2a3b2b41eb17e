#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# HERE IS THE CHANGELOG FOR THIS VERSION OF THE CODE:
# - Replaced the translator options with the epub-assemble options
# - Build options map onto BuildConfig fields through build_overrides()
#

"""
cli_parser.py - Command-line argument parsing for epub-assemble
==============================================================

Handles parsing and validation of command-line arguments. Options that
change the build are turned into BuildConfig overrides; they take precedence
over the manifest's `epub:` section and over a --config file.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from .zip_backends import BACKEND_NAMES

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

EPILOG = """
Examples:
  epub-assemble book.yml
  epub-assemble book.yml -o dist/book.epub --epub-version 3 --inline-toc
  epub-assemble book.yml --zip-backend command --log-level DEBUG
"""


def _add_basic_args(parser: argparse.ArgumentParser) -> None:
    """Add input/output arguments to the parser.

    Args:
        parser: ArgumentParser instance to add arguments to
    """
    parser.add_argument("manifest", type=str, help="YAML book manifest")

    parser.add_argument(
        "-o",
        "--output",
        type=str,
        help="Output EPUB path (default: manifest name with .epub, next to the manifest)",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="YAML file whose 'epub:' section overrides the manifest's build options",
    )


def _add_build_args(parser: argparse.ArgumentParser) -> None:
    """Add build option arguments to the parser.

    Args:
        parser: ArgumentParser instance to add arguments to
    """
    parser.add_argument(
        "--epub-version",
        choices=["2", "3"],
        help="EPUB version to produce (default: 2)",
    )

    parser.add_argument(
        "--no-escape",
        action="store_true",
        help="Insert titles and metadata verbatim instead of HTML-escaping them",
    )

    parser.add_argument(
        "--inline-toc",
        action="store_true",
        help="Add a table of contents page at the start of the book",
    )

    parser.add_argument(
        "--direction",
        choices=["ltr", "rtl"],
        help="Page progression direction",
    )

    parser.add_argument(
        "--zip-backend",
        choices=list(BACKEND_NAMES),
        help="Archive writer: Python zipfile, external zip program, or auto (default)",
    )

    parser.add_argument("--zip-command", type=str, help="zip program used by the command backend (default: zip)")


def _add_logging_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default="WARNING",
        help="Logging level (default: WARNING)",
    )

    parser.add_argument("--log-file", type=str, help="Also write the log to this file")


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="epub-assemble",
        description="Assemble an EPUB 2.0.1 or 3.0.1 book from a YAML manifest.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_basic_args(parser)
    _add_build_args(parser)
    _add_logging_args(parser)
    return parser


def validate_args(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    """Validate parsed arguments.

    Args:
        args: Parsed command-line arguments
        parser: ArgumentParser instance for error reporting
    """
    manifest = Path(args.manifest)
    if not manifest.is_file():
        parser.error(f"manifest not found: {manifest}")
    if args.config and not Path(args.config).is_file():
        parser.error(f"config file not found: {args.config}")
    if args.output and Path(args.output).is_dir():
        parser.error(f"output path is a directory: {args.output}")


def build_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Build options given on the command line, keyed by BuildConfig field."""
    overrides: dict[str, Any] = {}
    if args.epub_version:
        overrides["epub_version"] = args.epub_version
    if args.no_escape:
        overrides["escape_html"] = False
    if args.inline_toc:
        overrides["generate_inline_toc"] = True
    if args.direction:
        overrides["direction"] = args.direction
    if args.zip_backend:
        overrides["zip_backend"] = args.zip_backend
    if args.zip_command:
        overrides["zip_command"] = args.zip_command
    return overrides


def output_path(args: argparse.Namespace) -> Path:
    """Where the EPUB goes: --output, else the manifest path with an .epub suffix."""
    if args.output:
        return Path(args.output)
    return Path(args.manifest).with_suffix(".epub")

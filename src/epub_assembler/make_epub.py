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
# - Input is now a YAML book manifest of ready-made XHTML pages instead of
#   numbered plain-text chunk files
# - Removed chapter heading detection and issue reporting
# - main() returns the exit status instead of calling sys.exit deep inside
#

"""
make_epub.py – build an EPUB from a YAML book manifest
=====================================================

* Reads the manifest (metadata, build options, chapters, resources, cover).
* Applies build options from --config and from the command line, in that
  order, on top of the manifest's own `epub:` section.
* Writes an EPUB 2.0.1 or 3.0.1 archive and prints a short summary.

Exit status is 0 on success and 1 when the manifest is invalid or the
book cannot be assembled.
"""

from __future__ import annotations

import sys
from typing import Any, Optional, Sequence

from .cli_parser import build_overrides, create_parser, output_path, validate_args
from .cli_setup import setup_logging
from .common_print_utils import print_error, print_summary, safe_print
from .config_loader import ConfigError, load_book_manifest, read_build_options
from .epub_errors import EpubError


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point of the epub-assemble command."""
    parser = create_parser()
    args = parser.parse_args(argv)
    validate_args(args, parser)

    logger = setup_logging(args.log_level, args.log_file)
    out = output_path(args)

    try:
        overrides: dict[str, Any] = {}
        if args.config:
            overrides.update(read_build_options(args.config))
        overrides.update(build_overrides(args))

        manifest = load_book_manifest(args.manifest, overrides)
        builder = manifest.to_builder()
        out.parent.mkdir(parents=True, exist_ok=True)
        builder.generate(out)
    except (EpubError, ConfigError) as e:
        logger.error(f"Could not build {out}: {e}")
        print_error(str(e))
        return 1
    except OSError as e:
        logger.error(f"Could not create output directory for {out}: {e}")
        print_error(str(e))
        return 1

    meta = builder.meta
    print_summary(
        "EPUB written",
        [
            ("Title", meta.title or "(untitled)"),
            ("Authors", ", ".join(meta.authors) or "(none)"),
            ("Version", builder.config.epub_version.value),
            ("Files", str(len(builder.registry))),
            ("TOC entries", str(builder.toc().node_count())),
            ("Identifier", meta.unique_identifier()),
        ],
    )
    safe_print(f"[bold green]Created {out}[/bold green]")
    return 0


if __name__ == "__main__":
    sys.exit(main())

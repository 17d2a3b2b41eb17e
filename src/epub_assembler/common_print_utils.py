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
Common print utilities for console output with rich formatting support.
"""

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()
err_console = Console(stderr=True)


def safe_print(*args: Any, **kwargs: Any) -> None:
    """Print with rich markup to stdout.

    Args:
        *args: Arguments to print
        **kwargs: Keyword arguments for Console.print
    """
    console.print(*args, **kwargs)


def print_error(message: str) -> None:
    """Print an error message to stderr. The message itself is never parsed as markup."""
    err_console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def print_summary(title: str, rows: list[tuple[str, str]]) -> None:
    """Print a two-column summary table."""
    table = Table(title=title, show_header=False)
    table.add_column("field", style="cyan")
    table.add_column("value")
    for name, value in rows:
        table.add_row(name, escape(value))
    console.print(table)

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
Safe YAML loading for build configs and book manifests.
"""

import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


def load_safe_yaml(yaml_path: str | Path) -> dict[str, Any]:
    """
    Load a YAML mapping from a file.

    Args:
        yaml_path: Path to the YAML file

    Returns:
        The mapping at the root of the document, {} for an empty file

    Raises:
        ValueError: If the file is missing, unreadable, not valid YAML,
            or its root is not a mapping
    """
    yaml_path = Path(yaml_path)

    if not yaml_path.exists():
        raise ValueError(f"YAML file not found: {yaml_path}")

    try:
        with open(yaml_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML file {yaml_path}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ValueError(f"Error loading YAML file {yaml_path}: {e}") from e

    if data is None:
        logger.debug(f"{yaml_path} is empty")
        return {}

    if not isinstance(data, dict):
        raise ValueError(f"YAML file must contain a dictionary at the root level, got {type(data).__name__}")

    return data


def require_mapping(data: Any, where: str) -> dict[str, Any]:
    """Return data if it is a mapping (None counts as empty), else raise ValueError naming where."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"'{where}' must be a mapping, got {type(data).__name__}")
    return data


def require_list(data: Any, where: str) -> list[Any]:
    """Return data if it is a list (None counts as empty), else raise ValueError naming where."""
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError(f"'{where}' must be a list, got {type(data).__name__}")
    return data

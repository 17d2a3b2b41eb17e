#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Pytest configuration and shared fixtures for all tests
"""

import pytest
import sys
import os
import tempfile
import shutil
from pathlib import Path

# Add src directory to path so we can import our modules
src_dir = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")
sys.path.insert(0, src_dir)


XHTML_PAGE = """<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE html>
<html xmlns="http://www.w3.org/1999/xhtml">
<head>
  <title>{title}</title>
</head>
<body>
  <h1>{heading}</h1>
  <p>{body}</p>
</body>
</html>
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)


@pytest.fixture
def make_page():
    """Factory for small XHTML content documents"""

    def _make(title="Page", heading=None, body="Some text."):
        return XHTML_PAGE.format(title=title, heading=heading or title, body=body).encode("utf-8")

    return _make


# Configure pytest options
def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "requires_zip: needs the external zip program")

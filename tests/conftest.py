"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    """Scratch area inside the test's temp dir (not created)."""
    return tmp_path / "scratch"


@pytest.fixture
def tools_root(tmp_path: Path) -> Path:
    """Tools root directory."""
    root = tmp_path / "tools"
    root.mkdir()
    return root

# tests/conftest.py

"""Shared pytest fixtures for all storefront tests."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest

from src.config.settings import Settings


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path: Path) -> Generator[None, None, None]:
    """Keep session files and run logs out of the working tree."""
    with patch.object(
        Settings, "SESSION_FILE", tmp_path / "data" / "session.json"
    ), patch.object(Settings, "LOGS_DIR", tmp_path / "logs"):
        yield

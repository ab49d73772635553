"""Shared fixtures for scriptgate tests."""

from pathlib import Path

import pytest

from scriptgate.config.settings import Settings
from scriptgate.models.script import Script


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted in a temporary project directory."""
    return Settings(
        project_root=tmp_path,
        cache_dir=Path("cache"),
        build_dir=Path("build"),
        temp_dir=Path("tmp"),
    )


@pytest.fixture
def make_script():
    """Factory for bash scripts with a default name."""

    def _make(text: str, name: str = "sample", **kwargs) -> Script:
        return Script(name=name, source_text=text, **kwargs)

    return _make


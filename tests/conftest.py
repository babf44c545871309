"""Shared fixtures for TidyFS tests."""

import os
from datetime import datetime, timezone
from pathlib import Path

import pytest

from tidyfs.core.config import TidyConfig


def write_file(directory: Path, name: str, content, mtime: datetime = None) -> Path:
    """Create a file (and its parents) with the given content and optional UTC mtime."""
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, str):
        content = content.encode()
    path.write_bytes(content)
    if mtime is not None:
        stamp = mtime.replace(tzinfo=timezone.utc).timestamp()
        os.utime(path, (stamp, stamp))
    return path


@pytest.fixture
def config() -> TidyConfig:
    """Default configuration snapshot that never touches the user's config dir."""
    return TidyConfig()


@pytest.fixture
def scenario_dir(tmp_path: Path) -> Path:
    """a.jpg (10 bytes), b.png (20), c.txt (5) and a_copy.jpg identical to a.jpg."""
    root = tmp_path / "scenario"
    root.mkdir()
    write_file(root, "a.jpg", b"0123456789")
    write_file(root, "b.png", b"abcdefghijklmnopqrst")
    write_file(root, "c.txt", b"hello")
    write_file(root, "a_copy.jpg", b"0123456789")
    return root

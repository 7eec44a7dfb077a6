"""Shared helpers for treescan tests."""

import tempfile
from pathlib import Path

import pytest


def make_tree(root: Path, files: dict):
    """Create ``files`` (relative path -> str or bytes) under ``root``."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")


@pytest.fixture
def workspace():
    """A real temporary workspace root."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()

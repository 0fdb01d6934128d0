"""Shared fixtures for ProjectHub tests."""

from pathlib import Path

import pytest

from packs.cache import MetadataCache
from tests.helpers import write_pack

REACT_INDEX = b"export const answer = 42;\r\n"


@pytest.fixture
def packs_root(tmp_path: Path) -> Path:
    root = tmp_path / "packs"
    root.mkdir()
    return root


@pytest.fixture
def demo_pack(packs_root: Path) -> Path:
    """``demo`` pack with a react-app template declaring one file."""
    return write_pack(
        packs_root,
        "demo",
        manifest={
            "name": "demo",
            "version": "2.1.0",
            "summary": "Demo pack",
            "category": "frontend",
            "contents": [
                {
                    "path": "templates/react-app",
                    "files": [{"source": "src/index.ts", "target": "index.ts"}],
                },
            ],
        },
        templates={
            "react-app": {"src/index.ts": REACT_INDEX, "README.md": "# react"},
        },
    )


@pytest.fixture
def cache(packs_root: Path) -> MetadataCache:
    return MetadataCache(packs_root)

"""
Global pytest configuration and fixtures.

This file provides:
1. A fresh in-memory site per test, seeded with the default tree and classes
2. A recording output sink
3. A facade wired to both, downloading images into a temporary cache
"""

import shutil
import tempfile
from pathlib import Path
from typing import Generator, List, Sequence, Tuple

import pytest

from powercontent.configuration import create_test_config
from powercontent.content import PowerContent
from powercontent.host import MemorySite


class RecordingSink:
    """Output sink that keeps every message for assertions."""

    def __init__(self):
        self.errors: List[str] = []
        self.messages: List[Tuple[str, Tuple[str, ...]]] = []

    def error(self, message: str, **context) -> None:
        self.errors.append(message)

    def debug(self, message: str, styles: Sequence[str] = ("white",), **context) -> None:
        self.messages.append((message, tuple(styles)))

    def texts(self) -> List[str]:
        return [message for message, _ in self.messages]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def site() -> MemorySite:
    return MemorySite()


@pytest.fixture
def host(site):
    return site.content_host()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def config(temp_dir):
    return create_test_config(cache_dir=temp_dir / "cache")


@pytest.fixture
def facade(host, sink, config) -> PowerContent:
    return PowerContent(host, output=sink, config=config)


@pytest.fixture
def image_file(temp_dir) -> Path:
    path = temp_dir / "photo of cat.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 32)
    return path


@pytest.fixture
def make_folder(facade):
    """Create a published folder and return its main node id."""

    def _make(name: str, parent_node_id: int = 2) -> int:
        folder = facade.create_object(
            {
                "class_identifier": "folder",
                "parent_node_id": parent_node_id,
                "attributes": {"name": name},
            }
        )
        assert folder is not None
        return folder.main_node_id

    return _make

"""Pytest fixtures for feed parsing tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

TESTDATA_DIR = Path(__file__).parent / "testdata"


@pytest.fixture
def load_feed() -> Callable[[str], bytes]:
    """Return a loader for sample feeds under tests/testdata."""

    def _load(name: str) -> bytes:
        return (TESTDATA_DIR / name).read_bytes()

    return _load


@pytest.fixture
def rss_bytes(load_feed) -> bytes:
    return load_feed("rss_feed.xml")


@pytest.fixture
def atom_bytes(load_feed) -> bytes:
    return load_feed("atom10_feed.xml")

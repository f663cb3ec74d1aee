"""Pytest configuration and shared fixtures."""

import shutil
from pathlib import Path

import pytest

from tests.fixtures.bag_generator import ensure_fixtures


@pytest.fixture(scope="session")
def fixtures_dir(tmp_path_factory) -> Path:
    """Create and return the fixtures directory for the session."""
    return tmp_path_factory.mktemp("fixtures")


@pytest.fixture(scope="session")
def test_fixtures(fixtures_dir) -> dict[str, Path]:
    """Generate all test bag fixtures once per session."""
    return ensure_fixtures(fixtures_dir)


@pytest.fixture
def simple_bag(test_fixtures) -> Path:
    """Bag with one topic in a single chunk."""
    return test_fixtures["simple"]


@pytest.fixture
def multi_topic_bag(test_fixtures) -> Path:
    """Bag with several topics spread over many chunks."""
    return test_fixtures["multi_topic"]


@pytest.fixture
def bz2_bag(test_fixtures) -> Path:
    """Multi-topic bag with bz2 compressed chunks."""
    return test_fixtures["bz2_compressed"]


@pytest.fixture
def uncompressed_bag(test_fixtures) -> Path:
    """Multi-topic bag with uncompressed chunks."""
    return test_fixtures["uncompressed"]


@pytest.fixture
def unindexed_bag(test_fixtures) -> Path:
    """Multi-topic bag without its index section."""
    return test_fixtures["unindexed"]


@pytest.fixture
def truncated_bag(test_fixtures) -> Path:
    """Unindexed bag cut off in the middle of its chunks."""
    return test_fixtures["truncated"]


@pytest.fixture
def bad_last_chunk_bag(test_fixtures) -> Path:
    """Unindexed bag whose last chunk names an unknown compression."""
    return test_fixtures["bad_last_chunk"]


@pytest.fixture
def malformed_payload_bag(test_fixtures) -> Path:
    """Indexed bag with one payload that does not match its message type."""
    return test_fixtures["malformed_payload"]


@pytest.fixture
def not_a_bag(test_fixtures) -> Path:
    """File without the bag magic."""
    return test_fixtures["not_a_bag"]


@pytest.fixture
def work_copy(tmp_path):
    """Copy a fixture into a per-test directory so it can be modified."""

    def _copy(source: Path) -> Path:
        target = tmp_path / source.name
        shutil.copyfile(source, target)
        return target

    return _copy

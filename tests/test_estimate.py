"""Tests for the single-chunk compression estimate."""

from pathlib import Path

import pytest

from pyrosbag_cli.bag.reader import read_chunk_header, read_info
from pyrosbag_cli.bag.records import ChunkInfo
from pyrosbag_cli.estimate import (
    estimate_compression,
    extrapolate,
    select_representative_chunk,
)


def _chunks(count: int) -> list[ChunkInfo]:
    return [ChunkInfo(position=i * 100, start_time=i, end_time=i) for i in range(count)]


class TestSelectRepresentativeChunk:
    @pytest.mark.parametrize(
        ("count", "expected_index"),
        [(1, 0), (2, 0), (3, 1), (5, 3), (100, 98)],
    )
    def test_selection(self, count: int, expected_index: int):
        chunks = _chunks(count)

        assert select_representative_chunk(chunks) is chunks[expected_index]

    def test_empty(self):
        with pytest.raises(ValueError, match="no chunks"):
            select_representative_chunk([])


class TestExtrapolate:
    def test_scales_by_chunk_count(self):
        estimate = extrapolate(
            compression="lz4",
            chunk_uncompressed_size=1000,
            chunk_compressed_size=250,
            chunk_count=4,
            file_size=10_000,
            duration_ns=2_000_000_000,
        )

        assert estimate.uncompressed_size == 4000
        assert estimate.compressed_size == 1000
        assert estimate.uncompressed_rate == pytest.approx(2000.0)
        assert estimate.compressed_rate == pytest.approx(500.0)
        assert estimate.compression_pct == pytest.approx(25.0)

    @pytest.mark.parametrize(
        ("chunk_compressed_size", "chunk_count", "file_size"),
        [(100, 10, 500), (100, 10, 1000), (100, 10, 5000), (1, 1, 0), (7, 33, 200)],
    )
    def test_compressed_never_exceeds_file_size(
        self, chunk_compressed_size: int, chunk_count: int, file_size: int
    ):
        estimate = extrapolate("lz4", 1000, chunk_compressed_size, chunk_count, file_size, 1)

        assert estimate.compressed_size <= file_size
        assert estimate.compressed_size == min(chunk_compressed_size * chunk_count, file_size)

    def test_zero_duration_has_no_rates(self):
        estimate = extrapolate("bz2", 100, 50, 2, 1000, 0)

        assert estimate.uncompressed_rate is None
        assert estimate.compressed_rate is None
        assert estimate.compression_pct == pytest.approx(50.0)

    def test_zero_uncompressed_has_no_ratio(self):
        estimate = extrapolate("none", 0, 0, 3, 1000, 1_000_000_000)

        assert estimate.compression_pct is None


class TestEstimateCompression:
    def test_multi_topic_bag(self, multi_topic_bag: Path):
        info = read_info(multi_topic_bag)
        file_size = multi_topic_bag.stat().st_size

        with multi_topic_bag.open("rb") as f:
            sampled = read_chunk_header(f, info.chunk_infos[-2].position)
            estimate = estimate_compression(f, info, file_size)

        chunk_count = len(info.chunk_infos)
        assert estimate.compression == "lz4"
        assert estimate.chunk_count == chunk_count
        assert estimate.uncompressed_size == chunk_count * sampled.uncompressed_size
        assert estimate.compressed_size == min(chunk_count * sampled.compressed_size, file_size)
        assert estimate.uncompressed_rate is not None

    def test_single_chunk_bag(self, simple_bag: Path):
        info = read_info(simple_bag)

        with simple_bag.open("rb") as f:
            estimate = estimate_compression(f, info, simple_bag.stat().st_size)

        assert len(info.chunk_infos) == 1
        assert estimate.chunk_count == 1
        assert estimate.compressed_size <= simple_bag.stat().st_size

    def test_bz2_bag(self, bz2_bag: Path):
        info = read_info(bz2_bag)

        with bz2_bag.open("rb") as f:
            estimate = estimate_compression(f, info, bz2_bag.stat().st_size)

        assert estimate.compression == "bz2"

"""Tests for summary composition and its formatting helpers."""

from pathlib import Path

import pytest

from pyrosbag_cli.bag.reader import read_info
from pyrosbag_cli.bag.records import BagInfo, ChunkInfo, Connection
from pyrosbag_cli.estimate import extrapolate
from pyrosbag_cli.summary import CAVEAT_FOOTNOTE, summarize, topic_entries, unique_types
from pyrosbag_cli.utils import (
    bytes_to_human,
    digits,
    duration_to_str,
    format_duration,
    format_timestamp,
    round_duration,
)

NS = 1_000_000_000


def _conn(conn_id: int, topic: str, msgtype: str, md5sum: str) -> Connection:
    return Connection(id=conn_id, topic=topic, msgtype=msgtype, msgdef="", md5sum=md5sum)


def _info(connections: list[Connection], counts: dict[int, int]) -> BagInfo:
    return BagInfo(
        message_count=sum(counts.values()),
        start_time=NS,
        end_time=3 * NS,
        connections={conn.id: conn for conn in connections},
        chunk_infos=[
            ChunkInfo(position=4117, start_time=NS, end_time=3 * NS, connection_counts=counts)
        ],
    )


class TestDuration:
    @pytest.mark.parametrize(
        ("duration_ns", "expected"),
        [
            (0, "0s"),
            (12_345_678_901, "12.3s"),
            (83_456_789_012, "1m23.5s"),
            (1_234_567, "1.23ms"),
            (3_723_000_000_000, "1h2m3s"),
            (500, "500ns"),
        ],
    )
    def test_format_duration(self, duration_ns: int, expected: str):
        assert format_duration(duration_ns) == expected

    def test_rounding_scale_is_capped(self):
        # Durations above 100 s keep hundredths of 100 s, i.e. whole seconds
        assert round_duration(1234 * NS + 600_000_000) == 1235 * NS

    def test_duration_to_str_fraction(self):
        assert duration_to_str(1_500_000_000) == "1.5s"
        assert duration_to_str(90 * NS) == "1m30s"


class TestFormatting:
    def test_digits(self):
        assert digits(0) == 1
        assert digits(9) == 1
        assert digits(10) == 2
        assert digits(12345) == 5

    def test_bytes_to_human(self):
        assert bytes_to_human(None) == "N/A"
        assert bytes_to_human(1000) == "1.0kB"

    def test_format_timestamp_fraction(self):
        text = format_timestamp(1_700_000_000_126_000_000)

        assert text.endswith(".12 (1700000000.13)")


class TestSummary:
    def test_types_first_occurrence_in_id_order(self):
        connections = [
            _conn(2, "/b", "std_msgs/String", "md5-b"),
            _conn(0, "/a", "std_msgs/String", "md5-a"),
            _conn(1, "/c", "std_msgs/Int32", "md5-c"),
        ]
        info = _info(connections, {0: 1, 1: 1, 2: 1})

        types = unique_types(info)

        assert [(t.msgtype, t.md5sum) for t in types] == [
            ("std_msgs/String", "md5-a"),
            ("std_msgs/Int32", "md5-c"),
        ]

    def test_topic_counts_right_aligned(self):
        connections = [
            _conn(0, "/short", "std_msgs/String", "x"),
            _conn(1, "/much/longer", "std_msgs/Int32", "y"),
        ]
        summary = summarize("test.bag", 1000, _info(connections, {0: 5, 1: 12345}))

        lines = summary.topic_lines()

        assert lines == [
            "/short           5 msgs    : std_msgs/String",
            "/much/longer 12345 msgs    : std_msgs/Int32",
        ]

    def test_connection_without_messages_counts_zero(self):
        connections = [
            _conn(0, "/a", "std_msgs/String", "x"),
            _conn(1, "/b", "std_msgs/String", "x"),
        ]

        entries = topic_entries(_info(connections, {0: 3}))

        assert [e.message_count for e in entries] == [3, 0]

    def test_header_rows_without_estimate(self):
        info = _info([_conn(0, "/a", "std_msgs/String", "x")], {0: 3})

        rows = dict(summarize("test.bag", 2048, info).header_rows())

        assert rows["path:"] == "test.bag"
        assert rows["version:"] == "2.0"
        assert rows["duration:"] == "2s"
        assert rows["messages:"] == "3"
        assert "compression:" not in rows

    def test_caveats_mark_estimated_rows(self):
        info = _info([_conn(0, "/a", "std_msgs/String", "x")], {0: 3})
        estimate = extrapolate("lz4", 1000, 400, 1, 2048, info.duration)

        plain = summarize("test.bag", 2048, info, estimate)
        marked = summarize("test.bag", 2048, info, estimate, display_caveats=True)

        plain_rows = dict(plain.header_rows())
        assert plain_rows["compression:"] == "lz4 [1/1 chunks; 40.00%]"
        assert plain.footnote is None
        marked_labels = [label for label, _ in marked.header_rows()]
        assert "*compression:" in marked_labels
        assert "*uncompressed:" in marked_labels
        assert "*compressed:" in marked_labels
        assert "messages:" in marked_labels
        assert marked.footnote == CAVEAT_FOOTNOTE

    def test_bag_summary(self, multi_topic_bag: Path):
        info = read_info(multi_topic_bag)

        summary = summarize(str(multi_topic_bag), multi_topic_bag.stat().st_size, info)

        assert [t.msgtype for t in summary.types] == [
            "std_msgs/String",
            "std_msgs/Int32",
            "geometry_msgs/PoseStamped",
        ]
        assert [t.message_count for t in summary.topics] == [50, 50, 50, 10]
        assert summary.topic_lines()[3].startswith("/status  10 msgs    : std_msgs/String")

    def test_round_duration_non_positive(self):
        assert round_duration(0) == 0
        assert round_duration(-1_500_000_000) == -1_500_000_000
        assert format_duration(-1_500_000_000) == "-1.5s"

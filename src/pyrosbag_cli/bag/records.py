"""Immutable records describing the contents of a ROS1 bag file."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

BAG_VERSION = "2.0"


@dataclass(frozen=True, slots=True)
class Connection:
    """A registered (topic, message type) pairing, written once per bag."""

    id: int
    topic: str
    msgtype: str
    msgdef: str
    md5sum: str
    callerid: str | None = None
    latching: int | None = None

    @property
    def package(self) -> str:
        """Leading path segment of the message type, e.g. ``std_msgs``."""
        return self.msgtype.split("/")[0]


@dataclass(frozen=True, slots=True)
class Message:
    """A single message record.

    ``data`` may be a view into a buffer owned by the reader. Do not keep a
    reference to it past the handler that received the message.
    """

    conn: int
    time: int
    data: bytes | memoryview


@dataclass(frozen=True, slots=True)
class ChunkInfo:
    """Index entry describing one chunk of the bag."""

    position: int
    start_time: int
    end_time: int
    connection_counts: Mapping[int, int] = field(default_factory=dict)

    @property
    def message_count(self) -> int:
        return sum(self.connection_counts.values())

    @property
    def connection_count(self) -> int:
        return len(self.connection_counts)


@dataclass(frozen=True, slots=True)
class ChunkHeader:
    """Raw size fields sampled from a chunk record without decompressing it."""

    compression: str
    uncompressed_size: int
    compressed_size: int


@dataclass(frozen=True)
class BagInfo:
    """Summary metadata of an indexed bag, read once per file."""

    message_count: int
    start_time: int
    end_time: int
    connections: Mapping[int, Connection]
    chunk_infos: Sequence[ChunkInfo]

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time

    @property
    def sorted_connections(self) -> list[Connection]:
        return [self.connections[conn_id] for conn_id in sorted(self.connections)]

    def connection_message_counts(self) -> dict[int, int]:
        """Aggregate the per-chunk message counts of every connection."""
        counts = dict.fromkeys(self.connections, 0)
        for chunk_info in self.chunk_infos:
            for conn_id, count in chunk_info.connection_counts.items():
                counts[conn_id] = counts.get(conn_id, 0) + count
        return counts

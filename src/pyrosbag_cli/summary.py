"""Human-readable summary of a bag, assembled from its index and a compression estimate."""

from dataclasses import dataclass, field

from pyrosbag_cli.bag.records import BAG_VERSION, BagInfo
from pyrosbag_cli.estimate import CompressionEstimate
from pyrosbag_cli.utils import bytes_to_human, digits, format_duration, format_timestamp

CAVEAT_MARK = "*"
CAVEAT_FOOTNOTE = "* estimated"


@dataclass(frozen=True, slots=True)
class TypeEntry:
    msgtype: str
    md5sum: str


@dataclass(frozen=True, slots=True)
class TopicEntry:
    topic: str
    message_count: int
    msgtype: str


@dataclass(slots=True)
class BagSummary:
    path: str
    size: int
    info: BagInfo
    estimate: CompressionEstimate | None = None
    display_caveats: bool = False
    types: list[TypeEntry] = field(default_factory=list)
    topics: list[TopicEntry] = field(default_factory=list)

    def _label(self, name: str, *, estimated: bool = False) -> str:
        if estimated and self.display_caveats:
            return f"{CAVEAT_MARK}{name}:"
        return f"{name}:"

    def header_rows(self) -> list[tuple[str, str]]:
        info = self.info
        rows = [
            ("path:", self.path),
            ("version:", BAG_VERSION),
            ("duration:", format_duration(info.duration)),
            ("start:", format_timestamp(info.start_time)),
            ("end:", format_timestamp(info.end_time)),
            ("size:", bytes_to_human(self.size)),
            ("messages:", str(info.message_count)),
        ]
        if self.estimate is not None:
            rows.extend(self.compression_rows(self.estimate))
        return rows

    def compression_rows(self, estimate: CompressionEstimate) -> list[tuple[str, str]]:
        pct = estimate.compression_pct
        pct_text = "N/A" if pct is None else f"{pct:.2f}%"
        return [
            (
                self._label("compression", estimated=True),
                f"{estimate.compression} "
                f"[{estimate.chunk_count}/{estimate.chunk_count} chunks; {pct_text}]",
            ),
            (
                self._label("uncompressed", estimated=True),
                f"{bytes_to_human(estimate.uncompressed_size)} "
                f"@ {bytes_to_human(estimate.uncompressed_rate)}/s",
            ),
            (
                self._label("compressed", estimated=True),
                f"{bytes_to_human(estimate.compressed_size)} "
                f"@ {bytes_to_human(estimate.compressed_rate)}/s ({pct_text})",
            ),
        ]

    def type_lines(self) -> list[str]:
        width = max((len(entry.msgtype) for entry in self.types), default=0)
        return [f"{entry.msgtype:<{width}} [{entry.md5sum}]" for entry in self.types]

    def topic_lines(self) -> list[str]:
        """Topic lines with message counts right aligned to the widest count."""
        count_width = max((digits(entry.message_count) for entry in self.topics), default=0)
        topic_width = max((len(entry.topic) for entry in self.topics), default=0)
        return [
            f"{entry.topic:<{topic_width}} "
            f"{entry.message_count:>{count_width}} msgs    : {entry.msgtype}"
            for entry in self.topics
        ]

    @property
    def footnote(self) -> str | None:
        if self.display_caveats and self.estimate is not None:
            return CAVEAT_FOOTNOTE
        return None


def unique_types(info: BagInfo) -> list[TypeEntry]:
    """First connection of each message type, in ascending connection id order."""
    seen: set[str] = set()
    types = []
    for conn in info.sorted_connections:
        if conn.msgtype in seen:
            continue
        seen.add(conn.msgtype)
        types.append(TypeEntry(msgtype=conn.msgtype, md5sum=conn.md5sum))
    return types


def topic_entries(info: BagInfo) -> list[TopicEntry]:
    counts = info.connection_message_counts()
    return [
        TopicEntry(topic=conn.topic, message_count=counts.get(conn.id, 0), msgtype=conn.msgtype)
        for conn in info.sorted_connections
    ]


def summarize(
    path: str,
    size: int,
    info: BagInfo,
    estimate: CompressionEstimate | None = None,
    *,
    display_caveats: bool = False,
) -> BagSummary:
    return BagSummary(
        path=path,
        size=size,
        info=info,
        estimate=estimate,
        display_caveats=display_caveats,
        types=unique_types(info),
        topics=topic_entries(info),
    )

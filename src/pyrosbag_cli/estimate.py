"""Whole-file compression estimates sampled from a single chunk.

Visiting every chunk would make ``info`` as slow as a full read, so one
representative chunk is inspected and all chunks are assumed to look like it:

* the first chunk is likely polluted with connection records
* the last chunk may be partial

With at least three chunks the second to last is used, otherwise the first.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import IO

from pyrosbag_cli.bag.reader import read_chunk_header
from pyrosbag_cli.bag.records import BagInfo, ChunkInfo

_NS_PER_SEC = 1_000_000_000


def select_representative_chunk(chunk_infos: Sequence[ChunkInfo]) -> ChunkInfo:
    if not chunk_infos:
        raise ValueError("bag has no chunks")
    if len(chunk_infos) >= 3:  # noqa: PLR2004
        return chunk_infos[-2]
    return chunk_infos[0]


@dataclass(frozen=True, slots=True)
class CompressionEstimate:
    compression: str
    chunk_count: int
    uncompressed_size: int
    compressed_size: int
    uncompressed_rate: float | None
    compressed_rate: float | None

    @property
    def compression_pct(self) -> float | None:
        if self.uncompressed_size == 0:
            return None
        return 100 * self.compressed_size / self.uncompressed_size


def extrapolate(
    compression: str,
    chunk_uncompressed_size: int,
    chunk_compressed_size: int,
    chunk_count: int,
    file_size: int,
    duration_ns: int,
) -> CompressionEstimate:
    """Scale one chunk's sizes up to the whole file.

    The compressed volume is clamped to ``file_size``: an estimate must never
    claim more bytes than the file holds.
    """
    uncompressed = chunk_count * chunk_uncompressed_size
    compressed = min(chunk_count * chunk_compressed_size, file_size)
    seconds = duration_ns / _NS_PER_SEC
    return CompressionEstimate(
        compression=compression,
        chunk_count=chunk_count,
        uncompressed_size=uncompressed,
        compressed_size=compressed,
        uncompressed_rate=uncompressed / seconds if seconds > 0 else None,
        compressed_rate=compressed / seconds if seconds > 0 else None,
    )


def estimate_compression(stream: IO[bytes], info: BagInfo, file_size: int) -> CompressionEstimate:
    """Estimate compression ratio and throughput of the bag open in ``stream``.

    Raises ``ValueError`` for bags without chunks and ``ContainerError`` if the
    sampled chunk header cannot be parsed.
    """
    chunk = select_representative_chunk(info.chunk_infos)
    header = read_chunk_header(stream, chunk.position)
    return extrapolate(
        compression=header.compression,
        chunk_uncompressed_size=header.uncompressed_size,
        chunk_compressed_size=header.compressed_size,
        chunk_count=len(info.chunk_infos),
        file_size=file_size,
        duration_ns=info.duration,
    )

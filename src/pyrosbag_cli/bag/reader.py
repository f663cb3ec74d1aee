"""Reading ROS1 bag files on top of the ``rosbags`` container library.

Two scan orders are offered:

* indexed: ``rosbags.rosbag1.Reader`` reads the index at the end of the file and
  returns messages in timestamp order. Requires a valid index.
* linear: records are read in the order they physically appear in the file,
  without consulting the index. Works on bags whose recording was interrupted
  or whose index is damaged.
"""

import bz2
import io
import logging
import struct
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any

from lz4.frame import decompress as lz4_decompress
from rosbags.rosbag1 import Reader, ReaderError
from rosbags.rosbag1.reader import Header, RecordType

from pyrosbag_cli.bag.records import BagInfo, ChunkHeader, ChunkInfo, Connection, Message
from pyrosbag_cli.exceptions import (
    ContainerError,
    NotIndexedError,
    StreamCorruptionError,
    UnknownConnectionError,
    UnsupportedCompressionError,
)

logger = logging.getLogger(__name__)

MAGIC = b"#ROSBAG V2.0\n"
MAGIC_SIZE = len(MAGIC)

_UINT32 = struct.Struct("<I")


def _read_uint32(stream: IO[bytes]) -> int:
    data = stream.read(_UINT32.size)
    if len(data) < _UINT32.size:
        raise EOFError("unexpected end of data reading length field")
    return _UINT32.unpack(data)[0]


def _read_exact(stream: IO[bytes], size: int) -> bytes:
    data = stream.read(size)
    if len(data) < size:
        raise EOFError(f"expected {size} bytes, got {len(data)}")
    return data


def _skip_data(stream: IO[bytes]) -> None:
    _read_exact(stream, _read_uint32(stream))


def read_magic(stream: IO[bytes]) -> None:
    magic = stream.read(MAGIC_SIZE)
    if magic != MAGIC:
        raise ContainerError(
            f"not a ROS1 bag (version 2.0), invalid magic: {magic.decode('utf-8', 'replace')!r}"
        )


def denormalize_msgtype(msgtype: str) -> str:
    """Convert ``pkg/msg/Type`` as used by rosbags back to ROS1 ``pkg/Type``."""
    parts = msgtype.split("/")
    if len(parts) == 3 and parts[1] == "msg":  # noqa: PLR2004
        return f"{parts[0]}/{parts[2]}"
    return msgtype


def decompress_chunk(compression: str, data: bytes) -> bytes:
    if compression == "none":
        return data
    if compression == "lz4":
        return lz4_decompress(data)
    if compression == "bz2":
        return bz2.decompress(data)
    raise UnsupportedCompressionError(compression)


# ---------------------------------------------------------------------------
# Linear scan
# ---------------------------------------------------------------------------


def _read_connection(header: Header, stream: IO[bytes]) -> Connection:
    data = Header.read(stream)
    callerid = data.get_string("callerid") if "callerid" in data else None
    latching = int(data.get_string("latching") == "1") if "latching" in data else None
    return Connection(
        id=header.get_uint32("conn"),
        topic=header.get_string("topic"),
        msgtype=data.get_string("type"),
        msgdef=data.get_string("message_definition"),
        md5sum=data.get_string("md5sum"),
        callerid=callerid,
        latching=latching,
    )


class _LinearScanner:
    """Walks the records of a bag in file order, tracking connections as they appear."""

    def __init__(self, stream: IO[bytes]) -> None:
        self._stream = stream
        self.connections: dict[int, Connection] = {}
        self.chunks_read = 0

    def _record(
        self, header: Header, src: IO[bytes], offset: int
    ) -> Iterator[tuple[Connection, Message]]:
        op = header.get_uint8("op")
        if op == RecordType.CONNECTION:
            conn = _read_connection(header, src)
            # Index section repeats connection records; first occurrence wins
            self.connections.setdefault(conn.id, conn)
        elif op == RecordType.MSGDATA:
            conn_id = header.get_uint32("conn")
            time = header.get_time("time")
            data = _read_exact(src, _read_uint32(src))
            connection = self.connections.get(conn_id)
            if connection is None:
                raise UnknownConnectionError(offset, conn_id)
            yield connection, Message(conn=conn_id, time=time, data=data)
        else:
            _skip_data(src)

    def _read_chunk(self, header: Header, offset: int) -> bytes:
        compression = header.get_string("compression")
        size = header.get_uint32("size")
        payload = _read_exact(self._stream, _read_uint32(self._stream))
        try:
            data = decompress_chunk(compression, payload)
        except UnsupportedCompressionError as e:
            raise StreamCorruptionError(offset, str(e)) from e
        except (RuntimeError, OSError, ValueError) as e:
            raise StreamCorruptionError(
                offset, f"failed to decompress {compression} chunk: {e}"
            ) from e
        if len(data) != size:
            raise StreamCorruptionError(
                offset, f"chunk decompressed to {len(data)} bytes, header says {size}"
            )
        self.chunks_read += 1
        return data

    def _chunk_records(self, data: bytes, offset: int) -> Iterator[tuple[Connection, Message]]:
        chunk = io.BytesIO(data)
        while chunk.tell() < len(data):
            # Offsets inside a chunk refer to the decompressed data
            with _corruption_at(offset, f"record at chunk byte {chunk.tell()}"):
                inner = Header.read(chunk)
                records = list(self._record(inner, chunk, offset))
            yield from records

    def scan(self) -> Iterator[tuple[Connection, Message]]:
        stream = self._stream
        read_magic(stream)
        with _corruption_at(stream.tell(), "bag header"):
            Header.read(stream, RecordType.BAGHEADER)
            _skip_data(stream)

        while True:
            offset = stream.tell()
            if not stream.read(1):
                break
            stream.seek(offset)

            chunk_data = None
            records: list[tuple[Connection, Message]] = []
            with _corruption_at(offset):
                header = Header.read(stream)
                if header.get_uint8("op") == RecordType.CHUNK:
                    chunk_data = self._read_chunk(header, offset)
                else:
                    records = list(self._record(header, stream, offset))

            if chunk_data is not None:
                yield from self._chunk_records(chunk_data, offset)
            else:
                yield from records

        logger.debug(
            f"Linear scan finished: {self.chunks_read} chunks, "
            f"{len(self.connections)} connections"
        )


@contextmanager
def _corruption_at(offset: int, what: str = "") -> Iterator[None]:
    try:
        yield
    except (ReaderError, EOFError, struct.error, KeyError, ValueError) as e:
        reason = str(e) or type(e).__name__
        raise StreamCorruptionError(offset, f"{what}: {reason}" if what else reason) from e


def scan_linear(stream: IO[bytes]) -> Iterator[tuple[Connection, Message]]:
    """Yield (connection, message) pairs in physical file order.

    The index is never consulted. Any decoding failure raises
    :class:`StreamCorruptionError` after all preceding messages have been yielded.
    """
    return _LinearScanner(stream).scan()


# ---------------------------------------------------------------------------
# Indexed access
# ---------------------------------------------------------------------------


def _check_magic(path: Path) -> None:
    with path.open("rb") as f:
        read_magic(f)


def _connection_from_rosbags(conn: Any) -> Connection:
    ext = conn.ext
    return Connection(
        id=conn.id,
        topic=conn.topic,
        msgtype=denormalize_msgtype(conn.msgtype),
        msgdef=conn.msgdef.data,
        md5sum=conn.digest,
        callerid=getattr(ext, "callerid", None),
        latching=getattr(ext, "latching", None),
    )


@contextmanager
def open_indexed(path: str | Path) -> Iterator[Reader]:
    """Open a bag through its index, raising :class:`NotIndexedError` if unusable."""
    path = Path(path)
    _check_magic(path)
    reader = Reader(path)
    try:
        reader.open()
    except ReaderError as e:
        raise NotIndexedError(str(path), str(e)) from e
    try:
        yield reader
    finally:
        reader.close()


def _info_from_reader(reader: Reader) -> BagInfo:
    connections = {conn.id: _connection_from_rosbags(conn) for conn in reader.connections}
    chunk_infos = [
        ChunkInfo(
            position=chunk_info.pos,
            start_time=chunk_info.start_time,
            end_time=chunk_info.end_time,
            connection_counts=dict(chunk_info.connection_counts),
        )
        for chunk_info in reader.chunk_infos
    ]
    return BagInfo(
        message_count=reader.message_count,
        start_time=reader.start_time if reader.message_count else 0,
        end_time=reader.end_time if reader.message_count else 0,
        connections=connections,
        chunk_infos=chunk_infos,
    )


def read_info(path: str | Path) -> BagInfo:
    """Read the summary metadata of an indexed bag."""
    with open_indexed(path) as reader:
        return _info_from_reader(reader)


def is_indexed(path: str | Path) -> bool:
    """Return True if the bag's index can be read."""
    try:
        read_info(path)
    except ContainerError as e:
        logger.debug(f"{path} is not indexed: {e}")
        return False
    return True


def iter_indexed(path: str | Path) -> Iterator[tuple[Connection, Message]]:
    """Yield (connection, message) pairs in timestamp order using the index."""
    with open_indexed(path) as reader:
        connections = {conn.id: _connection_from_rosbags(conn) for conn in reader.connections}
        try:
            for conn, timestamp, data in reader.messages():
                yield connections[conn.id], Message(conn=conn.id, time=timestamp, data=data)
        except ReaderError as e:
            raise ContainerError(f"failed to read message: {e}") from e


def read_messages(
    path: str | Path, *, linear: bool = False
) -> Iterator[tuple[Connection, Message]]:
    """Yield every message of the bag at ``path`` in the requested scan order."""
    if not linear:
        yield from iter_indexed(path)
        return
    with Path(path).open("rb") as f:
        yield from scan_linear(f)


# ---------------------------------------------------------------------------
# Raw chunk headers
# ---------------------------------------------------------------------------


def read_chunk_header(stream: IO[bytes], position: int) -> ChunkHeader:
    """Read the size fields of the chunk record at ``position`` without decompressing it."""
    stream.seek(position)
    try:
        header = Header.read(stream, RecordType.CHUNK)
    except ReaderError as e:
        raise ContainerError(f"failed to read chunk header at offset {position}: {e}") from e
    try:
        compression = header.get_string("compression")
    except ReaderError as e:
        raise ContainerError(f"failed to read compression: {e}") from e
    try:
        uncompressed_size = header.get_uint32("size")
    except ReaderError as e:
        raise ContainerError(f"failed to read size: {e}") from e
    try:
        compressed_size = _read_uint32(stream)
    except EOFError as e:
        raise ContainerError(f"failed to read chunk length: {e}") from e
    return ChunkHeader(
        compression=compression,
        uncompressed_size=uncompressed_size,
        compressed_size=compressed_size,
    )

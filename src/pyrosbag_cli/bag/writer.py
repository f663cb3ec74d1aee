"""Output sink writing ROS1 bags through ``rosbags.rosbag1.Writer``."""

import logging
from pathlib import Path
from types import TracebackType
from typing import Any, Protocol

from rosbags.rosbag1 import Writer, WriterError
from rosbags.typesys.msg import normalize_msgtype

from pyrosbag_cli.bag.records import Connection, Message
from pyrosbag_cli.exceptions import ContainerError, UnsupportedCompressionError

logger = logging.getLogger(__name__)

COMPRESSION_FORMATS: dict[str, Writer.CompressionFormat | None] = {
    "lz4": Writer.CompressionFormat.LZ4,
    "bz2": Writer.CompressionFormat.BZ2,
    "none": None,
}


class MessageSink(Protocol):
    """Anything that accepts connection and message records in caller-chosen order."""

    def write_connection(self, conn: Connection) -> None: ...

    def write_message(self, msg: Message) -> None: ...


class BagWriter:
    """Write connections and messages to a new bag file.

    Connection ids of the input are mapped to the ids ``rosbags`` assigns in the
    output. The chunk and connection index is written by :meth:`close`; a bag
    that was never closed is not indexed.
    """

    def __init__(self, path: str | Path, compression: str = "lz4") -> None:
        if compression not in COMPRESSION_FORMATS:
            raise UnsupportedCompressionError(compression)
        self.path = Path(path)
        self._writer = Writer(self.path)
        fmt = COMPRESSION_FORMATS[compression]
        if fmt is not None:
            self._writer.set_compression(fmt)
        self._connections: dict[int, Any] = {}
        self._by_attributes: dict[tuple[Any, ...], Any] = {}
        self.message_count = 0
        self._opened = False

    def open(self) -> "BagWriter":
        try:
            self._writer.open()
        except WriterError as e:
            raise ContainerError(f"failed to create writer: {e}") from e
        self._opened = True
        return self

    def write_connection(self, conn: Connection) -> None:
        # rosbags refuses to add the same connection twice
        key = (conn.topic, conn.msgtype, conn.msgdef, conn.md5sum, conn.callerid, conn.latching)
        existing = self._by_attributes.get(key)
        if existing is not None:
            self._connections[conn.id] = existing
            return
        try:
            out_conn = self._writer.add_connection(
                conn.topic,
                normalize_msgtype(conn.msgtype),
                msgdef=conn.msgdef,
                md5sum=conn.md5sum,
                callerid=conn.callerid,
                latching=conn.latching,
            )
            self._connections[conn.id] = out_conn
            self._by_attributes[key] = out_conn
        except WriterError as e:
            raise ContainerError(f"failed to write connection {conn.topic}: {e}") from e

    def write_message(self, msg: Message) -> None:
        out_conn = self._connections.get(msg.conn)
        if out_conn is None:
            raise ContainerError(f"message written before its connection {msg.conn}")
        try:
            self._writer.write(out_conn, msg.time, bytes(msg.data))
        except WriterError as e:
            raise ContainerError(f"failed to write message: {e}") from e
        self.message_count += 1

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def close(self) -> None:
        """Flush the index and close the file."""
        if not self._opened:
            return
        self._opened = False
        try:
            self._writer.close()
        except WriterError as e:
            raise ContainerError(f"failed to close writer: {e}") from e
        logger.debug(
            f"Wrote {self.message_count} messages on {self.connection_count} connections "
            f"to {self.path}"
        )

    def __enter__(self) -> "BagWriter":
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

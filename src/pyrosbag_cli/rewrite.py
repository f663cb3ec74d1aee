"""Rewrite bags connection-by-connection and reindex damaged files."""

import logging
import shutil
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO

from rich.console import Console, ConsoleOptions, RenderResult
from rich.text import Text

from pyrosbag_cli.bag.reader import is_indexed, scan_linear
from pyrosbag_cli.bag.records import Connection, Message
from pyrosbag_cli.bag.writer import BagWriter, MessageSink
from pyrosbag_cli.exceptions import StreamCorruptionError

logger = logging.getLogger(__name__)

ORIGINAL_SUFFIX = ".orig"


class ConnectionRegistry:
    """Tracks which connection ids have already been written to an output."""

    def __init__(self) -> None:
        self._written: set[int] = set()

    def __contains__(self, conn_id: int) -> bool:
        return conn_id in self._written

    def __len__(self) -> int:
        return len(self._written)

    def mark_written(self, conn_id: int) -> bool:
        """Record ``conn_id`` as written. Returns False if it already was."""
        if conn_id in self._written:
            return False
        self._written.add(conn_id)
        return True


@dataclass(slots=True)
class RewriteResult:
    """Outcome of a rewrite pass.

    ``error`` holds the error that stopped the scan early, if any. Everything
    counted here was written before that point.
    """

    connections_written: int = 0
    messages_written: int = 0
    error: StreamCorruptionError | None = None

    @property
    def complete(self) -> bool:
        return self.error is None

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        lines = Text()
        lines.append(f"Messages:     {self.messages_written:,} written\n")
        lines.append(f"Connections:  {self.connections_written} written")
        if self.error is not None:
            lines.append("\nStopped at:   ", style="yellow")
            lines.append(str(self.error), style="yellow")
        yield lines


class RewriteEngine:
    """Copies connections and messages into a sink in arrival order.

    A connection record is written right before the first message that
    references it, and never again. The sink is not closed: finalizing the
    output is up to the caller.
    """

    def __init__(self, sink: MessageSink) -> None:
        self._sink = sink
        self._registry = ConnectionRegistry()

    def _write(self, conn: Connection, msg: Message, result: RewriteResult) -> None:
        if self._registry.mark_written(conn.id):
            self._sink.write_connection(conn)
            result.connections_written += 1
        self._sink.write_message(msg)
        result.messages_written += 1

    def rewrite_messages(self, messages: Iterable[tuple[Connection, Message]]) -> RewriteResult:
        """Write every pair from ``messages`` until it is exhausted or turns out corrupt.

        Errors other than :class:`StreamCorruptionError` propagate.
        """
        result = RewriteResult()
        try:
            for conn, msg in messages:
                self._write(conn, msg, result)
        except StreamCorruptionError as e:
            logger.debug(f"Rewrite stopped after {result.messages_written} messages: {e}")
            result.error = e
        return result

    def rewrite(self, stream: IO[bytes]) -> RewriteResult:
        """Rewrite the bag in ``stream``, reading it in physical order.

        The index of the input is never used, so bags with a missing or
        damaged index can be copied.
        """
        return self.rewrite_messages(scan_linear(stream))


@dataclass(slots=True)
class ReindexOptions:
    compression: str = "lz4"
    force: bool = False


@dataclass(slots=True)
class ReindexResult:
    path: Path
    skipped: bool = False
    original_path: Path | None = None
    rewrite: RewriteResult = field(default_factory=RewriteResult)


def original_path_for(path: Path) -> Path:
    return path.with_name(path.name + ORIGINAL_SUFFIX)


def reindex_bag(path: str | Path, options: ReindexOptions) -> ReindexResult:
    """Rewrite the bag at ``path`` into a freshly indexed file.

    Already indexed bags are left alone unless ``options.force`` is set. The new
    content goes to a temporary file first. Only after it has been fully
    written and closed is the original moved to ``<path>.orig`` and the new file
    moved into its place.
    """
    path = Path(path)
    if not options.force and is_indexed(path):
        logger.info(f"{path} is already indexed")
        return ReindexResult(path=path, skipped=True)

    tmp_dir = Path(tempfile.mkdtemp(prefix="pyrosbag-"))
    tmp_path = tmp_dir / f"{path.name}.reindex.temp"
    try:
        with path.open("rb") as f:
            writer = BagWriter(tmp_path, options.compression).open()
            try:
                result = RewriteEngine(writer).rewrite(f)
            finally:
                writer.close()
    except BaseException:
        shutil.rmtree(tmp_dir, ignore_errors=True)
        raise

    if result.error is not None:
        # The input is expected to be damaged; what was written so far is kept
        logger.warning(f"Detected error in input: {result.error}")

    original = original_path_for(path)
    path.rename(original)
    shutil.move(tmp_path, path)
    tmp_dir.rmdir()

    logger.info(f"{path} reindexed, original moved to {original}")
    return ReindexResult(path=path, original_path=original, rewrite=result)

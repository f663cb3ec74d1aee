"""Opening bag files for reading."""

import io
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO, cast


@contextmanager
def open_input(path: str | Path, buffering: int = 8192) -> Iterator[tuple[IO[bytes], int]]:
    """Open ``path`` for binary reading and yield the stream with the file size."""
    file_path = Path(path)
    raw_stream = file_path.open("rb", buffering=0)
    try:
        size = file_path.stat().st_size
        final_stream: io.RawIOBase | io.BufferedReader
        if buffering == 0:
            final_stream = raw_stream
        else:
            final_stream = io.BufferedReader(raw_stream, buffer_size=buffering)
        yield cast("IO[bytes]", final_stream), size
    finally:
        raw_stream.close()

"""Cat command for pyrosbag-cli - stream bag messages to stdout."""

import logging
import sys

from rich.console import Console
from rich.markup import escape

from pyrosbag_cli.bag.reader import read_messages
from pyrosbag_cli.exceptions import BagError
from pyrosbag_cli.transcode import MessageHandler, TranscodingCache, simple_handler
from pyrosbag_cli.types_manual import CatOptions, LinearOption, SimpleOption

logger = logging.getLogger(__name__)

console_err = Console(stderr=True)  # Use stderr for errors


def _make_handler(options: CatOptions) -> MessageHandler:
    if options.simple:
        return simple_handler(sys.stdout)
    return TranscodingCache(sys.stdout)


def extract(file: str, options: CatOptions) -> int:
    """Feed every message of ``file`` to the handler selected by ``options``.

    Returns the number of messages written.
    """
    handler = _make_handler(options)
    count = 0
    for conn, msg in read_messages(file, linear=options.linear):
        handler(conn, msg)
        count += 1
    logger.debug(f"Extracted {count} messages from {file}")
    return count


def cat(
    file: str,
    *,
    linear: LinearOption = False,
    simple: SimpleOption = False,
) -> None:
    """Print the messages of a bag file to stdout.

    Each message is printed as one JSON line of the form
    ``{"topic": ..., "time": ..., "data": {...}}`` with ``data`` decoded
    according to the connection's message definition.

    Parameters
    ----------
    file
        Path to the bag file.
    linear
        Read records in the order they appear in the file instead of using the
        index. Works on bags that were never reindexed.
    simple
        Print time, topic, type and the first bytes of each message instead of
        decoding it.

    Examples
    --------
    ```
    pyrosbag-cli cat recording.bag > messages.jsonl
    pyrosbag-cli cat --linear --simple interrupted.bag
    ```
    """
    try:
        extract(file, CatOptions(linear=linear, simple=simple))
    except BagError as e:
        console_err.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)
    except OSError as e:
        console_err.print(f"[red]Error reading {file}: {escape(str(e))}[/red]")
        sys.exit(1)

"""Info command - report statistics about a bag file."""

import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from pyrosbag_cli.bag.reader import read_info
from pyrosbag_cli.bag.records import BagInfo
from pyrosbag_cli.estimate import CompressionEstimate, estimate_compression
from pyrosbag_cli.exceptions import BagError, ContainerError
from pyrosbag_cli.input_handler import open_input
from pyrosbag_cli.summary import BagSummary, summarize
from pyrosbag_cli.types_manual import DisplayCaveatsOption, InfoOptions

logger = logging.getLogger(__name__)

console = Console()
console_err = Console(stderr=True)


def _estimate(file: str, info: BagInfo) -> CompressionEstimate | None:
    """Sample one chunk for compression figures, or None if that is not possible."""
    if not info.chunk_infos:
        return None
    try:
        with open_input(file) as (f, file_size):
            return estimate_compression(f, info, file_size)
    except (ContainerError, ValueError, OSError) as e:
        logger.debug(f"Compression estimate failed for {file}: {e}")
        console_err.print(
            f"[yellow]Warning: failed to estimate compression, "
            f"omitting compression figures: {escape(str(e))}[/yellow]"
        )
        return None


def build_summary(file: str, options: InfoOptions) -> BagSummary:
    """Read the index of ``file`` and compose its summary.

    Raises ``BagError`` if the index cannot be read and ``OSError`` if the file
    cannot be opened.
    """
    info = read_info(file)
    return summarize(
        file,
        Path(file).stat().st_size,
        info,
        _estimate(file, info),
        display_caveats=options.display_caveats,
    )


def _display_summary(summary: BagSummary) -> None:
    info_table = Table.grid(padding=(0, 1))
    info_table.add_column(style="bold blue", no_wrap=True)
    info_table.add_column()
    for label, value in summary.header_rows():
        info_table.add_row(label, Text(value))
    console.print(info_table)

    listing_table = Table.grid(padding=(0, 1))
    listing_table.add_column(style="bold blue", no_wrap=True)
    listing_table.add_column()
    listing_table.add_row("types:", Text("\n".join(summary.type_lines())))
    listing_table.add_row("topics:", Text("\n".join(summary.topic_lines())))
    console.print(listing_table)

    if summary.footnote:
        console.print(Text(summary.footnote))


def info(
    file: str,
    *,
    display_caveats: DisplayCaveatsOption = False,
) -> None:
    """Print summary information about a bag file.

    Compression statistics are estimates sampled from a single chunk.

    Parameters
    ----------
    file
        Path to the bag file.
    display_caveats
        Mark estimated values with an asterisk.

    Examples
    --------
    ```
    pyrosbag-cli info recording.bag
    pyrosbag-cli info --display-caveats recording.bag
    ```
    """
    try:
        summary = build_summary(file, InfoOptions(display_caveats=display_caveats))
    except BagError as e:
        console_err.print(f"[red]Failed to read info: {escape(str(e))}[/red]")
        sys.exit(1)
    except OSError as e:
        console_err.print(f"[red]Failed to open input file: {escape(str(e))}[/red]")
        sys.exit(1)

    _display_summary(summary)

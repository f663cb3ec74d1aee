"""List command for pyrosbag-cli - list various bag file records."""

import sys

from cyclopts import App
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pyrosbag_cli.bag.reader import read_info
from pyrosbag_cli.bag.records import BagInfo
from pyrosbag_cli.exceptions import BagError

console = Console()
console_err = Console(stderr=True)

# Create the list sub-app
list_app = App(help="List records in a bag file")


def _read_bag_info(file_path: str) -> BagInfo:
    """Read bag index info, exiting with an error if the bag cannot be read."""
    try:
        return read_info(file_path)
    except BagError as e:
        console_err.print(f"[red]Failed to read info: {escape(str(e))}[/red]")
        sys.exit(1)
    except OSError as e:
        console_err.print(f"[red]Failed to open input file: {escape(str(e))}[/red]")
        sys.exit(1)


def chunks(
    file: str,
) -> None:
    """List chunks in a bag file.

    Parameters
    ----------
    file : str
        Path to the bag file.
    """
    info = _read_bag_info(file)

    if not info.chunk_infos:
        console.print("[yellow]No chunks found[/yellow]")
        return

    table = Table()
    table.add_column("offset", style="cyan", justify="right", no_wrap=True)
    table.add_column("start", style="blue", no_wrap=True)
    table.add_column("end", style="blue", no_wrap=True)
    table.add_column("connections", style="green", justify="right")
    table.add_column("messages", style="yellow", justify="right")

    for chunk_info in info.chunk_infos:
        table.add_row(
            str(chunk_info.position),
            str(chunk_info.start_time),
            str(chunk_info.end_time),
            str(chunk_info.connection_count),
            str(chunk_info.message_count),
        )

    console.print(table)


def connections(
    file: str,
) -> None:
    """List connections in a bag file.

    Parameters
    ----------
    file : str
        Path to the bag file.
    """
    info = _read_bag_info(file)

    if not info.connections:
        console.print("[yellow]No connections found[/yellow]")
        return

    counts = info.connection_message_counts()

    table = Table()
    table.add_column("id", style="green", justify="right")
    table.add_column("topic", style="bold white")
    table.add_column("type", style="cyan")
    table.add_column("md5sum", style="yellow")
    table.add_column("messages", style="magenta", justify="right")
    table.add_column("callerid", style="blue")

    for conn in info.sorted_connections:
        table.add_row(
            str(conn.id),
            conn.topic,
            conn.msgtype,
            conn.md5sum,
            str(counts.get(conn.id, 0)),
            conn.callerid or "",
        )

    console.print(table)


list_app.command(chunks, name="chunks")
list_app.command(connections, name="connections")

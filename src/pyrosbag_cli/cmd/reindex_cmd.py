"""Reindex command - rebuild the index of an unindexed or damaged bag."""

from rich.console import Console
from rich.markup import escape

from pyrosbag_cli.exceptions import BagError
from pyrosbag_cli.rewrite import ReindexOptions, reindex_bag
from pyrosbag_cli.types_manual import DEFAULT_COMPRESSION, CompressionOption, ForceOption

console = Console()
console_err = Console(stderr=True)


def reindex(
    file: str,
    *,
    compression: CompressionOption = DEFAULT_COMPRESSION,
    force: ForceOption = False,
) -> int:
    """Reindex a bag file.

    The bag is rewritten record by record into a new, fully indexed file. The
    original is kept next to it with an ``.orig`` suffix. Bags whose recording
    was interrupted are rewritten up to the first damaged record.

    Parameters
    ----------
    file
        Path to the bag file to reindex.
    compression
        Compression algorithm for the chunks of the new file.
    force
        Reindex even if the bag already has a readable index.

    Examples
    --------
    ```
    pyrosbag-cli reindex interrupted.bag
    pyrosbag-cli reindex --force --compression bz2 recording.bag
    ```
    """
    options = ReindexOptions(compression=compression.value, force=force)
    try:
        result = reindex_bag(file, options)
    except BagError as e:
        console_err.print(f"[red]Error during reindex: {escape(str(e))}[/red]")
        return 1
    except OSError as e:
        console_err.print(f"[red]Failed to reindex {escape(file)}: {escape(str(e))}[/red]")
        return 1

    if result.skipped:
        console_err.print(f"{escape(file)} is already indexed, use --force to reindex anyway")
        return 0

    console.print(
        f"[green]✓ {escape(file)} reindexed. "
        f"Original file moved to {escape(str(result.original_path))}[/green]"
    )
    console.print(result.rewrite)
    return 0

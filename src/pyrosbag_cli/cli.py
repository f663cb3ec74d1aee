"""Main CLI entry point for pyrosbag-cli using Cyclopts."""

import logging
import sys
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console
from rich.logging import RichHandler

from pyrosbag_cli.cmd import cat_cmd, info_cmd, list_cmd, reindex_cmd

app = App(
    name="pyrosbag-cli",
    help="CLI tool for inspecting and repairing ROS1 bag files.",
    help_format="rich",
)


# Register all commands
app.command(name="cat")(cat_cmd.cat)
app.command(name="info")(info_cmd.info)
app.command(name="reindex")(reindex_cmd.reindex)

# Command groups
app.command(list_cmd.list_app, name="list")


def setup_logging(*, verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=Console(stderr=True),
                rich_tracebacks=True,
                tracebacks_show_locals=verbose,
                show_path=verbose,
            )
        ],
        force=True,
    )


@app.meta.default
def launcher(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    verbose: Annotated[bool, Parameter(name=["-v", "--verbose"])] = False,
) -> int | None:
    """Run a command with logging configured.

    Parameters
    ----------
    verbose
        Enable debug logging.
    """
    setup_logging(verbose=verbose)
    return app(tokens)


def main() -> None:
    result = app.meta()
    if isinstance(result, int):
        sys.exit(result)


if __name__ == "__main__":
    main()

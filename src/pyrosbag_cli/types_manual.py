"""Manual type definitions for the bag CLI (enums, constants, and CLI parameters)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated

from cyclopts import Group, Parameter


class CompressionType(str, Enum):
    """Chunk compression algorithms a bag can be written with."""

    LZ4 = "lz4"
    BZ2 = "bz2"
    NONE = "none"


DEFAULT_COMPRESSION = CompressionType.LZ4

# Parameter groups
OUTPUT_OPTIONS_GROUP = Group("Output Options")
READ_OPTIONS_GROUP = Group("Read Options")
DISPLAY_GROUP = Group("Display Options")

CompressionOption = Annotated[
    CompressionType,
    Parameter(
        name=["--compression"],
        group=OUTPUT_OPTIONS_GROUP,
    ),
]

ForceOption = Annotated[
    bool,
    Parameter(
        name=["-f", "--force"],
        group=OUTPUT_OPTIONS_GROUP,
    ),
]

LinearOption = Annotated[
    bool,
    Parameter(
        name=["--linear"],
        group=READ_OPTIONS_GROUP,
    ),
]

SimpleOption = Annotated[
    bool,
    Parameter(
        name=["--simple"],
        group=DISPLAY_GROUP,
    ),
]

DisplayCaveatsOption = Annotated[
    bool,
    Parameter(
        name=["--display-caveats"],
        group=DISPLAY_GROUP,
    ),
]


@dataclass(slots=True)
class CatOptions:
    linear: bool = False
    simple: bool = False


@dataclass(slots=True)
class InfoOptions:
    display_caveats: bool = False

"""Reading and validating ``.cub`` scene files."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Union

from cub3d.errors import MapError

MANDATORY_TILES = "01NEWS "
BONUS_TILES = "01NEWSHPDCedp "
CONFIG_KEYS = ("NO ", "SO ", "WE ", "EA ", "F ", "C ")
MAP_SUFFIX = ".cub"
TEXTURE_SUFFIX = ".xpm"

_PLAYER_TILES = "NEWS"
_DIGITS = frozenset("0123456789")
_CONFIG_TRIM = " \t\n"

PathLike = Union[str, "os.PathLike[str]"]


@dataclass
class MapData:
    """A parsed scene: six ordered configuration lines and the tile grid.

    ``config`` holds the trimmed lines in the order NO, SO, WE, EA, F, C.
    ``grid`` holds one mutable list of characters per map row.
    """

    config: tuple[str, ...]
    grid: list[list[str]]
    width: int
    height: int

    def texture_paths(self) -> tuple[str, ...]:
        """Texture paths for the north, south, west and east walls."""
        return tuple(line[2:].lstrip(" ") for line in self.config[:4])

    def colors(self) -> tuple[int, int]:
        """The floor and ceiling colours as 0xRRGGBB integers."""
        floor = parse_color(self.config[4][1:].lstrip(" "))
        ceiling = parse_color(self.config[5][1:].lstrip(" "))
        return floor, ceiling


def _is_number(text: str) -> bool:
    return all(ch in _DIGITS for ch in text)


def parse_color(text: str) -> int:
    """Parse "R,G,B" into a 0xRRGGBB integer.

    Empty fields between commas are ignored. Reading stops at the first
    field that is not a decimal number in 0..255; exactly three fields
    must have been read by then. Raises MapError otherwise.
    """
    channels: list[int] = []
    for piece in (p for p in text.split(",") if p):
        if not _is_number(piece):
            break
        value = int(piece)
        if not 0 <= value <= 255:
            break
        channels.append(value)
    if len(channels) != 3:
        raise MapError("Wrong Colors")
    red, green, blue = channels
    return red << 16 | green << 8 | blue


def check_texture_path(path: str) -> str:
    """Check that path names a readable ``.xpm`` file and return it.

    Raises MapError when the name has no extension, cannot be opened or
    does not end in ``.xpm``.
    """
    if "." not in path[1:]:
        raise MapError("Wrong Textures")
    try:
        fd = os.open(path, os.O_RDONLY)
    except OSError:
        raise MapError("Wrong Textures") from None
    os.close(fd)
    if not path.endswith(TEXTURE_SUFFIX):
        raise MapError("Wrong Textures")
    return path


def _read_config(lines: list[str]) -> tuple[list[str], int]:
    """Collect the first six non-blank lines; return them and the next index."""
    found: list[str] = []
    for index, line in enumerate(lines):
        text = line.strip(_CONFIG_TRIM)
        if text:
            found.append(text)
        if len(found) == len(CONFIG_KEYS):
            return found, index + 1
    raise MapError("Invalid Map")


def _order_config(entries: list[str]) -> tuple[str, ...]:
    ordered = list(entries)
    for pos, key in enumerate(CONFIG_KEYS):
        match = next(
            (i for i, entry in enumerate(ordered) if entry.startswith(key)), None
        )
        if match is None:
            raise MapError("Invalid Map")
        ordered[pos], ordered[match] = ordered[match], ordered[pos]
    return tuple(ordered)


def parse_map_lines(lines: Iterable[str], tiles: str = MANDATORY_TILES) -> MapData:
    """Parse the lines of a scene file, each keeping its trailing newline.

    The six configuration lines come first; the line right after the last
    of them must be empty, and every following line is a map row made only
    of characters from ``tiles`` with exactly one player tile in total.
    Raises MapError when any of this does not hold.
    """
    all_lines = list(lines)
    entries, after = _read_config(all_lines)
    config = _order_config(entries)
    if after < len(all_lines) and not all_lines[after].startswith("\n"):
        raise MapError("Invalid Map")

    allowed = frozenset(tiles)
    rows: list[str] = []
    players = 0
    for line in all_lines[after + 1:]:
        row = line.strip("\n")
        if not set(row) <= allowed:
            raise MapError("Invalid Map")
        players += sum(ch in _PLAYER_TILES for ch in row)
        rows.append(row)
    if players != 1 or not rows:
        raise MapError("Invalid Map")

    return MapData(
        config=config,
        grid=[list(row) for row in rows],
        width=max(len(row) for row in rows),
        height=len(rows),
    )


def _split_lines(text: str) -> list[str]:
    """Split on newlines only, keeping each newline on its line."""
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def read_map(path: PathLike, tiles: str = MANDATORY_TILES) -> MapData:
    """Read and parse the ``.cub`` scene file at path."""
    name = os.fspath(path)
    if not name.endswith(MAP_SUFFIX):
        raise MapError("Invalid Map")
    try:
        raw = Path(name).read_bytes()
    except OSError:
        raise MapError("Invalid Map") from None
    text = raw.decode("utf-8", errors="surrogateescape")
    return parse_map_lines(_split_lines(text), tiles)
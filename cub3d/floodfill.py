"""Check that the area reachable by the player is enclosed by walls."""

from __future__ import annotations

from typing import Iterable, Sequence

from cub3d.errors import MapError

_PLAYER_TILES = "NEWS"


def find_player(grid: Iterable[Sequence[str]]) -> tuple[int, int]:
    """Return (x, y) of the player tile; the last row holding one wins.

    Returns (0, 0) when there is no player tile.
    """
    start = (0, 0)
    for y, row in enumerate(grid):
        x = next((i for i, ch in enumerate(row) if ch in _PLAYER_TILES), None)
        if x is not None:
            start = (x, y)
    return start


def check_closed(grid: Iterable[Sequence[str]]) -> frozenset[tuple[int, int]]:
    """Flood the map from the player and return the cells reached.

    Raises MapError when the flood reaches a space or leaves the map.
    """
    rows = ["".join(row) for row in grid]
    height = len(rows)
    filled: set[tuple[int, int]] = set()
    pending = [find_player(rows)]
    while pending:
        x, y = pending.pop()
        if x < 0 or y < 0 or y >= height or x >= len(rows[y]) or rows[y][x] == " ":
            raise MapError("Invalid Map(Not Wall Closed)")
        if rows[y][x] == "1" or (x, y) in filled:
            continue
        filled.add((x, y))
        pending.extend(((x + 1, y), (x - 1, y), (x, y + 1), (x, y - 1)))
    return frozenset(filled)
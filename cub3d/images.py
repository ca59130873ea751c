"""Pixel buffers, XPM loading and the game's sprite table."""

from __future__ import annotations

import enum
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Union

import numpy as np
from PIL import ImageColor

from cub3d.errors import CubError
from cub3d.mapfile import check_texture_path

WIDTH = 800
HEIGHT = 600
SPRITE_SIZE = 64
TRANSPARENT = 0xFF000000

PathLike = Union[str, "os.PathLike[str]"]


@dataclass(eq=False)
class Image:
    """A width x height buffer of 32-bit 0xAARRGGBB pixels."""

    width: int
    height: int
    pixels: Optional[np.ndarray] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("image dimensions must not be negative")
        if self.pixels is None:
            self.pixels = np.zeros((self.height, self.width), dtype=np.uint32)
        else:
            self.pixels = np.asarray(self.pixels, dtype=np.uint32)
            if self.pixels.shape != (self.height, self.width):
                raise ValueError("pixel array does not match the image size")

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_pixel(self, x: int, y: int) -> int:
        """Return the pixel at (x, y); raise IndexError outside the image."""
        if not self.in_bounds(x, y):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height}")
        return int(self.pixels[y, x])

    def put_pixel(self, x: int, y: int, color: int) -> None:
        """Store color at (x, y); writes outside the image are dropped."""
        if self.in_bounds(x, y):
            self.pixels[y, x] = color & 0xFFFFFFFF

    def fill(self, color: int) -> None:
        self.pixels[:, :] = color & 0xFFFFFFFF

    def copy(self) -> Image:
        return Image(self.width, self.height, self.pixels.copy())


class SpriteId(enum.IntEnum):
    """Indices of every sprite; animation frames are consecutive."""

    NO = 0
    SO = enum.auto()
    WE = enum.auto()
    EA = enum.auto()
    DOOR1 = enum.auto()
    OPEN_DOOR1 = enum.auto()
    OPEN_DOOR2 = enum.auto()
    OPEN_DOOR3 = enum.auto()
    OPEN_DOOR4 = enum.auto()
    OPEN_DOOR5 = enum.auto()
    OPEN_DOOR6 = enum.auto()
    BALL1 = enum.auto()
    BALL2 = enum.auto()
    CHARACTER1 = enum.auto()
    CHARACTER2 = enum.auto()
    CHARACTER3 = enum.auto()
    CHARACTER4 = enum.auto()
    CHARACTER5 = enum.auto()
    CHARACTER6 = enum.auto()
    CHARACTER7 = enum.auto()
    CHARACTER8 = enum.auto()
    HP1 = enum.auto()
    HP2 = enum.auto()
    HP3 = enum.auto()
    HP4 = enum.auto()
    ATTACK1 = enum.auto()
    ATTACK2 = enum.auto()
    ATTACK3 = enum.auto()
    ATTACK4 = enum.auto()
    ATTACK5 = enum.auto()
    ATTACK6 = enum.auto()
    ATTACK7 = enum.auto()
    ATTACK8 = enum.auto()
    ENEMY1 = enum.auto()
    ENEMY2 = enum.auto()
    ENEMY3 = enum.auto()
    ENEMY4 = enum.auto()
    ENEMY_DOWN = enum.auto()
    ENEMY5 = enum.auto()
    END_GAME = enum.auto()
    DYING1 = enum.auto()
    DYING2 = enum.auto()
    DYING3 = enum.auto()
    DYING4 = enum.auto()
    DYING5 = enum.auto()
    DYING6 = enum.auto()
    DYING7 = enum.auto()
    COINS1 = enum.auto()
    COINS2 = enum.auto()
    COINS3 = enum.auto()
    COINS4 = enum.auto()
    COINS5 = enum.auto()
    COLLEC = enum.auto()
    WIN_GAME = enum.auto()
    HP_COLLECT1 = enum.auto()
    END_DOOR1 = enum.auto()
    END_DOOR2 = enum.auto()
    END_DOOR3 = enum.auto()


WALL_SPRITES = (SpriteId.NO, SpriteId.SO, SpriteId.WE, SpriteId.EA)
SPRITE_NBR = len(SpriteId)

_SPRITE_FILES = {
    SpriteId.DOOR1: "sprites/door.xpm",
    SpriteId.OPEN_DOOR1: "sprites/open.xpm",
    SpriteId.OPEN_DOOR2: "sprites/open2.xpm",
    SpriteId.OPEN_DOOR3: "sprites/open3.xpm",
    SpriteId.OPEN_DOOR4: "sprites/open4.xpm",
    SpriteId.OPEN_DOOR5: "sprites/open5.xpm",
    SpriteId.OPEN_DOOR6: "sprites/open6.xpm",
    SpriteId.BALL1: "sprites/ball.xpm",
    SpriteId.BALL2: "sprites/ball2.xpm",
    SpriteId.CHARACTER1: "sprites/char_sprites/character.xpm",
    SpriteId.CHARACTER2: "sprites/char_sprites/character2.xpm",
    SpriteId.CHARACTER3: "sprites/char_sprites/character3.xpm",
    SpriteId.CHARACTER4: "sprites/char_sprites/character4.xpm",
    SpriteId.CHARACTER5: "sprites/char_sprites/character5.xpm",
    SpriteId.CHARACTER6: "sprites/char_sprites/character6.xpm",
    SpriteId.CHARACTER7: "sprites/char_sprites/character7.xpm",
    SpriteId.CHARACTER8: "sprites/char_sprites/character8.xpm",
    SpriteId.HP1: "sprites/char_sprites/hp.xpm",
    SpriteId.HP2: "sprites/char_sprites/hp2.xpm",
    SpriteId.HP3: "sprites/char_sprites/hp3.xpm",
    SpriteId.HP4: "sprites/char_sprites/hp4.xpm",
    SpriteId.ATTACK1: "sprites/char_sprites/attack.xpm",
    SpriteId.ATTACK2: "sprites/char_sprites/attack1.xpm",
    SpriteId.ATTACK3: "sprites/char_sprites/attack2.xpm",
    SpriteId.ATTACK4: "sprites/char_sprites/attack3.xpm",
    SpriteId.ATTACK5: "sprites/char_sprites/attack4.xpm",
    SpriteId.ATTACK6: "sprites/char_sprites/attack5.xpm",
    SpriteId.ATTACK7: "sprites/char_sprites/attack6.xpm",
    SpriteId.ATTACK8: "sprites/char_sprites/attack7.xpm",
    SpriteId.ENEMY1: "sprites/enemy/enemy2.xpm",
    SpriteId.ENEMY2: "sprites/enemy/enemy3.xpm",
    SpriteId.ENEMY3: "sprites/enemy/enemy4.xpm",
    SpriteId.ENEMY4: "sprites/enemy/enemy_down.xpm",
    SpriteId.ENEMY_DOWN: "sprites/enemy/enemy5.xpm",
    SpriteId.ENEMY5: "sprites/enemy/enemy6.xpm",
    SpriteId.END_GAME: "sprites/end_game.xpm",
    SpriteId.DYING1: "sprites/char_sprites/dying.xpm",
    SpriteId.DYING2: "sprites/char_sprites/dying2.xpm",
    SpriteId.DYING3: "sprites/char_sprites/dying3.xpm",
    SpriteId.DYING4: "sprites/char_sprites/dying4.xpm",
    SpriteId.DYING5: "sprites/char_sprites/dying5.xpm",
    SpriteId.DYING6: "sprites/char_sprites/dying6.xpm",
    SpriteId.DYING7: "sprites/char_sprites/dying7.xpm",
    SpriteId.COINS1: "sprites/coins.xpm",
    SpriteId.COINS2: "sprites/coins2.xpm",
    SpriteId.COINS3: "sprites/coins3.xpm",
    SpriteId.COINS4: "sprites/coins4.xpm",
    SpriteId.COINS5: "sprites/coins5.xpm",
    SpriteId.COLLEC: "sprites/collec.xpm",
    SpriteId.WIN_GAME: "sprites/win_game.xpm",
    SpriteId.HP_COLLECT1: "sprites/hp_collect1.xpm",
    SpriteId.END_DOOR1: "sprites/end_door/end_door.xpm",
    SpriteId.END_DOOR2: "sprites/end_door/end_door1.xpm",
    SpriteId.END_DOOR3: "sprites/end_door/end_door2.xpm",
}

_STRING = re.compile(r'"((?:[^"\\]|\\.)*)"')
_COMMENT = re.compile(r"/\*.*?\*/", re.S)
_COLOR_KEYS = ("c", "g", "g4", "m", "s")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def _color_value(name: str) -> int:
    if name.lower() == "none":
        return TRANSPARENT
    if name.startswith("#"):
        digits = name[1:]
        if len(digits) not in (3, 6, 9, 12) or not set(digits) <= _HEX_DIGITS:
            raise ValueError(f"bad colour {name!r}")
        size = len(digits) // 3
        parts = [digits[i * size:(i + 1) * size] for i in range(3)]
        red, green, blue = (
            int(part * 2 if size == 1 else part[:2], 16) for part in parts
        )
    else:
        red, green, blue = ImageColor.getrgb(name)[:3]
    return red << 16 | green << 8 | blue


def _parse_color_spec(spec: str) -> int:
    values: dict[str, list[str]] = {}
    key: Optional[str] = None
    for token in spec.split():
        if token in _COLOR_KEYS and (key is None or values[key]):
            key = token
            values[key] = []
        elif key is None:
            raise ValueError(f"bad colour line {spec!r}")
        else:
            values[key].append(token)
    for key in ("c", "g", "g4", "m"):
        if values.get(key):
            return _color_value(" ".join(values[key]))
    raise ValueError(f"no colour in {spec!r}")


def _parse_xpm(text: str) -> Image:
    strings = _STRING.findall(_COMMENT.sub("", text))
    if not strings:
        raise ValueError("no XPM data")
    header = strings[0].split()
    if len(header) < 4:
        raise ValueError("bad XPM header")
    width, height, ncolors, cpp = (int(value) for value in header[:4])
    if width <= 0 or height <= 0 or ncolors <= 0 or cpp <= 0:
        raise ValueError("bad XPM header")
    color_lines = strings[1:1 + ncolors]
    rows = strings[1 + ncolors:1 + ncolors + height]
    if len(color_lines) != ncolors or len(rows) != height:
        raise ValueError("truncated XPM data")
    palette = {line[:cpp]: _parse_color_spec(line[cpp:]) for line in color_lines}
    pixels = np.empty((height, width), dtype=np.uint32)
    span = width * cpp
    for y, row in enumerate(rows):
        if len(row) < span:
            raise ValueError("short XPM row")
        pixels[y] = [palette[row[i:i + cpp]] for i in range(0, span, cpp)]
    return Image(width, height, pixels)


def load_xpm(path: PathLike) -> Image:
    """Load an XPM file; raise CubError when it cannot be read."""
    try:
        text = Path(path).read_text(encoding="latin-1")
        return _parse_xpm(text)
    except (OSError, ValueError, KeyError):
        raise CubError("Invalid Sprite") from None


def sprite_paths() -> dict[SpriteId, str]:
    """Relative paths of every sprite other than the four wall textures."""
    return dict(_SPRITE_FILES)


def load_sprites(
    texture_paths: Iterable[str], root: Optional[PathLike] = None
) -> dict[SpriteId, Image]:
    """Load the wall textures and, when root is given, every other sprite.

    Each wall texture path is checked first (MapError "Wrong Textures");
    the other sprites are read from their fixed paths below root.
    """
    sprites: dict[SpriteId, Image] = {}
    for sprite_id, path in zip(WALL_SPRITES, texture_paths):
        check_texture_path(path)
        sprites[sprite_id] = load_xpm(path)
    if root is not None:
        base = Path(root)
        for sprite_id, relative in _SPRITE_FILES.items():
            sprites[sprite_id] = load_xpm(base / relative)
    return sprites
"""Overlays drawn on top of the 3D view: HUD icons, screens, tints, minimap."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

import numpy as np

from cub3d.entities import GameObject, ObjType
from cub3d.images import HEIGHT, SPRITE_SIZE, TRANSPARENT, WIDTH, Image, SpriteId
from cub3d.vector import Vec2

BLACK = 0x000000
WHITE = 0xFFFFFF
GREY = 0x808080
BLUE = 0x0000FF
DARK_BLUE = 0x00008B
LIGHT_BLUE = 0xADD8E6
VIOLET = 0x8F00FF
RED = 0xFF0000
YELLOW = 0xFFFF00
GREEN = 0x00FF00
DAMAGE_RED = 0xFF0000
HEAL_GREEN = 0x00FF00

_OBJECT_COLORS = {
    ObjType.ENEMY: RED,
    ObjType.COLLECT: YELLOW,
    ObjType.BALL: DARK_BLUE,
    ObjType.HP_COLLECT: GREEN,
}


def draw_hud(img: Image, sprite: Image, x: float, y: float) -> None:
    """Draw a sprite scaled by two with its top-left corner near (x, y)."""
    new_size = int(SPRITE_SIZE * 2 * (WIDTH / 800))
    for dy in range(1, new_size):
        tex_y = int(dy / 2 * (600 / HEIGHT))
        if not 0 <= tex_y < SPRITE_SIZE:
            continue
        screen_y = int(y + dy)
        for dx in range(1, new_size):
            tex_x = int(dx / 2 * (800 / WIDTH))
            if 0 <= tex_x < SPRITE_SIZE:
                color = sprite.get_pixel(tex_x, tex_y)
                if color != TRANSPARENT:
                    img.put_pixel(int(x + dx), screen_y, color)


def blend_color(dst: int, color: int) -> int:
    """Mix 30% of color into dst, keeping the alpha byte of color."""
    color &= 0xFFFFFFFF
    channels = [
        int(((color >> shift) & 0xFF) * 0.3 + ((dst >> shift) & 0xFF) * 0.7)
        for shift in (16, 8, 0)
    ]
    red, green, blue = channels
    return (color & 0xFF000000) | red << 16 | green << 8 | blue


def tint(img: Image, color: int) -> None:
    """Blend color over every pixel of the image."""
    color &= 0xFFFFFFFF
    dst = img.pixels
    result = np.full(dst.shape, color & 0xFF000000, dtype=np.uint32)
    for shift in (16, 8, 0):
        mixed = ((color >> shift) & 0xFF) * 0.3 + ((dst >> shift) & 0xFF) * 0.7
        result |= mixed.astype(np.uint32) << np.uint32(shift)
    img.pixels[:, :] = result


def draw_screen(img: Image, sprite: Image) -> None:
    """Stretch a full-screen sprite over the image, skipping transparency."""
    ys = (np.arange(img.height) * (600 / HEIGHT)).astype(np.intp)
    xs = (np.arange(img.width) * (800 / WIDTH)).astype(np.intp)
    source = sprite.pixels[np.ix_(ys, xs)]
    mask = source != TRANSPARENT
    img.pixels[mask] = source[mask]


def draw_hearts(img: Image, sprites: Mapping[int, Image], index: int) -> None:
    draw_hud(img, sprites[index], 20 * WIDTH // 800, HEIGHT - 175 * HEIGHT // 600)


def draw_coins(img: Image, sprites: Mapping[int, Image], index: int) -> None:
    draw_hud(img, sprites[index], WIDTH - 150 * WIDTH // 800, int(-30 * HEIGHT / 600))


def draw_char(img: Image, sprites: Mapping[int, Image], index: int) -> None:
    draw_hud(img, sprites[index], 20 * WIDTH // 800, HEIGHT - 110 * HEIGHT // 600)


def end_game_screen(img: Image, sprites: Mapping[int, Image], index: int) -> None:
    """Draw the game-over screen with the character frame in the middle."""
    x = WIDTH // 2 - (SPRITE_SIZE * 800) / WIDTH
    draw_screen(img, sprites[SpriteId.END_GAME])
    draw_hud(img, sprites[index], x, HEIGHT // 2)


def tile_color(tile: str) -> int:
    """Minimap colour of a map tile."""
    if tile == "0":
        return GREY
    if tile in ("D", "d"):
        return BLUE
    if tile in ("P", "p"):
        return VIOLET
    if tile == "X":
        return WHITE
    return BLACK


def _put_tile(img: Image, x: int, y: int, tile_size: int, color: int) -> None:
    left = x * tile_size
    top = y * tile_size
    img.pixels[top:top + tile_size, left:left + tile_size] = color & 0xFFFFFFFF


def draw_minimap(
    img: Image,
    grid: Sequence[Sequence[str]],
    player_pos: Vec2,
    objects: Iterable[GameObject],
    tile_size: float,
) -> None:
    """Draw the map tiles, then the objects and the player as small squares."""
    size = int(tile_size)
    for y, row in enumerate(grid):
        for x, tile in enumerate(row):
            _put_tile(img, x, y, size, tile_color(tile))
    half = size // 2
    centre = player_pos * size
    marks = [(obj.pos * size, _OBJECT_COLORS[obj.type]) for obj in objects]
    for i in range(-half, half):
        for j in range(-half, half):
            for pos, color in marks:
                img.put_pixel(int(pos.x + i), int(pos.y + j), color)
            img.put_pixel(int(centre.x + i), int(centre.y + j), LIGHT_BLUE)
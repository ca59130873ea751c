"""Billboard sprites: camera-space transform, screen bounds and drawing."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping, MutableSequence, Sequence

import numpy as np

from cub3d.entities import GameObject, Player
from cub3d.images import HEIGHT, SPRITE_SIZE, TRANSPARENT, WIDTH, Image, SpriteId
from cub3d.vector import Vec2


@dataclass(frozen=True)
class SpriteBounds:
    """Screen rectangle covered by a sprite, already clamped to the screen."""

    screen_x: int
    height: int
    start_x: int
    end_x: int
    start_y: int
    end_y: int


_EMPTY = SpriteBounds(0, 0, 0, 0, 0, 0)


def _sprite_id(index: object) -> SpriteId:
    if isinstance(index, str):
        return SpriteId[index]
    return SpriteId(index)


def _trunc_div(values: np.ndarray, divisor: int) -> np.ndarray:
    """Integer division rounding toward zero, for a positive divisor."""
    return np.sign(values) * (np.abs(values) // divisor)


def sprite_transform(player: Player, pos: Vec2) -> Vec2:
    """Position relative to the camera: x across the screen, y the depth."""
    rel = pos - player.pos
    d = player.direction
    p = player.plane
    inv = 1 / (p.x * d.y - p.y * d.x)
    return Vec2(
        inv * (d.y * rel.x - d.x * rel.y),
        inv * (-p.y * rel.x + p.x * rel.y),
    )


def sprite_bounds(transform: Vec2, pitch: float = 0) -> SpriteBounds:
    """Screen centre, size and clamped rectangle of a transformed sprite."""
    if transform.y == 0:
        return _EMPTY
    ratio = transform.x / transform.y
    scaled = HEIGHT / transform.y
    if not (math.isfinite(ratio) and math.isfinite(scaled)):
        return _EMPTY
    screen_x = int(WIDTH // 2 * (1 + ratio))
    height = abs(int(scaled))
    half = height // 2
    start_y = max(int(-half + HEIGHT // 2 + pitch), 0)
    end_y = min(int(half + HEIGHT // 2 + pitch), HEIGHT)
    start_x = max(-half + screen_x, 0)
    end_x = min(half + screen_x, WIDTH)
    return SpriteBounds(screen_x, height, start_x, end_x, start_y, end_y)


def draw_sprite(
    img: Image,
    texture: Image,
    transform: Vec2,
    bounds: SpriteBounds,
    dist_buffer: Sequence[float],
    pitch: float = 0,
) -> None:
    """Draw the columns of a sprite that lie in front of the walls."""
    if transform.y <= 0 or bounds.height <= 0:
        return
    left = -(bounds.height // 2) + bounds.screen_x
    ys = np.arange(bounds.start_y, min(bounds.end_y, img.height), dtype=np.int64)
    if ys.size == 0:
        return
    d = np.trunc(
        ys * 64.0 - HEIGHT * 32 + bounds.height * 32 - pitch * 64
    ).astype(np.int64)
    tex_y = _trunc_div(_trunc_div(d * SPRITE_SIZE, bounds.height), 64)
    valid = (tex_y >= 0) & (tex_y < SPRITE_SIZE)
    rows = ys[valid]
    tex_rows = tex_y[valid]
    for x in range(bounds.start_x, min(bounds.end_x, img.width)):
        if not (0 < x < WIDTH and transform.y < dist_buffer[x]):
            continue
        tex_x = (64 * (x - left) * SPRITE_SIZE // bounds.height) // 64
        colors = texture.pixels[tex_rows, tex_x]
        opaque = colors != TRANSPARENT
        img.pixels[rows[opaque], x] = colors[opaque]


def sort_by_distance(objects: Sequence[GameObject], pos: Vec2) -> list[GameObject]:
    """Objects ordered farthest first; equally distant ones keep their order."""

    def distance(obj: GameObject) -> float:
        rel = pos - obj.pos
        return rel.x * rel.x + rel.y * rel.y

    return sorted(objects, key=distance, reverse=True)


def draw_objects(
    img: Image,
    sprites: Mapping[int, Image],
    objects: MutableSequence[GameObject],
    player: Player,
    dist_buffer: Sequence[float],
    now: float,
) -> None:
    """Sort the objects in place, update their timers and draw them back to front."""
    objects[:] = sort_by_distance(objects, player.pos)
    for obj in objects:
        transform = sprite_transform(player, obj.pos)
        obj.elapsed_time = now - obj.last_time
        draw_sprite(
            img,
            sprites[_sprite_id(obj.spr_index)],
            transform,
            sprite_bounds(transform, player.pitch),
            dist_buffer,
            player.pitch,
        )
"""Wall raycasting: DDA through the grid, column geometry and column drawing."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import Mapping, MutableSequence, Optional, Sequence

import numpy as np

from cub3d.entities import Player
from cub3d.images import HEIGHT, SPRITE_SIZE, WIDTH, Image, SpriteId
from cub3d.vector import Vec2

DOOR_FRAME_TIME = 0.20

_DOOR_TILES = frozenset("DdPp")
_ENEMY_BLOCKERS = frozenset("1Dd")
_MASK = 0xFFFFFFFF


def _tile(grid: Sequence[Sequence[str]], x: int, y: int) -> str:
    """Return the tile at (x, y); a ray leaving the map raises IndexError."""
    if y < 0 or x < 0 or y >= len(grid) or x >= len(grid[y]):
        raise IndexError(f"ray left the map at ({x}, {y})")
    return grid[y][x]


def _inverse(component: float) -> float:
    return math.inf if component == 0 else abs(1 / component)


@dataclass
class Ray:
    """State of one ray walking the grid with the DDA algorithm."""

    direction: Vec2
    map_x: int
    map_y: int
    step_x: int
    step_y: int
    delta_x: float
    delta_y: float
    side_x: float
    side_y: float
    side: int = 0

    def step_once(self) -> tuple[int, int]:
        """Advance to the next grid cell and return its (x, y)."""
        if self.side_x < self.side_y:
            self.side_x += self.delta_x
            self.map_x += self.step_x
            self.side = 0
        else:
            self.side_y += self.delta_y
            self.map_y += self.step_y
            self.side = 1
        return self.map_x, self.map_y


@dataclass
class ColumnDraw:
    """Where and how one wall column is drawn."""

    tex_x: int
    line_height: float
    start: int
    end: int
    scale: float
    tex_pos: float
    perp: float


def cast_ray(pos: Vec2, direction: Vec2) -> Ray:
    """Start a ray at pos going in direction, ready for its first step."""
    map_x = int(pos.x)
    map_y = int(pos.y)
    delta_x = _inverse(direction.x)
    delta_y = _inverse(direction.y)
    if direction.x < 0:
        step_x = -1
        side_x = (pos.x - map_x) * delta_x
    else:
        step_x = 1
        side_x = (map_x + 1.0 - pos.x) * delta_x
    if direction.y < 0:
        step_y = -1
        side_y = (pos.y - map_y) * delta_y
    else:
        step_y = 1
        side_y = (map_y + 1.0 - pos.y) * delta_y
    return Ray(direction, map_x, map_y, step_x, step_y, delta_x, delta_y, side_x, side_y)


def wall_texture(ray: Ray) -> SpriteId:
    """Wall texture for the face the ray last crossed."""
    if ray.side == 1:
        return SpriteId.NO if ray.direction.y > 0 else SpriteId.SO
    return SpriteId.EA if ray.direction.x > 0 else SpriteId.WE


def _plain_texture_index(ray: Ray) -> int:
    """Texture index in NO, SO, WE, EA order used by the plain renderer."""
    if ray.side == 1:
        return 0 if ray.direction.y > 0 else 1
    return 2 if ray.direction.x > 0 else 3


def _perp_distance(ray: Ray) -> float:
    if ray.side == 0:
        return ray.side_x - ray.delta_x
    return ray.side_y - ray.delta_y


def texture_x(ray: Ray, perp: float, pos: Vec2) -> int:
    """Texture column hit by the ray at perpendicular distance perp."""
    if ray.side == 0:
        wall_x = pos.y + perp * ray.direction.y
    else:
        wall_x = pos.x + perp * ray.direction.x
    if not math.isfinite(wall_x):
        wall_x = 0.0
    wall_x -= math.floor(wall_x)
    tex_x = int(wall_x * SPRITE_SIZE)
    if (ray.side == 0 and ray.direction.x < 0) or (ray.side == 1 and ray.direction.y > 0):
        tex_x = SPRITE_SIZE - tex_x - 1
    return tex_x


def column_geometry(ray: Ray, pos: Vec2, pitch: float) -> ColumnDraw:
    """Screen span and texture stepping of the wall the ray stopped on."""
    perp = _perp_distance(ray)
    tex_x = texture_x(ray, perp, pos)
    if perp == 0:
        return ColumnDraw(tex_x, math.inf, 0, HEIGHT, 0.0, 0.0, perp)
    line_height = abs(HEIGHT / perp)
    start = int(HEIGHT // 2 - line_height / 2 + pitch)
    if start < 0:
        start = 0
    end = int(HEIGHT // 2 + line_height / 2 + pitch)
    if end >= HEIGHT:
        end = HEIGHT
    scale = SPRITE_SIZE / line_height
    tex_pos = (start - pitch - HEIGHT // 2 + line_height / 2) * scale
    return ColumnDraw(tex_x, line_height, start, end, scale, tex_pos, perp)


def darken_color(color: int, factor: float) -> int:
    """Divide each channel by factor // 6 when that is at least one."""
    divisor = int(factor) // 6
    if divisor < 1:
        return color
    color &= _MASK
    red = (color >> 16) // divisor
    green = (color >> 8 & 0xFF) // divisor
    blue = (color & 0xFF) // divisor
    return (red << 16 | green << 8 | blue) & _MASK


def _darken_column(colors: np.ndarray, distance: float) -> np.ndarray:
    if not math.isfinite(distance):
        return colors
    divisor = int(distance) // 6
    if divisor < 1:
        return colors
    values = colors.astype(np.int64)
    red = (values >> 16) // divisor
    green = ((values >> 8) & 0xFF) // divisor
    blue = (values & 0xFF) // divisor
    return ((red << 16 | green << 8 | blue) & _MASK).astype(np.uint32)


def _draw_column(
    img: Image,
    x: int,
    draw: ColumnDraw,
    texture: Image,
    floor: int,
    ceiling: int,
    distance: Optional[float] = None,
) -> None:
    column = img.pixels[:, x]
    column[:draw.start] = ceiling & _MASK
    count = draw.end - draw.start
    if count > 0:
        positions = np.full(count, draw.scale, dtype=np.float64)
        positions[0] = draw.tex_pos
        tex_y = np.cumsum(positions).astype(np.int64) & (SPRITE_SIZE - 1)
        colors = texture.pixels[tex_y, draw.tex_x]
        if distance is not None:
            colors = _darken_column(colors, distance)
        column[draw.start:draw.end] = colors
    column[max(draw.end, 0):HEIGHT] = floor & _MASK


def _camera_direction(player: Player, x: int) -> Vec2:
    camera = 2 * x / WIDTH - 1
    return player.direction + player.plane * camera


def render_frame(
    img: Image,
    grid: Sequence[Sequence[str]],
    player: Player,
    textures: Sequence[Image],
    floor: int,
    ceiling: int,
) -> None:
    """Draw ceiling, textured walls and floor for every screen column."""
    for x in range(WIDTH):
        ray = cast_ray(player.pos, _camera_direction(player, x))
        while _tile(grid, *ray.step_once()) != "1":
            pass
        draw = column_geometry(ray, player.pos, 0)
        _draw_column(img, x, draw, textures[_plain_texture_index(ray)], floor, ceiling)


@dataclass
class Raycaster:
    """Renderer with doors, portals, distance shading and floor marking.

    Floor cells crossed by rays are marked 'X' in the grid until the next
    frame, so the minimap can show what the player sees.
    """

    marked_cells: list[tuple[int, int]] = field(default_factory=list)
    door_frame: SpriteId = SpriteId.OPEN_DOOR1
    door_time: float = field(default_factory=time.monotonic)
    dist_buffer: list[float] = field(default_factory=lambda: [0.0] * WIDTH)

    def render(
        self,
        img: Image,
        grid: MutableSequence[MutableSequence[str]],
        player: Player,
        sprites: Mapping[int, Image],
        floor: int,
        ceiling: int,
        elapsed_door: float,
    ) -> None:
        """Draw one frame; elapsed_door is the time since the door last moved."""
        for cx, cy in self.marked_cells:
            grid[cy][cx] = "0"
        self.marked_cells.clear()
        for x in range(WIDTH):
            ray = cast_ray(player.pos, _camera_direction(player, x))
            sprite = self._trace(ray, grid, player, elapsed_door)
            draw = column_geometry(ray, player.pos, player.pitch)
            self.dist_buffer[x] = draw.perp
            _draw_column(img, x, draw, sprites[sprite], floor, ceiling, draw.perp)

    def _trace(
        self,
        ray: Ray,
        grid: MutableSequence[MutableSequence[str]],
        player: Player,
        elapsed_door: float,
    ) -> SpriteId:
        while True:
            mx, my = ray.step_once()
            tile = _tile(grid, mx, my)
            if tile == "0":
                self.marked_cells.append((mx, my))
                grid[my][mx] = "X"
            elif tile == "1":
                return wall_texture(ray)
            elif tile in _DOOR_TILES:
                return self._door_hit(ray, tile, player, elapsed_door)

    def _door_sprite(self, tile: str, player: Player, elapsed_door: float) -> SpriteId:
        sprite = SpriteId.DOOR1
        if tile in ("P", "p"):
            sprite = SpriteId.END_DOOR1
            if tile == "p":
                sprite = SpriteId.END_DOOR3
            elif player.coins == 4:
                sprite = SpriteId.END_DOOR2
        if tile == "d":
            sprite = self.door_frame
            if elapsed_door >= DOOR_FRAME_TIME:
                self.door_frame = SpriteId(self.door_frame + 1)
                self.door_time = time.monotonic()
        if self.door_frame == SpriteId.BALL1:
            self.door_frame = SpriteId.OPEN_DOOR1
        return sprite

    def _door_hit(self, ray: Ray, tile: str, player: Player, elapsed_door: float) -> SpriteId:
        """Set doors half a cell deep; a ray passing beside one hits the frame."""
        sprite = self._door_sprite(tile, player, elapsed_door)
        if ray.side == 0:
            ray.side_x -= ray.delta_x / 2
            if ray.side_x > ray.side_y:
                ray.side_y += ray.delta_y
                ray.side = 1
                sprite = wall_texture(ray)
            ray.side_x += ray.delta_x
        else:
            ray.side_y -= ray.delta_y / 2
            if ray.side_y > ray.side_x:
                ray.side_x += ray.delta_x
                ray.side = 0
                sprite = wall_texture(ray)
            ray.side_y += ray.delta_y
        return sprite


def enemy_can_see(
    grid: Sequence[Sequence[str]], enemy_pos: Vec2, player_pos: Vec2
) -> bool:
    """Whether a ray from the enemy reaches the player's cell before a wall or door."""
    ray = cast_ray(enemy_pos, player_pos - enemy_pos)
    target = (int(player_pos.x), int(player_pos.y))
    while True:
        cell = ray.step_once()
        if _tile(grid, *cell) in _ENEMY_BLOCKERS:
            return False
        if cell == target:
            return True
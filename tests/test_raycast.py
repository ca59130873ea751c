import math
import time

import pytest

from cub3d.entities import init_player
from cub3d.images import HEIGHT, SPRITE_SIZE, WIDTH, Image, SpriteId
from cub3d.raycast import (
    ColumnDraw,
    Raycaster,
    cast_ray,
    column_geometry,
    darken_color,
    enemy_can_see,
    render_frame,
    texture_x,
    wall_texture,
)
from cub3d.vector import Vec2

ROOM = ["11111", "10001", "10001", "10001", "11111"]
FLOOR = 0x00AA00
CEILING = 0x0000AA


def _grid(rows):
    return [list(row) for row in rows]


def _solid(color):
    img = Image(SPRITE_SIZE, SPRITE_SIZE)
    img.fill(color)
    return img


SPRITES = {sid: _solid(0x010000 * (int(sid) + 1) + 0x20) for sid in SpriteId}
TEXTURES = [_solid(0x100000 * (i + 1) + 0x33) for i in range(4)]


def _color(sid):
    return SPRITES[sid].get_pixel(0, 0)


def _trace_to_wall(grid, ray):
    while grid[ray.map_y][ray.map_x] != "1":
        ray.step_once()
    return ray


def test_cast_ray_steps_follow_direction():
    ray = cast_ray(Vec2(2.5, 2.5), Vec2(-1.0, 0.5))
    assert (ray.step_x, ray.step_y) == (-1, 1)
    assert (ray.map_x, ray.map_y) == (2, 2)


def test_cast_ray_zero_component_has_infinite_delta():
    ray = cast_ray(Vec2(2.5, 2.5), Vec2(1.0, 0.0))
    assert math.isinf(ray.delta_y)
    cell = ray.step_once()
    assert cell == (3, 2)
    assert ray.side == 0


def test_wall_texture_per_face():
    grid = _grid(ROOM)
    pos = Vec2(2.5, 2.5)
    cases = {
        Vec2(1.0, 0.0): SpriteId.EA,
        Vec2(-1.0, 0.0): SpriteId.WE,
        Vec2(0.0, 1.0): SpriteId.NO,
        Vec2(0.0, -1.0): SpriteId.SO,
    }
    for direction, expected in cases.items():
        ray = _trace_to_wall(grid, cast_ray(pos, direction))
        assert wall_texture(ray) == expected


def test_texture_x_stays_in_texture():
    grid = _grid(ROOM)
    player = init_player(2.3, 2.7, "N")
    for x in range(0, WIDTH, 37):
        camera = 2 * x / WIDTH - 1
        ray = _trace_to_wall(grid, cast_ray(player.pos, player.direction + player.plane * camera))
        perp = column_geometry(ray, player.pos, 0).perp
        assert 0 <= texture_x(ray, perp, player.pos) < SPRITE_SIZE


def test_column_geometry_is_centred_and_consistent():
    grid = _grid(ROOM)
    pos = Vec2(2.5, 2.5)
    ray = _trace_to_wall(grid, cast_ray(pos, Vec2(0.0, -1.0)))
    draw = column_geometry(ray, pos, 0)
    assert isinstance(draw, ColumnDraw)
    assert draw.perp == pytest.approx(1.5)
    assert draw.line_height * draw.perp == pytest.approx(HEIGHT)
    assert abs(draw.start + draw.end - HEIGHT) <= 1
    assert draw.scale * draw.line_height == pytest.approx(SPRITE_SIZE)


def test_column_geometry_pitch_shifts_span_not_texture():
    grid = _grid(ROOM)
    pos = Vec2(2.5, 2.5)
    ray = _trace_to_wall(grid, cast_ray(pos, Vec2(0.0, -1.0)))
    level = column_geometry(ray, pos, 0)
    raised = column_geometry(ray, pos, 50)
    assert raised.start == level.start + 50
    assert raised.end == level.end + 50
    assert raised.tex_pos == pytest.approx(level.tex_pos)


def test_column_geometry_clamps_close_walls():
    grid = _grid(ROOM)
    pos = Vec2(2.5, 1.05)
    ray = _trace_to_wall(grid, cast_ray(pos, Vec2(0.0, -1.0)))
    draw = column_geometry(ray, pos, 0)
    assert draw.start == 0
    assert draw.end == HEIGHT


def test_darken_color_near_is_unchanged():
    assert darken_color(0x123456, 5) == 0x123456
    assert darken_color(0x123456, 0) == 0x123456


def test_darken_color_halves_at_twelve():
    assert darken_color(0xFFFFFF, 12) == 0x7F7F7F


def test_darken_color_never_brightens():
    color = 0x8040C0
    for factor in range(0, 200, 7):
        result = darken_color(color, factor)
        for shift in (16, 8, 0):
            assert (result >> shift) & 0xFF <= (color >> shift) & 0xFF


def test_render_frame_north_uses_second_texture():
    img = Image(WIDTH, HEIGHT)
    render_frame(img, _grid(ROOM), init_player(2.5, 2.5, "N"), TEXTURES, FLOOR, CEILING)
    assert img.get_pixel(400, 300) == TEXTURES[1].get_pixel(0, 0)
    assert img.get_pixel(400, 0) == CEILING
    assert img.get_pixel(400, HEIGHT - 1) == FLOOR


def test_render_frame_east_uses_third_texture():
    img = Image(WIDTH, HEIGHT)
    render_frame(img, _grid(ROOM), init_player(2.5, 2.5, "E"), TEXTURES, FLOOR, CEILING)
    assert img.get_pixel(400, 300) == TEXTURES[2].get_pixel(0, 0)


def test_render_frame_open_map_raises():
    grid = _grid(["000", "000", "000"])
    with pytest.raises(IndexError):
        render_frame(Image(WIDTH, HEIGHT), grid, init_player(1.5, 1.5, "N"), TEXTURES, FLOOR, CEILING)


def test_raycaster_east_wall_and_buffers():
    img = Image(WIDTH, HEIGHT)
    caster = Raycaster()
    caster.render(img, _grid(ROOM), init_player(2.5, 2.5, "E"), SPRITES, FLOOR, CEILING, 0.0)
    assert img.get_pixel(400, 300) == _color(SpriteId.EA)
    assert img.get_pixel(400, 0) == CEILING
    assert img.get_pixel(400, HEIGHT - 1) == FLOOR
    assert len(caster.dist_buffer) == WIDTH
    assert all(d > 0 for d in caster.dist_buffer)


def test_raycaster_marks_and_resets_floor_cells():
    grid = _grid(ROOM)
    caster = Raycaster()
    img = Image(WIDTH, HEIGHT)
    caster.render(img, grid, init_player(2.5, 2.5, "N"), SPRITES, FLOOR, CEILING, 0.0)
    marked = {(x, y) for y, row in enumerate(grid) for x, t in enumerate(row) if t == "X"}
    assert marked == set(caster.marked_cells)
    assert (2, 1) in marked
    assert grid[2][2] == "0"

    caster.render(img, grid, init_player(2.5, 2.5, "S"), SPRITES, FLOOR, CEILING, 0.0)
    marked = {(x, y) for y, row in enumerate(grid) for x, t in enumerate(row) if t == "X"}
    assert marked == set(caster.marked_cells)
    assert (2, 3) in marked
    assert grid[1][2] == "0"


@pytest.mark.parametrize(
    "tile, coins, expected",
    [
        ("D", 0, SpriteId.DOOR1),
        ("P", 0, SpriteId.END_DOOR1),
        ("P", 4, SpriteId.END_DOOR2),
        ("p", 0, SpriteId.END_DOOR3),
    ],
)
def test_raycaster_door_sprites(tile, coins, expected):
    grid = _grid(ROOM)
    grid[1][2] = tile
    player = init_player(2.5, 2.5, "N")
    player.coins = coins
    img = Image(WIDTH, HEIGHT)
    Raycaster().render(img, grid, player, SPRITES, FLOOR, CEILING, 0.0)
    assert img.get_pixel(400, 300) == _color(expected)


def test_open_door_waits_for_frame_time():
    grid = _grid(ROOM)
    grid[1][2] = "d"
    caster = Raycaster()
    img = Image(WIDTH, HEIGHT)
    caster.render(img, grid, init_player(2.5, 2.5, "N"), SPRITES, FLOOR, CEILING, 0.0)
    assert img.get_pixel(400, 300) == _color(SpriteId.OPEN_DOOR1)
    assert caster.door_frame == SpriteId.OPEN_DOOR1


def test_open_door_animates_within_its_frames():
    grid = _grid(ROOM)
    grid[1][2] = "d"
    caster = Raycaster()
    before = time.monotonic()
    caster.render(Image(WIDTH, HEIGHT), grid, init_player(2.5, 2.5, "N"), SPRITES, FLOOR, CEILING, 1.0)
    assert SpriteId.OPEN_DOOR1 <= caster.door_frame <= SpriteId.OPEN_DOOR6
    assert caster.door_time >= before


WALLED = ["1111111", "1000001", "1001001", "1000001", "1111111"]


def test_enemy_sees_player_in_open_row():
    assert enemy_can_see(_grid(WALLED), Vec2(1.5, 1.5), Vec2(5.5, 1.5)) is True


def test_enemy_blocked_by_wall():
    assert enemy_can_see(_grid(WALLED), Vec2(1.5, 2.5), Vec2(5.5, 2.5)) is False


@pytest.mark.parametrize("tile, visible", [("D", False), ("d", False), ("X", True)])
def test_enemy_sight_through_tiles(tile, visible):
    grid = _grid(WALLED)
    grid[2][3] = tile
    assert enemy_can_see(grid, Vec2(1.5, 2.5), Vec2(5.5, 2.5)) is visible
import numpy as np
import pytest

from cub3d.entities import GameObject, ObjType, init_player
from cub3d.images import HEIGHT, SPRITE_SIZE, TRANSPARENT, WIDTH, Image, SpriteId
from cub3d.sprites import (
    SpriteBounds,
    draw_objects,
    draw_sprite,
    sort_by_distance,
    sprite_bounds,
    sprite_transform,
)
from cub3d.vector import Vec2

COLOR = 0x123456


def _texture(color):
    return Image(SPRITE_SIZE, SPRITE_SIZE, np.full((SPRITE_SIZE, SPRITE_SIZE), color))


def _screen():
    return Image(WIDTH, HEIGHT)


def test_transform_straight_ahead():
    player = init_player(2.5, 2.5, "E")
    t = sprite_transform(player, Vec2(5.5, 2.5))
    assert t.x == pytest.approx(0.0)
    assert t.y == pytest.approx(3.0)


def test_transform_side_offset_is_nonzero():
    player = init_player(2.5, 2.5, "E")
    left = sprite_transform(player, Vec2(5.5, 1.5))
    right = sprite_transform(player, Vec2(5.5, 3.5))
    assert left.x == pytest.approx(-right.x)
    assert left.x != pytest.approx(0.0)
    assert left.y == pytest.approx(right.y)


def test_bounds_centred():
    b = sprite_bounds(Vec2(0.0, 3.0), 0)
    assert b.screen_x == WIDTH // 2
    assert b.height == int(HEIGHT / 3.0)
    assert b.end_y - b.start_y == b.height
    assert b.end_x - b.start_x == b.height
    assert b.start_y + b.end_y == HEIGHT


def test_bounds_clamped_when_close():
    b = sprite_bounds(Vec2(0.0, 0.1), 0)
    assert (b.start_x, b.end_x, b.start_y, b.end_y) == (0, WIDTH, 0, HEIGHT)


def test_bounds_pitch_shifts_vertically():
    base = sprite_bounds(Vec2(0.0, 3.0), 0)
    shifted = sprite_bounds(Vec2(0.0, 3.0), 50)
    assert shifted.start_y == base.start_y + 50
    assert shifted.end_y == base.end_y + 50
    assert shifted.start_x == base.start_x


def test_bounds_zero_depth_is_empty():
    assert sprite_bounds(Vec2(1.0, 0.0), 0) == SpriteBounds(0, 0, 0, 0, 0, 0)


def test_draw_sprite_in_front_of_wall():
    img = _screen()
    t = Vec2(0.0, 3.0)
    draw_sprite(img, _texture(COLOR), t, sprite_bounds(t, 0), [10.0] * WIDTH, 0)
    assert img.get_pixel(WIDTH // 2, HEIGHT // 2) == COLOR
    assert img.get_pixel(10, HEIGHT // 2) == 0


def test_draw_sprite_hidden_behind_wall():
    img = _screen()
    t = Vec2(0.0, 3.0)
    draw_sprite(img, _texture(COLOR), t, sprite_bounds(t, 0), [1.0] * WIDTH, 0)
    assert not img.pixels.any()


def test_draw_sprite_transparent_texture():
    img = _screen()
    t = Vec2(0.0, 3.0)
    draw_sprite(img, _texture(TRANSPARENT), t, sprite_bounds(t, 0), [10.0] * WIDTH, 0)
    assert not img.pixels.any()


def test_draw_sprite_behind_camera():
    img = _screen()
    t = Vec2(0.0, -3.0)
    draw_sprite(img, _texture(COLOR), t, sprite_bounds(t, 0), [10.0] * WIDTH, 0)
    assert not img.pixels.any()


def test_sort_farthest_first():
    near = GameObject(Vec2(1.0, 0.0), SpriteId.COLLEC, 1, ObjType.COLLECT)
    far = GameObject(Vec2(3.0, 0.0), SpriteId.COLLEC, 1, ObjType.COLLECT)
    mid = GameObject(Vec2(0.0, 2.0), SpriteId.COLLEC, 1, ObjType.COLLECT)
    assert sort_by_distance([near, far, mid], Vec2(0.0, 0.0)) == [far, mid, near]


def test_sort_keeps_ties_in_order():
    a = GameObject(Vec2(2.0, 0.0), SpriteId.COLLEC, 1, ObjType.COLLECT)
    b = GameObject(Vec2(0.0, 2.0), SpriteId.COLLEC, 1, ObjType.COLLECT)
    assert sort_by_distance([a, b], Vec2(0.0, 0.0)) == [a, b]
    assert sort_by_distance([b, a], Vec2(0.0, 0.0)) == [b, a]


def test_draw_objects_sorts_and_times():
    player = init_player(2.5, 2.5, "E")
    near = GameObject(Vec2(4.5, 2.5), "COLLEC", 1000, ObjType.COLLECT, last_time=1.0)
    far = GameObject(Vec2(8.5, 2.5), SpriteId.COLLEC, 1000, ObjType.COLLECT, last_time=2.0)
    objects = [near, far]
    img = _screen()
    draw_objects(img, {SpriteId.COLLEC: _texture(COLOR)}, objects, player,
                 [100.0] * WIDTH, 5.0)
    assert objects == [far, near]
    assert near.elapsed_time == pytest.approx(4.0)
    assert far.elapsed_time == pytest.approx(3.0)
    assert img.get_pixel(WIDTH // 2, HEIGHT // 2) == COLOR
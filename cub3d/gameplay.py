"""Player movement, collisions, pickups, the projectile, enemies and doors."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import MutableSequence, Optional, Sequence

from cub3d.entities import GameObject, ObjType, Player, remove_object
from cub3d.images import SpriteId
from cub3d.vector import Vec2

PL_SPEED = 3.0
ROTATION_SPEED = 90.0
BALL_SPEED = 5.0
MAX_COINS = 4
WALL_TILES = "1"
BONUS_SOLID = "1DP"
_MARGIN = 0.1


class TileKind(enum.Enum):
    FLOOR = enum.auto()
    WALL = enum.auto()
    DOOR = enum.auto()
    DOOR_OPEN = enum.auto()
    END_DOOR_STATE = enum.auto()
    END_DOOR_STATE2 = enum.auto()
    END_DOOR_STATE3 = enum.auto()


def _sprite_id(index: object) -> SpriteId:
    if isinstance(index, str):
        return SpriteId[index]
    return SpriteId(index)


def _same_cell(a: Vec2, b: Vec2) -> bool:
    return int(a.x) == int(b.x) and int(a.y) == int(b.y)


def is_wall(grid: Sequence[Sequence[str]], x: float, y: float,
            solid: str = WALL_TILES) -> bool:
    """Whether the cell holding (x, y) is one of the solid tiles."""
    return grid[int(y)][int(x)] in solid


def move_target(player: Player, speed: float) -> Vec2:
    """Where the player's current movement keys take it after moving speed."""
    step = player.direction * player.movement.y + player.plane * player.movement.x
    return player.pos + step.normalized() * speed


def blocked(grid: Sequence[Sequence[str]], check: Vec2,
            solid: str = WALL_TILES) -> bool:
    """Whether any corner of a small box around check is solid."""
    return any(
        is_wall(grid, check.x + dx, check.y + dy, solid)
        for dx, dy in ((-_MARGIN, -_MARGIN), (_MARGIN, -_MARGIN),
                       (-_MARGIN, _MARGIN), (_MARGIN, _MARGIN))
    )


def collect_objects(objects: MutableSequence[GameObject], player: Player,
                    check: Vec2) -> bool:
    """Pick up collectables in check's cell; return whether an enemy is there."""
    collision = False
    for obj in list(objects):
        if not _same_cell(check, obj.pos):
            continue
        if obj.type is ObjType.HP_COLLECT and player.hp < 100:
            player.healed = True
            player.hp = min(player.hp + 25, 100)
            remove_object(objects, obj)
        elif obj.type is ObjType.COLLECT:
            if player.coins != MAX_COINS:
                player.coins += 1
            remove_object(objects, obj)
        elif obj.type is ObjType.ENEMY:
            collision = True
    return collision


def portal_adjust(player: Player, old_pos: Vec2, check: Vec2, velocity: Vec2) -> None:
    """Step through an open door along its axis, or stay put when moving diagonally."""
    if abs(velocity.x) > abs(velocity.y):
        if abs(velocity.y) > 0.01:
            player.pos = old_pos
        elif velocity.x > 0:
            player.pos = Vec2(check.x + 0.5, player.pos.y)
        elif velocity.x < 0:
            player.pos = Vec2(check.x - 0.5, player.pos.y)
    else:
        if abs(velocity.x) > 0.01:
            player.pos = old_pos
        elif velocity.y > 0:
            player.pos = Vec2(player.pos.x, check.y + 0.5)
        elif velocity.y < 0:
            player.pos = Vec2(player.pos.x, check.y - 0.5)


def _player_move(player: Player, grid: Sequence[Sequence[str]],
                 new_pos: Vec2, check: Vec2) -> None:
    old_pos = player.pos
    velocity = new_pos - player.pos
    if grid[int(check.y)][int(check.x)] == "d":
        portal_adjust(player, old_pos, check, velocity)
        return
    player.pos = new_pos


def update_player(player: Player, grid: Sequence[Sequence[str]],
                  objects: MutableSequence[GameObject], delta: float) -> None:
    """Advance the projectile, move and turn the player for delta seconds."""
    if player.shoot:
        update_ball(player, objects, grid, delta)
    speed = PL_SPEED * delta
    new_pos = move_target(player, speed)
    check = move_target(player, speed + 0.1)
    collision = collect_objects(objects, player, check)
    if not (collision or blocked(grid, check, BONUS_SOLID)):
        _player_move(player, grid, new_pos, new_pos)
    turn = player.angle * delta * ROTATION_SPEED
    player.direction = player.direction.rotated(turn)
    player.plane = player.plane.rotated(turn)


def spawn_ball(objects: MutableSequence[GameObject], player: Player) -> GameObject:
    """Fire a projectile just in front of the player."""
    ball = GameObject(player.pos + player.direction * 0.3, SpriteId.BALL1, 20, ObjType.BALL)
    player.shoot = True
    player.shoot_anim = True
    objects.append(ball)
    player.ball = ball
    return ball


@dataclass
class _Blink:
    count: int = 0

    def advance(self, ball: GameObject) -> None:
        ball.spr_index = SpriteId.BALL2 if self.count >= 45 else SpriteId.BALL1
        self.count += 1
        if self.count == 91:
            self.count = 0


_ball_blink = _Blink()


def _ball_hit_obj(objects: Sequence[GameObject], ball: GameObject) -> Optional[GameObject]:
    for obj in objects:
        if obj.type is not ObjType.BALL and _same_cell(ball.pos, obj.pos):
            obj.hp -= 1
            return obj
    return None


def update_ball(player: Player, objects: MutableSequence[GameObject],
                grid: Sequence[Sequence[str]], delta: float) -> None:
    """Move the projectile, or remove it when it hits an object or a wall."""
    ball = player.ball
    if ball is None:
        player.shoot = False
        player.shoot_anim = False
        return
    hit = _ball_hit_obj(objects, ball)
    if hit is not None or blocked(grid, ball.pos, BONUS_SOLID):
        if hit is not None and hit.hp <= 0:
            remove_object(objects, hit)
        remove_object(objects, ball)
        player.ball = None
        player.shoot = False
        player.shoot_anim = False
        return
    _ball_blink.advance(ball)
    ball.pos = ball.pos + player.direction * (BALL_SPEED * delta)


def _enemy_anim(obj: GameObject, chasing: bool, now: float) -> None:
    limit = 0.50 if chasing else 0.20
    if obj.spr_index == SpriteId.ENEMY_DOWN:
        obj.spr_index = SpriteId.ENEMY1
    elif chasing and obj.elapsed_time >= limit:
        obj.spr_index = SpriteId(SpriteId.ENEMY1 + (obj.spr_index == SpriteId.ENEMY1))
        obj.last_time = now
    elif obj.elapsed_time >= limit:
        obj.spr_index = SpriteId(obj.spr_index + 1)
        obj.last_time = now


def _enemy_move(player: Player, obj: GameObject, speed: float, now: float) -> None:
    heading = (player.pos - obj.pos).normalized()
    check = obj.pos + heading * (speed + 0.3)
    if not _same_cell(check, player.pos):
        _enemy_anim(obj, True, now)
        obj.pos = obj.pos + heading * speed
    else:
        _enemy_anim(obj, False, now)
        if obj.spr_index == SpriteId.ENEMY3 and obj.elapsed_time >= 0.15:
            player.damaged = True
            player.hp -= 2


def update_enemies(player: Player, objects: Sequence[GameObject],
                   delta: float, now: float) -> None:
    """Enemies that see the player (state 1) chase and attack it; others idle."""
    speed = PL_SPEED * delta
    for obj in objects:
        if obj.type is not ObjType.ENEMY:
            continue
        obj.spr_index = _sprite_id(obj.spr_index)
        if obj.state == 1:
            _enemy_move(player, obj, speed, now)
        else:
            obj.spr_index = SpriteId.ENEMY1


def _facing_cell(player: Player) -> tuple[int, int]:
    return (int(player.pos.x + player.direction.x),
            int(player.pos.y + player.direction.y))


def next_tile(grid: Sequence[Sequence[str]], player: Player) -> TileKind:
    """Kind of the tile one unit ahead of the player."""
    x, y = _facing_cell(player)
    tile = grid[y][x]
    if tile == "D":
        return TileKind.DOOR
    if tile == "p":
        return TileKind.END_DOOR_STATE3
    if tile == "P" and player.coins == MAX_COINS:
        return TileKind.END_DOOR_STATE2
    if tile == "P":
        return TileKind.END_DOOR_STATE
    if tile == "d":
        return TileKind.DOOR_OPEN
    if tile == "1":
        return TileKind.WALL
    return TileKind.FLOOR


def interact_door(grid: MutableSequence[MutableSequence[str]], player: Player) -> None:
    """Open or close the door ahead, or open the exit once all coins are held."""
    tile = next_tile(grid, player)
    x, y = _facing_cell(player)
    if tile is TileKind.DOOR:
        grid[y][x] = "d"
    elif tile is TileKind.DOOR_OPEN:
        grid[y][x] = "D"
    if tile is TileKind.END_DOOR_STATE2:
        grid[y][x] = "p"
"""The player, the map objects and how they are placed from the grid."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import MutableSequence

from cub3d.errors import MapError
from cub3d.vector import Vec2

FOV = 60
PLAYER_TILES = "NSWE"

_DIRECTIONS = {
    "N": Vec2(0.0, -1.0),
    "S": Vec2(0.0, 1.0),
    "W": Vec2(-1.0, 0.0),
    "E": Vec2(1.0, 0.0),
}


class ObjType(enum.Enum):
    ENEMY = "enemy"
    COLLECT = "collect"
    BALL = "ball"
    HP_COLLECT = "hp_collect"


@dataclass(eq=False)
class GameObject:
    """An object on the map: enemy, collectable or projectile.

    Objects compare by identity, so two objects with the same fields are
    still distinct entries in an object list.
    """

    pos: Vec2
    spr_index: object
    hp: int
    type: ObjType
    state: int = 0
    elapsed_time: float = 0.0
    last_time: float = field(default_factory=time.monotonic)


@dataclass
class Player:
    pos: Vec2
    direction: Vec2
    plane: Vec2
    movement: Vec2 = field(default_factory=Vec2)
    angle: float = 0.0
    fov: float = FOV / 90
    pitch: float = 0.0
    coins: int = 0
    damaged: bool = False
    healed: bool = False
    shoot: bool = False
    shoot_anim: bool = False
    ball: GameObject | None = None
    mouse: bool = False
    hp: int = 100


def init_player(x: float, y: float, tile: str, angle: float = 0.0) -> Player:
    """Create a player at (x, y) facing the direction named by tile."""
    try:
        direction = _DIRECTIONS[tile]
    except KeyError:
        raise ValueError(f"not a player tile: {tile!r}") from None
    return Player(
        pos=Vec2(float(x), float(y)),
        direction=direction,
        plane=direction.perp() * (FOV / 90),
        angle=angle,
    )


_BONUS_OBJECTS = {
    "e": ("ENEMY1", 2, ObjType.ENEMY),
    "C": ("COLLEC", 1000, ObjType.COLLECT),
    "H": ("HP_COLLECT1", 1000, ObjType.HP_COLLECT),
}


def place_entities(
    grid: MutableSequence[MutableSequence[str]], bonus: bool = False
) -> tuple[Player, list[GameObject]]:
    """Find the player and, in bonus mode, the map objects.

    Each tile is centred at +0.5. In bonus mode the player and object tiles
    are replaced by floor ('0') in place; otherwise the grid is left alone
    and the player starts with a small idle rotation.
    """
    player: Player | None = None
    objects: list[GameObject] = []
    for y, row in enumerate(grid):
        for x, tile in enumerate(row):
            if tile in PLAYER_TILES:
                player = init_player(x + 0.5, y + 0.5, tile, 0.0 if bonus else 0.1)
                if bonus:
                    row[x] = "0"
            elif bonus and tile in _BONUS_OBJECTS:
                sprite, hp, kind = _BONUS_OBJECTS[tile]
                objects.append(GameObject(Vec2(x + 0.5, y + 0.5), sprite, hp, kind))
                row[x] = "0"
    if player is None:
        raise MapError("Invalid Map")
    return player, objects


def remove_object(objects: list[GameObject], obj: GameObject) -> bool:
    """Remove obj from the list; return whether it was there."""
    try:
        objects.remove(obj)
    except ValueError:
        return False
    return True
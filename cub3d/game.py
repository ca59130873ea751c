"""The game session: input, per-frame update and drawing, and the entry point."""

from __future__ import annotations

import enum
import os
import sys
import time
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional, Sequence, Union

import numpy as np

from cub3d.entities import ObjType, Player, place_entities
from cub3d.errors import CubError, MapError, format_error
from cub3d.floodfill import check_closed
from cub3d.gameplay import (
    MAX_COINS,
    blocked,
    interact_door,
    move_target,
    spawn_ball,
    update_enemies,
    update_player,
)
from cub3d.hud import (
    DAMAGE_RED,
    HEAL_GREEN,
    draw_char,
    draw_coins,
    draw_hearts,
    draw_minimap,
    draw_screen,
    end_game_screen,
    tint,
)
from cub3d.images import HEIGHT, WALL_SPRITES, WIDTH, Image, SpriteId, load_sprites
from cub3d.mapfile import BONUS_TILES, MANDATORY_TILES, MapData, read_map
from cub3d.raycast import Raycaster, enemy_can_see, render_frame
from cub3d.sprites import draw_objects
from cub3d.vector import Vec2

PLAIN_SPEED = 0.05
PLAIN_ROTATION_SPEED = 3
MOUSE_SPEED = 0.05
PITCH_LIMIT = 200
LEFT_CLICK = 1
FRAME_TIME = 0.10
STATUS_TIME = 0.10

PathLike = Union[str, "os.PathLike[str]"]
TextureLoader = Callable[[MapData], Mapping[int, Image]]


class GameState(enum.Enum):
    PLAYING = enum.auto()
    DIED = enum.auto()
    WON = enum.auto()
    PORTAL = enum.auto()


class Key(enum.IntEnum):
    """Key codes understood by the game (X11 keysym values)."""

    SPACE = 32
    A = 97
    D = 100
    E = 101
    Q = 113
    S = 115
    W = 119
    LARROW = 65361
    RARROW = 65363
    ESC = 65307


@dataclass
class Animator:
    """Frame sequencing for the character shown in the HUD."""

    frame: SpriteId = SpriteId.CHARACTER1
    locked: bool = False
    last_time: float = field(default_factory=time.monotonic)

    def character_frame(self, state: GameState, player: Player, elapsed: float) -> SpriteId:
        """Advance the character animation and return the frame to show.

        Death and attack sequences start once and lock out each other; the
        idle and attack loops wrap back to the first idle frame, the dying
        sequence stops on its last frame.
        """
        if state is GameState.DIED and not self.locked:
            self.frame = SpriteId.DYING1
            self.locked = True
        elif player.shoot and not self.locked and player.shoot_anim:
            self.locked = True
            self.frame = SpriteId.ATTACK1
        elif elapsed >= FRAME_TIME and self.frame < SpriteId.DYING7:
            self.frame = SpriteId(self.frame + 1)
            self.last_time = time.monotonic()
        if self.frame in (SpriteId.HP1, SpriteId.ENEMY1):
            player.shoot_anim = False
            self.locked = False
            self.frame = SpriteId.CHARACTER1
        return self.frame


def hp_frame(hp: int) -> SpriteId:
    """Heart sprite for the given hit points."""
    return SpriteId(SpriteId.HP4 - int(hp / 26))


def coins_frame(coins: int) -> SpriteId:
    """Coin counter sprite for the number of coins held."""
    return SpriteId(SpriteId.COINS1 + coins)


def load_level(path: PathLike, bonus: bool = False) -> MapData:
    """Read a scene file and check its size and that it is closed by walls."""
    tiles = BONUS_TILES if bonus else MANDATORY_TILES
    try:
        level = read_map(path, tiles)
    except MapError:
        raise MapError("Invalid Map Config" if bonus else "Invalid Map") from None
    if level.height > HEIGHT or level.width > WIDTH:
        raise MapError("Invalid Map Size")
    check_closed(level.grid)
    return level


class Game:
    """One play session over a sequence of levels.

    In plain mode only the first level is used, movement is per frame and
    only walls are drawn. In bonus mode there are doors, objects, enemies,
    a HUD and portals leading to the following levels.
    """

    def __init__(
        self,
        levels: Sequence[MapData],
        sprites: Mapping[int, Image],
        bonus: bool = False,
        texture_loader: Optional[TextureLoader] = None,
    ) -> None:
        if not levels:
            raise ValueError("at least one level is needed")
        self.levels = list(levels)
        self.sprites = dict(sprites)
        self.bonus = bonus
        self.texture_loader = texture_loader
        self.state = GameState.PLAYING
        self.running = True
        self.animator = Animator()
        self.spr_character = SpriteId.CHARACTER1
        self.spr_hp = SpriteId.HP1
        self.spr_coins = SpriteId.COINS1
        self.elapsed_time = 0.0
        self._enter_level(0)

    def _enter_level(self, index: int) -> None:
        level = self.levels[index]
        if index > 0 and self.texture_loader is not None:
            self.sprites.update(self.texture_loader(level))
        self.floor, self.ceiling = level.colors()
        self.level_index = index
        self.grid = level.grid
        self.player, self.objects = place_entities(self.grid, self.bonus)
        self.raycaster = Raycaster()
        tile_size: float = 5.5 * (HEIGHT // 600)
        if level.height > 60 or level.width > 60 or tile_size < 1:
            tile_size = 1
        self.tile_size = tile_size

    def handle_key_press(self, key: int) -> None:
        player = self.player
        if key == Key.ESC or (not self.bonus and key < 0):
            self.running = False
        elif key == Key.W:
            player.movement = Vec2(player.movement.x, 1.0)
        elif key == Key.S:
            player.movement = Vec2(player.movement.x, -1.0)
        elif key == Key.A:
            player.movement = Vec2(-1.0, player.movement.y)
        elif key == Key.D:
            player.movement = Vec2(1.0, player.movement.y)
        elif key == Key.LARROW:
            player.angle = -1.0
        elif key == Key.RARROW:
            player.angle = 1.0
        elif not self.bonus:
            return
        elif key == Key.E:
            interact_door(self.grid, player)
        elif key == Key.Q:
            player.mouse = True
        elif key == Key.SPACE and not player.shoot:
            spawn_ball(self.objects, player)

    def handle_key_release(self, key: int) -> None:
        player = self.player
        if key in (Key.W, Key.S):
            player.movement = Vec2(player.movement.x, 0.0)
        elif key in (Key.A, Key.D):
            player.movement = Vec2(0.0, player.movement.y)
        elif key in (Key.LARROW, Key.RARROW):
            player.angle = 0.0
        elif self.bonus and key == Key.Q:
            player.mouse = False

    def handle_mouse_motion(self, x: int, y: int) -> bool:
        """Turn and tilt the view; return True when the pointer should be recentred."""
        player = self.player
        if player.mouse:
            return False
        cx, cy = WIDTH // 2, HEIGHT // 2
        if (x != cx or y != cy) and x < WIDTH / 1.25:
            pitch = player.pitch + (cy - y)
            player.pitch = max(-PITCH_LIMIT, min(PITCH_LIMIT, pitch))
            player.angle = (x - cx) * MOUSE_SPEED
            return True
        player.angle = 0.0
        return False

    def handle_mouse_press(self, button: int) -> bool:
        """Fire a projectile on a left click; return whether one was fired."""
        if button == LEFT_CLICK and not self.player.shoot:
            spawn_ball(self.objects, self.player)
            return True
        return False

    def update_state(self) -> GameState:
        if not self.bonus:
            return self.state
        player = self.player
        if player.hp <= 0:
            self.state = GameState.DIED
        elif player.coins == MAX_COINS and self.level_index == len(self.levels) - 1:
            self.state = GameState.WON
        elif (
            player.coins == MAX_COINS
            and self.grid[int(player.pos.y)][int(player.pos.x)] == "p"
        ):
            self.state = GameState.PORTAL
        else:
            self.state = GameState.PLAYING
        return self.state

    def _update_plain(self) -> None:
        player = self.player
        new_pos = move_target(player, PLAIN_SPEED)
        check = move_target(player, PLAIN_SPEED + 0.1)
        if not blocked(self.grid, check):
            player.pos = new_pos
        turn = int(player.angle * PLAIN_ROTATION_SPEED)
        player.direction = player.direction.rotated(turn)
        player.plane = player.plane.rotated(turn)

    def _update_animations(self) -> None:
        self.spr_character = self.animator.character_frame(
            self.state, self.player, self.elapsed_time
        )
        self.spr_hp = hp_frame(self.player.hp)
        self.spr_coins = coins_frame(self.player.coins)

    def update(self, delta: float) -> None:
        """Advance the game by delta seconds (plain mode advances one frame)."""
        if not self.bonus:
            self._update_plain()
            return
        now = time.monotonic()
        self.elapsed_time = now - self.animator.last_time
        self.update_state()
        if self.state is GameState.PORTAL:
            self._enter_level(self.level_index + 1)
        elif self.state is GameState.PLAYING:
            update_player(self.player, self.grid, self.objects, delta)
            for obj in self.objects:
                if obj.type is ObjType.ENEMY:
                    obj.state = int(enemy_can_see(self.grid, obj.pos, self.player.pos))
            update_enemies(self.player, self.objects, delta, now)
            self._update_animations()

    def _draw_status(self, img: Image) -> None:
        player = self.player
        if player.damaged:
            tint(img, DAMAGE_RED)
            if self.elapsed_time >= STATUS_TIME:
                player.damaged = False
        if player.healed:
            tint(img, HEAL_GREEN)
            if self.elapsed_time >= STATUS_TIME:
                player.healed = False

    def draw(self) -> Image:
        """Render the current frame into a new image and return it."""
        img = Image(WIDTH, HEIGHT)
        if not self.bonus:
            textures = [self.sprites[sprite] for sprite in WALL_SPRITES]
            render_frame(img, self.grid, self.player, textures, self.floor, self.ceiling)
            return img
        now = time.monotonic()
        if self.state is GameState.PLAYING:
            self.raycaster.render(
                img, self.grid, self.player, self.sprites,
                self.floor, self.ceiling, now - self.raycaster.door_time,
            )
            draw_objects(
                img, self.sprites, self.objects, self.player,
                self.raycaster.dist_buffer, now,
            )
            draw_char(img, self.sprites, self.spr_character)
            draw_hearts(img, self.sprites, self.spr_hp)
            draw_coins(img, self.sprites, self.spr_coins)
            draw_minimap(img, self.grid, self.player.pos, self.objects, self.tile_size)
            self._draw_status(img)
        else:
            self._update_animations()
            if self.state is GameState.DIED:
                end_game_screen(img, self.sprites, self.spr_character)
            elif self.state is GameState.WON:
                draw_screen(img, self.sprites[SpriteId.WIN_GAME])
        return img


def _build_game(paths: Sequence[str], bonus: bool) -> Game:
    levels = [load_level(path, bonus) for path in paths]
    sprites = load_sprites(levels[0].texture_paths(), "." if bonus else None)
    loader: Optional[TextureLoader] = None
    if bonus:
        def loader(level: MapData) -> Mapping[int, Image]:
            return load_sprites(level.texture_paths())
    return Game(levels, sprites, bonus=bonus, texture_loader=loader)


def _to_rgb(img: Image) -> np.ndarray:
    pixels = img.pixels
    rgb = np.stack(
        [(pixels >> 16) & 0xFF, (pixels >> 8) & 0xFF, pixels & 0xFF], axis=-1
    ).astype(np.uint8)
    return rgb.transpose(1, 0, 2)


def _run(game: Game) -> None:
    import pygame

    pygame.init()
    try:
        try:
            screen = pygame.display.set_mode((WIDTH, HEIGHT))
        except pygame.error:
            raise CubError("Mlx window creation failure") from None
        pygame.display.set_caption("cub3D")
        keymap = {
            pygame.K_ESCAPE: Key.ESC,
            pygame.K_w: Key.W,
            pygame.K_a: Key.A,
            pygame.K_s: Key.S,
            pygame.K_d: Key.D,
            pygame.K_e: Key.E,
            pygame.K_q: Key.Q,
            pygame.K_SPACE: Key.SPACE,
            pygame.K_LEFT: Key.LARROW,
            pygame.K_RIGHT: Key.RARROW,
        }
        if game.bonus:
            pygame.mouse.set_visible(False)
        previous = time.monotonic()
        while game.running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    game.running = False
                elif event.type == pygame.KEYDOWN and event.key in keymap:
                    game.handle_key_press(keymap[event.key])
                elif event.type == pygame.KEYUP and event.key in keymap:
                    game.handle_key_release(keymap[event.key])
                elif game.bonus and event.type == pygame.MOUSEMOTION:
                    if game.handle_mouse_motion(*event.pos):
                        pygame.mouse.set_pos(WIDTH // 2, HEIGHT // 2)
                elif game.bonus and event.type == pygame.MOUSEBUTTONDOWN:
                    game.handle_mouse_press(event.button)
            if not game.running:
                break
            now = time.monotonic()
            game.update(now - previous)
            previous = now
            pygame.surfarray.blit_array(screen, _to_rgb(game.draw()))
            pygame.display.flip()
    finally:
        pygame.quit()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Start the game; ``--bonus`` first selects bonus mode with several maps."""
    args = list(sys.argv[1:] if argv is None else argv)
    bonus = bool(args) and args[0] == "--bonus"
    if bonus:
        args = args[1:]
        if not args:
            sys.stderr.write("Invalid nbr arguments\n")
            return 1
    elif len(args) != 1:
        sys.stderr.write("Invalid Args\n")
        return 1
    try:
        game = _build_game(args, bonus)
        _run(game)
    except CubError as exc:
        sys.stderr.write(format_error(exc.message))
        return exc.status
    return 0
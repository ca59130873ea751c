# cub3d

A small first-person game drawn with grid raycasting (DDA). Levels are
plain-text `.cub` files. The window is 800×600 and is opened with pygame.

## Installing

```
pip install .
```

To run the tests, install the `test` extra and run `pytest`:

```
pip install ".[test]"
pytest
```

## Playing

The game has two modes.

**Plain mode** takes exactly one map file:

```
cub3d level.cub
```

It draws textured walls and the floor and ceiling colours. The keys are:

| Key                 | Action                  |
|---------------------|-------------------------|
| W / S               | move forward / backward |
| A / D               | strafe left / right     |
| Left / Right arrows | turn                    |
| Esc                 | quit                    |

**Bonus mode** is chosen with `--bonus` as the first argument and takes
one or more map files:

```
cub3d --bonus level1.cub level2.cub
```

Bonus mode adds doors, coins, health packs, enemies that chase you once
they can see you, a thrown ball, distance shading, a HUD and a minimap.
Collect all four coins on a level, open its portal (`P`) with E and walk
into it to go to the next level. Collecting all four coins on the last
level wins the game. If your health drops to zero, the game is over.

| Key / input         | Action                                         |
|---------------------|------------------------------------------------|
| W / S               | move forward / backward                        |
| A / D               | strafe left / right                            |
| Left / Right arrows | turn                                           |
| Mouse               | turn and look up or down                       |
| Q (held)            | stop the mouse from turning the view           |
| E                   | open or close the door ahead, or open a portal |
| Space / left click  | throw a ball                                   |
| Esc                 | quit                                           |

In bonus mode the HUD, door, enemy, ball and screen images are read from
the `sprites/` directory under the current working directory. Their
relative paths are returned by `cub3d.images.sprite_paths()`.

Wrong arguments print `Invalid Args` (plain mode) or `Invalid nbr arguments`
(bonus mode with no maps) and exit with status 1. A bad map, texture or
sprite prints `Error` and a one-line reason on standard error and exits
with status 1.

## The `.cub` format

A map file must end in `.cub`. It begins with six configuration lines,
in any order, with blank lines allowed between them:

```
NO ./textures/north.xpm
SO ./textures/south.xpm
WE ./textures/west.xpm
EA ./textures/east.xpm
F 220,100,0
C 225,30,0
```

`NO`, `SO`, `WE` and `EA` name wall textures that must exist and end in
`.xpm`. `F` and `C` set the floor and ceiling colours, each as three
comma-separated values from 0 to 255.

The line right after the sixth configuration line must be empty. Every
line after it is a map row. Plain mode allows these tiles:

* `1` wall, `0` floor, space for outside the map
* `N`, `S`, `E`, `W` the player's start and facing; there must be exactly one

Bonus mode also allows:

* `D` closed door, `d` open door, `P` portal, `p` open portal
* `e` enemy, `C` coin, `H` health pack

The area the player can reach must be closed off by walls. A map may be
at most 800 columns wide and 600 rows high.

## Using it as a library

The modules can be used on their own:

* `cub3d.mapfile.read_map` and `parse_map_lines` parse a scene into a
  `MapData`; `parse_color` and `check_texture_path` check single entries.
* `cub3d.floodfill.check_closed` checks that a grid is closed by walls.
* `cub3d.images.Image` is a 32-bit pixel buffer and `load_xpm` reads XPM
  files into one.
* `cub3d.raycast.cast_ray`, `render_frame` and `Raycaster` trace rays and
  draw frames; `enemy_can_see` tests line of sight.
* `cub3d.sprites` draws billboard sprites; `cub3d.hud` draws the HUD,
  full-screen images, tints and the minimap.
* `cub3d.gameplay` moves the player, the ball and the enemies and works
  the doors.
* `cub3d.game.Game` runs a session without a window: feed it key and
  mouse events, call `update` and `draw`, and it returns an `Image`.
* `cub3d.vector.Vec2` is the 2D vector type used throughout.

## What is not included

No textures or sprite images come with the package. You supply the wall
textures named in each map and, for bonus mode, the `sprites/` directory.
There is no sound.
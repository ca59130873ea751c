"""A raycasting first-person game played on .cub map files."""

__version__ = "1.0.0"
__all__ = [
    "entities",
    "errors",
    "floodfill",
    "game",
    "gameplay",
    "hud",
    "images",
    "mapfile",
    "raycast",
    "sprites",
    "vector",
]
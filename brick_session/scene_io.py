"""Save, load and summarize brick scenes as JSON or PNG (with metadata).

The PNG format stores a top-down plan thumbnail of the scene with the full
scene JSON embedded in a PNG tEXt chunk (key: ``brickyard_scene``), so a
saved file is both a shareable picture and a scene that can be imported
again. Plain JSON files are supported as well.

Loaded scenes are returned as raw dicts; pass them to
``SceneEditor.import_scene`` to get a validated scene back.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from PIL import Image, ImageColor, ImageDraw
from PIL.PngImagePlugin import PngInfo

from brick_engine.catalog import TypeLookup
from brick_engine.footprint import physical_footprint, world_aabb
from brick_engine.types import Scene

logger = logging.getLogger(__name__)

METADATA_KEY = "brickyard_scene"

_BASEPLATE_RGB = (0x23, 0x78, 0x41)
_GRID_RGB = (0x1E, 0x6A, 0x39)
_UNKNOWN_RGB = (0x9B, 0xA1, 0x9D)


def _color_rgb(color: str) -> tuple[int, int, int]:
    try:
        return ImageColor.getrgb(color)[:3]
    except ValueError:
        return _UNKNOWN_RGB


def render_plan(
    scene: Scene,
    lookup: TypeLookup,
    baseplate_size: int = 48,
    cell_px: int = 8,
) -> Image.Image:
    """Draw the scene from above, one ``cell_px`` square per stud.

    Bricks are painted lowest first so the topmost brick in each column
    shows. Corner bricks draw only their L arms.
    """
    side = baseplate_size * cell_px
    img = Image.new("RGB", (side, side), _BASEPLATE_RGB)
    draw = ImageDraw.Draw(img)
    for i in range(1, baseplate_size):
        p = i * cell_px
        draw.line([(p, 0), (p, side)], fill=_GRID_RGB)
        draw.line([(0, p), (side, p)], fill=_GRID_RGB)

    typed = []
    for brick in scene.bricks:
        brick_type = lookup.get(brick.type_id)
        if brick_type is not None:
            typed.append((brick, brick_type))
    typed.sort(key=lambda bt: world_aabb(*bt).max_y)

    for brick, brick_type in typed:
        fill = _color_rgb(brick.color)
        for box in physical_footprint(brick, brick_type):
            draw.rectangle(
                [
                    box.min_x * cell_px,
                    box.min_z * cell_px,
                    box.max_x * cell_px - 1,
                    box.max_z * cell_px - 1,
                ],
                fill=fill,
                outline=(0, 0, 0),
            )
    return img


def save_scene_png(
    scene: Scene,
    lookup: TypeLookup,
    path: str,
    baseplate_size: int = 48,
) -> None:
    """Render a plan thumbnail and save it with the scene JSON embedded."""
    img = render_plan(scene, lookup, baseplate_size)
    info = PngInfo()
    info.add_text(METADATA_KEY, json.dumps(scene.to_dict()))
    img.save(path, pnginfo=info)
    logger.debug("Saved scene %r to %s", scene.name, path)


def _scene_object(data, source: str) -> dict:
    """Check that decoded file contents look like a scene.

    Only the outer shape is checked here; individual bricks are validated
    when the scene is imported.
    """
    if not isinstance(data, dict):
        raise ValueError(
            f"{source} does not contain a scene object "
            f"(got {type(data).__name__})"
        )
    if not isinstance(data.get("bricks", []), list):
        raise ValueError(f"{source} has a 'bricks' entry that is not a list")
    return data


def load_scene_png(path: str) -> dict:
    """Load a scene dict from a PNG file's tEXt metadata.

    Raises ValueError if the PNG does not contain scene metadata.
    """
    with Image.open(path) as img:
        text_data = getattr(img, "text", None)
        if not text_data or METADATA_KEY not in text_data:
            raise ValueError(
                "PNG file does not contain scene metadata "
                f"(missing '{METADATA_KEY}' chunk)"
            )
        raw = text_data[METADATA_KEY]
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Corrupt '{METADATA_KEY}' chunk in {path}: {e}")
    return _scene_object(data, path)


def save_scene_json(scene: Scene, path: str) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(scene.to_dict(), f, indent=2)
        f.write("\n")


def load_scene_json(path: str) -> dict:
    with open(path) as f:
        data = json.load(f)
    return _scene_object(data, path)


_LOADERS = {
    ".png": load_scene_png,
    ".json": load_scene_json,
}


def load_scene(path: str) -> dict:
    """Load a scene dict from a .png or .json file (case-insensitive).

    Raises ValueError for other extensions and for files whose contents
    are not a scene object.
    """
    loader = _LOADERS.get(Path(path).suffix.lower())
    if loader is None:
        raise ValueError(
            f"Unsupported file extension: {path} "
            f"(expected one of {', '.join(_LOADERS)})"
        )
    scene = loader(path)
    logger.debug(
        "Loaded scene %r (%d bricks) from %s",
        scene.get("name"),
        len(scene.get("bricks", [])),
        path,
    )
    return scene


def scene_summary(scene: Scene, lookup: TypeLookup) -> dict:
    """Brick count, overall extent and per-color counts of a scene."""
    if not scene.bricks:
        return {"name": scene.name, "brickCount": 0}

    colors: dict[str, int] = {}
    boxes = []
    for brick in scene.bricks:
        colors[brick.color] = colors.get(brick.color, 0) + 1
        brick_type = lookup.get(brick.type_id)
        if brick_type is not None:
            boxes.append(world_aabb(brick, brick_type))

    dims = {"x": 0, "y": 0, "z": 0}
    if boxes:
        dims = {
            "x": max(b.max_x for b in boxes) - min(b.min_x for b in boxes),
            "y": max(b.max_y for b in boxes) - min(b.min_y for b in boxes),
            "z": max(b.max_z for b in boxes) - min(b.min_z for b in boxes),
        }
    return {
        "name": scene.name,
        "brickCount": len(scene.bricks),
        "dimensions": dims,
        "colors": colors,
    }


def export_scene(
    scene: Scene, lookup: TypeLookup, format: str = "summary"
) -> dict:
    """Export as the full scene dict ("json") or its summary ("summary")."""
    if format == "json":
        return scene.to_dict()
    if format == "summary":
        return scene_summary(scene, lookup)
    raise ValueError(f"Unsupported export format: {format!r}")

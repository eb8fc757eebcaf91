"""Command-line tools for brick scene files.

Usage:
    brickyard validate scene.json                  # replay, report drops
    brickyard validate scene.png -o clean.json     # write normalized scene
    brickyard summary scene.json                   # counts, extent, colors
    brickyard catalog                              # list types by category
    brickyard render scene.json plan.png           # plan thumbnail + scene

Every command that reads a scene replays it through the same checks as a
live import, so the output only ever contains bricks that are valid.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from brick_engine.catalog import (
    BrickCatalog,
    load_builtin_catalog,
    load_catalog,
)
from brick_engine.errors import BrickError
from brick_engine.mutation import ImportResult, SceneEditor
from brick_engine.types import EngineConfig, Scene

from .scene_io import (
    load_scene,
    save_scene_json,
    save_scene_png,
    scene_summary,
)

logger = logging.getLogger(__name__)


def _catalog(args) -> BrickCatalog:
    if args.catalog:
        return load_catalog(args.catalog)
    return load_builtin_catalog()


def _import(args, catalog: BrickCatalog) -> tuple[Scene, ImportResult]:
    config = EngineConfig(baseplate_size=args.baseplate_size)
    scene = Scene(name=config.default_scene_name)
    editor = SceneEditor(scene, catalog, config)
    result = editor.import_scene(load_scene(args.scene))
    return scene, result


def _save(scene: Scene, catalog: BrickCatalog, path: str, size: int) -> None:
    if path.lower().endswith(".png"):
        save_scene_png(scene, catalog, path, baseplate_size=size)
    else:
        save_scene_json(scene, path)


def cmd_validate(args) -> int:
    catalog = _catalog(args)
    scene, result = _import(args, catalog)
    print(result.message)
    if args.output:
        _save(scene, catalog, args.output, args.baseplate_size)
        print(f"Wrote {len(scene.bricks)} bricks to {args.output}")
    if args.strict and result.dropped:
        return 1
    return 0


def cmd_summary(args) -> int:
    catalog = _catalog(args)
    scene, _ = _import(args, catalog)
    print(json.dumps(scene_summary(scene, catalog), indent=2))
    return 0


def cmd_catalog(args) -> int:
    catalog = _catalog(args)
    grouped = catalog.by_category()
    if args.json:
        print(json.dumps(grouped, indent=2))
        return 0
    for category, entries in grouped.items():
        print(f"{category} ({len(entries)})")
        for e in entries:
            print(
                f"  {e['typeId']:<16} {e['name']:<24} "
                f"{e['studsX']}x{e['studsZ']}, height {e['heightUnits']}"
            )
    return 0


def cmd_render(args) -> int:
    catalog = _catalog(args)
    scene, result = _import(args, catalog)
    save_scene_png(
        scene, catalog, args.output, baseplate_size=args.baseplate_size
    )
    print(f"{result.message}; rendered to {args.output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="brickyard", description="Validate and inspect brick scenes"
    )
    parser.add_argument(
        "--catalog", help="Brick type catalog JSON (default: built-in)"
    )
    parser.add_argument(
        "--baseplate-size",
        type=int,
        default=EngineConfig.baseplate_size,
        help="Baseplate side length in studs (default: 48)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Debug logging"
    )
    sub = parser.add_subparsers(dest="command")

    p_validate = sub.add_parser(
        "validate", help="Replay a scene file and report dropped bricks"
    )
    p_validate.add_argument("scene", help="Scene file (.json or .png)")
    p_validate.add_argument(
        "--output", "-o", help="Write the normalized scene (.json or .png)"
    )
    p_validate.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 if any brick was dropped",
    )

    p_summary = sub.add_parser("summary", help="Print a scene summary")
    p_summary.add_argument("scene", help="Scene file (.json or .png)")

    p_catalog = sub.add_parser("catalog", help="List brick types")
    p_catalog.add_argument(
        "--json", action="store_true", help="Print the listing as JSON"
    )

    p_render = sub.add_parser(
        "render", help="Save a plan thumbnail PNG with the scene embedded"
    )
    p_render.add_argument("scene", help="Scene file (.json or .png)")
    p_render.add_argument("output", help="Output .png path")

    return parser


_COMMANDS = {
    "validate": cmd_validate,
    "summary": cmd_summary,
    "catalog": cmd_catalog,
    "render": cmd_render,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    command = _COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 1
    try:
        return command(args)
    except (BrickError, OSError, ValueError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

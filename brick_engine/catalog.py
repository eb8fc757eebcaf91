"""Brick type catalog: an append-only registry plus JSON loading helpers.

``BrickCatalog`` maps a type id to its ``BrickType``. Types can be added at
any time (e.g. when a new part id is first seen) but never mutated or
removed, so the geometry code can hold on to a lookup without caring where
the types came from. Everything downstream only needs ``get(type_id)``
(see ``TypeLookup``).

Catalog JSON files look like::

    {"name": "Standard", "types": [{"id": "brick_2x4", "category": "brick",
      "studsX": 2, "studsZ": 4, "heightUnits": 3}, ...]}

The built-in catalog lives in ``brick_engine/catalogs/standard.json``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterator, Protocol

from .types import BrickType

logger = logging.getLogger(__name__)

_CATALOGS_DIR = Path(__file__).parent / "catalogs"


class TypeLookup(Protocol):
    def get(self, type_id: str) -> BrickType | None: ...


class BrickCatalog:
    def __init__(
        self, types: list[BrickType] | None = None, name: str | None = None
    ) -> None:
        self.name = name
        self._types: dict[str, BrickType] = {}
        for bt in types or []:
            self.register(bt)

    def register(self, brick_type: BrickType) -> BrickType:
        """Add a type. Re-registering an identical definition is a no-op.

        Raises ValueError if a different definition already uses the id.
        """
        existing = self._types.get(brick_type.id)
        if existing is not None:
            if existing != brick_type:
                raise ValueError(
                    f"Brick type {brick_type.id!r} is already registered "
                    "with a different definition"
                )
            return existing
        self._types[brick_type.id] = brick_type
        logger.debug("Registered brick type %s", brick_type.id)
        return brick_type

    def register_dict(self, d: dict) -> BrickType:
        return self.register(BrickType.from_dict(d))

    def get(self, type_id: str) -> BrickType | None:
        return self._types.get(type_id)

    def __contains__(self, type_id: object) -> bool:
        return type_id in self._types

    def __iter__(self) -> Iterator[BrickType]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)

    def by_category(self) -> dict[str, list[dict]]:
        """Group types by category for listing to clients.

        Categories and the types within them keep registration order.
        """
        grouped: dict[str, list[dict]] = {}
        for bt in self._types.values():
            grouped.setdefault(bt.category, []).append(
                {
                    "typeId": bt.id,
                    "name": bt.name or bt.id,
                    "studsX": bt.studs_x,
                    "studsZ": bt.studs_z,
                    "heightUnits": bt.height_units,
                }
            )
        return grouped

    @staticmethod
    def from_dict(d: dict) -> BrickCatalog:
        return BrickCatalog(
            types=[BrickType.from_dict(t) for t in d.get("types", [])],
            name=d.get("name"),
        )

    def to_dict(self) -> dict:
        d: dict = {"types": [bt.to_dict() for bt in self._types.values()]}
        if self.name:
            d["name"] = self.name
        return d


def builtin_catalog_path(name: str = "standard") -> Path:
    """Return the path to a built-in catalog JSON file.

    Args:
        name: Catalog name without extension (e.g. "standard").
    """
    return _CATALOGS_DIR / f"{name}.json"


def load_catalog(path: Path | str) -> BrickCatalog:
    """Load a JSON catalog file and return a ``BrickCatalog``."""
    with open(path) as f:
        data = json.load(f)
    catalog = BrickCatalog.from_dict(data)
    logger.info("Loaded %d brick types from %s", len(catalog), path)
    return catalog


def load_builtin_catalog(name: str = "standard") -> BrickCatalog:
    return load_catalog(builtin_catalog_path(name))


def save_catalog(catalog: BrickCatalog, path: Path | str) -> None:
    """Write a catalog to a JSON file, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(catalog.to_dict(), f, indent=2)
        f.write("\n")

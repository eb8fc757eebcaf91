"""Data types matching the brickyard scene and catalog JSON schema.

JSON keys follow the camelCase used by scene files and mutation requests
(``typeId``, ``studsX``, ``heightUnits``...); Python attributes are
snake_case. Every type converts with ``from_dict`` / ``to_dict``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

ROTATIONS = (0, 90, 180, 270)

CATEGORIES = ("brick", "plate", "slope", "technic", "corner", "generic")


@dataclass(frozen=True)
class BlockoutZone:
    """Stud-free rectangle above a type's top surface, in local stud units."""

    min_x: float
    max_x: float
    min_z: float
    max_z: float
    height: float

    @staticmethod
    def from_dict(d: dict) -> BlockoutZone:
        return BlockoutZone(
            min_x=d["minX"],
            max_x=d["maxX"],
            min_z=d["minZ"],
            max_z=d["maxZ"],
            height=d["height"],
        )

    def to_dict(self) -> dict:
        return {
            "minX": self.min_x,
            "maxX": self.max_x,
            "minZ": self.min_z,
            "maxZ": self.max_z,
            "height": self.height,
        }


@dataclass(frozen=True)
class BrickType:
    id: str
    category: str
    studs_x: int
    studs_z: int
    height_units: int
    name: str | None = None
    blockout: tuple[BlockoutZone, ...] = ()

    @staticmethod
    def from_dict(d: dict) -> BrickType:
        category = d.get("category", "generic")
        if category not in CATEGORIES:
            raise ValueError(
                f"Unknown category {category!r} for brick type {d.get('id')!r}"
            )
        if category == "corner" and d["studsX"] != d["studsZ"]:
            raise ValueError(
                f"Corner brick type {d.get('id')!r} must be square"
            )
        return BrickType(
            id=d["id"],
            category=category,
            studs_x=d["studsX"],
            studs_z=d["studsZ"],
            height_units=d["heightUnits"],
            name=d.get("name"),
            blockout=tuple(
                BlockoutZone.from_dict(b) for b in d.get("blockout", [])
            ),
        )

    def to_dict(self) -> dict:
        d: dict = {
            "id": self.id,
            "category": self.category,
            "studsX": self.studs_x,
            "studsZ": self.studs_z,
            "heightUnits": self.height_units,
        }
        if self.name:
            d["name"] = self.name
        if self.blockout:
            d["blockout"] = [b.to_dict() for b in self.blockout]
        return d


@dataclass
class BrickInstance:
    id: str
    type_id: str
    x: int
    y: int
    z: int
    rotation: int = 0
    color: str = "#cc0000"

    @staticmethod
    def from_dict(d: dict) -> BrickInstance:
        pos = d["position"]
        type_id = d["typeId"]
        if not isinstance(type_id, str):
            raise ValueError(
                f"Brick type id must be a string, got {type_id!r}"
            )
        return BrickInstance(
            id=d.get("id", ""),
            type_id=type_id,
            x=_grid_int(pos["x"]),
            y=_grid_int(pos["y"]),
            z=_grid_int(pos["z"]),
            rotation=parse_rotation(d.get("rotation", 0)),
            color=d.get("color", "#cc0000"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "typeId": self.type_id,
            "position": {"x": self.x, "y": self.y, "z": self.z},
            "rotation": self.rotation,
            "color": self.color,
        }


@dataclass(frozen=True)
class AABB:
    min_x: float
    max_x: float
    min_y: float
    max_y: float
    min_z: float
    max_z: float

    def as_tuple(self) -> tuple[float, float, float, float, float, float]:
        return (
            self.min_x,
            self.max_x,
            self.min_y,
            self.max_y,
            self.min_z,
            self.max_z,
        )


@dataclass
class Scene:
    name: str = "Untitled"
    bricks: list[BrickInstance] = field(default_factory=list)
    version: int = 0

    @staticmethod
    def from_dict(d: dict) -> Scene:
        return Scene(
            name=d.get("name", "Untitled"),
            bricks=[BrickInstance.from_dict(b) for b in d.get("bricks", [])],
            version=d.get("version", 0),
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "bricks": [b.to_dict() for b in self.bricks],
            "version": self.version,
        }

    def find(self, brick_id: str) -> BrickInstance | None:
        for b in self.bricks:
            if b.id == brick_id:
                return b
        return None


@dataclass
class EngineConfig:
    baseplate_size: int = 48
    default_color: str = "#cc0000"
    default_scene_name: str = "Untitled"

    @staticmethod
    def from_dict(d: dict | None) -> EngineConfig:
        if not d:
            return EngineConfig()
        return EngineConfig(
            baseplate_size=d.get("baseplate_size", 48),
            default_color=d.get("default_color", "#cc0000"),
            default_scene_name=d.get("default_scene_name", "Untitled"),
        )


def _grid_int(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Grid coordinate must be an integer, got {value!r}")
    return value


def parse_rotation(value: int | str) -> int:
    """Accept 0/90/180/270 as int or numeric string.

    Raises ValueError for anything else (including 45, 360, "abc", bools).
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid rotation {value!r}")
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise ValueError(f"Invalid rotation {value!r}") from None
    if not isinstance(value, int) or value not in ROTATIONS:
        raise ValueError(
            f"Invalid rotation {value!r}; expected one of {ROTATIONS}"
        )
    return value

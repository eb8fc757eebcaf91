"""Scene mutations: the only code path that changes a ``Scene``.

``SceneEditor`` wraps a ``Scene`` handle and a type lookup and exposes the
edit operations. Each runs a fixed validation pipeline and either commits
or raises a typed error from ``errors.py`` without touching the scene:

  * **place**: Type → Bounds → Support → Collision, then append a brick
    with a fresh id.
  * **move** / **rotate**: the same checks for a candidate copy of an
    existing brick, evaluated against the scene minus that brick. On
    success the brick is updated in place and the cascade runs.
  * **paint** / **rename**: no geometry, always commit.
  * **remove**: unconditional delete, then cascade.
  * **clear**: drop everything.
  * **import_scene**: replace the scene wholesale by replaying the incoming
    bricks (lowest first) through the place checks against an empty scene,
    silently dropping any that fail.
  * **place_batch**: place many bricks lowest first, recording failures
    and stopping early (without rollback) when asked to.

The **cascade** repeatedly removes every brick that ``find_unsupported``
reports until a pass removes nothing. Removing one floating brick can
strand others above it, so a single pass is not enough.

Every committed operation bumps ``scene.version`` exactly once, cascade
included; failed operations leave it alone. Callers that share a scene
between writers must serialize calls (see ``brick_session.sessions``).

The check order matters: when a candidate violates several rules only the
first is reported. One refinement: a candidate that is unsupported but
overlaps another brick's material is reported as ``Collision``.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Callable

from .catalog import TypeLookup
from .collision import check_bounds, check_collision, interpenetrates
from .errors import (
    BrickError,
    BrickNotFound,
    Collision,
    InvalidImportFormat,
    InvalidRotation,
    OutOfBounds,
    UnknownBrickType,
    Unsupported,
)
from .footprint import footprint_summary
from .support import check_support, find_unsupported
from .types import (
    BrickInstance,
    BrickType,
    EngineConfig,
    Scene,
    parse_rotation,
)

logger = logging.getLogger(__name__)


@dataclass
class MutationResult:
    action: str  # "place", "move", "rotate", "paint", "remove", "clear", ...
    version: int
    brick: BrickInstance | None = None
    footprint: dict | None = None
    cascade_removed: list[BrickInstance] = field(default_factory=list)
    message: str = ""

    def to_dict(self) -> dict:
        d: dict = {
            "action": self.action,
            "version": self.version,
            "cascadeRemoved": len(self.cascade_removed),
            "message": self.message,
        }
        if self.brick is not None:
            brick_d = self.brick.to_dict()
            if self.footprint is not None:
                brick_d["footprint"] = self.footprint
            d["brick"] = brick_d
        if self.cascade_removed:
            d["cascadeRemovedIds"] = [b.id for b in self.cascade_removed]
        return d


@dataclass
class ImportResult:
    name: str
    placed: int
    dropped: int
    version: int

    @property
    def message(self) -> str:
        msg = f"Imported scene '{self.name}' with {self.placed} bricks"
        if self.dropped:
            msg += (
                f" (dropped {self.dropped} invalid/floating/colliding bricks)"
            )
        return msg

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "placed": self.placed,
            "dropped": self.dropped,
            "version": self.version,
            "message": self.message,
        }


@dataclass
class BatchFailure:
    request: Any
    error: BrickError


@dataclass
class BatchResult:
    placed: list[MutationResult] = field(default_factory=list)
    failed: list[BatchFailure] = field(default_factory=list)
    cancelled: bool = False

    def to_dict(self) -> dict:
        return {
            "placed": [r.to_dict() for r in self.placed],
            "failed": [
                {"request": f.request, **f.error.to_dict()}
                for f in self.failed
            ],
            "cancelled": self.cancelled,
        }


def request_sort_key(request: Any) -> int | float:
    """Sort key for raw brick entries; malformed entries sort first."""
    if not isinstance(request, dict):
        return 0
    y = request.get("y")
    if y is None and isinstance(request.get("position"), dict):
        y = request["position"].get("y")
    if isinstance(y, (int, float)) and not isinstance(y, bool):
        return y
    return 0


def _field(request: dict, key: str) -> Any:
    try:
        return request[key]
    except KeyError:
        op = request.get("operation", "brick")
        raise BrickError(
            f"Malformed {op} request: missing {key!r}", request=request
        ) from None


def run_batch(
    requests: list[dict],
    place_one: Callable[[dict], MutationResult],
    should_stop: Callable[[], bool] | None = None,
    on_placed: Callable[[MutationResult], None] | None = None,
) -> BatchResult:
    """Feed ``requests`` to ``place_one`` lowest ``y`` first.

    A ``BrickError`` is recorded as a failure and the batch moves on.
    ``should_stop`` is polled before each brick; once it returns true the
    batch ends, keeping what was already committed.
    """
    result = BatchResult()
    for request in sorted(requests, key=request_sort_key):
        if should_stop is not None and should_stop():
            result.cancelled = True
            break
        try:
            placed = place_one(request)
        except BrickError as e:
            result.failed.append(BatchFailure(request, e))
            continue
        result.placed.append(placed)
        if on_placed is not None:
            on_placed(placed)
    logger.info(
        "Batch placed %d brick(s), %d failed%s",
        len(result.placed),
        len(result.failed),
        " (cancelled)" if result.cancelled else "",
    )
    return result


class SceneEditor:
    def __init__(
        self,
        scene: Scene,
        lookup: TypeLookup,
        config: EngineConfig | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.scene = scene
        self.lookup = lookup
        self.config = config or EngineConfig()
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)

    # -- helpers --------------------------------------------------------

    def _fresh_id(self, taken: set[str] | None = None) -> str:
        if taken is None:
            taken = {b.id for b in self.scene.bricks}
        while True:
            new_id = self._id_factory()
            if new_id not in taken:
                return new_id

    def _resolve_type(self, type_id: str, **params) -> BrickType:
        brick_type = None
        if isinstance(type_id, str):
            brick_type = self.lookup.get(type_id)
        if brick_type is None:
            raise UnknownBrickType(
                f'Unknown brick type "{type_id}"', type_id=type_id, **params
            )
        return brick_type

    def _require(self, brick_id: str) -> BrickInstance:
        brick = self.scene.find(brick_id)
        if brick is None:
            raise BrickNotFound(
                f'Brick not found: "{brick_id}"', brick_id=brick_id
            )
        return brick

    def _rotation(self, rotation: int | str, **params) -> int:
        try:
            return parse_rotation(rotation)
        except ValueError as e:
            raise InvalidRotation(
                str(e), rotation=rotation, **params
            ) from None

    def _validate(
        self,
        bricks: list[BrickInstance],
        candidate: BrickInstance,
        brick_type: BrickType,
        exclude_id: str | None = None,
        **params,
    ) -> None:
        """Bounds → Support → Collision against ``bricks``.

        Off-grid coordinates fail the bounds stage. Raises the first
        failing check's error.
        """
        position = {"x": candidate.x, "y": candidate.y, "z": candidate.z}
        params = {
            "type_id": candidate.type_id,
            "position": position,
            "rotation": candidate.rotation,
            **params,
        }
        for value in position.values():
            if isinstance(value, bool) or not isinstance(value, int):
                raise OutOfBounds(
                    "Position must be whole grid coordinates", **params
                )
        size = self.config.baseplate_size
        reason = check_bounds(candidate, brick_type, size)
        if reason is not None:
            raise OutOfBounds(reason, **params)

        others = [b for b in bricks if b.id != exclude_id]
        if not check_support(others, candidate, brick_type, self.lookup):
            if interpenetrates(others, candidate, brick_type, self.lookup):
                raise Collision(
                    "Collision: overlaps an existing brick", **params
                )
            raise Unsupported(
                "No support: brick must be on the baseplate (y=0) or "
                "resting on top of another brick",
                **params,
            )

        if check_collision(
            bricks, candidate, brick_type, self.lookup, exclude_id
        ):
            raise Collision("Collision: overlaps an existing brick", **params)

    def _commit(self) -> int:
        self.scene.version += 1
        return self.scene.version

    def _cascade(self) -> list[BrickInstance]:
        removed: list[BrickInstance] = []
        while True:
            unsupported = set(find_unsupported(self.scene.bricks, self.lookup))
            if not unsupported:
                break
            removed.extend(b for b in self.scene.bricks if b.id in unsupported)
            self.scene.bricks[:] = [
                b for b in self.scene.bricks if b.id not in unsupported
            ]
        if removed:
            logger.info(
                "Cascade removed %d unsupported brick(s) from %r",
                len(removed),
                self.scene.name,
            )
        return removed

    def _summary(self, brick: BrickInstance) -> dict | None:
        brick_type = self.lookup.get(brick.type_id)
        if brick_type is None:
            return None
        return footprint_summary(brick, brick_type)

    # -- operations -----------------------------------------------------

    def place(
        self,
        type_id: str,
        x: int,
        y: int,
        z: int,
        rotation: int | str = 0,
        color: str | None = None,
    ) -> MutationResult:
        position = {"x": x, "y": y, "z": z}
        brick_type = self._resolve_type(
            type_id, position=position, rotation=rotation
        )
        rot = self._rotation(rotation, type_id=type_id, position=position)
        candidate = BrickInstance(
            id=self._fresh_id(),
            type_id=type_id,
            x=x,
            y=y,
            z=z,
            rotation=rot,
            color=color or self.config.default_color,
        )
        try:
            self._validate(self.scene.bricks, candidate, brick_type)
        except BrickError as e:
            logger.debug("Rejected place of %s: %s", type_id, e)
            raise

        self.scene.bricks.append(candidate)
        version = self._commit()
        logger.debug(
            "Placed %s %s at (%d, %d, %d)", type_id, candidate.id, x, y, z
        )
        return MutationResult(
            action="place",
            version=version,
            brick=candidate,
            footprint=footprint_summary(candidate, brick_type),
            message=f"Placed {brick_type.name or type_id} at ({x}, {y}, {z})",
        )

    def _revalidate(
        self, brick: BrickInstance, candidate: BrickInstance, action: str
    ) -> BrickType:
        brick_type = self._resolve_type(brick.type_id, brick_id=brick.id)
        try:
            self._validate(
                self.scene.bricks,
                candidate,
                brick_type,
                exclude_id=brick.id,
                brick_id=brick.id,
            )
        except BrickError as e:
            logger.debug("Rejected %s of %s: %s", action, brick.id, e)
            raise
        return brick_type

    def move(self, brick_id: str, x: int, y: int, z: int) -> MutationResult:
        brick = self._require(brick_id)
        candidate = replace(brick, x=x, y=y, z=z)
        brick_type = self._revalidate(brick, candidate, "move")

        old = (brick.x, brick.y, brick.z)
        brick.x, brick.y, brick.z = x, y, z
        removed = self._cascade()
        version = self._commit()
        msg = f"Moved {brick.type_id} from {old} to ({x}, {y}, {z})"
        if any(b is brick for b in removed):
            # It rested on a brick that only stood on its old spot.
            msg += (
                ", which left it unsupported. Removed it and "
                f"{len(removed) - 1} other brick(s)."
            )
        elif removed:
            msg += f". Removed {len(removed)} unsupported brick(s)."
        return MutationResult(
            action="move",
            version=version,
            brick=brick,
            footprint=footprint_summary(brick, brick_type),
            cascade_removed=removed,
            message=msg,
        )

    def rotate(self, brick_id: str, rotation: int | str) -> MutationResult:
        brick = self._require(brick_id)
        rot = self._rotation(rotation, brick_id=brick_id)
        candidate = replace(brick, rotation=rot)
        brick_type = self._revalidate(brick, candidate, "rotate")

        brick.rotation = rot
        removed = self._cascade()
        version = self._commit()
        msg = f"Rotated {brick.type_id} to {rot} degrees"
        if removed:
            msg += f". Removed {len(removed)} unsupported brick(s)."
        return MutationResult(
            action="rotate",
            version=version,
            brick=brick,
            footprint=footprint_summary(brick, brick_type),
            cascade_removed=removed,
            message=msg,
        )

    def paint(self, brick_id: str, color: str) -> MutationResult:
        brick = self._require(brick_id)
        brick.color = color
        version = self._commit()
        return MutationResult(
            action="paint",
            version=version,
            brick=brick,
            footprint=self._summary(brick),
            message=f"Painted {brick.type_id} {color}",
        )

    def remove(self, brick_id: str) -> MutationResult:
        brick = self._require(brick_id)
        self.scene.bricks[:] = [b for b in self.scene.bricks if b is not brick]
        removed = self._cascade()
        version = self._commit()
        msg = (
            f"Removed {brick.type_id} from "
            f"({brick.x}, {brick.y}, {brick.z})"
        )
        if removed:
            msg += (
                f". Also removed {len(removed)} unsupported brick(s) above it."
            )
        logger.debug("Removed %s", brick.id)
        return MutationResult(
            action="remove",
            version=version,
            brick=brick,
            cascade_removed=removed,
            message=msg,
        )

    def clear(self) -> MutationResult:
        count = len(self.scene.bricks)
        self.scene.bricks.clear()
        version = self._commit()
        return MutationResult(
            action="clear", version=version, message=f"Cleared {count} bricks"
        )

    def rename(self, name: str) -> MutationResult:
        self.scene.name = name
        version = self._commit()
        return MutationResult(
            action="rename",
            version=version,
            message=f"Scene renamed to '{name}'",
        )

    def import_scene(self, raw: dict | str | bytes) -> ImportResult:
        """Replace the scene with a validated copy of ``raw``.

        ``raw`` is a dict (or JSON text) with a non-empty ``name`` and a
        ``bricks`` list. Bricks are replayed lowest first through the place
        checks; malformed or invalid ones are dropped and counted.
        """
        if isinstance(raw, (str, bytes)):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as e:
                raise InvalidImportFormat(f"Invalid JSON: {e.msg}") from None
        if (
            not isinstance(raw, dict)
            or not isinstance(raw.get("name"), str)
            or not raw["name"]
            or not isinstance(raw.get("bricks"), list)
        ):
            raise InvalidImportFormat(
                'Invalid scene format: expected {"name": "...", '
                '"bricks": [...]}'
            )

        target: list[BrickInstance] = []
        taken: set[str] = set()
        dropped = 0
        for entry in sorted(raw["bricks"], key=request_sort_key):
            try:
                brick = BrickInstance.from_dict(entry)
            except (KeyError, TypeError, ValueError):
                dropped += 1
                continue
            if (
                not isinstance(brick.id, str)
                or not brick.id
                or brick.id in taken
            ):
                brick.id = self._fresh_id(taken)
            if "color" not in entry or not isinstance(brick.color, str):
                brick.color = self.config.default_color

            brick_type = self.lookup.get(brick.type_id)
            if brick_type is None:
                dropped += 1
                continue
            try:
                self._validate(target, brick, brick_type)
            except BrickError:
                dropped += 1
                continue
            target.append(brick)
            taken.add(brick.id)

        self.scene.name = raw["name"]
        self.scene.bricks[:] = target
        version = self._commit()
        result = ImportResult(
            name=self.scene.name,
            placed=len(target),
            dropped=dropped,
            version=version,
        )
        logger.info(result.message)
        return result

    def place_request(self, request: dict) -> MutationResult:
        """``place`` driven by a ``{"typeId", "x", "y", "z", ...}`` dict.

        A request missing required keys raises a plain ``BrickError``.
        """
        if not isinstance(request, dict):
            raise BrickError(
                "Malformed brick request: expected an object", request=request
            )
        return self.place(
            _field(request, "typeId"),
            _field(request, "x"),
            _field(request, "y"),
            _field(request, "z"),
            request.get("rotation", 0),
            request.get("color"),
        )

    def place_batch(
        self,
        requests: list[dict],
        should_stop: Callable[[], bool] | None = None,
        on_placed: Callable[[MutationResult], None] | None = None,
    ) -> BatchResult:
        """Place many bricks, lowest ``y`` first (see ``run_batch``)."""
        return run_batch(
            requests, self.place_request, should_stop, on_placed
        )

    def apply(self, request: dict) -> MutationResult | ImportResult:
        """Dispatch a ``{"operation": ..., ...}`` mutation request.

        Missing fields raise ``BrickError`` echoing the request; an
        unknown operation raises ``ValueError``.
        """
        if not isinstance(request, dict):
            raise BrickError(
                "Malformed request: expected an object", request=request
            )
        op = request.get("operation")
        if op == "place":
            return self.place_request(request)
        if op == "move":
            return self.move(
                _field(request, "brickId"),
                _field(request, "x"),
                _field(request, "y"),
                _field(request, "z"),
            )
        if op == "rotate":
            return self.rotate(
                _field(request, "brickId"), _field(request, "rotation")
            )
        if op == "paint":
            return self.paint(
                _field(request, "brickId"), _field(request, "color")
            )
        if op == "remove":
            return self.remove(_field(request, "brickId"))
        if op == "clear":
            return self.clear()
        if op == "rename":
            return self.rename(_field(request, "name"))
        if op == "import":
            return self.import_scene(_field(request, "scene"))
        raise ValueError(f"Unknown operation: {op!r}")

    def snapshot(self) -> dict:
        """Scene dict with a ``footprint`` summary on every brick."""
        d = self.scene.to_dict()
        for brick, brick_d in zip(self.scene.bricks, d["bricks"]):
            summary = self._summary(brick)
            if summary is not None:
                brick_d["footprint"] = summary
        return d

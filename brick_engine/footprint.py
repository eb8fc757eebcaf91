"""World-space geometry for placed bricks.

Three views of a brick are used by the collision and support checks:

  * ``world_aabb``: the full bounding box after rotation. Rotation by 90°
    or 270° swaps the two plan dimensions; the box always starts at the
    brick's (x, y, z) position.
  * ``physical_footprint``: the boxes that actually contain material. This
    is the bounding box for most types, and an "L" of two boxes for corner
    bricks, so the empty notch corner never counts as occupied or as
    support.
  * ``blockout_volumes``: elevated boxes above the top surface where there
    are no studs (the angled face of a slope, for instance). They come
    purely from the type's ``blockout`` data, so new stud-free shapes need
    catalog entries rather than engine changes.

Rotation is about the vertical axis. A local point (dx, dz) relative to the
footprint centre maps to (dz, -dx) at 90°, which puts the corner brick's
notch at (high x, low z) for 90° and agrees with ``_corner_arms``.
"""

from __future__ import annotations

import math

from .types import AABB, BrickInstance, BrickType


def rotated_dims(brick_type: BrickType, rotation: int) -> tuple[int, int]:
    """Plan size (x extent, z extent) after rotation."""
    if rotation in (90, 270):
        return brick_type.studs_z, brick_type.studs_x
    return brick_type.studs_x, brick_type.studs_z


def world_aabb(brick: BrickInstance, brick_type: BrickType) -> AABB:
    sx, sz = rotated_dims(brick_type, brick.rotation)
    return AABB(
        min_x=brick.x,
        max_x=brick.x + sx,
        min_y=brick.y,
        max_y=brick.y + brick_type.height_units,
        min_z=brick.z,
        max_z=brick.z + sz,
    )


def _corner_arms(brick: BrickInstance, brick_type: BrickType) -> list[AABB]:
    # Row arm spans the full width one stud deep; column arm fills the
    # remaining depth one stud wide. Rotation picks which corner is empty.
    x, y, z = brick.x, brick.y, brick.z
    n = brick_type.studs_x
    top = y + brick_type.height_units
    row_at_z_max = brick.rotation in (90, 180)
    col_at_x_max = brick.rotation in (180, 270)

    row_arm = AABB(
        min_x=x,
        max_x=x + n,
        min_y=y,
        max_y=top,
        min_z=z + n - 1 if row_at_z_max else z,
        max_z=z + n if row_at_z_max else z + 1,
    )
    col_arm = AABB(
        min_x=x + n - 1 if col_at_x_max else x,
        max_x=x + n if col_at_x_max else x + 1,
        min_y=y,
        max_y=top,
        min_z=z if row_at_z_max else z + 1,
        max_z=z + n - 1 if row_at_z_max else z + n,
    )
    return [row_arm, col_arm]


def physical_footprint(
    brick: BrickInstance, brick_type: BrickType
) -> list[AABB]:
    """Boxes containing material: an L of two boxes for corners."""
    if brick_type.category == "corner":
        return _corner_arms(brick, brick_type)
    return [world_aabb(brick, brick_type)]


def blockout_volumes(
    brick: BrickInstance, brick_type: BrickType
) -> list[AABB]:
    """World-space stud-free volumes above the brick's top surface."""
    if not brick_type.blockout:
        return []
    top_y = brick.y + brick_type.height_units
    cx = brick_type.studs_x / 2
    cz = brick_type.studs_z / 2
    sx, sz = rotated_dims(brick_type, brick.rotation)
    rcx = sx / 2
    rcz = sz / 2
    rot_rad = -math.radians(brick.rotation)
    cos_r = math.cos(rot_rad)
    sin_r = math.sin(rot_rad)

    result: list[AABB] = []
    for zone in brick_type.blockout:
        xs: list[float] = []
        zs: list[float] = []
        for lx, lz in (
            (zone.min_x, zone.min_z),
            (zone.max_x, zone.min_z),
            (zone.min_x, zone.max_z),
            (zone.max_x, zone.max_z),
        ):
            dx = lx - cx
            dz = lz - cz
            xs.append(dx * cos_r - dz * sin_r + rcx)
            zs.append(dx * sin_r + dz * cos_r + rcz)
        result.append(
            AABB(
                min_x=brick.x + round(min(xs)),
                max_x=brick.x + round(max(xs)),
                min_y=top_y,
                max_y=top_y + zone.height,
                min_z=brick.z + round(min(zs)),
                max_z=brick.z + round(max(zs)),
            )
        )
    return result


def footprint_summary(brick: BrickInstance, brick_type: BrickType) -> dict:
    """``{minX, maxX, minZ, maxZ, topY}`` for positioning the next brick."""
    box = world_aabb(brick, brick_type)
    return {
        "minX": box.min_x,
        "maxX": box.max_x,
        "minZ": box.min_z,
        "maxZ": box.max_z,
        "topY": box.max_y,
    }

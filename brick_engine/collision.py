"""Collision detection and bounds checking for placed bricks.

The central question this module answers: "is this brick blocked?"
``SceneEditor`` calls ``check_bounds`` and ``check_collision`` (after
``support.check_support``) for every place, move and rotate. A candidate is
blocked when:

  * **Physical overlap**: any box of its physical footprint intersects any
    box of another brick's footprint. Intervals are open, so touching
    faces (a brick sitting flush on another, or side by side) never
    collide. Corner bricks contribute their two L arms, so another brick
    may occupy the notch.
  * **Blockout interference**: its bounding box pokes into another brick's
    stud-free volume (``footprint.blockout_volumes``) without also resting
    on real studs of that brick, or the reverse. ``has_stud_support``
    decides what counts as real contact: flush vertical contact with an XZ
    overlap that is not wholly inside a single blockout rectangle.

The checks are pure functions over an explicit brick list, so a client can
run the same code to predict the outcome of an edit before sending it.

Box-pair overlap is vectorized with numpy: each footprint becomes an
``(n, 6)`` array of ``(min_x, max_x, min_y, max_y, min_z, max_z)`` rows
and all pairs are tested at once by broadcasting.
"""

from __future__ import annotations

import numpy as np

from .catalog import TypeLookup
from .footprint import blockout_volumes, physical_footprint, world_aabb
from .types import AABB, BrickInstance, BrickType


def _box_array(boxes: list[AABB]) -> np.ndarray:
    return np.array([b.as_tuple() for b in boxes], dtype=np.float64).reshape(
        -1, 6
    )


def _pairwise_overlap(
    a: np.ndarray, b: np.ndarray, axes: tuple[int, ...]
) -> np.ndarray:
    """Boolean (len(a), len(b)) matrix of strict overlap on the given axes.

    Axis 0 is x, 1 is y, 2 is z.
    """
    hits = np.ones((a.shape[0], b.shape[0]), dtype=bool)
    for axis in axes:
        lo, hi = 2 * axis, 2 * axis + 1
        a_min = a[:, lo : lo + 1]  # (n_a, 1)
        a_max = a[:, hi : hi + 1]
        b_min = b[:, lo].reshape(1, -1)  # (1, n_b)
        b_max = b[:, hi].reshape(1, -1)
        hits &= (a_min < b_max) & (a_max > b_min)
    return hits


def boxes_overlap(a: list[AABB], b: list[AABB]) -> bool:
    """True if any box of ``a`` shares interior volume with one of ``b``."""
    if not a or not b:
        return False
    hits = _pairwise_overlap(_box_array(a), _box_array(b), (0, 1, 2))
    return bool(np.any(hits))


def boxes_overlap_xz(a: list[AABB], b: list[AABB]) -> bool:
    """Like ``boxes_overlap`` but ignores the vertical axis."""
    if not a or not b:
        return False
    hits = _pairwise_overlap(_box_array(a), _box_array(b), (0, 2))
    return bool(np.any(hits))


def aabb_overlap(a: AABB, b: AABB) -> bool:
    return (
        a.min_x < b.max_x
        and a.max_x > b.min_x
        and a.min_y < b.max_y
        and a.max_y > b.min_y
        and a.min_z < b.max_z
        and a.max_z > b.min_z
    )


def has_stud_support(
    top: AABB, bottom: AABB, bottom_blockouts: list[AABB]
) -> bool:
    """True if ``top`` sits on real studs of ``bottom``.

    Requires flush contact (``top.min_y == bottom.max_y``) and an XZ overlap
    that extends beyond every individual blockout rectangle of ``bottom``.
    """
    if top.min_y != bottom.max_y:
        return False

    inter_min_x = max(top.min_x, bottom.min_x)
    inter_max_x = min(top.max_x, bottom.max_x)
    inter_min_z = max(top.min_z, bottom.min_z)
    inter_max_z = min(top.max_z, bottom.max_z)
    if inter_min_x >= inter_max_x or inter_min_z >= inter_max_z:
        return False

    for bo in bottom_blockouts:
        if (
            inter_min_x >= bo.min_x
            and inter_max_x <= bo.max_x
            and inter_min_z >= bo.min_z
            and inter_max_z <= bo.max_z
        ):
            return False
    return True


def check_collision(
    bricks: list[BrickInstance],
    candidate: BrickInstance,
    candidate_type: BrickType,
    lookup: TypeLookup,
    exclude_id: str | None = None,
) -> bool:
    """True if ``candidate`` is blocked by any brick in ``bricks``.

    ``exclude_id`` skips the brick being moved or rotated, so it cannot
    collide with its own previous placement. Bricks whose type is not in
    ``lookup`` are ignored.
    """
    cand_aabb = world_aabb(candidate, candidate_type)
    cand_foot = physical_footprint(candidate, candidate_type)
    cand_blockouts = blockout_volumes(candidate, candidate_type)

    for other in bricks:
        if exclude_id is not None and other.id == exclude_id:
            continue
        other_type = lookup.get(other.type_id)
        if other_type is None:
            continue

        if boxes_overlap(cand_foot, physical_footprint(other, other_type)):
            return True

        other_aabb = world_aabb(other, other_type)

        # Candidate pokes into the other brick's stud-free volume.
        other_blockouts = blockout_volumes(other, other_type)
        for bo in other_blockouts:
            if aabb_overlap(cand_aabb, bo) and not has_stud_support(
                cand_aabb, other_aabb, other_blockouts
            ):
                return True

        # Candidate's own stud-free volume covers the other brick.
        for bo in cand_blockouts:
            if aabb_overlap(bo, other_aabb) and not has_stud_support(
                other_aabb, cand_aabb, cand_blockouts
            ):
                return True

    return False


def interpenetrates(
    bricks: list[BrickInstance],
    candidate: BrickInstance,
    candidate_type: BrickType,
    lookup: TypeLookup,
    exclude_id: str | None = None,
) -> bool:
    """True if the candidate's material overlaps any other brick's material."""
    cand_foot = physical_footprint(candidate, candidate_type)
    for other in bricks:
        if exclude_id is not None and other.id == exclude_id:
            continue
        other_type = lookup.get(other.type_id)
        if other_type is None:
            continue
        if boxes_overlap(cand_foot, physical_footprint(other, other_type)):
            return True
    return False


def check_bounds(
    brick: BrickInstance, brick_type: BrickType, baseplate_size: int
) -> str | None:
    """Return a reason string if the brick leaves the baseplate, else None.

    The baseplate covers ``[0, baseplate_size)`` on X and Z; Y must be >= 0.
    """
    box = world_aabb(brick, brick_type)
    last = baseplate_size - 1
    if box.min_x < 0 or box.max_x > baseplate_size:
        return f"Brick extends outside baseplate on X axis (valid: 0-{last})"
    if box.min_z < 0 or box.max_z > baseplate_size:
        return f"Brick extends outside baseplate on Z axis (valid: 0-{last})"
    if box.min_y < 0:
        return "Brick is below the baseplate"
    return None

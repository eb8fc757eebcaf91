"""Support rules: a brick must rest on the baseplate or directly on another.

Support is a single direct-contact test, never transitive. A candidate is
supported if its bottom is at y == 0, or if some brick's top is exactly at
the candidate's bottom and their physical footprints (corner-aware, see
``footprint.physical_footprint``) overlap in plan. A brick hanging over a
corner's empty notch therefore gets no support from it.

``find_unsupported`` applies the rule to every brick against the rest of
the scene; ``SceneEditor`` runs it to a fixed point after removals, moves
and rotations (the cascade).
"""

from __future__ import annotations

from .catalog import TypeLookup
from .collision import boxes_overlap_xz
from .footprint import physical_footprint, world_aabb
from .types import BrickInstance, BrickType


def check_support(
    bricks: list[BrickInstance],
    candidate: BrickInstance,
    candidate_type: BrickType,
    lookup: TypeLookup,
) -> bool:
    """True if ``candidate`` rests on the baseplate or on one of ``bricks``.

    The caller is responsible for leaving the candidate itself out of
    ``bricks`` when re-validating an existing brick.
    """
    bottom = world_aabb(candidate, candidate_type).min_y
    if bottom == 0:
        return True

    cand_foot = physical_footprint(candidate, candidate_type)
    for other in bricks:
        other_type = lookup.get(other.type_id)
        if other_type is None:
            continue
        if world_aabb(other, other_type).max_y != bottom:
            continue
        if boxes_overlap_xz(cand_foot, physical_footprint(other, other_type)):
            return True
    return False


def find_unsupported(
    bricks: list[BrickInstance], lookup: TypeLookup
) -> list[str]:
    """Ids of bricks that fail ``check_support`` against all the others."""
    unsupported: list[str] = []
    for brick in bricks:
        brick_type = lookup.get(brick.type_id)
        if brick_type is None:
            continue
        others = [b for b in bricks if b.id != brick.id]
        if not check_support(others, brick, brick_type, lookup):
            unsupported.append(brick.id)
    return unsupported

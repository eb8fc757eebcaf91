"""Tests for world-space brick geometry."""

import pytest

from brick_engine.footprint import (
    blockout_volumes,
    footprint_summary,
    physical_footprint,
    rotated_dims,
    world_aabb,
)
from brick_engine.types import AABB, BlockoutZone, BrickInstance, BrickType

BRICK_2X4 = BrickType("brick_2x4", "brick", 2, 4, 3)
CORNER_2X2 = BrickType("corner_2x2", "corner", 2, 2, 3)
CORNER_3X3 = BrickType("corner_3x3", "corner", 3, 3, 3)
SLOPE_2X2 = BrickType(
    "slope_2x2", "slope", 2, 2, 3, blockout=(BlockoutZone(0, 2, 1, 2, 3),)
)
# Non-square type with a stud-free strip along its far short edge.
LEDGE_2X4 = BrickType(
    "ledge_2x4", "generic", 2, 4, 3, blockout=(BlockoutZone(0, 2, 3, 4, 1),)
)


def _at(type_id, x=0, y=0, z=0, rotation=0):
    return BrickInstance("b", type_id, x, y, z, rotation)


def _xz(box):
    return (box.min_x, box.max_x, box.min_z, box.max_z)


class TestWorldAabb:
    @pytest.mark.parametrize(
        "rotation,dims",
        [(0, (2, 4)), (90, (4, 2)), (180, (2, 4)), (270, (4, 2))],
    )
    def test_rotated_dims(self, rotation, dims):
        assert rotated_dims(BRICK_2X4, rotation) == dims

    def test_offset_by_position(self):
        box = world_aabb(_at("brick_2x4", 1, 3, 2, 90), BRICK_2X4)
        assert box == AABB(1, 5, 3, 6, 2, 4)


class TestPhysicalFootprint:
    def test_plain_brick_is_its_aabb(self):
        brick = _at("brick_2x4", 5, 0, 5)
        assert physical_footprint(brick, BRICK_2X4) == [
            world_aabb(brick, BRICK_2X4)
        ]

    @pytest.mark.parametrize(
        "rotation,row,col",
        [
            (0, (0, 2, 0, 1), (0, 1, 1, 2)),
            (90, (0, 2, 1, 2), (0, 1, 0, 1)),
            (180, (0, 2, 1, 2), (1, 2, 0, 1)),
            (270, (0, 2, 0, 1), (1, 2, 1, 2)),
        ],
    )
    def test_corner_arms(self, rotation, row, col):
        brick = _at("corner_2x2", rotation=rotation)
        arms = physical_footprint(brick, CORNER_2X2)
        assert [_xz(a) for a in arms] == [row, col]
        assert all(a.min_y == 0 and a.max_y == 3 for a in arms)

    @pytest.mark.parametrize(
        "rotation,notch",
        [(0, (1, 1)), (90, (1, 0)), (180, (0, 0)), (270, (0, 1))],
    )
    def test_corner_notch_is_empty(self, rotation, notch):
        """Exactly one stud cell of a 2x2 corner holds no material."""
        brick = _at("corner_2x2", rotation=rotation)
        arms = physical_footprint(brick, CORNER_2X2)
        nx, nz = notch
        for a in arms:
            assert not (a.min_x <= nx < a.max_x and a.min_z <= nz < a.max_z)

    def test_corner_3x3(self):
        row, col = physical_footprint(_at("corner_3x3", 4, 0, 4), CORNER_3X3)
        assert _xz(row) == (4, 7, 4, 5)
        assert _xz(col) == (4, 5, 5, 7)


class TestBlockoutVolumes:
    def test_none_for_plain_bricks(self):
        assert blockout_volumes(_at("brick_2x4"), BRICK_2X4) == []

    @pytest.mark.parametrize(
        "rotation,xz",
        [
            (0, (0, 2, 1, 2)),
            (90, (1, 2, 0, 2)),
            (180, (0, 2, 0, 1)),
            (270, (0, 1, 0, 2)),
        ],
    )
    def test_slope_rotations(self, rotation, xz):
        (zone,) = blockout_volumes(
            _at("slope_2x2", rotation=rotation), SLOPE_2X2
        )
        assert _xz(zone) == xz
        assert (zone.min_y, zone.max_y) == (3, 6)

    def test_translated_and_extruded_from_top(self):
        (zone,) = blockout_volumes(_at("slope_2x2", 10, 6, 20), SLOPE_2X2)
        assert zone == AABB(10, 12, 9, 12, 21, 22)

    def test_non_square_rotation_stays_inside_footprint(self):
        brick = _at("ledge_2x4", rotation=90)
        (zone,) = blockout_volumes(brick, LEDGE_2X4)
        box = world_aabb(brick, LEDGE_2X4)
        assert _xz(zone) == (3, 4, 0, 2)
        assert box.min_x <= zone.min_x and zone.max_x <= box.max_x
        assert box.min_z <= zone.min_z and zone.max_z <= box.max_z


class TestFootprintSummary:
    def test_rotation_swaps_extent(self):
        assert footprint_summary(_at("brick_2x4"), BRICK_2X4) == {
            "minX": 0,
            "maxX": 2,
            "minZ": 0,
            "maxZ": 4,
            "topY": 3,
        }
        assert footprint_summary(_at("brick_2x4", rotation=90), BRICK_2X4) == {
            "minX": 0,
            "maxX": 4,
            "minZ": 0,
            "maxZ": 2,
            "topY": 3,
        }

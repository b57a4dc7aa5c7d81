import pytest

from railway_manager.core.errors import RailwayError
from railway_manager.core.geometry import Branch, Junction, JunctionBranch, Location, Segment


def ep(name, branch):
    return JunctionBranch(Junction(name), Branch(branch))


def test_first_and_last_location(triangle):
    seg = Segment(triangle.left, ep("A", "REVERSE"), 2, 10)
    assert seg.length == 8
    assert seg.first_location == Location(triangle.left, ep("A", "REVERSE"), 2)
    # ending at the far end canonicalizes to junction B, whichever section names it
    assert seg.last_location == Location(triangle.right, ep("B", "FACING"), 0)


def test_segment_offsets_validated(triangle):
    for start, end in ((3, 3), (4, 2), (-1, 5), (0, 11)):
        with pytest.raises(RailwayError):
            Segment(triangle.left, ep("A", "REVERSE"), start, end)
    with pytest.raises(RailwayError):
        Segment(triangle.left, ep("C", "NORMAL"), 0, 1)


def test_contains_interior_points_from_either_end(triangle):
    seg = Segment(triangle.left, ep("A", "REVERSE"), 2, 6)
    assert seg.contains(Location(triangle.left, ep("A", "REVERSE"), 2))
    assert seg.contains(Location(triangle.left, ep("B", "REVERSE"), 5))
    assert not seg.contains(Location(triangle.left, ep("A", "REVERSE"), 1))
    assert not seg.contains(Location(triangle.left, ep("B", "REVERSE"), 3))
    assert not seg.contains(Location(triangle.right, ep("B", "FACING"), 5))


def test_contains_junctions_through_any_section(triangle):
    seg = Segment(triangle.left, ep("A", "REVERSE"), 0, 4)
    assert seg.contains(Location(triangle.bottom, ep("A", "NORMAL"), 0))
    assert not seg.contains(Location(triangle.right, ep("B", "FACING"), 0))
    tail = Segment(triangle.left, ep("A", "REVERSE"), 6, 10)
    assert tail.contains(Location(triangle.right, ep("B", "FACING"), 0))
    assert not tail.contains(Location(triangle.bottom, ep("A", "NORMAL"), 0))


def test_with_end_offset_keeps_direction(triangle):
    seg = Segment(triangle.right, ep("C", "FACING"), 1, 9)
    shorter = seg.with_end_offset(8)
    assert shorter == Segment(triangle.right, ep("C", "FACING"), 1, 8)
    assert seg.with_start_offset(3).length == 6
    assert hash(shorter) == hash(Segment(triangle.right, ep("C", "FACING"), 1, 8))

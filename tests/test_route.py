import pytest

from railway_manager.core.errors import ErrorKind, RailwayError
from railway_manager.core.geometry import Branch, Junction, JunctionBranch, Section, Segment
from railway_manager.core.route import Route
from railway_manager.core.track import Track


def ep(name, branch):
    return JunctionBranch(Junction(name), Branch(branch))


def round_trip(t):
    # A -> B -> C -> A, 30 long
    return Route([
        Segment(t.left, ep("A", "REVERSE"), 0, 10),
        Segment(t.right, ep("B", "FACING"), 0, 10),
        Segment(t.bottom, ep("C", "NORMAL"), 0, 10),
    ])


def test_route_length_and_sequence(triangle):
    r = round_trip(triangle)
    assert r.length == 30
    assert len(r) == 3
    assert r[1].section == triangle.right
    assert not r.is_empty()
    assert Route().is_empty() and Route().length == 0


def test_route_rejects_disconnected_segments(triangle):
    with pytest.raises(RailwayError) as exc:
        Route([
            Segment(triangle.left, ep("A", "REVERSE"), 0, 10),
            Segment(triangle.bottom, ep("C", "NORMAL"), 0, 10),
        ])
    assert exc.value.kind is ErrorKind.INVALID_ARGUMENT
    with pytest.raises(RailwayError):
        Route([
            Segment(triangle.left, ep("A", "REVERSE"), 0, 8),
            Segment(triangle.right, ep("B", "FACING"), 0, 10),
        ])


def test_route_can_start_and_end_mid_section(triangle):
    r = Route([
        Segment(triangle.left, ep("B", "REVERSE"), 4, 10),
        Segment(triangle.bottom, ep("A", "NORMAL"), 0, 3),
    ])
    assert r.length == 9


def test_subroute_across_segments(triangle):
    sub = round_trip(triangle).get_subroute(3, 15)
    assert sub.segments == (
        Segment(triangle.left, ep("A", "REVERSE"), 3, 10),
        Segment(triangle.right, ep("B", "FACING"), 0, 5),
    )
    assert sub.length == 12


def test_subroute_inside_one_segment(triangle):
    sub = round_trip(triangle).get_subroute(22, 25)
    assert sub.segments == (Segment(triangle.bottom, ep("C", "NORMAL"), 2, 5),)


def test_subroute_on_segment_boundaries(triangle):
    r = round_trip(triangle)
    assert r.get_subroute(10, 20).segments == (Segment(triangle.right, ep("B", "FACING"), 0, 10),)
    assert r.get_subroute(0, 30) == r


def test_subroute_keeps_segment_start_offsets(triangle):
    r = Route([
        Segment(triangle.left, ep("B", "REVERSE"), 4, 10),
        Segment(triangle.bottom, ep("A", "NORMAL"), 0, 3),
    ])
    assert r.get_subroute(1, 7).segments == (
        Segment(triangle.left, ep("B", "REVERSE"), 5, 10),
        Segment(triangle.bottom, ep("A", "NORMAL"), 0, 1),
    )


def test_subroute_length_is_difference_of_bounds(triangle):
    r = round_trip(triangle)
    for a in range(0, 30):
        for b in range(a + 1, 31):
            assert r.get_subroute(a, b).length == b - a


@pytest.mark.parametrize("start,end", [(5, 5), (6, 4), (-1, 3), (0, 31)])
def test_subroute_bad_bounds(triangle, start, end):
    with pytest.raises(RailwayError) as exc:
        round_trip(triangle).get_subroute(start, end)
    assert exc.value.kind is ErrorKind.INVALID_ARGUMENT


def test_route_intersects_itself_and_full_subroute(triangle):
    r = round_trip(triangle)
    assert r.intersects(r)
    assert r.intersects(r.get_subroute(0, r.length))


def test_disjoint_routes_do_not_intersect(triangle):
    a = Route([Segment(triangle.left, ep("A", "REVERSE"), 1, 4)])
    b = Route([Segment(triangle.left, ep("B", "REVERSE"), 1, 5)])
    assert not a.intersects(b) and not b.intersects(a)


def test_overlap_from_opposite_directions(triangle):
    a = Route([Segment(triangle.left, ep("A", "REVERSE"), 1, 6)])
    b = Route([Segment(triangle.left, ep("B", "REVERSE"), 2, 5)])
    assert a.intersects(b) and b.intersects(a)


def test_routes_meeting_at_a_junction_intersect(triangle):
    a = Route([Segment(triangle.left, ep("A", "REVERSE"), 5, 10)])
    b = Route([Segment(triangle.right, ep("B", "FACING"), 0, 3)])
    assert a.intersects(b)
    c = Route([Segment(triangle.right, ep("B", "FACING"), 1, 3)])
    assert not a.intersects(c)


def test_on_track(triangle):
    r = round_trip(triangle)
    assert r.on_track(triangle.track)
    partial = Track()
    partial.add_section(triangle.left)
    assert not r.on_track(partial)
    elsewhere = Section(10, ep("A", "REVERSE"), ep("Q", "FACING"))
    assert not Route([Segment(elsewhere, ep("A", "REVERSE"), 0, 2)]).on_track(triangle.track)

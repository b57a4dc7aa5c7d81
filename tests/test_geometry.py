import pytest

from railway_manager.core.errors import ErrorKind, RailwayError
from railway_manager.core.geometry import Branch, Junction, JunctionBranch, Location, Section


def ep(name, branch):
    return JunctionBranch(Junction(name), Branch(branch))


def test_junction_name_must_be_non_empty_without_whitespace():
    assert Junction("j1") == Junction("j1")
    for bad in ("", "a b", "tab\there"):
        with pytest.raises(RailwayError) as exc:
            Junction(bad)
        assert exc.value.kind is ErrorKind.INVALID_ARGUMENT
    with pytest.raises(RailwayError) as exc:
        Junction(None)
    assert exc.value.kind is ErrorKind.NULL_INPUT


def test_branch_parse_and_str():
    assert Branch.parse("NORMAL") is Branch.NORMAL
    assert str(Branch.FACING) == "FACING"
    with pytest.raises(RailwayError):
        Branch.parse("facing")


def test_junction_branch_equality_and_str():
    assert ep("j", "FACING") == ep("j", "FACING")
    assert ep("j", "FACING") != ep("j", "NORMAL")
    assert str(ep("j1", "FACING")) == "(j1, FACING)"


def test_section_rejects_bad_arguments():
    with pytest.raises(RailwayError) as exc:
        Section(0, ep("a", "FACING"), ep("b", "FACING"))
    assert exc.value.kind is ErrorKind.INVALID_ARGUMENT
    with pytest.raises(RailwayError) as exc:
        Section(5, ep("a", "FACING"), ep("a", "FACING"))
    assert exc.value.kind is ErrorKind.INVALID_ARGUMENT
    with pytest.raises(RailwayError) as exc:
        Section(5, None, ep("a", "FACING"))
    assert exc.value.kind is ErrorKind.NULL_INPUT


def test_self_loop_allowed_on_different_branches():
    loop = Section(7, ep("a", "NORMAL"), ep("a", "REVERSE"))
    assert loop.other_end_point(ep("a", "NORMAL")) == ep("a", "REVERSE")


def test_section_equality_ignores_end_point_order():
    s = Section(9, ep("j1", "FACING"), ep("j2", "NORMAL"))
    t = Section(9, ep("j2", "NORMAL"), ep("j1", "FACING"))
    assert s == t and hash(s) == hash(t)
    assert s != Section(8, ep("j1", "FACING"), ep("j2", "NORMAL"))
    assert str(s) in ("9 (j1, FACING) (j2, NORMAL)", "9 (j2, NORMAL) (j1, FACING)")


def test_other_end_point_is_an_involution(triangle):
    for s in (triangle.left, triangle.right, triangle.bottom):
        for e in s.end_points:
            assert s.other_end_point(s.other_end_point(e)) == e
    with pytest.raises(RailwayError) as exc:
        triangle.left.other_end_point(ep("C", "FACING"))
    assert exc.value.kind is ErrorKind.INVALID_ARGUMENT


def test_location_bounds(triangle):
    with pytest.raises(RailwayError):
        Location(triangle.left, ep("A", "REVERSE"), 10)
    with pytest.raises(RailwayError):
        Location(triangle.left, ep("A", "REVERSE"), -1)
    with pytest.raises(RailwayError):
        Location(triangle.left, ep("C", "FACING"), 1)
    with pytest.raises(RailwayError) as exc:
        Location(None, ep("A", "REVERSE"), 1)
    assert exc.value.kind is ErrorKind.NULL_INPUT


def test_triangle_junction_location_seen_from_each_section(triangle):
    via_left = Location(triangle.left, ep("B", "REVERSE"), 0)
    via_right = Location(triangle.right, ep("B", "FACING"), 0)
    assert via_left == via_right and via_right == via_left
    assert hash(via_left) == hash(via_right)
    for loc in (via_left, via_right):
        assert loc.at_junction()
        assert loc.on_section(triangle.left)
        assert loc.on_section(triangle.right)
        assert not loc.on_section(triangle.bottom)

    at_a = {
        Location(triangle.left, ep("A", "REVERSE"), 0),
        Location(triangle.bottom, ep("A", "NORMAL"), 0),
    }
    assert len(at_a) == 1
    assert via_left not in at_a


def test_interior_location_lies_only_on_its_section(triangle):
    loc = Location(triangle.left, ep("A", "REVERSE"), 4)
    assert loc.on_section(triangle.left)
    assert not loc.on_section(triangle.right)
    assert not loc.on_section(triangle.bottom)


def test_mid_section_duality(triangle):
    s = triangle.bottom
    e1 = ep("A", "NORMAL")
    e2 = s.other_end_point(e1)
    a = Location(s, e1, 3)
    b = Location(s, e2, 7)
    assert a == b and b == a
    assert hash(a) == hash(b)
    assert Location(s, e1, 5) == Location(s, e2, 5)
    assert hash(Location(s, e1, 5)) == hash(Location(s, e2, 5))
    assert a != Location(s, e2, 3)


def test_odd_length_descriptions_hash_alike():
    s = Section(7, ep("p", "FACING"), ep("q", "FACING"))
    for k in range(1, 7):
        near = Location(s, ep("p", "FACING"), k)
        far = Location(s, ep("q", "FACING"), 7 - k)
        assert near == far
        assert hash(near) == hash(far)
        assert len({near, far}) == 1


def test_location_equals_itself_and_same_description(triangle):
    loc = Location(triangle.right, ep("C", "FACING"), 2)
    assert loc == loc and hash(loc) == hash(loc)
    assert loc == Location(triangle.right, ep("C", "FACING"), 2)
    assert loc != Location(triangle.right, ep("C", "FACING"), 1)


def test_location_str(triangle):
    assert str(Location(triangle.left, ep("A", "REVERSE"), 0)) == "A"
    assert str(Location(triangle.left, ep("A", "REVERSE"), 3)) == "Distance 3 from A along the REVERSE branch"

"""Value objects describing where things are on a railway track.

A location can be described several ways: a junction is offset 0 from every
section that meets there, and an interior point is `k` from one end of its
section or `length - k` from the other. Equality and hashing of `Location`
both go through one canonical key so that every description of the same
physical point compares and hashes alike.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, List, Tuple

from .errors import ErrorKind, RailwayError, require


class Branch(str, Enum):
    FACING = "FACING"
    NORMAL = "NORMAL"
    REVERSE = "REVERSE"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, token: str) -> "Branch":
        try:
            return cls(token)
        except ValueError:
            raise RailwayError(ErrorKind.INVALID_ARGUMENT, f"{token} is not a valid branch type") from None


@dataclass(frozen=True)
class Junction:
    name: str

    def __post_init__(self) -> None:
        require(self.name, "junction name")
        if not isinstance(self.name, str) or not self.name or any(c.isspace() for c in self.name):
            raise RailwayError(ErrorKind.INVALID_ARGUMENT, f"invalid junction name {self.name!r}")

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class JunctionBranch:
    junction: Junction
    branch: Branch

    def __post_init__(self) -> None:
        require(self.junction, "junction")
        require(self.branch, "branch")

    def __str__(self) -> str:
        return f"({self.junction}, {self.branch})"


def _check_int(value, what: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise RailwayError(ErrorKind.INVALID_ARGUMENT, f"{what} must be an integer, got {value!r}")


class Section:
    """A length of track between two distinct end-points."""

    __slots__ = ("_length", "_ends", "_end_points")

    def __init__(self, length: int, end_point1: JunctionBranch, end_point2: JunctionBranch) -> None:
        require(end_point1, "end-point")
        require(end_point2, "end-point")
        _check_int(length, "section length")
        if length <= 0:
            raise RailwayError(ErrorKind.INVALID_ARGUMENT, f"section length must be positive, got {length}")
        if end_point1 == end_point2:
            raise RailwayError(ErrorKind.INVALID_ARGUMENT, f"section end-points must differ, both are {end_point1}")
        self._length = length
        # construction order is kept only for str()
        self._ends: Tuple[JunctionBranch, JunctionBranch] = (end_point1, end_point2)
        self._end_points: FrozenSet[JunctionBranch] = frozenset(self._ends)

    @property
    def length(self) -> int:
        return self._length

    @property
    def end_points(self) -> FrozenSet[JunctionBranch]:
        return self._end_points

    def other_end_point(self, end_point: JunctionBranch) -> JunctionBranch:
        if end_point not in self._end_points:
            raise RailwayError(ErrorKind.INVALID_ARGUMENT, f"{end_point} is not an end-point of {self}")
        first, second = self._ends
        return second if end_point == first else first

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Section):
            return NotImplemented
        return self._length == other._length and self._end_points == other._end_points

    def __hash__(self) -> int:
        return hash((self._length, self._end_points))

    def __str__(self) -> str:
        return f"{self._length} {self._ends[0]} {self._ends[1]}"

    def __repr__(self) -> str:
        return f"Section({self})"


class Location:
    """A point on a section, `offset` metres from `end_point`."""

    __slots__ = ("_section", "_end_point", "_offset", "_key")

    def __init__(self, section: Section, end_point: JunctionBranch, offset: int) -> None:
        require(section, "section")
        require(end_point, "end-point")
        _check_int(offset, "offset")
        if offset < 0 or offset >= section.length:
            raise RailwayError(
                ErrorKind.INVALID_ARGUMENT,
                f"offset {offset} outside [0, {section.length}) on section {section}",
            )
        if end_point not in section.end_points:
            raise RailwayError(ErrorKind.INVALID_ARGUMENT, f"{end_point} is not an end-point of {section}")
        self._section = section
        self._end_point = end_point
        self._offset = offset
        self._key = self._canonical_key()

    @property
    def section(self) -> Section:
        return self._section

    @property
    def end_point(self) -> JunctionBranch:
        return self._end_point

    @property
    def offset(self) -> int:
        return self._offset

    def at_junction(self) -> bool:
        return self._offset == 0

    def on_section(self, section: Section) -> bool:
        require(section, "section")
        if self._section == section:
            return True
        if self.at_junction():
            junction = self._end_point.junction
            return any(ep.junction == junction for ep in section.end_points)
        return False

    def _canonical_key(self) -> tuple:
        if self._offset == 0:
            return ("junction", self._end_point.junction)
        length = self._section.length
        # compare 2*offset with length so odd lengths need no rounding
        twice = 2 * self._offset
        if twice < length:
            return ("interior", self._section, self._end_point, self._offset)
        if twice > length:
            far = self._section.other_end_point(self._end_point)
            return ("interior", self._section, far, length - self._offset)
        return ("midpoint", self._section)

    def canonical_key(self) -> tuple:
        """Hashable key shared by every equivalent description of this point."""
        return self._key

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Location):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __str__(self) -> str:
        if self.at_junction():
            return str(self._end_point.junction)
        return f"Distance {self._offset} from {self._end_point.junction} along the {self._end_point.branch} branch"

    def __repr__(self) -> str:
        return f"Location({self._section!r}, {self._end_point}, {self._offset})"


class Segment:
    """The stretch [start_offset, end_offset] of a section, travelled away
    from `departing_end_point`."""

    __slots__ = ("_section", "_departing", "_start", "_end")

    def __init__(self, section: Section, departing_end_point: JunctionBranch, start_offset: int, end_offset: int) -> None:
        require(section, "section")
        require(departing_end_point, "departing end-point")
        _check_int(start_offset, "start offset")
        _check_int(end_offset, "end offset")
        if departing_end_point not in section.end_points:
            raise RailwayError(
                ErrorKind.INVALID_ARGUMENT, f"{departing_end_point} is not an end-point of {section}"
            )
        if not (0 <= start_offset < end_offset <= section.length):
            raise RailwayError(
                ErrorKind.INVALID_ARGUMENT,
                f"segment offsets must satisfy 0 <= {start_offset} < {end_offset} <= {section.length}",
            )
        self._section = section
        self._departing = departing_end_point
        self._start = start_offset
        self._end = end_offset

    @property
    def section(self) -> Section:
        return self._section

    @property
    def departing_end_point(self) -> JunctionBranch:
        return self._departing

    @property
    def start_offset(self) -> int:
        return self._start

    @property
    def end_offset(self) -> int:
        return self._end

    @property
    def length(self) -> int:
        return self._end - self._start

    @property
    def first_location(self) -> Location:
        return self.location_at(self._start)

    @property
    def last_location(self) -> Location:
        return self.location_at(self._end)

    def location_at(self, position: int) -> Location:
        # the far end of the section is offset 0 from the other end-point
        if position == self._section.length:
            return Location(self._section, self._section.other_end_point(self._departing), 0)
        return Location(self._section, self._departing, position)

    def _positions(self, location: Location) -> List[int]:
        length = self._section.length
        if location.at_junction():
            junction = location.end_point.junction
            found = []
            if self._departing.junction == junction:
                found.append(0)
            if self._section.other_end_point(self._departing).junction == junction:
                found.append(length)
            return found
        if location.section != self._section:
            return []
        if location.end_point == self._departing:
            return [location.offset]
        return [length - location.offset]

    def contains(self, location: Location) -> bool:
        require(location, "location")
        return any(self._start <= p <= self._end for p in self._positions(location))

    def with_end_offset(self, end_offset: int) -> "Segment":
        return Segment(self._section, self._departing, self._start, end_offset)

    def with_start_offset(self, start_offset: int) -> "Segment":
        return Segment(self._section, self._departing, start_offset, self._end)

    def _fields(self) -> tuple:
        return (self._section, self._departing, self._start, self._end)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Segment):
            return NotImplemented
        return self._fields() == other._fields()

    def __hash__(self) -> int:
        return hash(self._fields())

    def __repr__(self) -> str:
        return f"Segment({self._section!r}, {self._departing}, {self._start}, {self._end})"

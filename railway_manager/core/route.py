from __future__ import annotations
from typing import Iterable, Iterator, List, Sequence, Tuple, TYPE_CHECKING

from .errors import ErrorKind, RailwayError, require
from .geometry import Location, Segment

if TYPE_CHECKING:
    from .track import Track


def segments_intersect(route_a: Sequence[Segment], route_b: Sequence[Segment]) -> bool:
    # Two intervals on a line overlap iff an end of one lies inside the other,
    # and Segment.contains maps both onto the same frame.
    for a in route_a:
        for b in route_b:
            if (
                b.contains(a.first_location)
                or b.contains(a.last_location)
                or a.contains(b.first_location)
                or a.contains(b.last_location)
            ):
                return True
    return False


class Route:
    """An ordered walk of segments, each starting where the previous one ended.

    `len(route)` is the number of segments; `route.length` is the distance
    covered. The empty route is allowed and is what the allocator grants a
    train that cannot move at all.
    """

    __slots__ = ("_segments",)

    def __init__(self, segments: Iterable[Segment] = ()) -> None:
        segs: Tuple[Segment, ...] = tuple(segments)
        for i, seg in enumerate(segs):
            require(seg, f"segment {i}")
            if i and segs[i - 1].last_location != seg.first_location:
                raise RailwayError(
                    ErrorKind.INVALID_ARGUMENT,
                    f"segment {i} starts at {seg.first_location} but segment {i - 1} ends at {segs[i - 1].last_location}",
                )
        self._segments = segs

    @property
    def segments(self) -> Tuple[Segment, ...]:
        return self._segments

    @property
    def length(self) -> int:
        return sum(seg.length for seg in self._segments)

    @property
    def first_location(self) -> Location:
        if not self._segments:
            raise RailwayError(ErrorKind.INVALID_ARGUMENT, "empty route has no first location")
        return self._segments[0].first_location

    @property
    def last_location(self) -> Location:
        if not self._segments:
            raise RailwayError(ErrorKind.INVALID_ARGUMENT, "empty route has no last location")
        return self._segments[-1].last_location

    def is_empty(self) -> bool:
        return not self._segments

    def on_track(self, track: "Track") -> bool:
        require(track, "track")
        return all(seg.section in track for seg in self._segments)

    def get_subroute(self, start: int, end: int) -> "Route":
        """Return the part of this route between distances `start` and `end`."""
        length = self.length
        if not (0 <= start < end <= length):
            raise RailwayError(
                ErrorKind.INVALID_ARGUMENT,
                f"sub-route bounds must satisfy 0 <= {start} < {end} <= {length}",
            )
        out: List[Segment] = []
        walked = 0
        for seg in self._segments:
            seg_start, seg_end = walked, walked + seg.length
            walked = seg_end
            if seg_end <= start:
                continue
            if seg_start >= end:
                break
            lo = seg.start_offset + max(start - seg_start, 0)
            hi = seg.start_offset + (min(end, seg_end) - seg_start)
            out.append(Segment(seg.section, seg.departing_end_point, lo, hi))
        return Route(out)

    def intersects(self, other: "Route") -> bool:
        require(other, "route")
        return segments_intersect(self._segments, other._segments)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __getitem__(self, index: int) -> Segment:
        return self._segments[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Route):
            return NotImplemented
        return self._segments == other._segments

    def __hash__(self) -> int:
        return hash(self._segments)

    def __repr__(self) -> str:
        return f"Route({list(self._segments)!r})"

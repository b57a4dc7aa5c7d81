"""Readers for the plain-text track and route formats.

Track files hold one section per line::

    10 j1 FACING j2 NORMAL

Route files hold one segment per line: the section (as above), then the
departing end-point and the start and end offsets::

    10 j1 FACING j2 NORMAL j1 FACING 0 10

Fields are separated by runs of whitespace and may be surrounded by
whitespace. Any problem with a line is reported as a FORMAT error carrying
the line number.
"""
from __future__ import annotations
import re
from pathlib import Path
from typing import Iterable, Iterator, List, Union

import structlog

from railway_manager.core.errors import ErrorKind, RailwayError
from railway_manager.core.geometry import Branch, Junction, JunctionBranch, Section, Segment
from railway_manager.core.route import Route
from railway_manager.core.track import Track

logger = structlog.get_logger(__name__)

PathLike = Union[str, Path]

TRACK_FIELDS = 5
ROUTE_FIELDS = 9

INTEGER = re.compile(r"-?[0-9]+")


def _int_field(token: str, what: str) -> int:
    # int() alone would also take "+5", "1_0" and non-ASCII digits
    if not INTEGER.fullmatch(token):
        raise RailwayError(ErrorKind.FORMAT, f"{what} {token!r} is not an integer")
    return int(token)


def _end_point(junction: str, branch: str) -> JunctionBranch:
    return JunctionBranch(Junction(junction), Branch.parse(branch))


def _section(fields: List[str]) -> Section:
    length = _int_field(fields[0], "length")
    return Section(length, _end_point(fields[1], fields[2]), _end_point(fields[3], fields[4]))


def _check_arity(fields: List[str], expected: int) -> None:
    if len(fields) != expected:
        raise RailwayError(ErrorKind.FORMAT, f"expected {expected} fields but found {len(fields)}")


def _at_line(e: RailwayError, number: int, source: str) -> RailwayError:
    return RailwayError(ErrorKind.FORMAT, f"{e.message} (line {number} of {source})", line=number)


def parse_track(lines: Iterable[str], source: str = "<string>") -> Track:
    track = Track()
    for number, line in enumerate(lines, start=1):
        fields = line.split()
        try:
            _check_arity(fields, TRACK_FIELDS)
            section = _section(fields)
            if section in track:
                raise RailwayError(ErrorKind.FORMAT, f"duplicate section {section}")
            track.add_section(section)
        except RailwayError as e:
            raise _at_line(e, number, source) from e
    logger.info("track_loaded", source=source, sections=len(track))
    return track


def parse_route(lines: Iterable[str], source: str = "<string>") -> Route:
    segments: List[Segment] = []
    for number, line in enumerate(lines, start=1):
        fields = line.split()
        try:
            _check_arity(fields, ROUTE_FIELDS)
            section = _section(fields[:TRACK_FIELDS])
            departing = _end_point(fields[5], fields[6])
            start = _int_field(fields[7], "start offset")
            end = _int_field(fields[8], "end offset")
            segment = Segment(section, departing, start, end)
            if segments and segments[-1].last_location != segment.first_location:
                raise RailwayError(
                    ErrorKind.FORMAT,
                    f"segment does not start where the previous one ends ({segments[-1].last_location})",
                )
            segments.append(segment)
        except RailwayError as e:
            raise _at_line(e, number, source) from e
    if not segments:
        raise RailwayError(ErrorKind.FORMAT, f"route {source} contains no segments")
    logger.info("route_loaded", source=source, segments=len(segments))
    return Route(segments)


def _decoded(raw: bytes, source: str) -> Iterator[str]:
    for number, line in enumerate(raw.splitlines(), start=1):
        try:
            yield line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise RailwayError(
                ErrorKind.FORMAT, f"line is not valid UTF-8: {e.reason} (line {number} of {source})", line=number
            ) from e


def _read(path: PathLike, parse):
    try:
        raw = Path(path).read_bytes()
    except OSError as e:
        raise RailwayError(ErrorKind.IO, f"could not read {path}: {e}") from e
    return parse(_decoded(raw, str(path)), source=str(path))


def read_track(path: PathLike) -> Track:
    return _read(path, parse_track)


def read_route(path: PathLike) -> Route:
    return _read(path, parse_route)


def format_track(track: Track) -> str:
    """Render a track in the file format read by `parse_track`."""
    return "".join(_section_line(s) + "\n" for s in sorted(track, key=str))


def _section_line(section: Section) -> str:
    a, b = sorted(section.end_points, key=str)
    return f"{section.length} {a.junction} {a.branch} {b.junction} {b.branch}"


def format_route(route: Route) -> str:
    lines = []
    for seg in route:
        dep = seg.departing_end_point
        lines.append(f"{_section_line(seg.section)} {dep.junction} {dep.branch} {seg.start_offset} {seg.end_offset}\n")
    return "".join(lines)

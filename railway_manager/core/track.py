from __future__ import annotations
from typing import Iterator, Optional, Set

import structlog

from .errors import ErrorKind, RailwayError, require
from .geometry import Branch, Junction, JunctionBranch, Section

logger = structlog.get_logger(__name__)


class Track:
    """Mutable layout of a railway: a set of sections where every
    junction-branch is connected to at most one section."""

    def __init__(self) -> None:
        self._sections: Set[Section] = set()

    def add_section(self, section: Section) -> None:
        require(section, "section")
        if section in self._sections:
            return
        for existing in self._sections:
            shared = existing.end_points & section.end_points
            if shared:
                ep = next(iter(shared))
                raise RailwayError(
                    ErrorKind.INVALID_TRACK,
                    f"end-point {ep} of {section} is already connected to {existing}",
                )
        self._sections.add(section)
        logger.debug("section_added", section=str(section))

    def remove_section(self, section: Section) -> None:
        self._sections.discard(section)

    def contains(self, section: Section) -> bool:
        return section in self._sections

    def get_junctions(self) -> Set[Junction]:
        return {ep.junction for s in self._sections for ep in s.end_points}

    def get_track_section(self, junction: Junction, branch: Branch) -> Optional[Section]:
        wanted = JunctionBranch(junction, branch)
        for s in self._sections:
            if wanted in s.end_points:
                return s
        return None

    def __contains__(self, section: object) -> bool:
        return section in self._sections

    def __iter__(self) -> Iterator[Section]:
        # copy so callers may mutate the track while iterating
        return iter(list(self._sections))

    def __len__(self) -> int:
        return len(self._sections)

    def __str__(self) -> str:
        return "\n".join(str(s) for s in self._sections)

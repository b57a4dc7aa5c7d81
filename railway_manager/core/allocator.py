from typing import List

import structlog

from .geometry import Segment
from .route import Route, segments_intersect

logger = structlog.get_logger(__name__)

# Priority allocator:
# - Iterate trains by index (lower index = higher priority)
# - Each train competes with every other train's occupied route and every grant made so far
# - Trim its requested route one unit at a time from the end until nothing collides
# - Append the surviving prefix (possibly empty) as its grant


def allocate(occupied: List[Route], requested: List[Route]) -> List[Route]:
    """Grant each train the longest prefix of its request that is clear.

    `occupied[i]` and `requested[i]` belong to train i. Train i may vacate its
    own occupation, so only the other trains' occupations and the grants of
    trains 0..i-1 block it. Inputs are not modified.
    """
    granted: List[Route] = []
    for i, request in enumerate(requested):
        others = [r.segments for j, r in enumerate(occupied) if j != i]
        staged: List[Segment] = list(request)
        trimmed = 0
        while staged and _collides(staged, others, granted):
            last = staged.pop()
            if last.length > 1:
                staged.append(last.with_end_offset(last.end_offset - 1))
            trimmed += 1
        grant = Route(staged)
        granted.append(grant)
        logger.debug(
            "allocation_granted",
            train=i,
            requested_length=request.length,
            granted_length=grant.length,
            trims=trimmed,
        )
    return granted


def _collides(staged: List[Segment], others: List[tuple], granted: List[Route]) -> bool:
    if any(segments_intersect(staged, other) for other in others):
        return True
    return any(segments_intersect(staged, g.segments) for g in granted)

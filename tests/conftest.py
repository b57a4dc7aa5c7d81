from types import SimpleNamespace

import pytest

from railway_manager.core.geometry import Branch, Junction, JunctionBranch, Section
from railway_manager.core.track import Track


def ep(name: str, branch: str) -> JunctionBranch:
    return JunctionBranch(Junction(name), Branch(branch))


@pytest.fixture
def triangle():
    """Junctions A, B, C joined by three sections of length 10.

    left:   (A, REVERSE) - (B, REVERSE)
    right:  (B, FACING)  - (C, FACING)
    bottom: (A, NORMAL)  - (C, NORMAL)
    """
    left = Section(10, ep("A", "REVERSE"), ep("B", "REVERSE"))
    right = Section(10, ep("B", "FACING"), ep("C", "FACING"))
    bottom = Section(10, ep("A", "NORMAL"), ep("C", "NORMAL"))
    track = Track()
    for s in (left, right, bottom):
        track.add_section(s)
    return SimpleNamespace(left=left, right=right, bottom=bottom, track=track)


@pytest.fixture
def star():
    """Three sections of length 10 meeting at junction M.

    s1: (X, REVERSE) - (M, FACING)
    s2: (M, NORMAL)  - (Y, FACING)
    s3: (M, REVERSE) - (Z, FACING)
    """
    s1 = Section(10, ep("X", "REVERSE"), ep("M", "FACING"))
    s2 = Section(10, ep("M", "NORMAL"), ep("Y", "FACING"))
    s3 = Section(10, ep("M", "REVERSE"), ep("Z", "FACING"))
    track = Track()
    for s in (s1, s2, s3):
        track.add_section(s)
    return SimpleNamespace(s1=s1, s2=s2, s3=s3, track=track)


TRIANGLE_TEXT = """\
10 A REVERSE B REVERSE
10 B FACING C FACING
10 A NORMAL C NORMAL
"""


@pytest.fixture
def triangle_text() -> str:
    return TRIANGLE_TEXT

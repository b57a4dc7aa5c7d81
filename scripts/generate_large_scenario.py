"""Write a random chain-shaped track plus occupied/requested route files."""
import argparse, random, os, sys
from pathlib import Path
from typing import List, Tuple

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from railway_manager.core.geometry import Branch, Junction, JunctionBranch, Section, Segment  # noqa: E402
from railway_manager.core.route import Route  # noqa: E402
from railway_manager.core.track import Track  # noqa: E402
from railway_manager.store.readers import format_route, format_track  # noqa: E402


def build_chain(n: int, min_len: int, max_len: int) -> Tuple[Track, List[Section]]:
    # J1 -REVERSE/FACING- J2 -REVERSE/FACING- J3 ...
    track = Track()
    sections: List[Section] = []
    for i in range(n):
        a = JunctionBranch(Junction(f"J{i+1}"), Branch.REVERSE)
        b = JunctionBranch(Junction(f"J{i+2}"), Branch.FACING)
        s = Section(random.randint(min_len, max_len), a, b)
        track.add_section(s)
        sections.append(s)
    return track, sections


def walk(sections: List[Section], first: int, count: int) -> Route:
    segs = []
    for s in sections[first:first + count]:
        departing = next(ep for ep in s.end_points if ep.branch == Branch.REVERSE)
        segs.append(Segment(s, departing, 0, s.length))
    return Route(segs)


def build_trains(sections: List[Section], n: int, reach: int) -> List[Tuple[Route, Route]]:
    # each train occupies the first part of its own section and asks to run `reach` sections ahead
    starts = sorted(random.sample(range(len(sections)), n))
    trains = []
    for first in starts:
        s = sections[first]
        occupied = Route([Segment(s, next(ep for ep in s.end_points if ep.branch == Branch.REVERSE), 0, 1)])
        requested = walk(sections, first, random.randint(1, reach))
        trains.append((occupied, requested))
    return trains


def main():
    p = argparse.ArgumentParser()
    p.add_argument('-Sections', type=int, default=20)
    p.add_argument('-Trains', type=int, default=5)
    p.add_argument('-Reach', type=int, default=4)
    p.add_argument('-MinLen', type=int, default=5)
    p.add_argument('-MaxLen', type=int, default=50)
    p.add_argument('-Seed', type=int, default=42)
    p.add_argument('-Out', type=str, default='large_scenario')
    a = p.parse_args()

    random.seed(a.Seed)
    track, sections = build_chain(a.Sections, a.MinLen, a.MaxLen)
    trains = build_trains(sections, min(a.Trains, a.Sections), a.Reach)
    out = Path(a.Out)
    out.mkdir(parents=True, exist_ok=True)
    (out / "track.txt").write_text(format_track(track))
    for i, (occ, req) in enumerate(trains):
        (out / f"occupied_{i}.txt").write_text(format_route(occ))
        (out / f"requested_{i}.txt").write_text(format_route(req))
    print(f"Wrote {len(track)} sections & {len(trains)} trains -> {out}")


if __name__ == '__main__':
    main()

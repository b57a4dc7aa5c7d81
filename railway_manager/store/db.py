"""SQLite store for saved tracks and allocation runs.

Tracks are kept as one row per section and runs as one row per route
segment, so a stored track or grant reads back as domain objects without
re-parsing any text.
"""
import sqlite3
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from railway_manager.config import Settings
from railway_manager.core.geometry import Branch, Junction, JunctionBranch, Section, Segment
from railway_manager.core.route import Route
from railway_manager.core.track import Track

DB_PATH: Path = Settings().db_path

KPI_COLUMNS = (
    "total_trains",
    "requested_length",
    "granted_length",
    "fully_granted",
    "truncated",
    "blocked",
    "grant_ratio",
)

# which of a run's three route lists a run_segments row belongs to
ROLES = ("occupied", "requested", "granted")


def set_db_path(path: Path) -> None:
    global DB_PATH
    DB_PATH = Path(path)


@contextmanager
def _conn() -> Iterator[sqlite3.Connection]:
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    with closing(sqlite3.connect(DB_PATH)) as conn:
        conn.row_factory = sqlite3.Row
        # commit on success, roll back on error
        with conn:
            yield conn


def init_db() -> None:
    with _conn() as conn:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS tracks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
            CREATE TABLE IF NOT EXISTS sections (
                track_id INTEGER NOT NULL REFERENCES tracks(id),
                length INTEGER NOT NULL,
                junction1 TEXT NOT NULL,
                branch1 TEXT NOT NULL,
                junction2 TEXT NOT NULL,
                branch2 TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS runs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                track_id INTEGER REFERENCES tracks(id),
                name TEXT,
                comment TEXT,
                total_trains INTEGER NOT NULL,
                requested_length INTEGER NOT NULL,
                granted_length INTEGER NOT NULL,
                fully_granted INTEGER NOT NULL,
                truncated INTEGER NOT NULL,
                blocked INTEGER NOT NULL,
                grant_ratio REAL NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
            CREATE TABLE IF NOT EXISTS run_segments (
                run_id INTEGER NOT NULL REFERENCES runs(id),
                role TEXT NOT NULL,
                train INTEGER NOT NULL,
                seq INTEGER NOT NULL,
                length INTEGER NOT NULL,
                junction1 TEXT NOT NULL,
                branch1 TEXT NOT NULL,
                junction2 TEXT NOT NULL,
                branch2 TEXT NOT NULL,
                departing_junction TEXT NOT NULL,
                departing_branch TEXT NOT NULL,
                start_offset INTEGER NOT NULL,
                end_offset INTEGER NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_sections_track ON sections(track_id);
            CREATE INDEX IF NOT EXISTS idx_run_segments_run ON run_segments(run_id, role, train, seq);
            """
        )


def _end_point(junction: str, branch: str) -> JunctionBranch:
    return JunctionBranch(Junction(junction), Branch(branch))


def _section_columns(section: Section) -> tuple:
    a, b = sorted(section.end_points, key=str)
    return (section.length, a.junction.name, a.branch.value, b.junction.name, b.branch.value)


def _section_from_row(r: sqlite3.Row) -> Section:
    return Section(
        r["length"],
        _end_point(r["junction1"], r["branch1"]),
        _end_point(r["junction2"], r["branch2"]),
    )


def _insert_sections(conn: sqlite3.Connection, tid: int, track: Track) -> None:
    conn.executemany(
        "INSERT INTO sections(track_id, length, junction1, branch1, junction2, branch2) VALUES(?,?,?,?,?,?)",
        [(tid, *_section_columns(s)) for s in sorted(track, key=str)],
    )


def save_track(name: str, track: Track) -> int:
    with _conn() as conn:
        cur = conn.execute("INSERT INTO tracks(name) VALUES(?)", (name,))
        tid = int(cur.lastrowid)
        _insert_sections(conn, tid, track)
        return tid


def list_tracks(offset: int = 0, limit: int = 50) -> List[Dict[str, Any]]:
    with _conn() as conn:
        rows = conn.execute(
            """
            SELECT t.id, t.name, t.created_at, COUNT(s.track_id) AS sections
            FROM tracks t LEFT JOIN sections s ON s.track_id = t.id
            GROUP BY t.id ORDER BY t.id DESC LIMIT ? OFFSET ?
            """,
            (limit, offset),
        ).fetchall()
        return [dict(r) for r in rows]


def get_track(tid: int) -> Optional[Dict[str, Any]]:
    with _conn() as conn:
        r = conn.execute("SELECT id, name, created_at FROM tracks WHERE id=?", (tid,)).fetchone()
        return dict(r) if r else None


def load_track(tid: int) -> Optional[Track]:
    """Rebuild a saved track, or None if there is no track `tid`."""
    with _conn() as conn:
        if conn.execute("SELECT 1 FROM tracks WHERE id=?", (tid,)).fetchone() is None:
            return None
        rows = conn.execute("SELECT * FROM sections WHERE track_id=?", (tid,)).fetchall()
    track = Track()
    for r in rows:
        track.add_section(_section_from_row(r))
    return track


def update_track(tid: int, name: Optional[str] = None, track: Optional[Track] = None) -> bool:
    if name is None and track is None:
        return False
    with _conn() as conn:
        if conn.execute("SELECT 1 FROM tracks WHERE id=?", (tid,)).fetchone() is None:
            return False
        if name is not None:
            conn.execute("UPDATE tracks SET name=? WHERE id=?", (name, tid))
        if track is not None:
            conn.execute("DELETE FROM sections WHERE track_id=?", (tid,))
            _insert_sections(conn, tid, track)
        return True


def delete_track(tid: int) -> bool:
    with _conn() as conn:
        conn.execute(
            "DELETE FROM run_segments WHERE run_id IN (SELECT id FROM runs WHERE track_id=?)", (tid,)
        )
        conn.execute("DELETE FROM runs WHERE track_id=?", (tid,))
        conn.execute("DELETE FROM sections WHERE track_id=?", (tid,))
        cur = conn.execute("DELETE FROM tracks WHERE id=?", (tid,))
        return cur.rowcount > 0


def save_run(
    track_id: Optional[int],
    occupied: List[Route],
    requested: List[Route],
    granted: List[Route],
    kpis: Dict[str, Any],
    name: Optional[str] = None,
    comment: Optional[str] = None,
) -> int:
    with _conn() as conn:
        cur = conn.execute(
            f"INSERT INTO runs(track_id, name, comment, {', '.join(KPI_COLUMNS)}) "
            f"VALUES(?,?,?,{','.join('?' * len(KPI_COLUMNS))})",
            (track_id, name, comment, *(kpis[k] for k in KPI_COLUMNS)),
        )
        rid = int(cur.lastrowid)
        rows = []
        for role, routes in zip(ROLES, (occupied, requested, granted)):
            for train, route in enumerate(routes):
                for seq, seg in enumerate(route):
                    dep = seg.departing_end_point
                    rows.append((
                        rid, role, train, seq, *_section_columns(seg.section),
                        dep.junction.name, dep.branch.value, seg.start_offset, seg.end_offset,
                    ))
        conn.executemany(
            """
            INSERT INTO run_segments(run_id, role, train, seq, length, junction1, branch1, junction2, branch2,
                                     departing_junction, departing_branch, start_offset, end_offset)
            VALUES(?,?,?,?,?,?,?,?,?,?,?,?,?)
            """,
            rows,
        )
        return rid


def get_run(rid: int) -> Optional[Dict[str, Any]]:
    with _conn() as conn:
        r = conn.execute("SELECT * FROM runs WHERE id=?", (rid,)).fetchone()
    if not r:
        return None
    run = {k: r[k] for k in ("id", "track_id", "name", "comment", "created_at")}
    run["kpis"] = {k: r[k] for k in KPI_COLUMNS}
    return run


def load_run_routes(rid: int, role: str) -> List[Route]:
    """Rebuild one of a run's route lists, one route per train in priority order.

    Trains granted nothing come back as empty routes.
    """
    if role not in ROLES:
        raise ValueError(f"unknown role {role!r}")
    with _conn() as conn:
        run = conn.execute("SELECT total_trains FROM runs WHERE id=?", (rid,)).fetchone()
        if run is None:
            return []
        rows = conn.execute(
            "SELECT * FROM run_segments WHERE run_id=? AND role=? ORDER BY train, seq", (rid, role)
        ).fetchall()
    segments: List[List[Segment]] = [[] for _ in range(run["total_trains"])]
    for r in rows:
        segments[r["train"]].append(Segment(
            _section_from_row(r),
            _end_point(r["departing_junction"], r["departing_branch"]),
            r["start_offset"],
            r["end_offset"],
        ))
    return [Route(segs) for segs in segments]


def list_runs_by_track(tid: int, offset: int = 0, limit: int = 50) -> List[Dict[str, Any]]:
    with _conn() as conn:
        rows = conn.execute(
            "SELECT id, name, comment, grant_ratio, created_at FROM runs WHERE track_id=? "
            "ORDER BY id DESC LIMIT ? OFFSET ?",
            (tid, limit, offset),
        ).fetchall()
        return [dict(r) for r in rows]


def delete_run(rid: int) -> bool:
    with _conn() as conn:
        conn.execute("DELETE FROM run_segments WHERE run_id=?", (rid,))
        cur = conn.execute("DELETE FROM runs WHERE id=?", (rid,))
        return cur.rowcount > 0

import io
import csv
from typing import Any, Dict, List, Optional

import structlog
from fastapi import FastAPI
from fastapi.responses import RedirectResponse, Response, StreamingResponse
from pydantic import BaseModel

from railway_manager.config import Settings
from railway_manager.logging_config import configure_logging
from railway_manager.core.errors import ErrorKind, RailwayError
from railway_manager.core.geometry import Branch, Junction, JunctionBranch, Section, Segment
from railway_manager.core.registry import TrainRegistry
from railway_manager.core.route import Route
from railway_manager.core.track import Track
from railway_manager.sim.audit import write_audit
from railway_manager.sim.scenario import grant_json, run_allocation
from railway_manager.store.readers import format_track, parse_track
from railway_manager.store.db import (
    init_db,
    save_track,
    list_tracks,
    get_track,
    load_track,
    update_track,
    delete_track,
    save_run,
    get_run,
    load_run_routes,
    list_runs_by_track,
    delete_run,
)

settings = Settings()
configure_logging(log_level=settings.log_level)
logger = structlog.get_logger(__name__)

app = FastAPI(title="Railway Manager API")
init_db()

# Trains managed through /registry; created by POST /registry/track
registry: Optional[TrainRegistry] = None


class EndPointIn(BaseModel):
    junction: str
    branch: str

    def to_domain(self) -> JunctionBranch:
        return JunctionBranch(Junction(self.junction), Branch.parse(self.branch))


class SectionIn(BaseModel):
    length: int
    end_points: List[EndPointIn]

    def to_domain(self) -> Section:
        if len(self.end_points) != 2:
            raise RailwayError(ErrorKind.INVALID_ARGUMENT, "a section needs exactly two end-points")
        a, b = self.end_points
        return Section(self.length, a.to_domain(), b.to_domain())


class SegmentIn(BaseModel):
    section: SectionIn
    departing: EndPointIn
    start: int
    end: int

    def to_domain(self) -> Segment:
        return Segment(self.section.to_domain(), self.departing.to_domain(), self.start, self.end)


class AllocateRequest(BaseModel):
    sections: List[SectionIn] | None = None
    occupied: List[List[SegmentIn]]
    requested: List[List[SegmentIn]]


class SavedAllocateRequest(BaseModel):
    occupied: List[List[SegmentIn]]
    requested: List[List[SegmentIn]]
    name: str | None = None
    comment: str | None = None


class TrackText(BaseModel):
    text: str


class TrackIn(BaseModel):
    name: str = "track"
    text: str


class TrackUpdate(BaseModel):
    name: str | None = None
    text: str | None = None


class TrainIn(BaseModel):
    route: List[SegmentIn]
    start: int
    end: int


class SubrouteIn(BaseModel):
    start: int
    end: int


class RegistryAllocateRequest(BaseModel):
    requested: Dict[int, List[SegmentIn]]


def _route(segments: List[SegmentIn]) -> Route:
    return Route(s.to_domain() for s in segments)


def _end_point_out(ep: JunctionBranch) -> Dict[str, str]:
    return {"junction": ep.junction.name, "branch": ep.branch.value}


def _section_out(section: Section) -> Dict[str, Any]:
    return {
        "length": section.length,
        "end_points": [_end_point_out(ep) for ep in sorted(section.end_points, key=str)],
    }


def _route_out(route: Route) -> List[Dict[str, Any]]:
    return [
        {
            "section": _section_out(seg.section),
            "departing": _end_point_out(seg.departing_end_point),
            "start": seg.start_offset,
            "end": seg.end_offset,
        }
        for seg in route
    ]


def _check_on_track(track: Track, routes: List[Route]) -> None:
    for i, r in enumerate(routes):
        if not r.on_track(track):
            raise RailwayError(ErrorKind.INVALID_ROUTE_REQUEST, f"route {i} is not on the track")


def _run(track: Optional[Track], occupied: List[Route], requested: List[Route]) -> Dict[str, Any]:
    if len(occupied) != len(requested):
        raise RailwayError(
            ErrorKind.INVALID_ARGUMENT,
            f"{len(occupied)} occupied routes but {len(requested)} requested routes",
        )
    if any(r.is_empty() for r in occupied + requested):
        raise RailwayError(ErrorKind.INVALID_ARGUMENT, "routes must not be empty")
    if track is not None:
        _check_on_track(track, occupied + requested)
    return run_allocation(occupied, requested)


def _result_out(result: Dict[str, Any]) -> Dict[str, Any]:
    granted = result["granted"]
    return {
        "granted": [_route_out(g) for g in granted],
        "kpis": result["kpis"],
        "rows": grant_json(granted),
    }


def _allocate(track: Optional[Track], occupied: List[Route], requested: List[Route]) -> Dict[str, Any]:
    return _result_out(_run(track, occupied, requested))


@app.get("/")
async def root() -> RedirectResponse:
    # Redirect base URL to interactive docs to avoid 404 confusion
    return RedirectResponse(url="/docs")


@app.get("/favicon.ico")
async def favicon() -> Response:
    return Response(status_code=204)


def demo_track() -> Track:
    """Triangle A-B-C with every side 10 long."""
    a, b, c = Junction("A"), Junction("B"), Junction("C")
    track = Track()
    track.add_section(Section(10, JunctionBranch(a, Branch.REVERSE), JunctionBranch(b, Branch.REVERSE)))
    track.add_section(Section(10, JunctionBranch(b, Branch.FACING), JunctionBranch(c, Branch.FACING)))
    track.add_section(Section(10, JunctionBranch(a, Branch.NORMAL), JunctionBranch(c, Branch.NORMAL)))
    return track


@app.get("/demo")
async def demo() -> Dict[str, Any]:
    if not settings.demo_enabled:
        return {"error": "demo disabled"}
    track = demo_track()
    a, b, c = Junction("A"), Junction("B"), Junction("C")
    left = track.get_track_section(a, Branch.REVERSE)
    right = track.get_track_section(b, Branch.FACING)
    bottom = track.get_track_section(a, Branch.NORMAL)
    ab = JunctionBranch(a, Branch.REVERSE)
    ac = JunctionBranch(a, Branch.NORMAL)
    bc = JunctionBranch(b, Branch.FACING)
    # train 0 sits near A heading for B then C; train 1 sits near C heading for A
    occupied = [
        Route([Segment(left, ab, 0, 2)]),
        Route([Segment(bottom, bottom.other_end_point(ac), 0, 2)]),
    ]
    requested = [
        Route([Segment(left, ab, 0, 10), Segment(right, bc, 0, 4)]),
        Route([Segment(bottom, bottom.other_end_point(ac), 0, 10)]),
    ]
    return _allocate(track, occupied, requested)


@app.post("/allocate")
async def allocate_endpoint(body: AllocateRequest) -> Dict[str, Any]:
    try:
        track = None
        if body.sections is not None:
            track = Track()
            for s in body.sections:
                track.add_section(s.to_domain())
        occupied = [_route(r) for r in body.occupied]
        requested = [_route(r) for r in body.requested]
        resp = _allocate(track, occupied, requested)
    except RailwayError as e:
        return e.to_dict()
    write_audit({
        "type": "allocate",
        "kpis": resp["kpis"],
        "count": len(resp["granted"]),
    })
    return resp


@app.post("/track/validate")
async def validate_track(body: TrackText) -> Dict[str, Any]:
    try:
        track = parse_track(body.text.splitlines(), source="request")
    except RailwayError as e:
        return e.to_dict()
    return {
        "sections": [_section_out(s) for s in sorted(track, key=str)],
        "junctions": sorted(j.name for j in track.get_junctions()),
    }


# Persistence APIs
@app.post("/tracks")
async def create_track(body: TrackIn) -> Dict[str, Any]:
    try:
        track = parse_track(body.text.splitlines(), source=body.name)
    except RailwayError as e:
        return e.to_dict()
    tid = save_track(body.name, track)
    return {"id": tid, "sections": len(track)}


@app.get("/tracks")
async def tracks(offset: int = 0, limit: int = 50) -> Dict[str, Any]:
    return {"items": list_tracks(offset=offset, limit=limit)}


@app.get("/tracks/{tid}")
async def track_details(tid: int) -> Dict[str, Any]:
    t = get_track(tid)
    if not t:
        return {"error": "track not found"}
    track = load_track(tid)
    t["text"] = format_track(track)
    t["sections"] = [_section_out(s) for s in sorted(track, key=str)]
    return {"track": t}


@app.put("/tracks/{tid}")
async def update_track_api(tid: int, body: TrackUpdate) -> Dict[str, Any]:
    track = None
    if body.text is not None:
        try:
            track = parse_track(body.text.splitlines(), source=f"track {tid}")
        except RailwayError as e:
            return e.to_dict()
    return {"updated": update_track(tid, name=body.name, track=track)}


@app.delete("/tracks/{tid}")
async def delete_track_api(tid: int) -> Dict[str, Any]:
    return {"deleted": delete_track(tid)}


@app.post("/tracks/{tid}/allocate")
async def allocate_on_saved_track(tid: int, body: SavedAllocateRequest) -> Dict[str, Any]:
    track = load_track(tid)
    if track is None:
        return {"error": "track not found"}
    try:
        occupied = [_route(r) for r in body.occupied]
        requested = [_route(r) for r in body.requested]
        result = _run(track, occupied, requested)
    except RailwayError as e:
        return e.to_dict()
    rid = save_run(
        track_id=tid,
        occupied=occupied,
        requested=requested,
        granted=result["granted"],
        kpis=result["kpis"],
        name=body.name,
        comment=body.comment,
    )
    write_audit({"type": "allocate", "track_id": tid, "run_id": rid, "kpis": result["kpis"]})
    return {"run_id": rid, **_result_out(result)}


@app.get("/runs/{rid}")
async def get_run_details(rid: int) -> Dict[str, Any]:
    r = get_run(rid)
    if not r:
        return {"error": "run not found"}
    for role in ("occupied", "requested", "granted"):
        r[role] = [_route_out(route) for route in load_run_routes(rid, role)]
    return {"run": r}


@app.get("/tracks/{tid}/runs")
async def list_runs_for_track(tid: int, offset: int = 0, limit: int = 50) -> Dict[str, Any]:
    return {"items": list_runs_by_track(tid, offset=offset, limit=limit)}


@app.delete("/runs/{rid}")
async def delete_run_api(rid: int) -> Dict[str, Any]:
    return {"deleted": delete_run(rid)}


@app.get("/runs/{rid}/grants.csv")
async def download_grants_csv(rid: int) -> StreamingResponse:
    r = get_run(rid)
    if not r:
        return StreamingResponse(io.StringIO("error,run not found\n"), media_type="text/csv")
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=["train", "section", "departing", "start", "end"])
    writer.writeheader()
    writer.writerows(grant_json(load_run_routes(rid, "granted")))
    buf.seek(0)
    return StreamingResponse(buf, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename=run_{rid}_grants.csv"})


# Train registry APIs
def _train_out(train_id: int, train) -> Dict[str, Any]:
    return {
        "id": train_id,
        "start": train.start_offset,
        "end": train.end_offset,
        "route": _route_out(train.route),
        "subroute": _route_out(train.subroute),
    }


def _no_registry() -> Dict[str, Any]:
    return {"error": "no track loaded", "kind": ErrorKind.INVALID_ARGUMENT.value}


@app.post("/registry/track")
async def load_registry_track(body: TrackText) -> Dict[str, Any]:
    global registry
    try:
        track = parse_track(body.text.splitlines(), source="registry")
    except RailwayError as e:
        return e.to_dict()
    registry = TrainRegistry(track)
    logger.info("registry_track_loaded", sections=len(track))
    return {"sections": len(track)}


@app.get("/registry/trains")
async def registry_trains() -> Dict[str, Any]:
    if registry is None:
        return _no_registry()
    return {"items": [_train_out(tid, t) for tid, t in registry]}


@app.post("/registry/trains")
async def spawn_train(body: TrainIn) -> Dict[str, Any]:
    if registry is None:
        return _no_registry()
    try:
        tid = registry.spawn(_route(body.route), body.start, body.end)
    except RailwayError as e:
        return e.to_dict()
    return _train_out(tid, registry.get(tid))


@app.put("/registry/trains/{tid}")
async def move_train(tid: int, body: SubrouteIn) -> Dict[str, Any]:
    if registry is None:
        return _no_registry()
    try:
        registry.set_subroute(tid, body.start, body.end)
    except RailwayError as e:
        return e.to_dict()
    return _train_out(tid, registry.get(tid))


@app.delete("/registry/trains/{tid}")
async def remove_train(tid: int) -> Dict[str, Any]:
    if registry is None:
        return _no_registry()
    try:
        registry.remove(tid)
    except RailwayError as e:
        return e.to_dict()
    return {"deleted": True}


@app.post("/registry/allocate")
async def allocate_registry_moves(body: RegistryAllocateRequest) -> Dict[str, Any]:
    if registry is None:
        return _no_registry()
    try:
        requested = {tid: _route(r) for tid, r in body.requested.items()}
        grants = registry.allocate_moves(requested)
    except RailwayError as e:
        return e.to_dict()
    return {"granted": {str(tid): _route_out(g) for tid, g in grants.items()}}

import argparse
import sys
from typing import List, Optional

from railway_manager.config import Settings
from railway_manager.logging_config import configure_logging
from railway_manager.core.errors import ErrorKind, RailwayError
from railway_manager.sim.scenario import grant_json, run_allocation
from railway_manager.store.readers import read_route, read_track


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Allocate routes to trains on a track.")
    p.add_argument("track", help="track file")
    p.add_argument("--occupied", nargs="+", required=True, help="route files currently occupied, in priority order")
    p.add_argument("--requested", nargs="+", required=True, help="route files requested, same order as --occupied")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(log_level=Settings().log_level)
    try:
        if len(args.occupied) != len(args.requested):
            raise RailwayError(ErrorKind.INVALID_ARGUMENT, "--occupied and --requested need the same number of routes")
        track = read_track(args.track)
        occupied = [read_route(p) for p in args.occupied]
        requested = [read_route(p) for p in args.requested]
        for path, route in zip(args.occupied + args.requested, occupied + requested):
            if not route.on_track(track):
                raise RailwayError(ErrorKind.INVALID_ROUTE_REQUEST, f"route {path} is not on track {args.track}")
    except RailwayError as e:
        print(f"error ({e.kind.value}): {e.message}", file=sys.stderr)
        return 1

    result = run_allocation(occupied, requested)
    print("KPIs:", result["kpis"])
    print("Grants:")
    for row in grant_json(result["granted"]):
        print(row)
    return 0


if __name__ == "__main__":
    sys.exit(main())

from __future__ import annotations
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

import structlog

from .allocator import allocate
from .errors import ErrorKind, RailwayError, require
from .route import Route
from .track import Track
from railway_manager.store.readers import read_route

logger = structlog.get_logger(__name__)

TrainId = int


@dataclass(frozen=True)
class Train:
    route: Route
    start_offset: int
    end_offset: int
    # the part of `route` the train currently occupies
    subroute: Route


class TrainRegistry:
    """Trains on one track, each occupying a sub-route of its own route.

    No two trains' sub-routes may intersect; every mutation is checked
    before it is applied, so a rejected request leaves the registry as it
    was.
    """

    def __init__(self, track: Track) -> None:
        require(track, "track")
        self.track = track
        self._trains: Dict[TrainId, Train] = {}
        self._next_id: TrainId = 0

    def spawn(self, route: Route, start_offset: int, end_offset: int) -> TrainId:
        subroute = self._validate(route, start_offset, end_offset, ignore=None)
        train_id = self._next_id
        self._next_id += 1
        self._trains[train_id] = Train(route, start_offset, end_offset, subroute)
        logger.info("train_spawned", train=train_id, start=start_offset, end=end_offset)
        return train_id

    def spawn_from_file(self, path: Union[str, Path], start_offset: int, end_offset: int) -> TrainId:
        return self.spawn(read_route(path), start_offset, end_offset)

    def set_subroute(self, train_id: TrainId, start_offset: int, end_offset: int) -> None:
        train = self.get(train_id)
        subroute = self._validate(train.route, start_offset, end_offset, ignore=train_id)
        self._trains[train_id] = replace(
            train, start_offset=start_offset, end_offset=end_offset, subroute=subroute
        )
        logger.info("train_moved", train=train_id, start=start_offset, end=end_offset)

    def remove(self, train_id: TrainId) -> None:
        self.get(train_id)
        del self._trains[train_id]
        logger.info("train_removed", train=train_id)

    def get(self, train_id: TrainId) -> Train:
        try:
            return self._trains[train_id]
        except KeyError:
            raise RailwayError(ErrorKind.INVALID_ARGUMENT, f"no train with id {train_id}") from None

    def ids(self) -> List[TrainId]:
        return sorted(self._trains)

    def allocate_moves(self, requested: Dict[TrainId, Route]) -> Dict[TrainId, Route]:
        """Run the allocator over the current occupations without applying it.

        Priority follows ascending train id; a train with no entry in
        `requested` asks to stay where it is.
        """
        unknown = set(requested) - set(self._trains)
        if unknown:
            raise RailwayError(ErrorKind.INVALID_ARGUMENT, f"no trains with ids {sorted(unknown)}")
        order = self.ids()
        occupied = [self._trains[t].subroute for t in order]
        wanted = [requested.get(t, self._trains[t].subroute) for t in order]
        return dict(zip(order, allocate(occupied, wanted)))

    def _validate(self, route: Route, start: int, end: int, ignore: Optional[TrainId]) -> Route:
        require(route, "route")
        if not route.on_track(self.track):
            raise RailwayError(ErrorKind.INVALID_ROUTE_REQUEST, "route is not on the track")
        try:
            subroute = route.get_subroute(start, end)
        except RailwayError as e:
            if e.kind is not ErrorKind.INVALID_ARGUMENT:
                raise
            raise RailwayError(ErrorKind.INVALID_ROUTE_REQUEST, f"invalid sub-route: {e.message}") from e
        for other_id, other in self._trains.items():
            if other_id == ignore:
                continue
            if subroute.intersects(other.subroute):
                raise RailwayError(
                    ErrorKind.INVALID_ROUTE_REQUEST, f"sub-route intersects the route of train {other_id}"
                )
        return subroute

    def __iter__(self) -> Iterator[Tuple[TrainId, Train]]:
        return iter(sorted(self._trains.items()))

    def __len__(self) -> int:
        return len(self._trains)

    def __contains__(self, train_id: object) -> bool:
        return train_id in self._trains

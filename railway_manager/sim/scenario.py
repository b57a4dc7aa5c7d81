from typing import Any, Dict, List

from railway_manager.core.allocator import allocate
from railway_manager.core.route import Route
from railway_manager.sim.simulator import summarize_allocation


def run_allocation(occupied: List[Route], requested: List[Route]) -> Dict[str, Any]:
    granted = allocate(occupied, requested)
    return {
        "granted": granted,
        "kpis": summarize_allocation(requested, granted),
    }


def grant_json(granted: List[Route]) -> List[Dict[str, Any]]:
    # Flatten grants to one row per segment
    return [
        {
            "train": i,
            "section": str(seg.section),
            "departing": str(seg.departing_end_point),
            "start": seg.start_offset,
            "end": seg.end_offset,
        }
        for i, route in enumerate(granted)
        for seg in route
    ]

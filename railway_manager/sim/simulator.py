from typing import Any, Dict, List

from railway_manager.core.route import Route

# Allocation KPIs: how much of what was asked for was granted


def summarize_allocation(requested: List[Route], granted: List[Route]) -> Dict[str, Any]:
    if not requested:
        return {
            "total_trains": 0,
            "requested_length": 0,
            "granted_length": 0,
            "fully_granted": 0,
            "truncated": 0,
            "blocked": 0,
            "grant_ratio": 0.0,
        }
    asked = sum(r.length for r in requested)
    got = sum(g.length for g in granted)
    full = sum(1 for r, g in zip(requested, granted) if g.length == r.length)
    blocked = sum(1 for g in granted if g.is_empty())
    return {
        "total_trains": len(requested),
        "requested_length": asked,
        "granted_length": got,
        "fully_granted": full,
        "truncated": len(requested) - full - blocked,
        "blocked": blocked,
        "grant_ratio": round(got / asked, 4) if asked else 0.0,
    }

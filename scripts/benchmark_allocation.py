"""Benchmark allocation time for varying numbers of trains.

Usage:
    python scripts/benchmark_allocation.py -Min 5 -Max 25 -Step 5 -Sections 60 -Reach 6

Notes:
    - Worst case is Θ(N · L · K) intersection checks: N trains, L total requested
      length, K competing segments.
"""

from __future__ import annotations
import argparse, random, statistics, json, time, os, sys

# Ensure project root on path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from railway_manager.core.allocator import allocate  # type: ignore
from railway_manager.sim.simulator import summarize_allocation  # type: ignore
from scripts.generate_large_scenario import build_chain, build_trains  # type: ignore


def run_once(n_trains: int, sections, reach: int) -> dict:
    trains = build_trains(sections, n_trains, reach)
    occupied = [o for o, _ in trains]
    requested = [r for _, r in trains]
    t0 = time.perf_counter()
    granted = allocate(occupied, requested)
    dt = time.perf_counter() - t0
    k = summarize_allocation(requested, granted)
    return {
        "n_trains": n_trains,
        "requested_length": k["requested_length"],
        "grant_ratio": k["grant_ratio"],
        "elapsed_s": dt,
    }


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument('-Min', type=int, default=5)
    ap.add_argument('-Max', type=int, default=25)
    ap.add_argument('-Step', type=int, default=5)
    ap.add_argument('-Sections', type=int, default=60)
    ap.add_argument('-Reach', type=int, default=6)
    ap.add_argument('-Repeats', type=int, default=3)
    ap.add_argument('-Json', action='store_true')
    args = ap.parse_args()

    random.seed(42)
    _, sections = build_chain(args.Sections, 5, 30)
    rows = []
    for n in range(args.Min, min(args.Max, args.Sections) + 1, args.Step):
        runs = [run_once(n, sections, args.Reach) for _ in range(args.Repeats)]
        rows.append({
            "n_trains": n,
            "elapsed_mean_s": statistics.fmean(r["elapsed_s"] for r in runs),
            "grant_ratio_mean": statistics.fmean(r["grant_ratio"] for r in runs),
        })
    if args.Json:
        print(json.dumps(rows, indent=2))
    else:
        for r in rows:
            print(f"{r['n_trains']:>4} trains  {r['elapsed_mean_s']*1000:8.2f} ms  grant ratio {r['grant_ratio_mean']:.3f}")


if __name__ == '__main__':
    main()

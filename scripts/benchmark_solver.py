#!/usr/bin/env python3
"""Benchmark the propagate-or-rollback solver on a road/grass module set."""

from __future__ import annotations

import argparse
import json
import logging
import random
import time
from pathlib import Path

from tilecollapse.modules import ModuleSet, load_module_set, parse_module_set
from tilecollapse.solver import Grid, PropagationEngine

GRID_SIZES: tuple[tuple[int, int], ...] = (
    (10, 10),
    (20, 20),
    (30, 30),
    (40, 25),
)

# Road tiles covering every road/grass edge combination.
ROAD_MODULE_SET = {
    "contacts": [
        {"type": "grass", "forbidden": ["road"]},
        {"type": "road", "forbidden": ["grass"]},
    ],
    "modules": [
        {"name": "field", "forward": "grass", "right": "grass",
         "back": "grass", "left": "grass"},
        {"name": "dead_end", "forward": "road", "right": "grass",
         "back": "grass", "left": "grass"},
        {"name": "straight", "forward": "road", "right": "grass",
         "back": "road", "left": "grass"},
        {"name": "corner", "forward": "road", "right": "road",
         "back": "grass", "left": "grass"},
        {"name": "tee", "forward": "road", "right": "road",
         "back": "road", "left": "grass"},
        {"name": "cross", "forward": "road", "right": "road",
         "back": "road", "left": "road"},
    ],
}  # fmt: skip


class SolverBenchmark:
    """Benchmark runner for PropagationEngine."""

    def __init__(self, module_set: ModuleSet, iterations: int) -> None:
        self.iterations = iterations
        self.catalog = module_set.build_catalog()
        self.results: dict[str, dict[str, float]] = {}

    def _run_case(self, rows: int, cols: int) -> tuple[float, float, float]:
        """Run one case; return (avg ms, avg rollbacks, failure ratio)."""
        elapsed_total = 0.0
        rollbacks = 0
        failures = 0

        for i in range(self.iterations):
            rng = random.Random((rows * 1_000_000) + (cols * 1_000) + i)
            engine = PropagationEngine(Grid(rows, cols, self.catalog), rng)

            start = time.perf_counter()
            result = engine.run()
            elapsed_total += time.perf_counter() - start

            rollbacks += result.rollbacks
            failures += not result.solved

        return (
            (elapsed_total / self.iterations) * 1000.0,
            rollbacks / self.iterations,
            failures / self.iterations,
        )

    def run(self) -> None:
        """Run all configured grid-size benchmarks."""
        print("Solver Benchmark")
        print("=" * 52)
        print(f"Catalog size: {len(self.catalog)} states")
        print(f"Iterations per size: {self.iterations}")
        print()
        print(f"{'Size':>10} {'Time (ms)':>12} {'Rollbacks':>12} {'Failed':>10}")
        print("-" * 52)

        for rows, cols in GRID_SIZES:
            solve_ms, rollbacks, failed = self._run_case(rows, cols)

            size_key = f"{rows}x{cols}"
            self.results[size_key] = {
                "solve_ms": solve_ms,
                "rollbacks": rollbacks,
                "failed": failed,
            }

            print(f"{size_key:>10} {solve_ms:12.2f} {rollbacks:12.1f} {failed:10.0%}")

    def save_results(self, filename: str) -> None:
        """Save benchmark output to a JSON file."""
        with Path(filename).open("w") as f:
            json.dump(self.results, f, indent=2)
        print(f"\nSaved benchmark results to {filename}")

    def compare_with_baseline(self, baseline_file: str) -> None:
        """Compare current run with a saved baseline JSON file."""
        try:
            with Path(baseline_file).open() as f:
                baseline: dict[str, dict[str, float]] = json.load(f)
        except FileNotFoundError:
            print(f"\nBaseline file not found: {baseline_file}")
            return

        print(f"\nComparison vs baseline: {baseline_file}")
        print("=" * 64)

        for size_key, current in self.results.items():
            old_ms = baseline.get(size_key, {}).get("solve_ms", 0.0)
            if old_ms <= 0:
                continue

            new_ms = current["solve_ms"]
            delta_pct = ((new_ms - old_ms) / old_ms) * 100.0
            speed_ratio = old_ms / new_ms if new_ms > 0 else 0.0
            trend = "faster" if speed_ratio > 1.0 else "slower"

            print(
                f"{size_key:>10}: {new_ms:8.2f}ms vs {old_ms:8.2f}ms | "
                f"{speed_ratio:5.2f}x {trend} ({delta_pct:+6.1f}%)"
            )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Benchmark the tile solver")
    parser.add_argument(
        "--iterations",
        type=int,
        default=5,
        help="Number of runs per grid size (default: 5)",
    )
    parser.add_argument(
        "--modules",
        type=str,
        help="JSON module set to benchmark instead of the built-in road set",
    )
    parser.add_argument("--save", type=str, help="Save current results to JSON")
    parser.add_argument(
        "--compare",
        type=str,
        help="Compare current results against baseline JSON",
    )
    parser.add_argument("--verbose", action="store_true", help="Log solver runs")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.INFO)

    if args.modules:
        module_set = load_module_set(args.modules)
    else:
        module_set = parse_module_set(ROAD_MODULE_SET)

    benchmark = SolverBenchmark(module_set, iterations=args.iterations)
    benchmark.run()

    if args.save:
        benchmark.save_results(args.save)

    if args.compare:
        benchmark.compare_with_baseline(args.compare)


if __name__ == "__main__":
    main()

from __future__ import annotations

import argparse
import csv
import json
import math
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger
from pygame.math import Vector2

from ..sim.core.config import SimulationConfig
from ..sim.core.rng import DeterministicRng
from ..sim.core.world import World
from ..sim.types.metrics import TickMetrics


_HEADER = [
    "tick",
    "score",
    "mood",
    "ball_x",
    "ball_y",
    "ball_speed",
    "in_air",
    "at_rest",
    "carried",
    "dog_x",
    "dog_y",
    "tick_ms",
]


def _format_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.score,
        metrics.mood,
        f"{metrics.ball_x:.4f}",
        f"{metrics.ball_y:.4f}",
        f"{metrics.ball_speed:.4f}",
        int(metrics.in_air),
        int(metrics.at_rest),
        int(metrics.carried),
        f"{metrics.dog_x:.4f}",
        f"{metrics.dog_y:.4f}",
        f"{tick_ms:.3f}",
    ]


def parse_throw(value: str) -> Vector2:
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 2:
        raise ValueError(f"Throw must look like DX,DY: {value!r}")
    try:
        return Vector2(float(parts[0]), float(parts[1]))
    except ValueError as exc:
        raise ValueError(f"Throw must look like DX,DY: {value!r}") from exc


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0}
    sorted_values = sorted(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
    }


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    throws: Optional[Sequence[Vector2]] = None,
    auto_throw: bool = False,
    deterministic_log: bool = False,
    summary_path: Optional[Path] = None,
    config_path: Optional[Path] = None,
) -> World:
    """Play throws without a renderer and return the finished world.

    Scripted ``throws`` are released in order, each as soon as the ball is
    back in the hand. With ``auto_throw`` the remaining throws are drawn from
    a seeded RNG instead.
    """
    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    world = World(config)
    rng = DeterministicRng(0 if seed is None else seed)
    pending = [Vector2(v) for v in (throws or [])]

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_HEADER)

    tick_ms_series: list[float] = []
    retrieval_ticks: list[float] = []
    throw_tick: int | None = None

    try:
        for tick in range(steps):
            if world.ready_to_throw():
                drag = None
                if pending:
                    drag = pending.pop(0)
                elif auto_throw:
                    drag = rng.next_throw(config.throw.max_drag)
                if drag is not None and world.throw(drag):
                    throw_tick = tick

            retrievals_before = world.state.retrievals
            metrics = world.step(tick)
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
            tick_ms_series.append(tick_ms)
            if metrics.retrievals > retrievals_before and throw_tick is not None:
                retrieval_ticks.append(float(tick - throw_tick + 1))
                throw_tick = None

            if writer:
                writer.writerow(_format_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    state = world.state
    logger.info(
        "Headless run finished: {} steps, {} throws, {} retrievals, score {}",
        steps,
        state.throws,
        state.retrievals,
        state.score,
    )

    if summary_path:
        summary = {
            "steps": steps,
            "seed": rng.seed,
            "auto_throw": auto_throw,
            "deterministic_log": deterministic_log,
            "throws": state.throws,
            "retrievals": state.retrievals,
            "score": state.score,
            "ticks_per_retrieval": _summary_stats(retrieval_ticks),
            "tick_ms": _summary_stats(tick_ms_series),
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
    return world


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless fetch simulation")
    parser.add_argument("--steps", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML file overriding the default config")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write per-tick metrics")
    parser.add_argument(
        "--throw",
        action="append",
        type=parse_throw,
        default=[],
        metavar="DX,DY",
        help="Drag vector for a scripted throw (repeatable, released in order).",
    )
    parser.add_argument(
        "--auto-throw",
        action="store_true",
        help="Keep throwing seeded-random drags once scripted throws run out.",
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical runs match).",
    )
    args = parser.parse_args()
    run_headless(
        args.steps,
        args.seed,
        args.log,
        throws=args.throw,
        auto_throw=args.auto_throw,
        deterministic_log=args.deterministic_log,
        summary_path=args.summary,
        config_path=args.config,
    )


if __name__ == "__main__":
    main()

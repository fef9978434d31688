"""CLI entry point for a headless EcoClimate run.

Loads parameters and a landscape, applies any requested remediation, then
advances the engine one ecology interval per frame and prints periodic
status lines.
"""

import argparse
import logging
import sys
import time
from pathlib import Path

import numpy as np

from ecoclimate.config import init_taichi
from ecoclimate.diagnostics import check_ranges
from ecoclimate.params import SimulationConfig, load_config, load_parameter_csv
from ecoclimate.simulation import SECONDS_PER_DAY, Simulation
from ecoclimate.terrain import TerrainGrid, demo_landscape


def parse_point(text: str) -> tuple[int, int]:
    """Parse ``x,y`` into integer coordinates."""
    try:
        x, y = (int(v) for v in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected x,y but got {text!r}")
    return x, y


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="EcoClimate landscape simulation")
    parser.add_argument("--config", type=str, help="YAML parameter file")
    parser.add_argument("--params", type=str, help="Flat name,value parameter file (overrides --config)")
    parser.add_argument("--terrain", type=str, help="Terrain character map (default: built-in demo)")
    parser.add_argument("--days", type=float, default=1.0, help="Simulated days to run")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--speed", type=float, default=None, help="Speed multiplier. Overrides config.")
    parser.add_argument("--report-every", type=float, default=0.25, help="Status interval [days]")
    parser.add_argument(
        "--remediate", type=parse_point, action="append", default=[],
        metavar="X,Y", help="Remediate around a cell before running (repeatable)",
    )
    parser.add_argument("--check", action="store_true", help="Verify grid invariants at every report")
    parser.add_argument("--output", type=str, help="Output directory for the final .npz snapshot")
    parser.add_argument("--backend", type=str, default=None, help="cuda, vulkan or cpu")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v info, -vv debug")
    return parser


def load_parameters(args: argparse.Namespace) -> SimulationConfig:
    config = SimulationConfig()
    if args.config:
        print(f"Loading config from {args.config}")
        config = load_config(args.config)
    if args.params:
        print(f"Loading parameters from {args.params}")
        config = load_parameter_csv(args.params, base=config)
    return config


def save_snapshot(sim: Simulation, output: str) -> Path:
    out_path = Path(output)
    out_path.mkdir(parents=True, exist_ok=True)
    path = out_path / f"ecoclimate_day{sim.elapsed_days:08.3f}.npz"
    np.savez_compressed(path, day=sim.elapsed_days, **sim.snapshot())
    return path


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    backend = init_taichi(args.backend)
    print(f"Taichi backend: {backend}")

    config = load_parameters(args)
    terrain = TerrainGrid.from_file(args.terrain) if args.terrain else demo_landscape()

    sim = Simulation(config, seed=args.seed)
    sim.initialize(terrain)
    if args.speed is not None:
        sim.speed = args.speed

    for x, y in args.remediate:
        if not sim.apply_remediation(x, y):
            print(f"Warning: remediation target ({x}, {y}) is outside the grid")

    nx, ny = terrain.shape
    print(f"Running {nx}x{ny} grid for {args.days} days (seed={args.seed})")
    print(f"Day {sim.elapsed_days:.2f}: {sim.stats().summary()}")

    # One frame advances one ecology interval of simulated time
    frame_seconds = config.domain.time_step_ecology_s / sim.speed
    next_report = args.report_every
    start_time = time.time()

    try:
        while sim.elapsed_days < args.days:
            remaining = (args.days - sim.elapsed_days) * SECONDS_PER_DAY / sim.speed
            if remaining < 1e-6:
                break
            sim.advance(min(frame_seconds, remaining))

            if sim.elapsed_days >= next_report or sim.elapsed_days >= args.days:
                w = sim.weather
                print(
                    f"Day {sim.elapsed_days:.2f}: T={w.temperature:.1f}C wind={w.wind_speed:.1f}m/s "
                    f"storm={w.is_storm} | {sim.stats().summary()}"
                )
                if args.check:
                    check_ranges(sim.snapshot(), config)
                next_report += args.report_every
    except KeyboardInterrupt:
        print("\nSimulation stopped by user.")
    except AssertionError as e:
        print(f"Invariant check failed: {e}")
        return 1

    if args.output:
        path = save_snapshot(sim, args.output)
        print(f"Saved snapshot to {path}")

    duration = time.time() - start_time
    print(f"Simulation finished in {duration:.2f}s")
    print(f"Simulated {sim.elapsed_days:.2f} days")
    return 0


if __name__ == "__main__":
    sys.exit(main())

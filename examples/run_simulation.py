#!/usr/bin/env python3
"""
Example Reactor Core Simulation

This script demonstrates how to use the reactor_sim package to run
the core headless for a number of ticks, operate the rods and report
the resulting state.

Usage:
    python run_simulation.py [--ticks TICKS] [--seed SEED]

Example:
    python run_simulation.py --ticks 2000 --seed 42 --retract control
"""

import argparse
import logging
import sys

from reactor_sim import (
    CONTROL,
    MODERATOR,
    ALL_RODS,
    SimulationInvariantError,
    create_reactor,
)

logger = logging.getLogger("run_simulation")


def run_basic_simulation(ticks: int = 1000, seed=None, retract=(), report_every: int = 0):
    """
    Run the core for a fixed number of ticks.

    Args:
        ticks: Number of ticks to run
        seed: Seed of the random source
        retract: Rod classes to retract before starting
        report_every: Print a one-line status every N ticks (0 = never)
    """
    print("\n" + "="*70)
    print("       REACTOR CORE SIMULATION")
    print("="*70)

    print("\nInitializing reactor core...")
    reactor = create_reactor(seed=seed)

    for rod_class in retract:
        reactor.set_rod_inserted(rod_class, ALL_RODS, False)

    for _ in range(ticks):
        reactor.tick()

        if report_every and reactor.tick_count % report_every == 0:
            status = reactor.status()
            print(
                f"  tick {status['tick']:>6d}  "
                f"T={status['core_temperature']:>8.1f}  "
                f"particles={status['active_particles']:>6d}  "
                f"melted={status['breached_elements']:>4d}"
            )

    reactor.print_summary()

    return reactor


def run_rod_study(ticks: int = 500, seed=None):
    """
    Compare core temperature for each rod configuration.
    """
    print("\n" + "="*70)
    print("       ROD CONFIGURATION STUDY")
    print("="*70)

    configurations = [
        ("all inserted", ()),
        ("control retracted", (CONTROL,)),
        ("moderators retracted", (MODERATOR,)),
        ("all retracted", (CONTROL, MODERATOR)),
    ]

    print(f"\n{'Configuration':>22} {'T core':>10} {'Particles':>10} {'Melted':>8}")
    print("-" * 55)

    for name, retract in configurations:
        reactor = create_reactor(seed=seed)
        for rod_class in retract:
            reactor.set_rod_inserted(rod_class, ALL_RODS, False)
        reactor.run(ticks)

        status = reactor.status()
        print(
            f"{name:>22} {status['core_temperature']:>10.1f} "
            f"{status['active_particles']:>10d} {status['breached_elements']:>8d}"
        )


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Reactor Core Simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                          # Run 1000 ticks with defaults
  %(prog)s --ticks 5000 --seed 7 --retract control
  %(prog)s --study rods             # Compare rod configurations
        """
    )

    parser.add_argument(
        "--ticks",
        type=int,
        default=1000,
        help="Number of ticks to simulate (default: 1000)"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed of the random source"
    )
    parser.add_argument(
        "--retract",
        choices=[CONTROL, MODERATOR],
        action="append",
        default=[],
        help="Retract every rod of a class before starting (repeatable)"
    )
    parser.add_argument(
        "--report-every",
        type=int,
        default=0,
        help="Print status every N ticks (default: off)"
    )
    parser.add_argument(
        "--study",
        choices=["rods"],
        help="Run specific study type"
    )
    parser.add_argument(
        "--output",
        type=str,
        help="Output JSON snapshot file path"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.ticks < 0:
        print(f"Error: ticks cannot be negative, got {args.ticks}")
        sys.exit(1)

    try:
        if args.study == "rods":
            run_rod_study(args.ticks, args.seed)
        else:
            reactor = run_basic_simulation(
                args.ticks, args.seed, args.retract, args.report_every
            )

            if args.output:
                reactor.to_json(args.output)
                print(f"\nSnapshot exported to: {args.output}")

    except SimulationInvariantError:
        logger.exception("Simulation stopped")
        sys.exit(2)


if __name__ == "__main__":
    main()

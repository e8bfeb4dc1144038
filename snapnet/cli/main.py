# MIT License
# Copyright (c) 2025 Hashborn

import argparse
import json
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError
from ..protocol.config.params import PROFILES, get_config
from ..protocol.types.common import MarkerForwarding, SimulationError
from ..network.scenario import DEMO_SCENARIO, Scenario
from ..network.core.simulation import Simulation

logger = logging.getLogger(__name__)


def print_results(sim: Simulation, as_json: bool = False):
    epochs = [sim.global_snapshot(e) for e in sim.collector.epochs]

    if as_json:
        out = {
            "time": sim.now,
            "balances": {pid: p.balance for pid, p in sim.peers.items()},
            "in_flight": sim.in_flight_amount(),
            "snapshots": [
                dict(s.summary(), complete=s.is_complete(sim.peers)) for s in epochs
            ],
        }
        print(json.dumps(out, indent=2))
        return

    print(f"Finished at t={sim.now} ({sim.config.time_unit})")
    print(f"{'Peer':<10} {'Balance':>10}")
    print("-" * 21)
    for pid, peer in sim.peers.items():
        print(f"{pid:<10} {peer.balance:>10}")
    print(f"In flight: {sim.in_flight_amount()}")

    if not epochs:
        print("\nNo snapshots completed.")
        return

    for snap in epochs:
        status = "complete" if snap.is_complete(sim.peers) else "INCOMPLETE"
        print(f"\nSnapshot {snap.epoch_id} ({status})")
        for pid, report in sorted(snap.reports.items()):
            slots = ", ".join(f"{src}:{amt}" for src, amt in zip(report.channels, report.in_transit))
            print(f"  {pid:<8} balance={report.captured_balance:<6} in-transit=[{slots}]  t={report.completed_at}")
        print(f"  total={snap.total} (balances {snap.captured_balance} + in-transit {snap.in_transit})")


def _config_from_args(args):
    config = get_config(args.profile)
    if args.forwarding:
        config = config.with_forwarding(MarkerForwarding(args.forwarding))
    return config


def cmd_demo(args):
    sim = DEMO_SCENARIO.run(_config_from_args(args), until=args.until)
    print_results(sim, args.json)


def cmd_run(args):
    try:
        scenario = Scenario.from_file(args.scenario)
    except (OSError, ValueError, ValidationError) as e:
        print(f"Error: cannot load scenario {args.scenario}: {e}")
        sys.exit(1)

    try:
        sim = scenario.run(_config_from_args(args), until=args.until)
    except SimulationError as e:
        print(f"Error: {e}")
        sys.exit(1)
    print_results(sim, args.json)


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Chandy-Lamport snapshot simulator")
    parser.add_argument("--profile", default="default", choices=sorted(PROFILES), help="Configuration profile")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_run_options(p):
        p.add_argument("--until", type=float, default=None, help="Stop at this simulated time")
        p.add_argument("--forwarding", choices=[f.value for f in MarkerForwarding],
                       help="Marker forwarding policy (overrides profile)")
        p.add_argument("--json", action="store_true", help="Print results as JSON")

    demo_parser = subparsers.add_parser("demo", help="Run the built-in three-peer scenario")
    add_run_options(demo_parser)

    run_parser = subparsers.add_parser("run", help="Run a scenario file")
    run_parser.add_argument("scenario", help="Path to scenario JSON")
    add_run_options(run_parser)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )

    if args.command == "demo":
        cmd_demo(args)
    elif args.command == "run":
        cmd_run(args)

if __name__ == "__main__":
    main()

"""
Command line entry point.

Usage:
    distribute-vms [path to .json files]
    distribute-vms data/ --output result.json -v
    distribute-vms --profile --runs 20 --hypervisors 50 --vms 400

Without ``--profile`` the hypervisor and VM files are read from the given
path (or ``default_path`` from the config), every VM is placed in file
order and the resulting assignment is printed as JSON to stdout.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from distribute_vms.algorithms.hypervisor_manager import HypervisorManager, NoHypervisorsError
from distribute_vms.config import AppConfig, ProfileConfig, load_config
from distribute_vms.monitoring.metrics import print_summary
from distribute_vms.runner.dataset import load_hypervisors, load_vms, save_assignment
from distribute_vms.runner.profiler import Profiler
from distribute_vms.utils.logs import init_logger

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="distribute-vms",
        description="Distribute VMs over hypervisors with balanced memory load",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Directory containing the hypervisor and vm .json files",
    )
    parser.add_argument("--config", default=None, help="YAML config file")
    parser.add_argument("--output", "-o", default=None, help="Write the result here instead of stdout")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v info, -vv debug")

    profile = parser.add_argument_group("profiling")
    profile.add_argument("--profile", action="store_true", help="Run the profiler on random data")
    profile.add_argument("--runs", type=int, default=None, help="Number of test runs")
    profile.add_argument("--hypervisors", type=int, default=None, help="Hypervisors per run")
    profile.add_argument("--vms", type=int, default=None, help="Vms per run")
    profile.add_argument("--seed", type=int, default=None, help="Random seed")
    profile.add_argument(
        "--write-result",
        action="store_true",
        help="Save the last run's assignment and the metrics to the results dir",
    )
    return parser


def run_distribution(config: AppConfig, path: Optional[str] = None) -> Optional[HypervisorManager]:
    """
    Load the input files and place every VM.

    Returns:
        The populated manager, or None if the run was aborted because the
        input was missing or empty.
    """
    hypervisors = load_hypervisors(config.hypervisor_path(path))
    vms = load_vms(config.vms_path(path))
    if hypervisors is None or vms is None:
        return None

    if not vms:
        logger.error("No vms to distribute")
        return None

    try:
        manager = HypervisorManager(hypervisors, seed_threshold_pct=config.seed_threshold_pct)
    except NoHypervisorsError as err:
        logger.error(str(err))
        return None

    placed = manager.add_vms(vms)
    logger.info(
        f"Placed {placed}/{len(vms)} vms, "
        f"average load {manager.average_load():.2f}%, "
        f"average deviation {manager.average_deviation():.2f}%"
    )
    return manager


def run_profile(config: AppConfig, args: argparse.Namespace) -> int:
    overrides = {
        "num_test_runs": args.runs,
        "num_hypervisors": args.hypervisors,
        "num_vms": args.vms,
        "seed": args.seed,
    }
    updates = {k: v for k, v in overrides.items() if v is not None}
    if args.write_result:
        updates["write_result_to_file"] = True
    profile_config = ProfileConfig.model_validate(
        {**config.profile.model_dump(), **updates}
    )

    profiler = Profiler(profile_config, seed_threshold_pct=config.seed_threshold_pct)
    metrics = asyncio.run(profiler.run())
    print(print_summary(metrics))
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    init_logger(args.verbose)

    try:
        config = load_config(args.config)
        if args.profile:
            return run_profile(config, args)
    except ValidationError as err:
        logger.error(f"Invalid configuration: {err}")
        return 1

    manager = run_distribution(config, args.path)
    if manager is None:
        return 1

    if args.output:
        save_assignment(manager, Path(args.output))
        logger.info(f"Saved result to {args.output}")
    else:
        print(manager.to_json())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

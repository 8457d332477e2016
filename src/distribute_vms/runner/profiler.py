"""Profiling harness: repeated placement runs on synthetic data."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import numpy as np

from distribute_vms.algorithms.hypervisor_manager import (
    DEFAULT_SEED_THRESHOLD_PCT,
    HypervisorManager,
)
from distribute_vms.config import ProfileConfig
from distribute_vms.core.models import PlacementError
from distribute_vms.monitoring.metrics import (
    ProfileMetrics,
    RunMetrics,
    export_to_csv,
    export_to_json,
)
from distribute_vms.monitoring.telegram_notifier import (
    format_error,
    format_final_summary,
    format_profile_start,
    format_run_milestone,
    send_telegram,
)
from distribute_vms.runner.dataset import generate_hypervisors, generate_vms, save_assignment

logger = logging.getLogger(__name__)


class Profiler:
    """
    Measures placement time and resulting balance over many random runs.

    Every run builds a fresh pool of hypervisors and a fresh list of VMs,
    times each ``add_vm`` call and records the final average deviation.
    """

    def __init__(
        self,
        config: Optional[ProfileConfig] = None,
        seed_threshold_pct: float = DEFAULT_SEED_THRESHOLD_PCT,
    ):
        self.config = config or ProfileConfig()
        self.seed_threshold_pct = seed_threshold_pct
        self.results_dir = Path(self.config.results_dir)
        self.last_manager: Optional[HypervisorManager] = None

    async def run(self) -> ProfileMetrics:
        """
        Run all configured test runs.

        Returns:
            ProfileMetrics with one RunMetrics per run.
        """
        cfg = self.config
        profile_id = f"profile_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"
        metrics = ProfileMetrics(profile_id=profile_id, total_runs=cfg.num_test_runs)
        rng = np.random.default_rng(cfg.seed)
        milestone = max(1, cfg.num_test_runs // 10)

        logger.info(
            f"Starting {cfg.num_test_runs} test runs with {cfg.num_vms} VMs "
            f"and {cfg.num_hypervisors} Hypervisors."
        )
        if cfg.send_telegram_updates:
            await send_telegram(format_profile_start(
                cfg.num_test_runs, cfg.num_hypervisors, cfg.num_vms,
            ))

        for run_index in range(cfg.num_test_runs):
            try:
                run = self._single_run(run_index, rng)
            except PlacementError as err:
                if cfg.send_telegram_updates:
                    await send_telegram(format_error(
                        type(err).__name__, str(err), {"run": run_index + 1},
                    ))
                raise
            metrics.add_run(run)

            done = run_index + 1
            logger.debug(f"Run {done} ({done * 100 // cfg.num_test_runs}%)")
            if done % milestone == 0:
                logger.info(
                    f"Run {done}/{cfg.num_test_runs}, "
                    f"avg deviation so far {metrics.avg_deviation_pct:.2f}%"
                )
                if cfg.send_telegram_updates:
                    await send_telegram(format_run_milestone(
                        done, cfg.num_test_runs, metrics.avg_deviation_pct,
                    ))

        metrics.mark_complete()
        logger.info(
            f"Average time per Vm: {metrics.avg_time_ms}ms "
            f"Average deviation: {metrics.avg_deviation_pct}%"
        )

        if cfg.write_result_to_file:
            self._save_results(metrics)

        if cfg.send_telegram_updates:
            await send_telegram(format_final_summary(
                total_runs=metrics.completed_runs,
                avg_time_ms=metrics.avg_time_ms,
                avg_deviation=metrics.avg_deviation_pct,
                total_rejected=metrics.total_rejected,
                runtime_seconds=metrics.runtime_seconds,
            ))

        return metrics

    def _single_run(self, run_index: int, rng: np.random.Generator) -> RunMetrics:
        cfg = self.config
        hypervisors = generate_hypervisors(cfg.num_hypervisors, cfg.hypervisor_sizes, seed=rng)
        vms = generate_vms(cfg.num_vms, cfg.vm_sizes, seed=rng)
        manager = HypervisorManager(hypervisors, seed_threshold_pct=self.seed_threshold_pct)

        elapsed = 0.0
        placed = 0
        for vm in vms:
            start = time.perf_counter()
            target = manager.add_vm(vm)
            elapsed += time.perf_counter() - start
            if target is not None:
                placed += 1

        self.last_manager = manager
        return RunMetrics(
            run_index=run_index,
            num_hypervisors=len(hypervisors),
            num_vms=len(vms),
            vms_placed=placed,
            vms_rejected=len(vms) - placed,
            avg_time_ms=elapsed * 1000 / len(vms),
            avg_load_pct=manager.average_load(),
            avg_deviation_pct=manager.average_deviation(),
        )

    def _save_results(self, metrics: ProfileMetrics) -> None:
        """Write the last run's assignment plus the metrics (JSON and CSV)."""
        if self.last_manager is not None:
            result_path = save_assignment(
                self.last_manager, self.results_dir / self.config.result_filename,
            )
            logger.info(f"Writing result of last test run to file {result_path}")

        export_to_json(metrics, self.results_dir / f"{metrics.profile_id}.json")
        export_to_csv(metrics, self.results_dir / f"{metrics.profile_id}_runs.csv")

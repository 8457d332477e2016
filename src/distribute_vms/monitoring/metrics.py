"""Metrics tracking and export for VM placement profiling.

Provides dataclasses for tracking per-run and aggregate metrics and
utilities for exporting results to JSON and CSV formats.
"""

from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import numpy as np


RUN_FIELDS = [
    "run_index", "num_hypervisors", "num_vms", "vms_placed", "vms_rejected",
    "avg_time_ms", "avg_load_pct", "avg_deviation_pct",
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RunMetrics:
    """Metrics for a single placement run.

    Attributes:
        run_index: Position of the run within the profiling session.
        num_hypervisors: Hypervisors in the pool.
        num_vms: VMs offered to the manager.
        vms_placed: VMs that found a hypervisor.
        vms_rejected: VMs that fit nowhere.
        avg_time_ms: Mean wall time of one placement, in milliseconds.
        avg_load_pct: Pool average load after the run.
        avg_deviation_pct: Pool average deviation after the run.
    """

    run_index: int
    num_hypervisors: int
    num_vms: int
    vms_placed: int
    vms_rejected: int
    avg_time_ms: float
    avg_load_pct: float
    avg_deviation_pct: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ProfileMetrics:
    """Aggregate metrics for a profiling session.

    Attributes:
        profile_id: Unique identifier for the session.
        total_runs: Number of runs planned.
        avg_time_ms: Mean per-VM placement time over completed runs.
        avg_deviation_pct: Mean final deviation over completed runs.
        median_deviation_pct: Median final deviation.
        min_deviation_pct: Lowest final deviation.
        max_deviation_pct: Highest final deviation.
        total_rejected: VMs rejected over all runs.
        runtime_seconds: Total wall time of the session.
        started_at: Session start timestamp.
        completed_at: Session completion timestamp (None while running).
        runs: Per-run metrics.
    """

    profile_id: str
    total_runs: int = 0
    avg_time_ms: float = 0.0
    avg_deviation_pct: float = 0.0
    median_deviation_pct: float = 0.0
    min_deviation_pct: float = 0.0
    max_deviation_pct: float = 0.0
    total_rejected: int = 0
    runtime_seconds: float = 0.0
    started_at: datetime = field(default_factory=_utcnow)
    completed_at: datetime | None = None
    runs: list[RunMetrics] = field(default_factory=list)

    @property
    def completed_runs(self) -> int:
        return len(self.runs)

    def add_run(self, run: RunMetrics) -> None:
        """Add one run and refresh the aggregates.

        Example:
            >>> pm = ProfileMetrics("prof_001", total_runs=2)
            >>> pm.add_run(RunMetrics(0, 3, 10, 9, 1, 0.02, 40.0, 5.0))
            >>> pm.total_rejected
            1
        """
        self.runs.append(run)
        self.total_rejected += run.vms_rejected
        self._recalculate_stats()

    def mark_complete(self) -> None:
        self.completed_at = _utcnow()
        self.runtime_seconds = (self.completed_at - self.started_at).total_seconds()

    def _recalculate_stats(self) -> None:
        if not self.runs:
            return

        times = np.array([r.avg_time_ms for r in self.runs])
        deviations = np.array([r.avg_deviation_pct for r in self.runs])
        self.avg_time_ms = float(times.mean())
        self.avg_deviation_pct = float(deviations.mean())
        self.median_deviation_pct = float(np.median(deviations))
        self.min_deviation_pct = float(deviations.min())
        self.max_deviation_pct = float(deviations.max())

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["started_at"] = self.started_at.isoformat()
        d["completed_at"] = self.completed_at.isoformat() if self.completed_at else None
        d["runs"] = [r.to_dict() for r in self.runs]
        return d

    def to_summary_dict(self) -> dict[str, Any]:
        """Same as ``to_dict`` without the per-run list."""
        d = self.to_dict()
        del d["runs"]
        return d


def export_to_json(metrics: ProfileMetrics, output_path: Path | str, include_runs: bool = True) -> None:
    """Export profiling metrics to a JSON file.

    Args:
        metrics: ProfileMetrics instance to export.
        output_path: Path to output JSON file.
        include_runs: If True, include per-run metrics. If False, summary only.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data = metrics.to_dict() if include_runs else metrics.to_summary_dict()

    with output_path.open("w") as f:
        json.dump(data, f, indent=2)


def export_to_csv(metrics: ProfileMetrics, output_path: Path | str) -> None:
    """Export per-run metrics to a CSV file (header only if there are no runs)."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with output_path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=RUN_FIELDS)
        writer.writeheader()
        for run in metrics.runs:
            writer.writerow(run.to_dict())


def print_summary(metrics: ProfileMetrics) -> str:
    """Generate a human-readable summary of a profiling session.

    Args:
        metrics: ProfileMetrics instance to summarize.

    Returns:
        Formatted multi-line summary string.
    """
    lines = [
        "=" * 60,
        f"Profile: {metrics.profile_id}",
        "=" * 60,
        f"Runs: {metrics.completed_runs}/{metrics.total_runs}",
        f"Rejected VMs: {metrics.total_rejected}",
        "",
        f"Average time per Vm: {metrics.avg_time_ms:.4f}ms",
        "Deviation Statistics:",
        f"  Average: {metrics.avg_deviation_pct:.2f}%",
        f"  Median:  {metrics.median_deviation_pct:.2f}%",
        f"  Min:     {metrics.min_deviation_pct:.2f}%",
        f"  Max:     {metrics.max_deviation_pct:.2f}%",
        "",
        f"Runtime: {metrics.runtime_seconds:.1f} seconds",
        f"Started:   {metrics.started_at.isoformat()}",
        f"Completed: {metrics.completed_at.isoformat() if metrics.completed_at else 'In Progress'}",
        "=" * 60,
    ]
    return "\n".join(lines)

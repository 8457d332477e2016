"""
Online VM placement across a fixed pool of hypervisors.

VMs arrive one at a time and are never moved once placed. Each VM goes
through two selection steps:

  1. Empty-hypervisor seeding -- while there are unused hypervisors, put
     the VM on the smallest empty one it would load to at most
     ``seed_threshold_pct`` percent.
  2. Best fit by deviation -- otherwise try the VM on every hypervisor it
     fits on and keep the one that leaves the pool with the lowest average
     deviation from the average load. Ties go to the hypervisor that ends
     up with the higher load.

Usage:
    manager = HypervisorManager(hypervisors)
    for vm in vms:
        manager.add_vm(vm)
    print(manager.to_json())
"""

from __future__ import annotations

import json
import logging
from operator import attrgetter
from typing import Any, Iterable, Optional

import numpy as np

from distribute_vms.core.models import Hypervisor, Vm

logger = logging.getLogger(__name__)

# An empty hypervisor only receives a VM in step 1 if it ends up at most this full.
DEFAULT_SEED_THRESHOLD_PCT = 25.0


class NoHypervisorsError(ValueError):
    """Raised when a manager is created without any hypervisors."""


class HypervisorManager:
    """
    Manages a list of hypervisors and decides where each incoming VM goes.

    The hypervisor list order is kept as given and is the scan order for
    every selection, which makes placements deterministic.

    Args:
        hypervisors:        Hypervisors to manage (may already carry load).
        seed_threshold_pct: Max load (percent) an empty hypervisor may reach
                            when seeded in step 1.

    Raises:
        NoHypervisorsError: If ``hypervisors`` is None or empty.
    """

    def __init__(
        self,
        hypervisors: Optional[Iterable[Hypervisor]],
        seed_threshold_pct: float = DEFAULT_SEED_THRESHOLD_PCT,
    ):
        if hypervisors is None:
            raise NoHypervisorsError("nothing to manage: no hypervisors given")
        self._hypervisors: list[Hypervisor] = list(hypervisors)
        if not self._hypervisors:
            raise NoHypervisorsError("nothing to manage: hypervisor list is empty")

        self.seed_threshold_pct = seed_threshold_pct
        self.rejected_vms: list[Vm] = []
        self._num_free = sum(1 for hv in self._hypervisors if hv.is_free)

    # -- State access --------------------------------------------------------

    @property
    def hypervisors(self) -> tuple[Hypervisor, ...]:
        return tuple(self._hypervisors)

    @property
    def num_free_hypervisors(self) -> int:
        """Number of hypervisors without any memory in use."""
        return self._num_free

    def _loads(self) -> np.ndarray:
        return np.array(
            [hv.current_load_percent for hv in self._hypervisors], dtype=np.float64,
        )

    def average_load(self) -> float:
        """Average load in percent over all hypervisors, empty ones included."""
        return float(self._loads().mean())

    def average_deviation(self) -> float:
        """Average absolute deviation from ``average_load()`` over all hypervisors."""
        loads = self._loads()
        return float(np.abs(loads.mean() - loads).mean())

    # -- Selection -----------------------------------------------------------

    def select_empty_hypervisor(self, vm: Vm) -> Optional[Hypervisor]:
        """
        Step 1: smallest empty hypervisor the VM would load to at most
        ``seed_threshold_pct``. Returns None when no such hypervisor exists.
        """
        if self._num_free == 0:
            return None

        candidates = [
            hv for hv in self._hypervisors
            if hv.is_free
            and hv.fits(vm)
            and hv.load_after_adding(vm) <= self.seed_threshold_pct
        ]
        if not candidates:
            return None
        # min() keeps the first of equal capacities, i.e. pool order
        return min(candidates, key=attrgetter("max_ram"))

    def select_best_hypervisor(self, vm: Vm) -> Optional[Hypervisor]:
        """
        Step 2: try the VM on every hypervisor it fits on and return the one
        giving the lowest average deviation. None if it fits nowhere.

        The average used for the deviation only counts hypervisors that
        would be non-empty, while the deviation itself is averaged over all
        hypervisors.
        """
        loads = self._loads()
        best: Optional[Hypervisor] = None
        best_deviation = 0.0
        best_load = 0.0

        for i, hv in enumerate(self._hypervisors):
            if not hv.fits(vm):
                continue

            projected = hv.load_after_adding(vm)
            loads[i] = projected
            deviation = _deviation_over_non_empty_average(loads)
            loads[i] = hv.current_load_percent

            if (
                best is None
                or deviation < best_deviation
                or (deviation == best_deviation and projected > best_load)
            ):
                best = hv
                best_deviation = deviation
                best_load = projected

        return best

    # -- Placement -----------------------------------------------------------

    def add_vm(self, vm: Vm) -> Optional[Hypervisor]:
        """
        Place a VM on the best hypervisor.

        Returns:
            The hypervisor that received the VM, or None if no hypervisor
            had enough free memory. Unplaced VMs are logged and kept in
            ``rejected_vms``.
        """
        target = self.select_empty_hypervisor(vm)
        step = "seed"
        if target is None:
            target = self.select_best_hypervisor(vm)
            step = "best_fit"

        if target is None:
            logger.warning(f"not enough free capacity for adding Vm {vm.id}")
            self.rejected_vms.append(vm)
            return None

        self._assign(target, vm)
        logger.debug(
            f"Vm {vm.id} ({vm.ram}) -> {target.id} via {step}, "
            f"load {target.current_load_percent:.2f}%"
        )
        return target

    def add_vms(self, vms: Iterable[Vm]) -> int:
        """Place VMs in the given order. Returns how many were placed."""
        return sum(1 for vm in vms if self.add_vm(vm) is not None)

    def _assign(self, hv: Hypervisor, vm: Vm) -> None:
        # only place where a hypervisor can stop being free
        was_free = hv.is_free
        hv.add_vm(vm)
        if was_free and not hv.is_free:
            self._num_free -= 1

    def reset(self) -> None:
        """Remove all VMs from every hypervisor."""
        for hv in self._hypervisors:
            hv.reset()
        self.rejected_vms = []
        self._num_free = len(self._hypervisors)

    # -- Export --------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """``{hypervisor_id: {"vms": [{"id", "ram"}, ...]}}`` for every hypervisor."""
        return {hv.id: hv.to_dict() for hv in self._hypervisors}

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self) -> str:
        return (
            f"HypervisorManager(hypervisors={len(self._hypervisors)}, "
            f"free={self._num_free}, "
            f"avg_load={self.average_load():.1f}%)"
        )


def _deviation_over_non_empty_average(loads: np.ndarray) -> float:
    non_empty = np.count_nonzero(loads > 0)
    average = loads.sum() / non_empty if non_empty else 0.0
    return float(np.abs(average - loads).sum() / loads.size)

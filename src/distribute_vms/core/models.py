"""Core data models for VM placement."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class PlacementError(Exception):
    """Base class for placement errors."""


class CapacityExceededError(PlacementError):
    """A hypervisor was asked to take a VM it has no room for."""


@dataclass(frozen=True)
class Vm:
    """A virtual machine with a fixed memory requirement."""

    id: str
    ram: int  # same unit as Hypervisor.max_ram

    def __post_init__(self) -> None:
        if self.ram < 0:
            raise ValueError(f"Vm {self.id} has negative ram: {self.ram}")

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "ram": self.ram}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Vm:
        return cls(id=d["id"], ram=d["ram"])


class Hypervisor:
    """
    A host with a fixed memory capacity that accumulates VMs.

    Load is tracked both absolute (sum of VM ram) and as a percentage of
    ``max_ram``. VMs are kept in the order they were added.
    """

    def __init__(self, hypervisor_id: str, max_ram: int):
        if max_ram <= 0:
            raise ValueError(
                f"Hypervisor {hypervisor_id} needs a positive capacity, got {max_ram}"
            )
        self.id = hypervisor_id
        self.max_ram = max_ram
        self._vms: list[Vm] = []
        self._load_absolute = 0
        self._load_percent = 0.0

    @property
    def current_load_absolute(self) -> int:
        """Memory currently consumed by assigned VMs."""
        return self._load_absolute

    @property
    def current_load_percent(self) -> float:
        """Memory currently consumed, in percent of capacity."""
        return self._load_percent

    @property
    def vms(self) -> list[Vm]:
        """Copy of the assigned VMs in placement order."""
        return list(self._vms)

    @property
    def free_ram(self) -> int:
        return self.max_ram - self._load_absolute

    @property
    def is_free(self) -> bool:
        """True if no memory is in use on this hypervisor."""
        return self._load_absolute == 0

    def fits(self, vm: Vm) -> bool:
        """Check if the VM can be added without exceeding capacity."""
        return self._load_absolute + vm.ram <= self.max_ram

    def load_after_adding(self, vm: Vm) -> float:
        """
        Load in percent this hypervisor would have after adding ``vm``.

        Does not change any state.
        """
        return (self._load_absolute + vm.ram) * 100 / self.max_ram

    def add_vm(self, vm: Vm) -> None:
        """
        Assign a VM to this hypervisor.

        Raises:
            CapacityExceededError: If the VM does not fit.
        """
        new_load = self._load_absolute + vm.ram
        if new_load > self.max_ram:
            raise CapacityExceededError(
                f"Hypervisor {self.id} has not enough free space to receive Vm {vm.id}"
            )

        self._load_percent = self.load_after_adding(vm)
        self._load_absolute = new_load
        self._vms.append(vm)

    def reset(self) -> None:
        """Drop all VMs and set the load back to zero."""
        self._load_absolute = 0
        self._load_percent = 0.0
        self._vms.clear()

    def to_dict(self) -> dict[str, Any]:
        return {"vms": [vm.to_dict() for vm in self._vms]}

    def __lt__(self, other: Hypervisor) -> bool:
        # capacity ascending, nothing else
        return self.max_ram < other.max_ram

    def __repr__(self) -> str:
        return (
            f"Hypervisor(id={self.id}, "
            f"max_ram={self.max_ram}, "
            f"vms={len(self._vms)}, "
            f"load={self._load_percent:.1f}%)"
        )

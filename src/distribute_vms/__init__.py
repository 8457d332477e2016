"""Online distribution of VMs over hypervisors with balanced memory load."""

from distribute_vms.algorithms.hypervisor_manager import HypervisorManager, NoHypervisorsError
from distribute_vms.core.models import CapacityExceededError, Hypervisor, PlacementError, Vm

__version__ = "0.1.0"

__all__ = [
    "HypervisorManager",
    "NoHypervisorsError",
    "Hypervisor",
    "Vm",
    "PlacementError",
    "CapacityExceededError",
]

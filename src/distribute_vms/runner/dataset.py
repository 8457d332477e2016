"""
Input loading, result export and synthetic data for VM placement.

Expected JSON schemas::

    hypervisor.json  { "hypervisors": [{"id": "hv1", "maxram": 4096}, ...] }
    vms.json         { "vms": [{"id": "vm1", "ram": 512}, ...] }

Exported assignment::

    { "hv1": { "vms": [{"id": "vm1", "ram": 512}, ...] }, ... }

Loaders report problems through the log and return None, so the caller
can stop the run before any placement happens.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
from pydantic import BaseModel, NonNegativeInt, PositiveInt, ValidationError

from distribute_vms.algorithms.hypervisor_manager import HypervisorManager
from distribute_vms.core.models import Hypervisor, Vm

logger = logging.getLogger(__name__)

DEFAULT_HYPERVISOR_SIZES = (512, 1024, 2048, 4096, 8192)
DEFAULT_VM_SIZES = (64, 128, 256, 512)


# ─────────────────────────────────────────────────────────────────────────────
# File models (kept separate from the placement models)
# ─────────────────────────────────────────────────────────────────────────────

class HypervisorRecord(BaseModel):
    id: str
    maxram: PositiveInt

    def to_hypervisor(self) -> Hypervisor:
        return Hypervisor(self.id, self.maxram)


class HypervisorFile(BaseModel):
    hypervisors: Optional[list[HypervisorRecord]] = None


class VmRecord(BaseModel):
    id: str
    ram: NonNegativeInt

    def to_vm(self) -> Vm:
        return Vm(id=self.id, ram=self.ram)


class VmFile(BaseModel):
    vms: Optional[list[VmRecord]] = None


class AssignedHypervisor(BaseModel):
    vms: list[VmRecord] = []


# ─────────────────────────────────────────────────────────────────────────────
# Loading
# ─────────────────────────────────────────────────────────────────────────────

def _read_json_model(path: Path | str, model: type[BaseModel]) -> Optional[BaseModel]:
    path = Path(path)
    try:
        with path.open("r") as f:
            return model.model_validate(json.load(f))
    except FileNotFoundError:
        if not path.parent.is_dir():
            logger.error(f"Error reading file {path}: Directory not found.")
        else:
            logger.error(f"Error reading file {path}: File not found.")
    except json.JSONDecodeError as err:
        logger.error(f"Error reading file {path}: invalid JSON ({err})")
    except ValidationError as err:
        logger.error(f"Error reading file {path}: {err.error_count()} invalid entries")
        logger.debug(str(err))
    except OSError as err:
        logger.error(f"Unexpected error reading file {path}: {err}")
    return None


def load_hypervisors(path: Path | str) -> Optional[list[Hypervisor]]:
    """
    Load hypervisors from a JSON file, keeping file order.

    Returns:
        List of empty Hypervisor objects, or None if the file could not be
        used.
    """
    root = _read_json_model(path, HypervisorFile)
    if root is None:
        return None
    if root.hypervisors is None:
        logger.error(f"No hypervisors found in file {path}")
        return None
    return [record.to_hypervisor() for record in root.hypervisors]


def load_vms(path: Path | str) -> Optional[list[Vm]]:
    """
    Load VMs from a JSON file, keeping file order (the placement order).

    Returns:
        List of Vm objects, or None if the file could not be used.
    """
    root = _read_json_model(path, VmFile)
    if root is None:
        return None
    if root.vms is None:
        logger.error(f"No vms found in file {path}")
        return None
    return [record.to_vm() for record in root.vms]


def load_assignment(source: Path | str) -> dict[str, list[Vm]]:
    """
    Parse an exported assignment back into ``{hypervisor_id: [Vm, ...]}``.

    Args:
        source: Path to an exported JSON file, or the JSON text itself.

    Raises:
        json.JSONDecodeError / pydantic.ValidationError on malformed input.
    """
    if isinstance(source, Path) or not source.lstrip().startswith("{"):
        text = Path(source).read_text()
    else:
        text = source

    data = json.loads(text)
    return {
        hv_id: [record.to_vm() for record in AssignedHypervisor.model_validate(entry).vms]
        for hv_id, entry in data.items()
    }


def save_assignment(manager: HypervisorManager, path: Path | str) -> Path:
    """Write the manager's current assignment as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(manager.to_json())
    return path


# ─────────────────────────────────────────────────────────────────────────────
# Synthetic data (profiling)
# ─────────────────────────────────────────────────────────────────────────────

def generate_hypervisors(
    count: int,
    sizes: Sequence[int] = DEFAULT_HYPERVISOR_SIZES,
    seed: Optional[int] | np.random.Generator = None,
) -> list[Hypervisor]:
    """
    Generate hypervisors with capacities drawn uniformly from ``sizes``.

    Args:
        count: Number of hypervisors, ids are hypervisor1..hypervisorN.
        sizes: Possible capacities.
        seed:  Seed or numpy Generator for reproducibility.
    """
    rng = np.random.default_rng(seed)
    capacities = rng.choice(np.asarray(sizes), size=count)
    return [
        Hypervisor(f"hypervisor{i}", int(cap))
        for i, cap in enumerate(capacities, start=1)
    ]


def generate_vms(
    count: int,
    sizes: Sequence[int] = DEFAULT_VM_SIZES,
    seed: Optional[int] | np.random.Generator = None,
) -> list[Vm]:
    """Generate VMs with ram drawn uniformly from ``sizes``; ids are vm1..vmN."""
    rng = np.random.default_rng(seed)
    rams = rng.choice(np.asarray(sizes), size=count)
    return [Vm(id=f"vm{i}", ram=int(ram)) for i, ram in enumerate(rams, start=1)]

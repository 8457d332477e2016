"""Shared fixtures for the distribute-vms test suite."""

import json
import logging
import os
import sys

import pytest

# Make the src/ layout importable without an install
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from distribute_vms.core.models import Hypervisor, Vm


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers init_logger() attached, they hold on to captured streams."""
    yield
    logger = logging.getLogger("distribute_vms")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def make_hypervisor():
    """Factory for hypervisors with an optional filler VM already assigned."""
    def _make(hv_id, max_ram, preload=0):
        hv = Hypervisor(hv_id, max_ram)
        if preload:
            hv.add_vm(Vm(id=f"{hv_id}-preload", ram=preload))
        return hv
    return _make


@pytest.fixture
def small_pool():
    """Three empty hypervisors of different sizes, in pool order."""
    return [
        Hypervisor("hv-large", 1000),
        Hypervisor("hv-small", 100),
        Hypervisor("hv-medium", 400),
    ]


@pytest.fixture
def input_dir(tmp_path):
    """Directory with a valid hypervisor.json and vms.json."""
    hypervisors = {"hypervisors": [
        {"id": "hv1", "maxram": 1024},
        {"id": "hv2", "maxram": 2048},
        {"id": "hv3", "maxram": 512},
    ]}
    vms = {"vms": [
        {"id": "vm1", "ram": 128},
        {"id": "vm2", "ram": 512},
        {"id": "vm3", "ram": 64},
        {"id": "vm4", "ram": 256},
        {"id": "vm5", "ram": 512},
    ]}
    (tmp_path / "hypervisor.json").write_text(json.dumps(hypervisors))
    (tmp_path / "vms.json").write_text(json.dumps(vms))
    return tmp_path

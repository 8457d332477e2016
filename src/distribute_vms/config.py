"""
Configuration for the VM distribution tool.

Classes:
    ProfileConfig -- parameters of a profiling session (synthetic runs)
    AppConfig     -- input locations, placement tuning and profiling block

Values come from defaults, optionally overridden by a YAML file::

    default_path: ./data
    filename_hypervisor: hypervisor.json
    filename_vms: vms.json
    seed_threshold_pct: 25.0
    profile:
      num_test_runs: 50
      num_vms: 2000
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, PositiveInt

from distribute_vms.algorithms.hypervisor_manager import DEFAULT_SEED_THRESHOLD_PCT

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DISTRIBUTE_VMS_CONFIG"


class ProfileConfig(BaseModel):
    """Parameters for a profiling session."""

    num_test_runs: PositiveInt = 200
    num_hypervisors: PositiveInt = 250
    num_vms: PositiveInt = 1000
    hypervisor_sizes: list[PositiveInt] = Field(
        default_factory=lambda: [512, 1024, 2048, 4096, 8192]
    )
    vm_sizes: list[PositiveInt] = Field(default_factory=lambda: [64, 128, 256, 512])
    write_result_to_file: bool = False
    result_filename: str = "profiling_result.json"
    results_dir: str = "results"
    seed: Optional[int] = None
    send_telegram_updates: bool = False


class AppConfig(BaseModel):
    """Top-level settings."""

    default_path: str = "./"
    filename_hypervisor: str = "hypervisor.json"
    filename_vms: str = "vms.json"
    seed_threshold_pct: float = Field(default=DEFAULT_SEED_THRESHOLD_PCT, ge=0.0, le=100.0)
    profile: ProfileConfig = Field(default_factory=ProfileConfig)

    def hypervisor_path(self, base: Optional[str] = None) -> Path:
        return Path(base or self.default_path) / self.filename_hypervisor

    def vms_path(self, base: Optional[str] = None) -> Path:
        return Path(base or self.default_path) / self.filename_vms


def load_config(path: Optional[Path | str] = None) -> AppConfig:
    """
    Load settings from a YAML file on top of the defaults.

    Args:
        path: YAML file. Falls back to the DISTRIBUTE_VMS_CONFIG environment
              variable; defaults are used if neither points to a file.

    Raises:
        pydantic.ValidationError: If the file contains invalid values.
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return AppConfig()

    path = Path(path)
    if not path.is_file():
        logger.warning(f"Config file {path} not found, using defaults")
        return AppConfig()

    with path.open("r") as f:
        data = yaml.safe_load(f) or {}
    return AppConfig.model_validate(data)

"""
Test configuration and fixtures for the VRAM planner tests.
"""
import json
import shutil
import tempfile
from pathlib import Path

import pytest

from vram_planner.entities.accelerator import AcceleratorSelection, AcceleratorUnit, HardwareInventory
from vram_planner.entities.model_spec import ModelSpec
from vram_planner.frameworks_drivers.calculation_cache import CalculationCache
from vram_planner.frameworks_drivers.config import Config
from vram_planner.use_cases.plan_deployment import PlanDeployment


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)


@pytest.fixture
def a100():
    return AcceleratorUnit(name="A100", vram_gb=80)


@pytest.fixture
def dual_a100_inventory(a100):
    """2x A100 80GB, 160GB in total."""
    return HardwareInventory(selections=[AcceleratorSelection(unit=a100, quantity=2)])


@pytest.fixture
def single_a100_inventory(a100):
    return HardwareInventory(selections=[AcceleratorSelection(unit=a100, quantity=1)])


@pytest.fixture
def empty_inventory():
    return HardwareInventory(selections=[])


@pytest.fixture
def llama_7b():
    """Llama-2-7B at fp16, parameter count derived from its 13.5GB size."""
    return ModelSpec(name="Llama-2-7B", size_gb=13.5, quantization="fp16", hf_id="meta-llama/Llama-2-7b-hf")


@pytest.fixture
def mistral_7b():
    return ModelSpec(name="Mistral-7B", size_gb=14.5, parameters=7_240_000_000, quantization="bf16")


@pytest.fixture
def sample_config_data():
    """Sample configuration data for testing."""
    return {
        "heuristics": {
            "activation_factor": 0.2,
            "overhead_factor": 0.1
        },
        "advisor": {
            "target_utilization": 0.8
        },
        "command": {
            "entrypoint": "vllm serve"
        },
        "server": {
            "host": "127.0.0.1",
            "port": 9000
        }
    }


@pytest.fixture
def config_file(temp_dir, sample_config_data):
    """Create a temporary config file."""
    config_path = temp_dir / "config.json"
    with open(config_path, 'w') as f:
        json.dump(sample_config_data, f, indent=2)
    return str(config_path)


@pytest.fixture
def plan_deployment():
    return PlanDeployment(Config(), CalculationCache())

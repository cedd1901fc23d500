"""
Unit tests for config.py module.
"""
import json

import pytest

from vram_planner.frameworks_drivers.config import AdvisorConfig, Config, HeuristicsConfig
from vram_planner.shared.command_formatter import DEFAULT_ENTRYPOINT


class TestHeuristicsConfig:
    """Test HeuristicsConfig model."""

    def test_default_values(self):
        config = HeuristicsConfig()
        assert config.activation_factor == 0.15
        assert config.overhead_factor == 0.08
        assert config.default_max_num_seqs == 16
        assert config.default_max_model_len == 2048
        assert config.fallback_kv_factor == 0.3

    def test_invalid_overhead(self):
        with pytest.raises(ValueError):
            HeuristicsConfig(overhead_factor=1.0)

        with pytest.raises(ValueError):
            HeuristicsConfig(overhead_factor=-0.1)


class TestAdvisorConfig:
    """Test AdvisorConfig model."""

    def test_default_values(self):
        config = AdvisorConfig()
        assert config.target_utilization == 0.85
        assert config.quality_tolerance == 0.05

    def test_invalid_target(self):
        with pytest.raises(ValueError):
            AdvisorConfig(target_utilization=0)


class TestConfig:
    """Test main Config model."""

    def test_defaults(self):
        config = Config()
        assert config.command.entrypoint == DEFAULT_ENTRYPOINT
        assert config.cache.enabled is True
        assert config.server.port == 8000

    def test_load_valid_config(self, config_file):
        """Test loading a valid config file."""
        config = Config.load(config_file)
        assert config.heuristics.activation_factor == 0.2
        assert config.heuristics.overhead_factor == 0.1
        assert config.heuristics.default_max_num_seqs == 16
        assert config.advisor.target_utilization == 0.8
        assert config.command.entrypoint == "vllm serve"
        assert config.server.host == "127.0.0.1"
        assert config.server.port == 9000

    def test_load_nonexistent_file(self, temp_dir):
        """Test loading a non-existent config file."""
        with pytest.raises(FileNotFoundError):
            Config.load(str(temp_dir / "nonexistent.json"))

    def test_load_or_default_without_file(self, temp_dir):
        config = Config.load_or_default(str(temp_dir / "nonexistent.json"))
        assert config == Config()

    def test_load_invalid_json(self, temp_dir):
        """Test loading invalid JSON."""
        config_path = temp_dir / "invalid.json"
        with open(config_path, 'w') as f:
            f.write("{ invalid json }")

        with pytest.raises(json.JSONDecodeError):
            Config.load(str(config_path))

    def test_load_invalid_values(self, temp_dir):
        config_path = temp_dir / "config.json"
        with open(config_path, 'w') as f:
            json.dump({"advisor": {"quality_tolerance": 2}}, f)

        with pytest.raises(ValueError):
            Config.load(str(config_path))

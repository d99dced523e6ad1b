"""
Tests for configuration loading and validation.
"""
import json
import tempfile
import os
import pytest
from coin_em import (
    ConfigError,
    load_config,
    apply_defaults,
    validate_config,
    DEFAULT_TRUE_THETA_A,
    DEFAULT_TRUE_THETA_B,
    DEFAULT_RESOLUTION,
    DEFAULT_EM_START,
)


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_config_defaults(self):
        """Test loading config with defaults."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json.dump({}, f)
            config_path = f.name

        try:
            config = load_config(config_path)

            assert config['true_theta_a'] == DEFAULT_TRUE_THETA_A
            assert config['true_theta_b'] == DEFAULT_TRUE_THETA_B
            assert config['num_experiments'] == 5
            assert config['flips_per_experiment'] == 10
            assert config['seed'] == 42
            assert config['resolution'] == DEFAULT_RESOLUTION
            assert config['em_start'] == DEFAULT_EM_START
            assert config['renderer'] == "raster"
        finally:
            os.unlink(config_path)

    def test_load_config_custom_values(self):
        """Test loading config with custom values."""
        custom_config = {
            "true_theta_a": 0.1,
            "true_theta_b": 0.95,
            "seed": 7,
            "renderer": "svg"
        }

        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json.dump(custom_config, f)
            config_path = f.name

        try:
            config = load_config(config_path)

            assert config['true_theta_a'] == 0.1
            assert config['true_theta_b'] == 0.95
            assert config['seed'] == 7
            assert config['renderer'] == "svg"
            assert config['_raw_config'] == custom_config
        finally:
            os.unlink(config_path)

    def test_load_config_missing_file(self, capsys):
        """Test loading config when file doesn't exist."""
        config = load_config("nonexistent_file.json")

        # Should use defaults
        assert config['true_theta_a'] == DEFAULT_TRUE_THETA_A
        assert config['resolution'] == DEFAULT_RESOLUTION
        assert "Using default parameters" in capsys.readouterr().out

    def test_load_config_invalid_json(self):
        """Test loading config with invalid JSON."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            f.write("{ invalid json }")
            config_path = f.name

        try:
            with pytest.raises(json.JSONDecodeError):
                load_config(config_path)
        finally:
            os.unlink(config_path)

    def test_default_em_start_not_shared(self):
        """Test that each config gets its own em_start list."""
        config = apply_defaults({})
        config['em_start'][0] = 0.9
        assert apply_defaults({})['em_start'] == DEFAULT_EM_START


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_defaults_are_valid(self):
        config = apply_defaults({})
        assert validate_config(config) is config

    @pytest.mark.parametrize("key,value", [
        ("true_theta_a", 0.0),
        ("true_theta_a", 1.0),
        ("true_theta_b", -0.2),
        ("true_theta_b", "0.5"),
        ("num_experiments", 0),
        ("num_experiments", 2.5),
        ("flips_per_experiment", -1),
        ("resolution", 0),
        ("resolution", True),
        ("num_contours", 0),
        ("seed", 1.5),
        ("seed", None),
        ("em_start", [0.2]),
        ("em_start", [0.0, 0.5]),
        ("em_start", [0.5, 1.0]),
        ("em_start", "0.2,0.8"),
        ("plot_size", 0),
        ("plot_size", -100),
        ("renderer", "pdf"),
        ("show_em_path", "false"),
        ("show_em_path", 1),
        ("output_path", ""),
        ("output_path", 5),
    ])
    def test_invalid_values(self, key, value):
        """Test that out-of-range values are rejected."""
        config = apply_defaults({key: value})
        with pytest.raises(ConfigError):
            validate_config(config)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_config(apply_defaults({"resolution": -5}))

    def test_tuple_em_start_accepted(self):
        config = apply_defaults({"em_start": (0.4, 0.6)})
        validate_config(config)

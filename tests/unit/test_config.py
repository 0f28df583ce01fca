"""
Tests for the configuration system.
"""

import pytest
import yaml

import formulafun
from formulafun.config import FormulaFunConfig, get_default_config
from formulafun.core.exceptions import ConfigurationError


pytestmark = pytest.mark.unit


class TestDefaults:
    """Test default configuration values."""

    def test_synthesis_defaults(self):
        """Test the defaults used by make_function."""
        config = FormulaFunConfig()

        assert config.synthesis.strict_declaration is True
        assert config.synthesis.use_environment is True
        assert config.synthesis.suppress_warnings is True
        assert config.synthesis.capture_caller_scope is False

    def test_model_defaults(self):
        """Test the defaults used for model functions."""
        config = FormulaFunConfig()

        assert config.evaluation.backend == "numpy"
        assert config.models.response_scale == "response"
        assert config.models.zero_predictor_name == "x"
        assert config.logging.level == "INFO"

    def test_global_instance_is_shared(self):
        """Test that get_config returns one instance until reset."""
        assert formulafun.get_config() is get_default_config()

        first = formulafun.get_config()
        formulafun.reset_config()
        assert formulafun.get_config() is not first


class TestEnvironmentVariables:
    """Test configuration from environment variables."""

    def test_backend_and_level(self, monkeypatch):
        """Test that values are normalised before validation."""
        monkeypatch.setenv("FORMULAFUN_BACKEND", "JAX")
        monkeypatch.setenv("FORMULAFUN_LOG_LEVEL", "debug")
        config = FormulaFunConfig()

        assert config.evaluation.backend == "jax"
        assert config.logging.level == "DEBUG"

    @pytest.mark.parametrize("value,expected", [("true", True), ("1", True), ("off", False)])
    def test_boolean_flags(self, monkeypatch, value, expected):
        """Test boolean parsing of flag variables."""
        monkeypatch.setenv("FORMULAFUN_SUPPRESS_WARNINGS", value)
        monkeypatch.setenv("FORMULAFUN_CAPTURE_CALLER_SCOPE", value)
        config = FormulaFunConfig()

        assert config.synthesis.suppress_warnings is expected
        assert config.synthesis.capture_caller_scope is expected

    def test_invalid_backend(self, monkeypatch):
        """Test that invalid values raise ConfigurationError."""
        monkeypatch.setenv("FORMULAFUN_BACKEND", "fortran")

        with pytest.raises(ConfigurationError):
            FormulaFunConfig()

    def test_config_file_variable(self, monkeypatch, tmp_path):
        """Test that the global instance reads FORMULAFUN_CONFIG_FILE."""
        path = tmp_path / "formulafun.yaml"
        path.write_text(yaml.safe_dump({"synthesis": {"strict_declaration": False}}))
        monkeypatch.setenv("FORMULAFUN_CONFIG_FILE", str(path))
        formulafun.reset_config()

        assert formulafun.get_config().synthesis.strict_declaration is False


class TestConfigFiles:
    """Test loading and saving YAML files."""

    def test_load(self, tmp_path):
        """Test that file values override defaults section by section."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({
            "synthesis": {"suppress_warnings": False},
            "models": {"response_scale": "link"},
        }))
        config = FormulaFunConfig(config_file=path)

        assert config.synthesis.suppress_warnings is False
        assert config.synthesis.strict_declaration is True
        assert config.models.response_scale == "link"

    def test_environment_overrides_file(self, monkeypatch, tmp_path):
        """Test that environment variables win over file values."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"evaluation": {"backend": "jax"}}))
        monkeypatch.setenv("FORMULAFUN_BACKEND", "numpy")

        assert FormulaFunConfig(config_file=path).evaluation.backend == "numpy"

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="not found"):
            FormulaFunConfig(config_file=tmp_path / "absent.yaml")

    def test_non_mapping_file(self, tmp_path):
        """Test that a file must hold a mapping."""
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            FormulaFunConfig(config_file=path)

    def test_save_and_reload(self, tmp_path):
        """Test that a saved configuration loads back unchanged."""
        config = FormulaFunConfig(models={"zero_predictor_name": "t"})
        path = tmp_path / "nested" / "saved.yaml"
        config.save_config(path)

        reloaded = FormulaFunConfig(config_file=path)
        assert reloaded.models.zero_predictor_name == "t"
        assert reloaded.evaluation.backend == "numpy"


class TestUpdate:
    """Test runtime updates."""

    def test_dotted_update(self):
        """Test updating a single setting."""
        formulafun.configure(**{"synthesis.strict_declaration": False})
        assert formulafun.get_config().synthesis.strict_declaration is False

    def test_section_update(self):
        """Test replacing a section from a mapping."""
        formulafun.configure(models={"response_scale": "link"})
        assert formulafun.get_config().models.response_scale == "link"

    def test_unknown_section(self):
        """Test that unknown sections are rejected."""
        with pytest.raises(ConfigurationError, match="unknown section"):
            formulafun.configure(**{"plotting.style": "dark"})

    def test_unknown_setting(self):
        """Test that unknown settings are rejected."""
        with pytest.raises(ConfigurationError, match="unknown setting"):
            formulafun.configure(**{"synthesis.colour": "blue"})

    def test_invalid_value(self):
        """Test that invalid values are rejected on assignment."""
        with pytest.raises(ConfigurationError):
            formulafun.configure(**{"models.response_scale": "log"})

    @pytest.mark.parametrize("name", ["2x", "my name", ""])
    def test_zero_predictor_name_must_be_identifier(self, name):
        """Test validation of the zero-predictor argument name."""
        with pytest.raises(ConfigurationError):
            formulafun.configure(**{"models.zero_predictor_name": name})

    def test_reset_discards_updates(self):
        """Test that reset_config restores defaults."""
        formulafun.configure(**{"evaluation.backend": "jax"})
        formulafun.reset_config()

        assert formulafun.get_config().evaluation.backend == "numpy"

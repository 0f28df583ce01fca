"""
Configuration management system for formulafun.

Provides a hierarchical configuration system with support for file-based
configuration, environment variables, and runtime updates.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from enum import Enum

from ..core.exceptions import ConfigurationError


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EvaluationBackend(str, Enum):
    """Numeric namespaces a synthesized function can evaluate with."""
    NUMPY = "numpy"
    JAX = "jax"


class ResponseScale(str, Enum):
    """Scale on which generalized linear model predictions are reported."""
    RESPONSE = "response"
    LINK = "link"


class SynthesisConfig(BaseModel):
    """Defaults for building functions from formulas."""
    model_config = ConfigDict(validate_assignment=True)

    strict_declaration: bool = True
    use_environment: bool = True
    suppress_warnings: bool = True
    capture_caller_scope: bool = False


class EvaluationConfig(BaseModel):
    """Expression evaluation configuration."""
    model_config = ConfigDict(validate_assignment=True, validate_default=True, use_enum_values=True)

    backend: EvaluationBackend = EvaluationBackend.NUMPY


class ModelConfig(BaseModel):
    """Defaults for building functions from fitted models."""
    model_config = ConfigDict(validate_assignment=True, validate_default=True, use_enum_values=True)

    response_scale: ResponseScale = ResponseScale.RESPONSE
    suppress_transformation_warnings: bool = False
    zero_predictor_name: str = "x"

    @field_validator('zero_predictor_name')
    @classmethod
    def validate_zero_predictor_name(cls, v):
        if not v.isidentifier():
            raise ValueError(f"'{v}' is not a valid argument name")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""
    model_config = ConfigDict(validate_assignment=True, validate_default=True, use_enum_values=True)

    level: LogLevel = LogLevel.INFO
    file_logging: bool = False
    log_file: Optional[Path] = None
    console_logging: bool = True
    format_string: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @field_validator('log_file', mode='before')
    @classmethod
    def validate_log_file(cls, v):
        return Path(v).expanduser() if v else None


class FormulaFunConfig(BaseModel):
    """Main configuration class for formulafun."""

    model_config = ConfigDict(validate_assignment=True)

    synthesis: SynthesisConfig = Field(default_factory=SynthesisConfig)
    evaluation: EvaluationConfig = Field(default_factory=EvaluationConfig)
    models: ModelConfig = Field(default_factory=ModelConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def __init__(self, config_file: Optional[Union[str, Path]] = None, **kwargs):
        """
        Initialize configuration.

        Args:
            config_file: Path to YAML configuration file
            **kwargs: Override specific configuration sections
        """
        config_data: Dict[str, Any] = {}
        if config_file:
            config_data = _load_config_file(config_file)

        _merge_sections(config_data, _load_environment_variables())
        _merge_sections(config_data, kwargs)

        try:
            super().__init__(**config_data)
        except ValidationError as e:
            raise ConfigurationError(reason=str(e)) from e

    def save_config(self, config_file: Union[str, Path]) -> None:
        """Save current configuration to YAML file."""
        config_path = Path(config_file)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w') as f:
            yaml.safe_dump(self.model_dump(mode='json'), f, default_flow_style=False, indent=2)

    def update(self, **kwargs) -> None:
        """
        Update configuration values.

        Keys are either section names or dotted ``section.key`` paths, e.g.
        ``update(**{"evaluation.backend": "jax"})``.
        """
        for key, value in kwargs.items():
            section_name, _, subkey = key.partition('.')
            if not hasattr(self, section_name) or section_name not in type(self).model_fields:
                raise ConfigurationError(config_key=key, reason="unknown section")

            try:
                if not subkey:
                    setattr(self, section_name, value)
                    continue

                section = getattr(self, section_name)
                if subkey not in type(section).model_fields:
                    raise ConfigurationError(config_key=key, reason="unknown setting")
                setattr(section, subkey, value)
            except ValidationError as e:
                raise ConfigurationError(config_key=key, reason=str(e)) from e


def _load_config_file(config_file: Union[str, Path]) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    config_path = Path(config_file)
    if not config_path.exists():
        raise ConfigurationError(reason=f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(reason=f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(reason=f"{config_path} must contain a mapping")
    return data


def _load_environment_variables() -> Dict[str, Any]:
    """Load configuration from environment variables."""
    config: Dict[str, Any] = {}

    env_mappings = {
        'FORMULAFUN_LOG_LEVEL': ('logging', 'level'),
        'FORMULAFUN_BACKEND': ('evaluation', 'backend'),
        'FORMULAFUN_SUPPRESS_WARNINGS': ('synthesis', 'suppress_warnings'),
        'FORMULAFUN_CAPTURE_CALLER_SCOPE': ('synthesis', 'capture_caller_scope'),
    }

    for env_var, (section, key) in env_mappings.items():
        value = os.getenv(env_var)
        if value is not None:
            if key in ['suppress_warnings', 'capture_caller_scope']:
                value = value.lower() in ('true', '1', 'yes', 'on')
            elif key == 'level':
                value = value.upper()
            elif key == 'backend':
                value = value.lower()

            config.setdefault(section, {})[key] = value

    return config


def _merge_sections(target: Dict[str, Any], overrides: Dict[str, Any]) -> None:
    """Merge section dictionaries one level deep."""
    for section, values in overrides.items():
        if isinstance(values, dict) and isinstance(target.get(section), dict):
            target[section].update(values)
        else:
            target[section] = values


# Default configuration instance
_default_config: Optional[FormulaFunConfig] = None


def get_default_config() -> FormulaFunConfig:
    """Get the default configuration instance."""
    global _default_config
    if _default_config is None:
        _default_config = FormulaFunConfig(
            config_file=os.getenv('FORMULAFUN_CONFIG_FILE') or None
        )
    return _default_config


def reset_default_config() -> None:
    """Discard the default configuration so it is rebuilt on next access."""
    global _default_config
    _default_config = None

"""Configuration management for formulafun."""

from .settings import (
    FormulaFunConfig,
    SynthesisConfig,
    EvaluationConfig,
    ModelConfig,
    LoggingConfig,
    EvaluationBackend,
    ResponseScale,
    get_default_config,
    reset_default_config,
)

__all__ = [
    "FormulaFunConfig",
    "SynthesisConfig",
    "EvaluationConfig",
    "ModelConfig",
    "LoggingConfig",
    "EvaluationBackend",
    "ResponseScale",
    "get_default_config",
    "reset_default_config",
]

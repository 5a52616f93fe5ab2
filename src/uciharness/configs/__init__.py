"""Configuration management utilities."""

from uciharness.configs.loader import load_config, load_harness_config, save_config
from uciharness.configs.schema import (
    AnalysisConfig,
    EngineConfig,
    HarnessConfig,
    SessionConfig,
    config_from_dict,
    config_to_dict,
)

__all__ = [
    "AnalysisConfig",
    "EngineConfig",
    "HarnessConfig",
    "SessionConfig",
    "config_from_dict",
    "config_to_dict",
    "load_config",
    "load_harness_config",
    "save_config",
]

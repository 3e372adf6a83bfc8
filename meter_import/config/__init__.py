"""YAML configuration loading."""

from .loader import DEFAULT_CONFIG_PATH, ConfigError, config_from_dict, load_config

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ConfigError",
    "config_from_dict",
    "load_config",
]

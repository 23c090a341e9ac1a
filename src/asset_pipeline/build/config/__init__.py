"""
Configuration management for asset pipeline build tasks.
"""

from .exceptions import (
    ConfigException,
    ConfigFileNotFoundException,
    ConfigParseException,
    ConfigValidationException,
)
from .loading import (
    load_config,
    load_config_mapping,
    get_config_path,
    CONFIG_PATH_ENV_VAR,
    DEFAULT_CONFIG_FILE,
)
from .models import PipelineConfig


__all__ = [
    'ConfigException',
    'ConfigFileNotFoundException',
    'ConfigParseException',
    'ConfigValidationException',
    'PipelineConfig',
    'load_config',
    'load_config_mapping',
    'get_config_path',
    'CONFIG_PATH_ENV_VAR',
    'DEFAULT_CONFIG_FILE',
]

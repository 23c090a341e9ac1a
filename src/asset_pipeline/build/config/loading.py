"""
Configuration loading for the asset pipeline.

The configuration is a JSON file that may contain comments. It is read once at
startup; a missing or malformed file is fatal and no defaults are substituted.
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import json5
from pydantic import ValidationError

from .exceptions import (
    ConfigFileNotFoundException,
    ConfigParseException,
    ConfigValidationException,
)
from .models import PipelineConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = 'assets-config.json'
CONFIG_PATH_ENV_VAR = 'ASSET_PIPELINE_CONFIG'


def get_config_path(path: Optional[Union[str, Path]] = None) -> Path:
    """Resolve the config file path.

    An explicit argument wins, then the ASSET_PIPELINE_CONFIG environment
    variable, then ./assets-config.json in the current working directory.
    """
    if path is not None:
        return Path(path)
    env_path = os.environ.get(CONFIG_PATH_ENV_VAR)
    if env_path and env_path.strip():
        return Path(env_path.strip())
    return Path.cwd() / DEFAULT_CONFIG_FILE


def load_config_mapping(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Read and parse the config file, returning the raw mapping with comments stripped.

    Raises:
        ConfigFileNotFoundException: If the file does not exist.
        ConfigParseException: If the file cannot be read or parsed, or is not an object.
    """
    config_path = get_config_path(path)
    logger.debug(f"Loading config from: {config_path}")

    try:
        content = config_path.read_text(encoding='utf-8')
    except FileNotFoundError:
        raise ConfigFileNotFoundException(
            f"Config file not found: {config_path}", config_path=str(config_path)
        )
    except OSError as e:
        raise ConfigParseException(
            f"Could not read config file: {e}", config_path=str(config_path)
        )

    try:
        data = json5.loads(content)
    except ValueError as e:
        raise ConfigParseException(
            f"Could not parse config file: {e}", config_path=str(config_path)
        )

    if not isinstance(data, dict):
        raise ConfigParseException(
            f"Top level of config file must be an object, got {type(data).__name__}",
            config_path=str(config_path)
        )
    return data


def load_config(path: Optional[Union[str, Path]] = None) -> PipelineConfig:
    """Load the pipeline configuration.

    Args:
        path: Optional config file path; see get_config_path() for the lookup order.

    Returns:
        A frozen PipelineConfig.

    Raises:
        ConfigException subclasses on a missing, unparsable or invalid file.
    """
    config_path = get_config_path(path)
    data = load_config_mapping(config_path)

    try:
        config = PipelineConfig.model_validate(data)
    except ValidationError as e:
        fields = ['.'.join(str(part) for part in err['loc']) for err in e.errors()]
        raise ConfigValidationException(
            str(e), config_path=str(config_path), fields=fields
        )

    logger.debug(f"Loaded {len(data)} config keys from {config_path}")
    return config

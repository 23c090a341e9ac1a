#!/usr/bin/env python3
"""
Centralized logging configuration.

This module provides a bootstrap_logging function that can be imported from any entry point
to configure logging consistently across the application using Python's native INI format.
"""

import logging
import logging.config
import os
import sys
from pathlib import Path
from typing import Optional

VALID_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

_bootstrapped = False


def _find_logging_config() -> Optional[Path]:
    """
    Find the logging configuration file.

    Looks for logging.ini in the current working directory, then in config/.

    Returns:
        Path to logging configuration file, or None if not found.
    """
    for candidate in (Path('logging.ini'), Path('config/logging.ini')):
        if candidate.exists():
            return candidate
    return None


def _resolve_log_level() -> str:
    """
    Read LOG_LEVEL from the environment, defaulting to INFO.

    An invalid value falls back to INFO with a warning on stderr.
    """
    level = os.environ.get('LOG_LEVEL', 'INFO').strip().upper() or 'INFO'
    if level not in VALID_LEVELS:
        print(f"Warning: Invalid LOG_LEVEL '{level}', using INFO", file=sys.stderr)
        level = 'INFO'
    os.environ['LOG_LEVEL'] = level
    return level


def bootstrap_logging(name: Optional[str] = None, force: bool = False) -> None:
    """
    Bootstrap logging configuration for the application.

    This function:
    1. Validates LOG_LEVEL so the INI file can substitute it
    2. Loads logging.ini with logging.config.fileConfig() when present
    3. Falls back to basicConfig on stderr otherwise
    4. Applies LOG_LEVEL to the root and asset_pipeline loggers

    Args:
        name: Optional logger name to announce the configuration on
        force: Reconfigure even if logging was already bootstrapped
    """
    global _bootstrapped
    if _bootstrapped and not force:
        return

    level = _resolve_log_level()
    config_path = _find_logging_config()

    if config_path is None:
        logging.basicConfig(
            level=getattr(logging, level),
            format='%(levelname)s: %(name)s: %(message)s',
            stream=sys.stderr
        )
    else:
        try:
            logging.config.fileConfig(
                str(config_path),
                defaults={'LOG_LEVEL': level},
                disable_existing_loggers=False
            )
        except (KeyError, ValueError, OSError) as e:
            print(f"Warning: Failed to load logging config from {config_path}: {e}", file=sys.stderr)
            print("Using basic logging configuration", file=sys.stderr)
            logging.basicConfig(
                level=getattr(logging, level),
                format='%(levelname)s: %(name)s: %(message)s',
                stream=sys.stderr
            )

    # LOG_LEVEL always wins over the file
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level))
    for handler in root_logger.handlers:
        if isinstance(handler, logging.StreamHandler):
            handler.setLevel(getattr(logging, level))
    logging.getLogger('asset_pipeline').setLevel(getattr(logging, level))

    _bootstrapped = True
    logger = logging.getLogger(name) if name else logging.getLogger(__name__)
    logger.debug(f"Logging configured at {level} from {config_path or 'defaults'}")

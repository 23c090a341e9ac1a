"""
Command line entry point.

Loads the configuration before any task is registered: a missing or broken
config file aborts with guidance and exit code 1.
"""

import logging
import os
import sys
from typing import List, Optional

from invoke import Program

from . import __version__
from .build.config import ConfigException, load_config
from .build.tasks import build_namespace
from .run.config.logging import bootstrap_logging

logger = logging.getLogger(__name__)


def create_program(config_path: Optional[str] = None) -> Program:
    """Load the config and return an invoke Program over the task namespace.

    Raises:
        ConfigException: If the config file is missing, malformed or invalid.
    """
    config = load_config(config_path)
    return Program(
        namespace=build_namespace(config),
        name='asset-pipeline',
        binary='assets',
        version=__version__,
    )


def main(argv: Optional[List[str]] = None):
    argv = list(sys.argv if argv is None else argv)
    if '--debug' in argv or '-d' in argv:
        os.environ['LOG_LEVEL'] = 'DEBUG'
    bootstrap_logging()

    try:
        program = create_program()
    except ConfigException as e:
        logger.debug(f"Startup aborted: {e}")
        print(e.guidance, file=sys.stderr)
        sys.exit(1)

    program.run(argv)


if __name__ == '__main__':
    main()

"""
Build package for asset pipeline.

This package contains the configuration loader, pipeline primitives, stages,
invoke tasks and watch orchestration.
"""

from .config import PipelineConfig, load_config
from .tasks import build_namespace

__all__ = [
    'PipelineConfig',
    'load_config',
    'build_namespace',
]

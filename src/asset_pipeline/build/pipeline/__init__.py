"""
Pipeline primitives: artifacts, stages and the runner that applies them.
"""

from .artifact import Artifact, load_artifacts
from .exceptions import PipelineError, StageError, LintFailedError
from .globs import GlobMatcher, glob_base, resolve_file_set
from .notify import notify
from .runner import (
    Pipeline,
    PipelineResult,
    StageFailure,
    Stage,
    Each,
    Batch,
    Tap,
    when,
    report_failure,
)

__all__ = [
    'Artifact',
    'load_artifacts',
    'PipelineError',
    'StageError',
    'LintFailedError',
    'GlobMatcher',
    'glob_base',
    'resolve_file_set',
    'notify',
    'Pipeline',
    'PipelineResult',
    'StageFailure',
    'Stage',
    'Each',
    'Batch',
    'Tap',
    'when',
    'report_failure',
]

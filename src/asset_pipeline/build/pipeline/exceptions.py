"""
Exceptions raised while running build pipelines.
"""


class PipelineError(Exception):
    """Base exception for pipeline failures."""


class StageError(PipelineError):
    """Recoverable failure of one stage for one artifact.

    The pipeline reports it, drops the affected artifact and carries on with
    the rest of the file set.
    """
    def __init__(self, message: str, path: str = None, stage: str = None, line: int = None):
        super().__init__(message)
        self.path = path
        self.stage = stage
        self.line = line


class LintFailedError(PipelineError):
    """Raised when lint violations are configured to break the build."""
    def __init__(self, message: str, violations: list = None):
        super().__init__(message)
        self.violations = violations or []

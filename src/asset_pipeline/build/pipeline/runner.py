"""
Pipeline runner.

A pipeline is an explicit ordered list of stages. Each stage receives the
in-flight list of artifacts and returns a new list. Per-artifact stages
(``Each``) isolate recoverable failures: the failing artifact skips the
remaining stages and its error goes to the reporter, while the other
artifacts continue. Any other exception propagates and ends the run.
"""
import logging
import sys
from typing import Callable, Iterable, List, Optional, Union

from pydantic import BaseModel, computed_field

from .artifact import Artifact
from .exceptions import StageError

logger = logging.getLogger(__name__)

StageResult = Union[Artifact, List[Artifact], None]


class StageFailure(BaseModel):
    """A recoverable error recorded during a run."""
    pipeline: str
    stage: str
    path: Optional[str] = None
    line: Optional[int] = None
    message: str


class PipelineResult(BaseModel):
    """Outcome of one pipeline run."""
    name: str
    outputs: List[Artifact] = []
    failures: List[StageFailure] = []

    @computed_field
    @property
    def success(self) -> bool:
        return not self.failures


class PipelineRun:
    """Mutable state of a single run, handed to every stage."""

    def __init__(self, pipeline_name: str, reporter: Callable[[StageFailure], None]):
        self.pipeline_name = pipeline_name
        self.reporter = reporter
        self.failures: List[StageFailure] = []

    def fail(self, stage: str, error: StageError, path: str = None):
        failure = StageFailure(
            pipeline=self.pipeline_name,
            stage=error.stage or stage,
            path=error.path or path,
            line=error.line,
            message=str(error),
        )
        self.failures.append(failure)
        self.reporter(failure)


class Stage:
    """Base class for pipeline stages."""

    name = 'stage'

    def __call__(self, artifacts: List[Artifact], run: PipelineRun) -> List[Artifact]:
        raise NotImplementedError


class Each(Stage):
    """Apply a function to every artifact independently.

    The function may return an artifact, a list of artifacts (one input
    producing several outputs) or None to drop the artifact.
    """

    def __init__(self, fn: Callable[[Artifact], StageResult], name: str = None):
        self.fn = fn
        self.name = name or getattr(fn, '__name__', 'each')

    def __call__(self, artifacts, run):
        out: List[Artifact] = []
        for artifact in artifacts:
            try:
                result = self.fn(artifact)
            except StageError as e:
                run.fail(self.name, e, path=artifact.path)
                continue
            if result is None:
                continue
            if isinstance(result, Artifact):
                out.append(result)
            else:
                out.extend(result)
        return out


class Batch(Stage):
    """Apply a function to the whole in-flight list (e.g. concatenation)."""

    def __init__(self, fn: Callable[[List[Artifact]], List[Artifact]], name: str = None):
        self.fn = fn
        self.name = name or getattr(fn, '__name__', 'batch')

    def __call__(self, artifacts, run):
        try:
            return list(self.fn(artifacts))
        except StageError as e:
            run.fail(self.name, e)
            return []


class Tap(Stage):
    """Run a side effect on the artifacts and pass them through unchanged."""

    def __init__(self, fn: Callable[[List[Artifact]], None], name: str = None):
        self.fn = fn
        self.name = name or getattr(fn, '__name__', 'tap')

    def __call__(self, artifacts, run):
        self.fn(list(artifacts))
        return artifacts


def when(condition: bool, stage: Stage) -> Optional[Stage]:
    """Include ``stage`` only if ``condition`` holds."""
    return stage if condition else None


def report_failure(failure: StageFailure):
    """Default reporter: log the failure and print it to stderr."""
    location = failure.path or '<pipeline>'
    if failure.line:
        location = f"{location}:{failure.line}"
    logger.error(f"[{failure.pipeline}] {failure.stage} failed for {location}: {failure.message}")
    print(f"❌ [{failure.pipeline}] {location}\n   {failure.message}", file=sys.stderr)


class Pipeline:
    """An ordered list of stages applied to a file set."""

    def __init__(self, name: str, stages: Iterable[Optional[Stage]],
                 reporter: Callable[[StageFailure], None] = report_failure):
        self.name = name
        self.stages = [stage for stage in stages if stage is not None]
        self.reporter = reporter

    def run(self, artifacts: List[Artifact]) -> PipelineResult:
        run = PipelineRun(self.name, self.reporter)
        current = list(artifacts)
        logger.debug(f"[{self.name}] {len(current)} input(s), stages: "
                     f"{' → '.join(stage.name for stage in self.stages)}")
        for stage in self.stages:
            current = stage(current, run)
            logger.debug(f"[{self.name}] {stage.name}: {len(current)} artifact(s)")
        return PipelineResult(name=self.name, outputs=current, failures=run.failures)

"""
Tasks: `lint` and `scripts`.

`lint` checks custom scripts only (vendor scripts are never linted) and is
run before `scripts`. It only breaks the build when js_linting_fail_on_error
is set.

`scripts` concatenates vendor then custom scripts into a single file and
writes it alongside a minified .min.js copy.
"""

import logging
from pathlib import Path
from typing import List, Optional

from invoke import task
from invoke.exceptions import Exit

from ..config import PipelineConfig
from ..pipeline import LintFailedError, Pipeline, PipelineResult, load_artifacts, notify, when
from ..stages import (
    LintViolation,
    add_suffix_variant,
    concat,
    correct_line_endings,
    lint,
    minify_js,
    require_text,
    write_to,
)

logger = logging.getLogger(__name__)


class LintPipeline:
    """Lints custom scripts."""

    name = 'lint'

    def __init__(self, config: PipelineConfig, root: Optional[Path] = None):
        self.config = config
        self.root = Path(root) if root is not None else Path.cwd()

    def run(self) -> List[LintViolation]:
        """Lint custom scripts and return the findings.

        Raises:
            LintFailedError: If there are findings and js_linting_fail_on_error is set.
        """
        if not self.config.use_linting:
            logger.debug("Linting disabled")
            return []
        found: List[LintViolation] = []
        artifacts = load_artifacts(self.config.scripts_custom_src, self.root)
        result = Pipeline(self.name, [
            require_text(),
            lint(fail_on_error=self.config.js_linting_fail_on_error, found=found),
        ]).run(artifacts)
        if not found and result.success:
            print(f"✅ Lint passed ({len(artifacts)} file{'s' if len(artifacts) != 1 else ''})")
        return found


class ScriptsPipeline:
    """Vendor + custom scripts → combined and minified bundle."""

    name = 'scripts'

    def __init__(self, config: PipelineConfig, root: Optional[Path] = None):
        self.config = config
        self.root = Path(root) if root is not None else Path.cwd()

    @property
    def dest(self) -> Path:
        return self.root / self.config.scripts_dest

    def sources(self):
        """Vendor artifacts followed by custom artifacts, each in glob order."""
        vendor = load_artifacts(self.config.scripts_vendor_src, self.root, group='vendor')
        vendor_paths = {a.source_path for a in vendor}
        custom = [
            a for a in load_artifacts(self.config.scripts_custom_src, self.root, group='custom')
            if a.source_path not in vendor_paths
        ]
        return vendor + custom

    def build(self) -> Pipeline:
        config = self.config
        return Pipeline(self.name, [
            concat(f"{config.scripts_combined_name}.js"),
            add_suffix_variant(minify_js, '.js'),
            when(config.use_line_ending_corrector, correct_line_endings(config.newline)),
            write_to(self.dest),
        ])

    def run(self) -> PipelineResult:
        sources = self.sources()
        if not sources:
            logger.warning("No scripts matched the vendor or custom globs")
        result = self.build().run(sources)
        notify(self.name, result.outputs)
        return result


def create_tasks(config: PipelineConfig, root: Optional[Path] = None):
    """Create the `lint` task and the `scripts` task that depends on it."""

    @task(name='lint')
    def lint_task(ctx):
        """Lint custom JS files."""
        try:
            LintPipeline(config, root).run()
        except LintFailedError as e:
            raise Exit(f"❌ {e}", code=1)

    @task(name='scripts', pre=[lint_task])
    def scripts(ctx):
        """Concatenate and minify vendor and custom JS files."""
        ScriptsPipeline(config, root).run()

    return lint_task, scripts

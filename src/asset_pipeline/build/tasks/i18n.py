"""
Task: `i18n`.

Generates a .pot translation template from gettext calls in the sources.
"""

import logging
from pathlib import Path
from typing import Optional

from invoke import task

from ..config import PipelineConfig
from ..pipeline import Pipeline, PipelineResult, load_artifacts, notify
from ..stages import make_pot, require_text, write_to

logger = logging.getLogger(__name__)


class I18nPipeline:
    name = 'i18n'

    def __init__(self, config: PipelineConfig, root: Optional[Path] = None):
        self.config = config
        self.root = Path(root) if root is not None else Path.cwd()

    @property
    def template_name(self) -> str:
        return f"{self.config.i18n_domain or self.config.i18n_package or 'messages'}.pot"

    def run(self) -> PipelineResult:
        config = self.config
        sources = load_artifacts(config.i18n_src, self.root)
        result = Pipeline(self.name, [
            require_text(),
            make_pot(
                self.template_name,
                domain=config.i18n_domain,
                package=config.i18n_package,
                bug_report=config.i18n_bug_report,
                team=config.i18n_team,
            ),
            write_to(self.root / config.i18n_dest),
        ]).run(sources)
        notify(self.name, result.outputs)
        return result


def create_task(config: PipelineConfig, root: Optional[Path] = None):
    @task(name='i18n')
    def i18n(ctx):
        """Generate the .pot translation template."""
        if not config.use_i18n:
            print("⏭️  Translation template disabled (use_i18n is false)")
            return
        I18nPipeline(config, root).run()
    return i18n

"""
Task: `styles`.

This task compiles every non-partial stylesheet matched by styles_src with
libsass, then applies the optional autoprefix, media query merge, sourcemap,
minify and line ending stages before writing to styles_dest. Compile errors
are reported per file. When the live-reload server is running the new CSS is
pushed to connected browsers.
"""

import logging
from pathlib import Path
from typing import Optional

from invoke import task

from ..config import PipelineConfig
from ..pipeline import Pipeline, PipelineResult, load_artifacts, notify, when
from ..stages import (
    add_suffix_variant,
    autoprefix,
    bulk_import,
    compile_sass,
    correct_line_endings,
    merge_media_queries,
    minify_css,
    rename,
    write_sourcemaps,
    write_to,
)

logger = logging.getLogger(__name__)


class StylesPipeline:
    """Sass → CSS pipeline configured from a PipelineConfig."""

    name = 'styles'

    def __init__(self, config: PipelineConfig, channel=None, root: Optional[Path] = None):
        self.config = config
        self.channel = channel
        self.root = Path(root) if root is not None else Path.cwd()

    @property
    def dest(self) -> Path:
        return self.root / self.config.styles_dest

    def entries(self):
        """Stylesheets to compile: the styles glob minus partials."""
        artifacts = load_artifacts(self.config.styles_src, self.root)
        return [a for a in artifacts if not a.name.startswith('_')]

    def build(self, entry_count: int) -> Pipeline:
        config = self.config
        combined = entry_count == 1 and bool(config.styles_combined_name)
        return Pipeline(self.name, [
            bulk_import(),
            when(combined, rename(lambda a: f"{config.styles_combined_name}{a.suffix}")),
            compile_sass(
                output_style=config.styles_output_style,
                precision=config.styles_precision,
                include_paths=[str(self.root / p) for p in config.styles_include_paths],
                source_maps=config.use_sourcemaps,
                dest=str(self.dest),
            ),
            when(config.use_autoprefixer, autoprefix(config.styles_browsers_supported)),
            when(config.use_merge_media_queries, merge_media_queries()),
            when(config.use_sourcemaps, write_sourcemaps()),
            when(config.use_minify_css, add_suffix_variant(minify_css, '.css')),
            when(config.use_line_ending_corrector, correct_line_endings(config.newline)),
            write_to(self.dest),
        ])

    def run(self) -> PipelineResult:
        entries = self.entries()
        if not entries:
            logger.warning(f"No stylesheets matched {self.config.styles_src}")
        result = self.build(len(entries)).run(entries)

        stylesheets = [a for a in result.outputs if a.name.endswith('.css')]
        notify(self.name, stylesheets)
        if self.channel is not None and self.channel.active and stylesheets:
            self.channel.inject_css([a.path for a in stylesheets])
        return result


def create_task(config: PipelineConfig, channel=None, root: Optional[Path] = None):
    @task(name='styles')
    def styles(ctx):
        """Compile Sass to CSS, autoprefix, write sourcemaps and minify."""
        StylesPipeline(config, channel, root).run()
    return styles

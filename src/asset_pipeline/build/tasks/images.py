"""
Task: `images`.

Minifies PNG, JPEG and GIF images; anything else is copied unchanged.
"""

import logging
from pathlib import Path
from typing import Optional

from invoke import task

from ..config import PipelineConfig
from ..pipeline import Pipeline, PipelineResult, load_artifacts, notify
from ..stages import optimize_images, write_to

logger = logging.getLogger(__name__)


class ImagesPipeline:
    name = 'images'

    def __init__(self, config: PipelineConfig, root: Optional[Path] = None):
        self.config = config
        self.root = Path(root) if root is not None else Path.cwd()

    def run(self) -> PipelineResult:
        images = load_artifacts(self.config.images_src, self.root)
        result = Pipeline(self.name, [
            optimize_images(jpeg_quality=self.config.images_jpeg_quality),
            write_to(self.root / self.config.images_dest),
        ]).run(images)

        saved = sum(a.meta.get('saved', 0) for a in result.outputs)
        logger.info(f"Images: saved {saved} bytes across {len(result.outputs)} file(s)")
        notify(self.name, result.outputs)
        return result


def create_task(config: PipelineConfig, root: Optional[Path] = None):
    @task(name='images')
    def images(ctx):
        """Minify PNG, JPEG and GIF images."""
        if not config.use_imagemin:
            print("⏭️  Image minification disabled (use_imagemin is false)")
            return
        ImagesPipeline(config, root).run()
    return images

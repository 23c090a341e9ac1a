"""
Asset pipeline tasks package.

Tasks are created from a loaded PipelineConfig by build_namespace(); nothing
is registered until the configuration has loaded successfully.
"""

from pathlib import Path
from typing import Optional

from invoke import Collection

from ...run.reload import ReloadChannel
from ..config import PipelineConfig
from . import browser_sync, i18n, images, scripts, styles, watch


def build_namespace(config: PipelineConfig, root: Optional[Path] = None,
                    channel: Optional[ReloadChannel] = None) -> Collection:
    """Create the task collection for ``config``.

    Args:
        config: Loaded configuration, shared by every task.
        root: Project directory globs and outputs are relative to (default: cwd).
        channel: Live-reload channel; a fresh inactive one by default.
    """
    channel = channel or ReloadChannel()
    namespace = Collection()

    styles_task = styles.create_task(config, channel, root)
    lint_task, scripts_task = scripts.create_tasks(config, root)
    watch_task, default_task = watch.create_tasks(
        config, channel, lambda: namespace, styles_task, scripts_task, root
    )

    for t in [
        styles_task,
        lint_task,
        scripts_task,
        browser_sync.create_task(config, channel),
        images.create_task(config, root),
        i18n.create_task(config, root),
        watch_task,
    ]:
        namespace.add_task(t)
    namespace.add_task(default_task, default=True)
    return namespace


__all__ = ['build_namespace']

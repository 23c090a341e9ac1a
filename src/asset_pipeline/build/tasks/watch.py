"""
Tasks: `watch` and `default`.

Watches for file changes and reruns the matching tasks. `default` builds
styles and scripts, starts the live-reload proxy, then watches.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional

from invoke import Executor, task

from ...run.reload import ReloadChannel
from ..config import PipelineConfig
from ..watch import WatchBinding, Watcher
from .browser_sync import start_reload_server, stop_reload_server

logger = logging.getLogger(__name__)


def watch_bindings(config: PipelineConfig, root: Optional[Path] = None) -> List[WatchBinding]:
    """Glob → task bindings derived from the config."""
    bindings = [
        WatchBinding(config.watch_styles, ['styles'], root=root),
        WatchBinding(config.watch_js_custom, ['scripts'], root=root),
        # Vendor changes also force a full page reload
        WatchBinding(config.watch_js_vendor, ['scripts'], reload=True, root=root),
    ]
    if config.use_imagemin:
        bindings.append(WatchBinding(config.watch_images, ['images'], root=root))
    if config.use_i18n:
        bindings.append(WatchBinding(config.watch_i18n, ['i18n'], root=root))
    return [b for b in bindings if b.patterns]


def task_runner(get_namespace: Callable, invoke_config=None) -> Callable[[str], None]:
    """Run tasks by name through invoke, so `pre` dependencies run as well."""
    def run_task(name: str):
        Executor(get_namespace(), config=invoke_config).execute(name)
    return run_task


def create_watcher(config: PipelineConfig, run_task: Callable[[str], None],
                   channel: ReloadChannel, root: Optional[Path] = None, spawn=None) -> Watcher:
    return Watcher(watch_bindings(config, root), run_task, on_reload=channel.reload, spawn=spawn)


def create_tasks(config: PipelineConfig, channel: ReloadChannel, get_namespace: Callable,
                 styles, scripts, root: Optional[Path] = None):
    """Create `watch` and `default`. ``get_namespace`` returns the finished Collection."""

    @task(name='watch')
    def watch(ctx):
        """Watch source files and rerun tasks on change."""
        create_watcher(config, task_runner(get_namespace, ctx.config), channel, root).run_forever()

    @task(name='default', pre=[styles, scripts])
    def default(ctx):
        """Build styles and scripts, start live reload, then watch."""
        server = start_reload_server(config, channel)
        try:
            create_watcher(config, task_runner(get_namespace, ctx.config), channel, root).run_forever()
        finally:
            stop_reload_server(server, channel)

    return watch, default

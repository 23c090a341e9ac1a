"""
Task: `browser-sync`.

This task proxies project_url on browsersync_port and keeps connected
browsers in sync with rebuilt assets. use_browsersync opens a browser once
the proxy is up; use_injectcss swaps stylesheets in place instead of
reloading the page.
"""

import logging
import time

from invoke import task

from ...run.reload import ReloadChannel, ReloadServer
from ..config import PipelineConfig

logger = logging.getLogger(__name__)


def start_reload_server(config: PipelineConfig, channel: ReloadChannel) -> ReloadServer:
    """Start the proxy and make ``channel`` deliver to it."""
    server = ReloadServer(
        config.project_url,
        port=config.browsersync_port,
        open_browser=config.use_browsersync,
        inject_css=config.use_injectcss,
    )
    server.start()
    channel.attach(server)
    return server


def stop_reload_server(server: ReloadServer, channel: ReloadChannel):
    channel.detach()
    server.stop()


def create_task(config: PipelineConfig, channel: ReloadChannel):
    @task(name='browser-sync')
    def browser_sync(ctx):
        """Start the live-reload proxy and serve until interrupted."""
        server = start_reload_server(config, channel)
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            print("\n🛑 Stopping live reload server")
        finally:
            stop_reload_server(server, channel)
    return browser_sync

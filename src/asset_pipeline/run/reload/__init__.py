"""
Live-reload proxy and the channel pipelines use to notify browsers.
"""

from .server import ReloadServer, ReloadChannel, inject_client_script

__all__ = ['ReloadServer', 'ReloadChannel', 'inject_client_script']

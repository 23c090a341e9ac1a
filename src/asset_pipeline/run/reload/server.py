"""
Live-reload proxy server.

Proxies a local development site and pushes CSS injections or full page
reloads to connected browsers over a WebSocket.
"""

import asyncio
import logging
import threading
import time
import webbrowser
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Optional, Set
from urllib.parse import urlsplit

import requests
import uvicorn
from fastapi import FastAPI, Request, Response, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)

RELOAD_PREFIX = '/__reload'
CLIENT_SCRIPT_TAG = f'<script async src="{RELOAD_PREFIX}/client.js"></script>'
PROXY_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'HEAD', 'OPTIONS']

# Headers that must not be forwarded between hops, plus those requests rewrites
EXCLUDED_HEADERS = {
    'connection', 'keep-alive', 'proxy-authenticate', 'proxy-authorization', 'te',
    'trailers', 'transfer-encoding', 'upgrade', 'host', 'content-length', 'content-encoding',
}


def _normalize_url(url: str) -> str:
    if '://' not in url:
        url = f"http://{url}"
    return url.rstrip('/')


def inject_client_script(html: str) -> str:
    """Insert the reload client script before ``</body>`` (or append it)."""
    index = html.lower().rfind('</body>')
    if index == -1:
        return html + CLIENT_SCRIPT_TAG
    return html[:index] + CLIENT_SCRIPT_TAG + html[index:]


class ReloadServer:
    """Reverse proxy in front of the project URL with a live-reload channel."""

    def __init__(self, project_url: str, port: int = 3000, host: str = 'localhost',
                 open_browser: bool = True, inject_css: bool = True):
        """Initialize the server.

        Args:
            project_url: Site to proxy, e.g. ``mysite.local``.
            port: Local port to listen on.
            host: Local interface to bind.
            open_browser: Open the proxied site in a browser once started.
            inject_css: Push CSS changes in place instead of reloading the page.
        """
        self.project_url = _normalize_url(project_url)
        self.port = port
        self.host = host
        self.open_browser = open_browser
        self.inject_css = inject_css
        self._clients: Set[WebSocket] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None
        self.app = FastAPI(
            title="Asset Pipeline Live Reload",
            description=f"Proxy for {self.project_url}",
            lifespan=self._lifespan,
        )
        self._setup_routes()

    @property
    def local_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def client_count(self) -> int:
        return len(self._clients)

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        self._loop = asyncio.get_running_loop()
        yield
        self._loop = None

    def _setup_routes(self):
        """Set up the reload client, WebSocket and catch-all proxy routes."""

        @self.app.get(f'{RELOAD_PREFIX}/client.js')
        async def client_script():
            script = (Path(__file__).parent / 'client.js').read_text(encoding='utf-8')
            return Response(content=script, media_type='application/javascript')

        @self.app.websocket(f'{RELOAD_PREFIX}/ws')
        async def reload_socket(websocket: WebSocket):
            await websocket.accept()
            self._clients.add(websocket)
            logger.debug(f"Reload client connected ({len(self._clients)} total)")
            try:
                await websocket.send_json({'type': 'hello'})
                while True:
                    await websocket.receive_text()
            except WebSocketDisconnect:
                pass
            finally:
                self._clients.discard(websocket)
                logger.debug(f"Reload client disconnected ({len(self._clients)} total)")

        @self.app.api_route('/{path:path}', methods=PROXY_METHODS)
        async def proxy(request: Request, path: str):
            body = await request.body()
            return await run_in_threadpool(
                self._forward, request.method, path, request.url.query,
                dict(request.headers), body, str(request.base_url).rstrip('/')
            )

    def _forward(self, method: str, path: str, query: str, headers: Dict[str, str],
                 body: bytes, local_origin: str) -> Response:
        """Send a request upstream and rewrite the response for the proxy origin."""
        url = f"{self.project_url}/{path}"
        if query:
            url = f"{url}?{query}"
        forward_headers = {k: v for k, v in headers.items() if k.lower() not in EXCLUDED_HEADERS}
        forward_headers['accept-encoding'] = 'identity'

        try:
            upstream = requests.request(
                method, url, headers=forward_headers, data=body or None,
                allow_redirects=False, timeout=30
            )
        except requests.RequestException as e:
            logger.warning(f"Proxy request to {url} failed: {e}")
            return Response(content=f"Could not reach {self.project_url}: {e}",
                            status_code=502, media_type='text/plain')

        content = upstream.content
        content_type = upstream.headers.get('content-type', '')
        if 'text/html' in content_type and method != 'HEAD':
            encoding = upstream.encoding or 'utf-8'
            html = content.decode(encoding, errors='replace')
            html = html.replace(self.project_url, local_origin)
            content = inject_client_script(html).encode(encoding, errors='replace')

        response = Response(content=content, status_code=upstream.status_code)
        # raw headers keep repeated fields such as Set-Cookie apart
        for key, value in upstream.raw.headers.items():
            name = key.lower()
            if name in EXCLUDED_HEADERS:
                continue
            if name == 'location':
                value = value.replace(self.project_url, local_origin)
            response.headers.append(key, value)
        return response

    async def _broadcast(self, message: Dict[str, Any]):
        for client in list(self._clients):
            try:
                await client.send_json(message)
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.debug(f"Dropping reload client: {e}")
                self._clients.discard(client)

    def broadcast(self, message: Dict[str, Any]) -> bool:
        """Send a message to every connected browser. Safe to call from any thread."""
        loop = self._loop
        if loop is None:
            logger.debug(f"Reload server not running, dropping {message}")
            return False
        future = asyncio.run_coroutine_threadsafe(self._broadcast(message), loop)
        future.result(timeout=5)
        return True

    def start(self, timeout: float = 10.0):
        """Start serving in a background thread and optionally open a browser."""
        config = uvicorn.Config(self.app, host=self.host, port=self.port, log_level='warning')
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(target=self._server.run, name='reload-server', daemon=True)
        self._thread.start()

        deadline = time.monotonic() + timeout
        while not self._server.started:
            if not self._thread.is_alive() or time.monotonic() > deadline:
                raise RuntimeError(f"❌ Live reload server failed to start on {self.local_url}")
            time.sleep(0.05)

        print(f"🔄 Proxying {self.project_url} at {self.local_url}")
        logger.info(f"Reload server listening on {self.local_url} (proxy for {self.project_url})")
        if self.open_browser:
            webbrowser.open(self.local_url)

    def stop(self):
        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._server = None
        self._thread = None


class ReloadChannel:
    """Notification handle passed to pipelines.

    Inactive until a ReloadServer is attached; an inactive channel ignores
    notifications, so pipelines can always call it.
    """

    def __init__(self):
        self._server: Optional[ReloadServer] = None

    @property
    def active(self) -> bool:
        return self._server is not None

    def attach(self, server: ReloadServer):
        self._server = server

    def detach(self):
        self._server = None

    def inject_css(self, paths):
        """Swap the given stylesheets in place, or reload if injection is disabled."""
        if not self.active:
            return
        if not self._server.inject_css:
            self.reload()
            return
        names = [urlsplit(str(p)).path.replace('\\', '/') for p in paths]
        logger.debug(f"Injecting CSS: {names}")
        self._server.broadcast({'type': 'css', 'paths': names})

    def reload(self):
        if not self.active:
            return
        logger.debug("Requesting full page reload")
        self._server.broadcast({'type': 'reload'})

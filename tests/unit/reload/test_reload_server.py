"""Live-reload proxy tests using FastAPI's TestClient.

Upstream requests are replaced with canned responses; no real site or
socket is needed.
"""

from types import SimpleNamespace

import pytest
import requests
from fastapi.testclient import TestClient

from asset_pipeline.run.reload import ReloadChannel, ReloadServer, inject_client_script
from asset_pipeline.run.reload.server import CLIENT_SCRIPT_TAG


class RawHeaders:
    """Header list that keeps repeated fields, like urllib3's HTTPHeaderDict."""

    def __init__(self, pairs):
        self.pairs = list(pairs)

    def items(self):
        return list(self.pairs)


class FakeUpstream:
    """Canned upstream response; records the requests made."""

    def __init__(self, content=b"", status_code=200, headers=None, error=None):
        pairs = list(headers.items()) if isinstance(headers, dict) else list(headers or [])
        self.content = content
        self.status_code = status_code
        self.headers = {k.lower(): v for k, v in pairs}
        self.raw = SimpleNamespace(headers=RawHeaders(pairs))
        self.encoding = 'utf-8'
        self.error = error
        self.calls = []

    def __call__(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self


class RecordingServer:
    def __init__(self, inject_css=True):
        self.inject_css = inject_css
        self.messages = []

    def broadcast(self, message):
        self.messages.append(message)
        return True


@pytest.fixture
def server():
    return ReloadServer("mysite.local", port=3999, open_browser=False)


def fake_upstream(monkeypatch, **kwargs) -> FakeUpstream:
    upstream = FakeUpstream(**kwargs)
    monkeypatch.setattr("asset_pipeline.run.reload.server.requests.request", upstream)
    return upstream


def test_inject_before_body_close():
    assert inject_client_script("<html><body>hi</body></html>") == \
        f"<html><body>hi{CLIENT_SCRIPT_TAG}</body></html>"


def test_inject_appends_without_body():
    assert inject_client_script("<p>fragment</p>") == f"<p>fragment</p>{CLIENT_SCRIPT_TAG}"


def test_client_script_served(server):
    with TestClient(server.app) as client:
        response = client.get("/__reload/client.js")

    assert response.status_code == 200
    assert "javascript" in response.headers["content-type"]
    assert "/__reload/ws" in response.text


def test_html_is_proxied_with_client(server, monkeypatch):
    upstream = fake_upstream(
        monkeypatch,
        content=b'<html><body><a href="http://mysite.local/about">About</a></body></html>',
        headers={"content-type": "text/html; charset=utf-8"},
    )

    with TestClient(server.app) as client:
        response = client.get("/blog/?page=2")

    assert response.status_code == 200
    assert CLIENT_SCRIPT_TAG in response.text
    assert 'href="http://testserver/about"' in response.text, "Links should stay on the proxy"
    method, url, _ = upstream.calls[0]
    assert (method, url) == ("GET", "http://mysite.local/blog/?page=2")


def test_assets_pass_through_untouched(server, monkeypatch):
    fake_upstream(monkeypatch, content=b"body{color:red}", headers={"content-type": "text/css"})

    with TestClient(server.app) as client:
        response = client.get("/wp-content/themes/site/style.css")

    assert response.content == b"body{color:red}"


def test_redirects_point_at_proxy(server, monkeypatch):
    fake_upstream(monkeypatch, status_code=302,
                  headers={"location": "http://mysite.local/login"})

    with TestClient(server.app) as client:
        response = client.get("/admin", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "http://testserver/login"


def test_unreachable_site_is_bad_gateway(server, monkeypatch):
    fake_upstream(monkeypatch, error=requests.ConnectionError("refused"))

    with TestClient(server.app) as client:
        response = client.get("/")

    assert response.status_code == 502
    assert "mysite.local" in response.text


def test_browsers_receive_css_and_reload(server):
    channel = ReloadChannel()
    channel.attach(server)

    with TestClient(server.app) as client:
        with client.websocket_connect("/__reload/ws") as websocket:
            assert websocket.receive_json() == {"type": "hello"}
            assert server.client_count == 1

            channel.inject_css(["style.css", "style.min.css"])
            assert websocket.receive_json() == {"type": "css", "paths": ["style.css", "style.min.css"]}

            channel.reload()
            assert websocket.receive_json() == {"type": "reload"}


def test_broadcast_without_running_server_is_dropped(server):
    assert server.broadcast({"type": "reload"}) is False


def test_inactive_channel_ignores_notifications():
    channel = ReloadChannel()

    assert not channel.active
    channel.inject_css(["style.css"])
    channel.reload()


def test_channel_reloads_when_injection_disabled():
    channel = ReloadChannel()
    target = RecordingServer(inject_css=False)
    channel.attach(target)

    channel.inject_css(["style.css"])

    assert target.messages == [{"type": "reload"}]


def test_detached_channel_goes_quiet():
    channel = ReloadChannel()
    target = RecordingServer()
    channel.attach(target)
    channel.detach()

    channel.reload()

    assert target.messages == []


def test_repeated_cookies_stay_separate(server, monkeypatch):
    """Each Set-Cookie from the site reaches the browser as its own header."""
    fake_upstream(monkeypatch, content=b"ok", headers=[
        ("Content-Type", "text/plain"),
        ("Set-Cookie", "wordpress_logged_in=abc; Path=/"),
        ("Set-Cookie", "wp-settings=1; Path=/"),
    ])

    with TestClient(server.app) as client:
        response = client.get("/wp-login.php")

    assert response.headers.get_list("set-cookie") == [
        "wordpress_logged_in=abc; Path=/",
        "wp-settings=1; Path=/",
    ]

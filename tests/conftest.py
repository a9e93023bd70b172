"""
Pytest fixtures for the Shelly toggle functions.

Provides:
- Shelly env vars for every test
- Fake requests responses
- A real HTTP server running a route's handler class
"""

import http.client
import json
import threading
from http.server import ThreadingHTTPServer
from unittest.mock import MagicMock, patch

import pytest

import _shelly


DEVICE_ID = "a8032ab12345"
AUTH_KEY = "test-auth-key"
HOST = "shelly-106-eu.shelly.cloud"


@pytest.fixture(autouse=True)
def shelly_env(monkeypatch):
    """Complete configuration, channel left at its default."""
    monkeypatch.setenv("SHELLY_HOST", HOST)
    monkeypatch.setenv("SHELLY_AUTH_KEY", AUTH_KEY)
    monkeypatch.setenv("SHELLY_DEVICE_ID", DEVICE_ID)
    monkeypatch.delenv("SHELLY_CHANNEL", raising=False)


@pytest.fixture(autouse=True)
def reset_throttle():
    _shelly._throttle["last"] = None
    yield
    _shelly._throttle["last"] = None


@pytest.fixture
def no_sleep():
    with patch("_shelly.time.sleep") as mock_sleep:
        yield mock_sleep


@pytest.fixture
def make_response():
    """Build a fake requests.Response; payload=None means a non-JSON body."""

    def _make(status_code=200, payload=None, text=None):
        resp = MagicMock()
        resp.status_code = status_code
        resp.ok = status_code < 400
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        resp.text = text
        if payload is not None:
            resp.json.return_value = payload
        else:
            resp.json.side_effect = ValueError("Expecting value")
        return resp

    return _make


@pytest.fixture
def device_list():
    """Vendor status payload for one device; output of switch:0 configurable."""

    def _make(output=False, online=True):
        return [{
            "id": DEVICE_ID,
            "online": online,
            "gen": 2,
            "type": "relay",
            "code": "S3PL-00112EU",
            "status": {
                "switch:0": {"id": 0, "output": output, "source": "cloud"},
                "sys": {"uptime": 1234},
            },
        }]

    return _make


@pytest.fixture
def serve():
    """Start handler classes on ephemeral ports, returns a request function."""
    servers = []

    def _serve(handler_cls):
        server = ThreadingHTTPServer(("127.0.0.1", 0), handler_cls)
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        port = server.server_address[1]

        def _request(method, path="/", body=None):
            conn = http.client.HTTPConnection("127.0.0.1", port, timeout=5)
            try:
                conn.request(method, path, body=body)
                resp = conn.getresponse()
                return resp.status, dict(resp.getheaders()), resp.read()
            finally:
                conn.close()

        return _request

    yield _serve

    for server in servers:
        server.shutdown()
        server.server_close()

"""Gemensam HTTP-inramning (CORS, JSON, 405) för API-routes."""
from http.server import BaseHTTPRequestHandler
import json
from _log import logger


class JsonHandler(BaseHTTPRequestHandler):
    """Bas för routes. Underklasser sätter ALLOWED_METHODS och do_<metod>."""

    ALLOWED_METHODS = ("OPTIONS",)

    def cors_headers(self) -> dict:
        return {
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Headers": "Content-Type",
            "Access-Control-Allow-Methods": ", ".join(self.ALLOWED_METHODS),
        }

    def send_json(self, status_code: int, payload, extra_headers=None):
        data = json.dumps(payload).encode()
        self.send_response(status_code)
        for name, value in self.cors_headers().items():
            self.send_header(name, value)
        for name, value in (extra_headers or {}).items():
            self.send_header(name, value)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(data)

    def drain_body(self) -> bytes:
        length = int(self.headers.get("Content-Length", 0) or 0)
        return self.rfile.read(length) if length > 0 else b""

    def do_OPTIONS(self):
        self.send_response(204)
        for name, value in self.cors_headers().items():
            self.send_header(name, value)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def method_not_allowed(self):
        self.drain_body()
        usable = " or ".join(m for m in self.ALLOWED_METHODS if m != "OPTIONS")
        self.send_json(
            405,
            {"ok": False, "error": f"Use {usable}"},
            {"Allow": ", ".join(self.ALLOWED_METHODS)},
        )

    def do_GET(self):
        self.method_not_allowed()

    def do_POST(self):
        self.method_not_allowed()

    def do_PUT(self):
        self.method_not_allowed()

    def do_PATCH(self):
        self.method_not_allowed()

    def do_DELETE(self):
        self.method_not_allowed()

    def do_HEAD(self):
        self.method_not_allowed()

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)

"""Shared fixtures: a throwaway local HTTP server."""

import socket
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest


class _Route:
    def __init__(self, body: bytes, status: int, declared_length):
        self.body = body
        self.status = status
        self.declared_length = declared_length


class _Handler(BaseHTTPRequestHandler):
    # HTTP/1.0: the connection closes after each response, so a body without
    # Content-Length is delimited by EOF.
    protocol_version = "HTTP/1.0"

    def do_GET(self):
        route = self.server.routes.get(self.path)
        if route is None:
            self.send_error(404)
            return
        self.send_response(route.status)
        self.send_header('Content-Type', 'application/octet-stream')
        if route.declared_length is not None:
            self.send_header('Content-Length', str(route.declared_length))
        self.end_headers()
        try:
            self.wfile.write(route.body)
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args):
        pass


class LocalServer:
    def __init__(self):
        self._httpd = ThreadingHTTPServer(('127.0.0.1', 0), _Handler)
        self._httpd.routes = {}
        self._thread = threading.Thread(target=self._httpd.serve_forever, daemon=True)

    @property
    def base_url(self) -> str:
        return f"http://127.0.0.1:{self._httpd.server_address[1]}"

    def url(self, path: str) -> str:
        return self.base_url + path

    def serve(self, path: str, body: bytes | str, status: int = 200,
              content_length: bool = True, declared_length: int | None = None):
        if isinstance(body, str):
            body = body.encode('utf-8')
        if declared_length is None and content_length:
            declared_length = len(body)
        self._httpd.routes[path] = _Route(body, status, declared_length)

    def start(self):
        self._thread.start()

    def stop(self):
        self._httpd.shutdown()
        self._httpd.server_close()


@pytest.fixture
def http_server():
    server = LocalServer()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def dead_url():
    """A URL on a port nothing listens on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        port = s.getsockname()[1]
    return f"http://127.0.0.1:{port}/version.txt"

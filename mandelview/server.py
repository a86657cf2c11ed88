from __future__ import annotations

import errno
import os
import posixpath
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional
from urllib.parse import unquote, urlsplit

from mandelview.util.logging_setup import get_logger

DEFAULT_PORT = 8000

MIME_TYPES = {
    ".html": "text/html",
    ".js": "application/javascript",
    ".css": "text/css",
    ".json": "application/json",
    ".png": "image/png",
    ".jpg": "image/jpg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
}
DEFAULT_MIME = "application/octet-stream"

def content_type(path: str) -> str:
    return MIME_TYPES.get(os.path.splitext(path)[1].lower(), DEFAULT_MIME)

def resolve_path(root: str, url_path: str) -> Optional[str]:
    """Map a request path onto a file under ``root``; None if it escapes the root."""
    path = unquote(urlsplit(url_path).path)
    if path in ("", "/"):
        path = "/index.html"
    path = posixpath.normpath(path)
    root = os.path.abspath(root)
    full = os.path.abspath(os.path.join(root, *[p for p in path.split("/") if p]))
    if full != root and not full.startswith(root + os.sep):
        return None
    return full

class StaticHandler(BaseHTTPRequestHandler):
    root = "."
    server_version = "mandelview"

    def _reply(self, status: int, body: bytes, ctype: str = "text/plain", head: bool = False) -> None:
        self.send_response(status)
        self.send_header("Content-Type", ctype)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if not head:
            self.wfile.write(body)

    def _serve(self, head: bool) -> None:
        path = resolve_path(self.root, self.path)
        if path is None:
            self._reply(HTTPStatus.NOT_FOUND, b"File not found", head=head)
            return
        try:
            with open(path, "rb") as f:
                content = f.read()
        except FileNotFoundError:
            self._reply(HTTPStatus.NOT_FOUND, b"File not found", head=head)
            return
        except OSError as e:
            code = errno.errorcode.get(e.errno, str(e.errno)) if e.errno else type(e).__name__
            get_logger("server").warning("Read failed for %s: %s", path, e)
            self._reply(HTTPStatus.INTERNAL_SERVER_ERROR, f"Server error: {code}".encode("utf-8"), head=head)
            return
        self._reply(HTTPStatus.OK, content, content_type(path), head=head)

    def do_GET(self):
        self._serve(head=False)

    def do_HEAD(self):
        self._serve(head=True)

    def log_message(self, format, *args):
        get_logger("server").info("%s - %s", self.address_string(), format % args)

def make_server(directory: str = ".", port: int = DEFAULT_PORT, host: str = "127.0.0.1") -> ThreadingHTTPServer:
    handler = type("BoundStaticHandler", (StaticHandler,), {"root": os.path.abspath(directory)})
    return ThreadingHTTPServer((host, port), handler)

def serve(directory: str = ".", port: int = DEFAULT_PORT, host: str = "127.0.0.1") -> None:
    logger = get_logger("server")
    httpd = make_server(directory, port, host)
    logger.info("Serving %s at http://%s:%s/ (Ctrl+C to stop)", os.path.abspath(directory), host, port)
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down server")
    finally:
        httpd.server_close()

"""WSGI middlewares for CORS and response compression, and the HTTP server."""

from __future__ import annotations

import gzip
import logging
import signal
import threading
import zlib
from socketserver import ThreadingMixIn
from typing import Any, Callable, Dict, List, Optional
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

_CORS_HEADERS = [
    ("Access-Control-Allow-Origin", "*"),
    ("Access-Control-Allow-Methods", "POST, GET, OPTIONS, PUT, DELETE"),
    (
        "Access-Control-Allow-Headers",
        "Accept, Content-Type, Content-Length, Accept-Encoding, X-CSRF-Token, Authorization",
    ),
]

SHUTDOWN_TIMEOUT = 15

_log = logging.getLogger(__name__)


def cors_middleware(app: Callable) -> Callable:
    """Allow cross-origin requests; answer preflight OPTIONS requests directly."""

    def wrapped(environ: Dict[str, Any], start_response: Callable) -> List[bytes]:
        if environ.get("REQUEST_METHOD") == "OPTIONS":
            start_response("200 OK", _CORS_HEADERS + [("Content-Length", "0")])
            return [b""]

        def start(status, headers, exc_info=None):
            present = {name.lower() for name, _ in headers}
            merged = list(headers) + [h for h in _CORS_HEADERS if h[0].lower() not in present]
            return start_response(status, merged, exc_info)

        return app(environ, start)

    return wrapped


def _negotiate(accept_encoding: str) -> Optional[str]:
    for encoding in accept_encoding.split(","):
        encoding = encoding.strip()
        if encoding in ("gzip", "deflate"):
            return encoding
    return None


def _compress(body: bytes, encoding: str) -> bytes:
    if encoding == "gzip":
        return gzip.compress(body)
    compressor = zlib.compressobj(zlib.Z_DEFAULT_COMPRESSION, zlib.DEFLATED, -15)
    return compressor.compress(body) + compressor.flush()


def gzip_middleware(app: Callable) -> Callable:
    """Compress responses with gzip or deflate when the client accepts it."""

    def wrapped(environ: Dict[str, Any], start_response: Callable) -> List[bytes]:
        captured: Dict[str, Any] = {}
        chunks: List[bytes] = []

        def start(status, headers, exc_info=None):
            captured.update(status=status, headers=list(headers), exc_info=exc_info)
            return chunks.append

        result = app(environ, start)
        try:
            chunks.extend(result)
        finally:
            close = getattr(result, "close", None)
            if close is not None:
                close()

        body = b"".join(chunks)
        headers = captured["headers"] + [("Vary", "Accept-Encoding")]
        encoding = _negotiate(environ.get("HTTP_ACCEPT_ENCODING", ""))
        if encoding and not environ.get("HTTP_UPGRADE"):
            body = _compress(body, encoding)
            headers = [h for h in headers if h[0].lower() != "content-length"]
            headers += [("Content-Encoding", encoding), ("Content-Length", str(len(body)))]
        start_response(captured["status"], headers, captured["exc_info"])
        return [body]

    return wrapped


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


class _QuietHandler(WSGIRequestHandler):
    """Request handler that sends access logs to the debug logger instead of stderr."""

    timeout = 15

    def log_message(self, format, *args):  # noqa: A002
        _log.debug("%s - %s", self.address_string(), format % args)


def _wait_for_interrupt() -> None:
    stop = threading.Event()
    try:
        previous = signal.signal(signal.SIGINT, lambda *_: stop.set())
    except ValueError:
        previous = None
    try:
        while not stop.wait(0.5):
            pass
    except KeyboardInterrupt:
        pass
    finally:
        if previous is not None:
            signal.signal(signal.SIGINT, previous)


def serve(
    app: Callable,
    port: int,
    on_startup_success: Optional[Callable[[int], None]] = None,
    on_startup_failure: Optional[Callable[[Exception], None]] = None,
    on_shutdown: Optional[Callable[[], None]] = None,
) -> None:
    """Serve app with compression on all interfaces until interrupted.

    If the port cannot be bound, on_startup_failure is called and the
    function returns.
    """
    if on_startup_success is not None:
        on_startup_success(port)
    try:
        server = make_server(
            "0.0.0.0",
            port,
            gzip_middleware(app),
            server_class=_ThreadingWSGIServer,
            handler_class=_QuietHandler,
        )
    except OSError as exc:
        if on_startup_failure is not None:
            on_startup_failure(exc)
        return

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        _wait_for_interrupt()
    finally:
        server.shutdown()
        server.server_close()
        thread.join(SHUTDOWN_TIMEOUT)

    if on_shutdown is not None:
        on_shutdown()
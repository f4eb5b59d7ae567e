"""Caching of responses in memcached."""

from __future__ import annotations

import os
import socket
from typing import Any, Callable, Dict, List
from urllib.parse import quote

_MAX_KEY_LENGTH = 250
_CACHE_ERRORS = (KeyError, OSError, ValueError, RuntimeError)


def _key_bytes(key: str) -> bytes:
    data = key.encode("utf-8")
    if len(data) > _MAX_KEY_LENGTH or any(b <= 0x20 or b == 0x7F for b in data):
        raise ValueError(f"malformed memcached key: {key!r}")
    return data


class MemcachedClient:
    """A minimal memcached text-protocol client for one server at "host:port"."""

    def __init__(self, address: str, timeout: float = 0.5) -> None:
        self.address = address
        self.timeout = timeout

    def _connect(self) -> socket.socket:
        host, _, port = self.address.rpartition(":")
        host = host.strip("[]")
        if not host or not port.isdigit():
            raise ValueError(f"invalid memcached address: {self.address!r}")
        return socket.create_connection((host, int(port)), timeout=self.timeout)

    def get(self, key: str) -> bytes:
        """Return the stored value, or raise KeyError on a cache miss."""
        key_data = _key_bytes(key)
        value = None
        with self._connect() as conn, conn.makefile("rb") as stream:
            conn.sendall(b"get " + key_data + b"\r\n")
            while True:
                line = stream.readline()
                if not line:
                    raise ConnectionError("memcached closed the connection")
                if line == b"END\r\n":
                    break
                parts = line.split()
                if len(parts) < 4 or parts[0] != b"VALUE":
                    raise ConnectionError(f"unexpected memcached response: {line!r}")
                size = int(parts[3])
                data = stream.read(size + 2)
                if len(data) != size + 2 or not data.endswith(b"\r\n"):
                    raise ConnectionError("corrupt memcached value")
                value = data[:-2]
        if value is None:
            raise KeyError(key)
        return value

    def set(self, key: str, value: bytes) -> None:
        """Store a value without expiry."""
        key_data = _key_bytes(key)
        with self._connect() as conn, conn.makefile("rb") as stream:
            conn.sendall(b"set %s 0 0 %d\r\n" % (key_data, len(value)) + value + b"\r\n")
            line = stream.readline()
        if line == b"STORED\r\n":
            return
        if line == b"NOT_STORED\r\n":
            raise RuntimeError("memcached did not store the item")
        raise ConnectionError(f"unexpected memcached response: {line!r}")


def _request_key(environ: Dict[str, Any]) -> str:
    path = environ.get("SCRIPT_NAME", "") + environ.get("PATH_INFO", "")
    try:
        path = path.encode("latin-1").decode("utf-8", "replace")
    except UnicodeEncodeError:
        pass
    key = quote(path, safe="/:@!$&'()*+,;=-._~")
    query = environ.get("QUERY_STRING", "")
    return f"{key}?{query}" if query else key


class CacheMiddleware:
    """Serve responses from memcached, keyed by request URL, storing misses."""

    def __init__(self, client: Any, app: Callable) -> None:
        self.client = client
        self.app = app

    def __call__(self, environ: Dict[str, Any], start_response: Callable) -> List[bytes]:
        key = _request_key(environ)
        try:
            cached = self.client.get(key)
        except _CACHE_ERRORS:
            cached = None
        if cached is not None:
            start_response(
                "200 OK",
                [("Content-Type", "text/plain; charset=utf-8"), ("Content-Length", str(len(cached)))],
            )
            return [cached]

        captured: Dict[str, Any] = {}
        chunks: List[bytes] = []

        def start(status, headers, exc_info=None):
            captured.update(status=status, headers=headers, exc_info=exc_info)
            return chunks.append

        result = self.app(environ, start)
        try:
            chunks.extend(result)
        finally:
            close = getattr(result, "close", None)
            if close is not None:
                close()

        body = b"".join(chunks)
        start_response(captured["status"], captured["headers"], captured["exc_info"])
        if captured["status"].startswith("200"):
            try:
                self.client.set(key, body)
            except _CACHE_ERRORS:
                pass
        return [body]


def create_cache_middleware(client: Any, app: Callable) -> CacheMiddleware:
    """Wrap app in a cache; raise RuntimeError if MEMCACHED_URL is not set."""
    if not os.environ.get("MEMCACHED_URL", ""):
        raise RuntimeError(
            "MEMCACHED_URL not set in environment, but memcached is configured. Cannot proceed"
        )
    return CacheMiddleware(client, app)
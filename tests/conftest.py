"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from dataclasses import replace
from typing import Generator, List, Tuple
import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from plainserver import FileServer, ServerConfig
from plainserver.core import Connection
from plainserver.handlers import ConnectionHandler


INDEX_BODY = b"<h1>Hello world</h1>"  # 20 bytes

ERROR_CODES = (400, 403, 404, 500, 501)


def error_page_body(code: int) -> bytes:
    return f"<html><body>error page {code}</body></html>".encode()


@pytest.fixture
def doc_root(tmp_path: Path) -> Path:
    """
    A document root with an index, the error pages and a few extra files:

        index.html          20 bytes
        400.html ... 501.html
        style.css
        README              (no extension)
        data.bin2           (unknown extension)
        docs/index.html
        empty/              (no index)
    """
    root = tmp_path / "www"
    root.mkdir()

    (root / "index.html").write_bytes(INDEX_BODY)
    for code in ERROR_CODES:
        (root / f"{code}.html").write_bytes(error_page_body(code))

    (root / "style.css").write_bytes(b"body { color: red; }")
    (root / "README").write_bytes(b"plain")
    (root / "data.bin2").write_bytes(b"\x00\x01\x02")

    (root / "docs").mkdir()
    (root / "docs" / "index.html").write_bytes(b"<p>docs</p>")
    (root / "empty").mkdir()

    return root


@pytest.fixture
def config(doc_root: Path) -> ServerConfig:
    """Test configuration rooted at doc_root."""
    return ServerConfig(
        host="127.0.0.1",
        root_dir=str(doc_root),
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


# =============================================================================
# HANDLER HELPERS (no real listener: socketpair)
# =============================================================================

def exchange(handler: ConnectionHandler, request: bytes, timeout: float = 5.0) -> Tuple[bytes, Connection]:
    """
    Run `handler` on one end of a socketpair and play the client on the other.

    The Connection gets the handler's buffer size and request line limit,
    as the listener would give it. The client sends `request`, half-closes,
    then reads until EOF.

    Returns:
        (everything the server wrote, the server-side Connection)
    """
    client, server_side = socket.socketpair()
    conn = Connection(
        socket=server_side,
        address=("127.0.0.1", 50000),
        buffer_size=handler.config.buffer_size,
        max_request_line=handler.config.max_request_line,
    )

    worker = threading.Thread(target=handler.handle, args=(conn,), daemon=True)
    worker.start()

    client.settimeout(timeout)
    chunks = []
    try:
        if request:
            client.sendall(request)
        client.shutdown(socket.SHUT_WR)
        while True:
            chunk = client.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)
    finally:
        client.close()

    worker.join(timeout)
    return b"".join(chunks), conn


def split_response(raw: bytes) -> Tuple[str, List[str], bytes]:
    """Split a raw response into (status line, header lines, body)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("ascii").split("\r\n")
    return lines[0], lines[1:], body


@pytest.fixture
def handler(config: ServerConfig) -> ConnectionHandler:
    return ConnectionHandler(config)


# =============================================================================
# LIVE SERVER HELPER
# =============================================================================

class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # Not a test class despite the name

    def __init__(self, server: FileServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.config.port

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(self, raw: bytes, timeout: float = 5.0) -> bytes:
        """Send raw bytes over TCP and read until the server closes."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=timeout) as s:
            s.sendall(raw)
            chunks = []
            while True:
                chunk = s.recv(65536)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)


@pytest.fixture
def test_server(config: ServerConfig, free_port: int) -> Generator[TestServer, None, None]:
    """A FileServer serving doc_root on a free port."""
    server = FileServer(replace(config, port=free_port))

    test_srv = TestServer(server)
    test_srv.start()

    yield test_srv

    test_srv.stop()

"""
Unit tests for the client connection wrapper.
"""

import socket

import pytest

from plainserver.core.connection import Connection, ConnectionState
from plainserver.http.errors import BadRequestError


@pytest.fixture
def pair():
    """(client socket, server-side Connection) over a socketpair."""
    client, server_side = socket.socketpair()
    client.settimeout(5.0)
    conn = Connection(socket=server_side, address=("10.0.0.7", 40000), timeout=5.0)
    yield client, conn
    conn.close()
    client.close()


def feed(client: socket.socket, data: bytes):
    client.sendall(data)
    client.shutdown(socket.SHUT_WR)


class TestReadRequestLine:

    def test_crlf_line(self, pair):
        client, conn = pair
        feed(client, b"GET / HTTP/1.1\r\nHost: x\r\n\r\n")

        assert conn.read_request_line() == "GET / HTTP/1.1"

    def test_lf_line(self, pair):
        client, conn = pair
        feed(client, b"GET /a HTTP/1.0\n")

        assert conn.read_request_line() == "GET /a HTTP/1.0"

    def test_leading_blank_lines_skipped(self, pair):
        client, conn = pair
        feed(client, b"\r\n\n\r\nGET / HTTP/1.1\r\n")

        assert conn.read_request_line() == "GET / HTTP/1.1"

    def test_whitespace_only_line_is_returned(self, pair):
        client, conn = pair
        feed(client, b"   \r\nGET / HTTP/1.1\r\n")

        assert conn.read_request_line() == "   "

    def test_line_split_across_sends(self, pair):
        client, conn = pair
        client.sendall(b"GET /in")
        client.sendall(b"dex.html HT")
        feed(client, b"TP/1.1\r\n")

        assert conn.read_request_line() == "GET /index.html HTTP/1.1"

    def test_unterminated_line_at_eof(self, pair):
        client, conn = pair
        feed(client, b"GET / HTTP/1.1")

        assert conn.read_request_line() == "GET / HTTP/1.1"

    def test_nothing_sent(self, pair):
        client, conn = pair
        feed(client, b"")

        assert conn.read_request_line() is None

    def test_only_blank_lines(self, pair):
        client, conn = pair
        feed(client, b"\r\n\r\n")

        assert conn.read_request_line() is None

    def test_too_long(self):
        client, server_side = socket.socketpair()
        conn = Connection(socket=server_side, address=("x", 0), max_request_line=64)
        try:
            feed(client, b"GET /" + b"a" * 200 + b" HTTP/1.1\r\n")
            with pytest.raises(BadRequestError):
                conn.read_request_line()
        finally:
            conn.close()
            client.close()

    def test_invalid_utf8_is_replaced(self, pair):
        client, conn = pair
        feed(client, b"GET /\xff HTTP/1.1\r\n")

        assert conn.read_request_line() == "GET /\ufffd HTTP/1.1"

    def test_timeout_raises(self):
        client, server_side = socket.socketpair()
        conn = Connection(socket=server_side, address=("x", 0), timeout=0.1)
        try:
            with pytest.raises(OSError):
                conn.read_request_line()
        finally:
            conn.close()
            client.close()


class TestSendAndClose:

    def test_send_counts_bytes(self, pair):
        client, conn = pair

        assert conn.send(b"hello") is True
        assert conn.send(b" world") is True
        assert conn.bytes_sent == 11
        assert client.recv(100) == b"hello world"

    def test_send_to_closed_peer(self, pair):
        client, conn = pair
        client.close()

        # The first send may still be buffered; keep going until the reset
        results = [conn.send(b"x" * 65536) for _ in range(50)]

        assert results[-1] is False

    def test_close_is_idempotent(self, pair):
        client, conn = pair
        feed(client, b"")

        conn.close()
        conn.close()

        assert conn.state == ConnectionState.CLOSED
        assert conn.is_closed

    def test_context_manager_closes(self):
        client, server_side = socket.socketpair()
        client.settimeout(5.0)
        try:
            with Connection(socket=server_side, address=("x", 0)) as conn:
                conn.send(b"bye")

            assert conn.state == ConnectionState.CLOSED
            assert client.recv(10) == b"bye"
            assert client.recv(10) == b""
        finally:
            client.close()

    def test_client_ip(self, pair):
        _, conn = pair
        assert conn.client_ip == "10.0.0.7"
        assert len(conn.id) == 8
        assert conn.state == ConnectionState.AWAIT_REQUEST_LINE

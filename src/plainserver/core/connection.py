"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

This module wraps one accepted client socket with the small API the file
server needs: read ONE request line, send bytes, close properly.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

TCP does NOT preserve message boundaries. The request line

    GET /index.html HTTP/1.1\r\n

might arrive in one recv() or in several:

    First recv():  "GET /ind"
    Second recv(): "ex.html HTTP/1.1\r\nHost: loc"
    Third recv():  "alhost\r\n\r\n"

So we buffer received data and look for the line break. Whatever comes
after the request line (headers, a body) is never consumed: this server
reads exactly one line per connection.

=============================================================================
ONE REQUEST PER CONNECTION
=============================================================================

    ┌─────────────────────────────────────────────────────────────────┐
    │                                                                  │
    │   TCP Connect → read request line → send response → TCP Close   │
    │                                                                  │
    │   Every response carries "Connection: close". There is no       │
    │   keep-alive, so each connection is handled exactly once.        │
    │                                                                  │
    └─────────────────────────────────────────────────────────────────┘

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    AWAIT_REQUEST_LINE ──► PARSED ──► RESOLVED ──► RESPONSE_BUILT ──► SENT
            │                 │           │               │              │
            │                 └───────────┴───────┬───────┘              │
            │                                     ▼                      │
            │                                   ERROR                    │
            │                                     │                      │
            └─────────────────────────────────────┴──────────► CLOSED ◄──┘

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid

from ..http.errors import BadRequestError


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """
    Connection lifecycle states.

    The handler moves the connection through these states; they show up
    in debug logs and let tests check how a connection ended.
    """
    AWAIT_REQUEST_LINE = "await_request_line"  # Accepted, reading the request line
    PARSED = "parsed"                  # Request line validated
    RESOLVED = "resolved"              # Requested file found and readable
    RESPONSE_BUILT = "response_built"  # Response ready, nothing sent yet
    SENT = "sent"                      # Response fully written
    ERROR = "error"                    # Answering (or giving up) with an error
    CLOSED = "closed"                  # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Connection Responsibilities                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  1. BUFFERED LINE READING                                            │
    │     └── Accumulate recv() chunks until a line break shows up         │
    │     └── Skip blank lines in front of the request line                │
    │     └── Refuse lines longer than max_request_line                    │
    │                                                                      │
    │  2. SENDING                                                          │
    │     └── sendall() so partial sends never truncate a response         │
    │     └── Count bytes_sent: tells the handler whether an error        │
    │         response can still be sent                                   │
    │                                                                      │
    │  3. GRACEFUL CLOSE                                                   │
    │     └── Proper TCP shutdown sequence                                 │
    │     └── Drain the headers we never read                              │
    │     └── Don't leak file descriptors                                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Unique connection identifier (for logging).
        state: Current connection state.
        created_at: Timestamp when connection was accepted.
        bytes_sent: Number of bytes written to the client so far.
    """

    # Required parameters
    socket: socket.socket
    address: tuple

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.AWAIT_REQUEST_LINE
    created_at: float = field(default_factory=time.time)
    bytes_sent: int = 0

    # Configuration (passed from ServerConfig)
    buffer_size: int = 8192
    timeout: Optional[float] = None
    max_request_line: int = 8192

    # Internal state (not shown in repr for cleaner logs)
    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        """Configure the socket: blocking, with the optional timeout."""
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    # =========================================================================
    # PROPERTIES: Convenient accessors
    # =========================================================================

    @property
    def client_ip(self) -> str:
        """Get the client IP address ("-" when unknown)."""
        if isinstance(self.address, tuple) and self.address:
            return str(self.address[0])
        return "-"

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # READING: Get the request line from the socket
    # =========================================================================

    def read_request_line(self) -> Optional[str]:
        """
        Read lines until a non-empty one arrives and return it.

        ┌─────────────────────────────────────────────────────────────────┐
        │                 read_request_line() Flow                         │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   while True:                                                    │
        │       line break in buffer?                                      │
        │           yes → pop the line, strip \r                           │
        │                 empty?     → skip it, loop                       │
        │                 non-empty? → return it                           │
        │       buffer > max_request_line? → BadRequestError               │
        │       recv() → buffer                                            │
        │       peer closed? → return the unterminated rest, or None       │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘

        Bytes after the returned line stay unread.

        Returns:
            The request line without its line ending, or None if the peer
            closed the connection before sending one.

        Raises:
            BadRequestError: If the line exceeds max_request_line bytes.
            OSError: If the socket fails or times out.
        """
        self.state = ConnectionState.AWAIT_REQUEST_LINE

        while True:
            newline = self._buffer.find(b"\n")
            if newline >= 0:
                raw_line = self._buffer[:newline].rstrip(b"\r")
                self._buffer = self._buffer[newline + 1:]

                if len(raw_line) > self.max_request_line:
                    raise BadRequestError(
                        f"Request line too long: {len(raw_line)} bytes"
                    )
                if raw_line:
                    return self._decode(raw_line)
                continue  # Blank line in front of the request line

            # ─────────────────────────────────────────────────────────────
            # Safety check: don't let buffer grow forever
            # ─────────────────────────────────────────────────────────────
            if len(self._buffer) > self.max_request_line:
                raise BadRequestError(
                    f"Request line too long: more than {self.max_request_line} bytes"
                )

            chunk = self._recv()
            if not chunk:
                # Peer closed: a last line without a line break still counts
                raw_line, self._buffer = self._buffer.rstrip(b"\r"), b""
                if raw_line:
                    return self._decode(raw_line)
                return None

            self._buffer += chunk

    def _recv(self) -> bytes:
        """
        Receive data from socket with error handling.

        Returns:
            Received bytes, or empty bytes if connection closed.
        """
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            # Client disconnected abruptly
            return b""

    @staticmethod
    def _decode(raw_line: bytes) -> str:
        # The request line should be ASCII; never fail on garbage
        return raw_line.decode("utf-8", errors="replace")

    # =========================================================================
    # WRITING: Send response data to the client
    # =========================================================================

    def send(self, data: bytes) -> bool:
        """
        Send data to the client.

        Uses sendall() to ensure ALL data is sent. Regular send() might
        only send part of the data if the buffer is full.

        Args:
            data: Bytes to send.

        Returns:
            True if send succeeded, False if connection lost.
        """
        try:
            self.socket.sendall(data)
        except OSError as e:
            # Client disconnected (reset, broken pipe, timeout)
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

        self.bytes_sent += len(data)
        return True

    # =========================================================================
    # CLOSING: Properly terminate the connection
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): Tell client we're done sending (FIN)
        2. Drain: read and discard what the client sent after the request
           line; closing with unread data makes the kernel send RST, which
           can destroy the response before the client reads it
        3. close(): Release the file descriptor

        Never raises. Failures are logged.
        """
        if self.state == ConnectionState.CLOSED:
            return  # Already closed

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError as e:
            logger.debug(f"[{self.id}] Shutdown failed: {e}")  # Peer already gone

        try:
            self.socket.settimeout(0.5)  # Quick timeout
            while self.socket.recv(1024):
                pass  # Discard any remaining data
        except OSError:
            pass  # Timeout or reset, we're closing anyway

        try:
            self.socket.close()
        except OSError as e:
            logger.warning(f"[{self.id}] Close failed: {e}")

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.bytes_sent} bytes sent")

    # =========================================================================
    # CONTEXT MANAGER: For use with 'with' statement
    # =========================================================================

    def __enter__(self):
        """
        Context manager entry.

            with conn:
                line = conn.read_request_line()
                conn.send(response)
            # Connection automatically closed here
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure connection is closed."""
        self.close()
        return False  # Don't suppress exceptions

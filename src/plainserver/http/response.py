"""
=============================================================================
RESPONSE MODEL AND BUILDER
=============================================================================

Builds the one response a connection ever gets, and streams it.

=============================================================================
RESPONSE ANATOMY
=============================================================================

Every response, success or error, has exactly this shape:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │  HTTP/1.1 200 OK\r\n               ← status line                    │
    │  Connection: close\r\n             ← always: one request per conn   │
    │  Content-Type: text/html\r\n       ← from the file extension        │
    │  Content-Length: 20\r\n            ← exact byte count of the body   │
    │  \r\n                              ← end of headers                 │
    │  <html>...</html>                  ← raw file bytes                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The order of the header lines and the presence of "Connection: close" are
fixed. No other headers (Date, Server, ...) are ever emitted.

=============================================================================
STREAMING, NOT BUFFERING
=============================================================================

A Response holds a REFERENCE to its body file, not the bytes. write_to()
opens the file, sends the header block, then copies the file to the
socket in chunks:

    open(file) ──► send(header) ──► read/send chunk ──► ... ──► close(file)
        │
        └── a failure here happens before ANY byte hits the wire, so the
            caller can still answer with an error response instead

Content-Length is taken when the file is resolved. We never send more
than that many body bytes; if the file shrank in the meantime we log it
and report the write as failed.

=============================================================================
"""

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Mapping, Optional, Union

from .status_codes import StatusOutcome
from .mime_types import MIME_TYPES, DEFAULT_MIME_TYPE, get_mime_type

if TYPE_CHECKING:
    from ..core.connection import Connection
    from ..handlers.static import ResolvedFile


logger = logging.getLogger(__name__)


CRLF = "\r\n"

DEFAULT_CHUNK_SIZE = 8192

# Self-contained 404 page: must work even when the root directory is gone
NOT_FOUND_HTML = (
    "<html>"
    "<head><title>Error</title></head>"
    "<body>"
    "<h2>Error: 404 Not Found</h2>"
    "<p>The resource that you requested does not exist on this server.</p>"
    "</body>"
    "</html>"
)


@dataclass
class Response:
    """
    A response waiting to be written to a connection.

    The body is either a file on disk (`file`) or a small in-memory
    constant (`body`). Use ResponseBuilder rather than filling the fields
    by hand; the builder keeps content_length in sync with the body.

    Attributes:
        outcome: Status to report
        content_type: Value of the Content-Type header
        content_length: Exact number of body bytes that will be streamed
        file: Body file, if the body comes from disk
        body: Body bytes, if the body is an in-memory constant
    """

    outcome: StatusOutcome = StatusOutcome.OK
    content_type: str = DEFAULT_MIME_TYPE
    content_length: int = 0
    file: Optional[Path] = None
    body: Optional[bytes] = None

    @property
    def status_line(self) -> str:
        return self.outcome.status_line

    def header_block(self) -> bytes:
        """
        Serialize the status line and headers.

        =====================================================================
        SERIALIZATION FORMAT
        =====================================================================

            HTTP/1.1 404 Not Found\r\n
            Connection: close\r\n
            Content-Type: text/html\r\n
            Content-Length: 145\r\n
            \r\n

        =====================================================================
        """
        lines = [
            self.status_line,
            "Connection: close",
            f"Content-Type: {self.content_type}",
            f"Content-Length: {self.content_length}",
            "",  # Empty line separates headers from body
        ]
        return (CRLF.join(lines) + CRLF).encode("ascii")

    def open_body(self) -> BinaryIO:
        """
        Open the body for reading.

        Returns a binary stream to be used in a `with` block. For file
        bodies this is where permission or missing-file errors surface.
        """
        if self.file is not None:
            return open(self.file, "rb")
        return io.BytesIO(self.body or b"")

    def write_to(
        self,
        conn: "Connection",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> bool:
        """
        Write the header block followed by the body.

        The body is opened BEFORE anything is sent, so an OSError raised by
        this method means the connection has not seen a single byte of
        this response.

        Args:
            conn: Connection to write to.
            chunk_size: Bytes read from the body per send.

        Returns:
            True if the whole response was sent, False if the peer went
            away or the body ended early.

        Raises:
            OSError: If the body cannot be opened.
        """
        with self.open_body() as stream:
            if not conn.send(self.header_block()):
                return False

            remaining = self.content_length
            while remaining > 0:
                chunk = stream.read(min(chunk_size, remaining))
                if not chunk:
                    logger.error(
                        f"Body of {self.file or 'inline response'} ended "
                        f"{remaining} bytes short of Content-Length "
                        f"{self.content_length}"
                    )
                    return False
                if not conn.send(chunk):
                    return False
                remaining -= len(chunk)

        return True


class ResponseBuilder:
    """
    Fluent builder for Response objects.

    Each method returns `self`, so a response reads top to bottom:

        response = (ResponseBuilder()
            .status(StatusOutcome.OK)
            .content_type("text/html")
            .file(resolved)
            .build())

    file() and body() are mutually exclusive; whichever is called last
    wins, and it sets Content-Length to match.
    """

    def __init__(self):
        self._outcome = StatusOutcome.OK
        self._content_type = DEFAULT_MIME_TYPE
        self._content_length = 0
        self._file: Optional[Path] = None
        self._body: Optional[bytes] = None

    def status(self, outcome: StatusOutcome) -> "ResponseBuilder":
        self._outcome = outcome
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        self._content_type = content_type
        return self

    def file(self, resolved: "ResolvedFile") -> "ResponseBuilder":
        """
        Use a resolved file as the body.

        Content-Length becomes the size recorded at resolution time.
        """
        self._file = resolved.path
        self._body = None
        self._content_length = resolved.size
        return self

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Use an in-memory body (strings are encoded as UTF-8)."""
        if isinstance(body, str):
            body = body.encode("utf-8")
        self._body = body
        self._file = None
        self._content_length = len(body)
        return self

    def build(self) -> Response:
        return Response(
            outcome=self._outcome,
            content_type=self._content_type,
            content_length=self._content_length,
            file=self._file,
            body=self._body,
        )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def file_response(
    resolved: "ResolvedFile",
    table: Mapping[str, str] = MIME_TYPES,
) -> Response:
    """
    Create a 200 OK response streaming a resolved file.

    The Content-Type is derived from the file's name.
    """
    return (ResponseBuilder()
        .status(StatusOutcome.OK)
        .content_type(get_mime_type(resolved.name, table))
        .file(resolved)
        .build())


def error_page_response(
    outcome: StatusOutcome,
    resolved: "ResolvedFile",
    table: Mapping[str, str] = MIME_TYPES,
) -> Response:
    """Create an error response whose body is an error page on disk."""
    return (ResponseBuilder()
        .status(outcome)
        .content_type(get_mime_type(resolved.name, table))
        .file(resolved)
        .build())


def not_found() -> Response:
    """
    Create the 404 Not Found response.

    Unlike the other error responses this one never touches the disk,
    so it still works when the root directory is missing or empty.
    """
    return (ResponseBuilder()
        .status(StatusOutcome.NOT_FOUND)
        .content_type("text/html")
        .body(NOT_FOUND_HTML)
        .build())


def error_page_name(outcome: StatusOutcome) -> str:
    """
    Requested path of the error page for an outcome, e.g. '/403.html'.

    Resolved against the root directory like any other request.
    """
    return f"/{outcome.code}.html"

"""
=============================================================================
CONNECTION HANDLER
=============================================================================

Serves exactly one request on one accepted connection, then closes it.

=============================================================================
REQUEST FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   read_request_line()   nothing / socket error → close, no reply    │
    │          │                                                           │
    │          ▼                                                           │
    │   RequestParser.parse() UnsupportedMethodError → 501                 │
    │          │              BadRequestError        → 400                 │
    │          ▼                                                           │
    │   PathResolver.resolve() NotFoundError         → 404 (inline page)   │
    │          │               ForbiddenError        → 403                 │
    │          ▼               anything else         → 500                 │
    │   file_response()                                                    │
    │          │                                                           │
    │          ▼                                                           │
    │   Response.write_to()   fails before a byte is sent → 403/404/500    │
    │          │              fails after                  → log, close    │
    │          ▼                                                           │
    │   close()               always, via `with conn`                      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Every path writes AT MOST one response. Nothing is retried, and nothing
raised while serving a connection escapes handle().

=============================================================================
ERROR PAGES
=============================================================================

404 is answered with an inline page so it works even when the root
directory is gone. 400, 403, 500 and 501 are answered with
<root>/<code>.html, resolved like any other request. If that page is
missing or unreadable the failure is logged and the connection is closed
without a response.

=============================================================================
"""

import time
import logging
from dataclasses import dataclass
from typing import Optional

from ..config import ServerConfig
from ..core.connection import Connection, ConnectionState
from ..http.errors import FileServerError
from ..http.request import RequestParser
from ..http.response import (
    Response, file_response, error_page_response, error_page_name, not_found,
)
from ..http.status_codes import StatusOutcome
from .static import PathResolver


logger = logging.getLogger(__name__)

# One line per response written, kept apart so it can be routed separately
access_logger = logging.getLogger("plainserver.access")


@dataclass
class AccessLogEntry:
    """
    One access log line.

    Format (Apache common log, plus the time spent on the connection):

        127.0.0.1 - - [17/Oct/2026:10:00:00 +0000] "GET / HTTP/1.1" 200 20 1.42ms
    """

    client_ip: str
    request_line: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_text(self) -> str:
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.request_line}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class ConnectionHandler:
    """
    Turns one connection into one response.

    Stateless between calls: a single instance is shared by every worker
    thread, so everything about the current request lives in locals.

    Usage:
        handler = ConnectionHandler(config)
        handler.handle(conn)   # Returns once conn is closed
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self._parser = RequestParser()
        self._resolver = PathResolver(config.root_dir, config.default_page)

    def handle(self, conn: Connection) -> None:
        """
        Serve the connection and close it.

        Never raises.
        """
        started = time.time()

        with conn:
            # ─────────────────────────────────────────────────────────────
            # READ THE REQUEST LINE
            # ─────────────────────────────────────────────────────────────
            try:
                line = conn.read_request_line()
            except FileServerError as e:
                logger.info(f"[{conn.id}] {e.message}")
                self._send_error(conn, e.outcome, "-", started)
                return
            except OSError as e:
                logger.info(f"[{conn.id}] Could not read the request line: {e}")
                conn.state = ConnectionState.ERROR
                return

            if line is None:
                logger.debug(f"[{conn.id}] Client closed before sending a request")
                conn.state = ConnectionState.ERROR
                return

            # ─────────────────────────────────────────────────────────────
            # PARSE, RESOLVE, BUILD
            # ─────────────────────────────────────────────────────────────
            try:
                response = self._build_response(conn, line)
            except FileServerError as e:
                logger.info(f"[{conn.id}] {e.outcome.code} for {line!r}: {e.message}")
                self._send_error(conn, e.outcome, line, started)
                return
            except Exception as e:
                logger.exception(f"[{conn.id}] Unexpected error serving {line!r}: {e}")
                self._send_error(conn, StatusOutcome.INTERNAL_ERROR, line, started)
                return

            # ─────────────────────────────────────────────────────────────
            # SEND
            # ─────────────────────────────────────────────────────────────
            try:
                sent = response.write_to(conn, self.config.buffer_size)
            except OSError as e:
                if conn.bytes_sent:
                    logger.error(f"[{conn.id}] Response aborted after {conn.bytes_sent} bytes: {e}")
                    conn.state = ConnectionState.ERROR
                    return
                outcome = outcome_for_os_error(e)
                logger.warning(f"[{conn.id}] Could not open {response.file}: {e}")
                self._send_error(conn, outcome, line, started)
                return
            except Exception as e:
                if conn.bytes_sent:
                    logger.exception(f"[{conn.id}] Response aborted after {conn.bytes_sent} bytes: {e}")
                    conn.state = ConnectionState.ERROR
                    return
                logger.exception(f"[{conn.id}] Unexpected error sending {line!r}: {e}")
                self._send_error(conn, StatusOutcome.INTERNAL_ERROR, line, started)
                return

            self._finish(conn, response, sent, line, started)

    def _build_response(self, conn: Connection, line: str) -> Response:
        request = self._parser.parse(line)
        conn.state = ConnectionState.PARSED

        resolved = self._resolver.resolve(request.path)
        conn.state = ConnectionState.RESOLVED
        logger.debug(f"[{conn.id}] {request.path} → {resolved.path}")

        response = file_response(resolved, self.config.mime_types)
        conn.state = ConnectionState.RESPONSE_BUILT
        return response

    def _error_response(self, outcome: StatusOutcome) -> Response:
        """
        Build the canned response for an error outcome.

        Raises:
            FileServerError: If the error page cannot be resolved.
        """
        if outcome == StatusOutcome.NOT_FOUND:
            return not_found()

        resolved = self._resolver.resolve(error_page_name(outcome))
        return error_page_response(outcome, resolved, self.config.mime_types)

    def _send_error(
        self,
        conn: Connection,
        outcome: StatusOutcome,
        line: str,
        started: float,
    ) -> None:
        """Answer with the error page for `outcome`, or with nothing at all."""
        conn.state = ConnectionState.ERROR

        try:
            response = self._error_response(outcome)
            sent = response.write_to(conn, self.config.buffer_size)
        except (FileServerError, OSError) as e:
            logger.error(
                f"[{conn.id}] Error page for {outcome.code} unavailable, "
                f"closing without a response: {e}"
            )
            return
        except Exception as e:
            logger.exception(
                f"[{conn.id}] Error page for {outcome.code} failed, "
                f"closing after {conn.bytes_sent} bytes: {e}"
            )
            return

        self._finish(conn, response, sent, line, started, state=ConnectionState.ERROR)

    def _finish(
        self,
        conn: Connection,
        response: Response,
        sent: bool,
        line: str,
        started: float,
        state: Optional[ConnectionState] = None,
    ) -> None:
        if not sent:
            logger.warning(f"[{conn.id}] Response incomplete, {conn.bytes_sent} bytes sent")
            conn.state = ConnectionState.ERROR
            return

        conn.state = state or ConnectionState.SENT

        entry = AccessLogEntry(
            client_ip=conn.client_ip,
            request_line=line,
            status_code=response.outcome.code,
            content_length=response.content_length,
            duration_ms=(time.time() - started) * 1000,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )
        level = logging.WARNING if response.outcome.is_error else logging.INFO
        access_logger.log(level, entry.to_text())


def outcome_for_os_error(error: OSError) -> StatusOutcome:
    """
    Outcome for a failure to open a file that was resolved moments ago.

        PermissionError    → 403
        FileNotFoundError  → 404   (deleted in between)
        anything else      → 500
    """
    if isinstance(error, PermissionError):
        return StatusOutcome.FORBIDDEN
    if isinstance(error, FileNotFoundError):
        return StatusOutcome.NOT_FOUND
    return StatusOutcome.INTERNAL_ERROR

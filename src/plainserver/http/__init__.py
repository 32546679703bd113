"""
=============================================================================
HTTP PROTOCOL COMPONENTS
=============================================================================

The small slice of HTTP/1.x this server speaks:

    request.py       "GET /path HTTP/1.1" → Request
    response.py      status line + 3 headers + body, streamed
    status_codes.py  the six outcomes the server can report
    errors.py        exceptions carrying their outcome
    mime_types.py    file extension → Content-Type

=============================================================================
"""

from .request import Request, RequestParser, parse_request_line
from .response import (
    Response,
    ResponseBuilder,
    file_response,
    error_page_response,
    not_found,
)
from .errors import (
    FileServerError,
    BadRequestError,
    UnsupportedMethodError,
    NotFoundError,
    ForbiddenError,
)
from .status_codes import StatusOutcome
from .mime_types import get_mime_type, DEFAULT_MIME_TYPE

__all__ = [
    # Request parsing
    "Request",
    "RequestParser",
    "parse_request_line",

    # Response building
    "Response",
    "ResponseBuilder",
    "file_response",
    "error_page_response",
    "not_found",

    # Errors
    "FileServerError",
    "BadRequestError",
    "UnsupportedMethodError",
    "NotFoundError",
    "ForbiddenError",

    # Status
    "StatusOutcome",

    # MIME types
    "get_mime_type",
    "DEFAULT_MIME_TYPE",
]

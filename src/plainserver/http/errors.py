"""
Error taxonomy.

Each failure the server knows how to report is an exception that carries
the outcome to answer with. The connection handler catches them at the
point of detection and turns them into the matching canned response:

    BadRequestError         → 400 Bad Request
    UnsupportedMethodError  → 501 Not Implemented
    NotFoundError           → 404 Not Found
    ForbiddenError          → 403 Forbidden

Anything else that escapes is reported as 500 Internal Server Error.
"""

from .status_codes import StatusOutcome


class FileServerError(Exception):
    """
    Base class for failures that map to a known outcome.

    Custom exceptions carrying the status to return keep the handler free
    of isinstance() ladders: it only needs `exc.outcome`.
    """

    outcome = StatusOutcome.INTERNAL_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(FileServerError):
    """Malformed request line or unsupported protocol version."""

    outcome = StatusOutcome.BAD_REQUEST


class UnsupportedMethodError(FileServerError):
    """Request method other than the one we serve."""

    outcome = StatusOutcome.NOT_IMPLEMENTED


class NotFoundError(FileServerError):
    """Nothing exists at the resolved path."""

    outcome = StatusOutcome.NOT_FOUND


class ForbiddenError(FileServerError):
    """The resolved path exists but may not be read."""

    outcome = StatusOutcome.FORBIDDEN

"""
=============================================================================
STATUS CATALOG
=============================================================================

The server can only ever answer with one of six outcomes. They live in a
closed enumeration so that the outcome ↔ code ↔ status line mapping is
total and testable.

    ┌────────┬──────────────────────┬──────────────────────────────────────┐
    │  Code  │ Outcome              │ Trigger                              │
    ├────────┼──────────────────────┼──────────────────────────────────────┤
    │  200   │ OK                   │ File found and streamed              │
    │  400   │ BAD_REQUEST          │ Malformed request line / version     │
    │  403   │ FORBIDDEN            │ File exists but cannot be read       │
    │  404   │ NOT_FOUND            │ Nothing at the requested path        │
    │  500   │ INTERNAL_ERROR       │ Anything we did not anticipate       │
    │  501   │ NOT_IMPLEMENTED      │ Method other than GET                │
    └────────┴──────────────────────┴──────────────────────────────────────┘

=============================================================================
NEVER CRASH THE ERROR PATH
=============================================================================

outcome_for_code() is used while an error is already being reported.
It must not raise, so unknown codes fall back to INTERNAL_ERROR.

=============================================================================
"""

from enum import IntEnum


# Every status line we emit uses this version, whatever the client sent
PROTOCOL_VERSION = "HTTP/1.1"


class StatusOutcome(IntEnum):
    """
    Outcomes the server can report.

    This enum extends IntEnum, so outcomes compare equal to their codes:

        >>> StatusOutcome.NOT_FOUND == 404
        True
        >>> StatusOutcome.NOT_FOUND.status_line
        'HTTP/1.1 404 Not Found'
    """

    OK = 200
    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404
    INTERNAL_ERROR = 500
    NOT_IMPLEMENTED = 501

    @property
    def code(self) -> int:
        """Numeric status code."""
        return int(self)

    @property
    def phrase(self) -> str:
        """
        Reason phrase for this outcome.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      │
                      │      └── Reason phrase
                      └───────── Status code
        """
        return _STATUS_PHRASES[self]

    @property
    def status_line(self) -> str:
        """Canonical first line of a response, without the line ending."""
        return f"{PROTOCOL_VERSION} {self.code} {self.phrase}"

    @property
    def is_error(self) -> bool:
        return self.code >= 400


_STATUS_PHRASES = {
    StatusOutcome.OK: "OK",
    StatusOutcome.BAD_REQUEST: "Bad Request",
    StatusOutcome.FORBIDDEN: "Forbidden",
    StatusOutcome.NOT_FOUND: "Not Found",
    StatusOutcome.INTERNAL_ERROR: "Internal Server Error",
    StatusOutcome.NOT_IMPLEMENTED: "Not Implemented",
}


# =============================================================================
# PUBLIC FUNCTIONS
# =============================================================================

def status_line(outcome: StatusOutcome) -> str:
    """Return the canonical status line, e.g. 'HTTP/1.1 200 OK'."""
    return outcome.status_line


def code_for(outcome: StatusOutcome) -> int:
    """Return the numeric code of an outcome."""
    return outcome.code


def outcome_for_code(code: int) -> StatusOutcome:
    """
    Look up the outcome for a numeric code.

    Unrecognized codes map to INTERNAL_ERROR instead of raising.

        >>> outcome_for_code(403)
        <StatusOutcome.FORBIDDEN: 403>
        >>> outcome_for_code(418)
        <StatusOutcome.INTERNAL_ERROR: 500>
    """
    try:
        return StatusOutcome(code)
    except ValueError:
        return StatusOutcome.INTERNAL_ERROR

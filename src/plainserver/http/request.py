"""
=============================================================================
REQUEST LINE PARSER
=============================================================================

Validates the first line a client sends and extracts the requested path.
Nothing past the request line is ever parsed: headers and bodies are
ignored by this server.

=============================================================================
REQUEST LINE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │    GET /docs/index.html HTTP/1.1\r\n                                 │
    │    ─┬─ ───────┬──────── ────┬───                                     │
    │     │         │             │                                        │
    │   Method    Path         Version                                     │
    │                                                                      │
    │   Method:  must be GET                  otherwise → 501             │
    │   Tokens:  exactly three                otherwise → 400             │
    │   Version: HTTP/1.1 or HTTP/1.0         otherwise → 400             │
    │   Path:    returned VERBATIM (no decoding, no normalisation)         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ORDER OF CHECKS
=============================================================================

The method is checked FIRST. A client sending "POST" gets 501 whatever
else is on the line, even if the line is also too short:

    "POST /index.html HTTP/1.1"   → 501 Not Implemented
    "DELETE"                      → 501 Not Implemented
    "GET HTTP/1.1"                → 400 Bad Request  (two tokens)
    "GET / HTTP/2.0"              → 400 Bad Request  (version)
    ""                            → 400 Bad Request  (no method at all)

Tokens are split on any run of whitespace, so tabs and doubled spaces
are tolerated.

=============================================================================
"""

from dataclasses import dataclass

from .errors import BadRequestError, UnsupportedMethodError


# =============================================================================
# PROTOCOL CONSTANTS
# =============================================================================

SUPPORTED_METHODS = frozenset({"GET"})

# Both versions are served identically
SUPPORTED_VERSIONS = ("HTTP/1.1", "HTTP/1.0")


@dataclass
class Request:
    """
    A validated request line.

    Lives only as long as one connection is being handled.

    Attributes:
        method: Request method (always "GET" once validated)
        path: Requested path, exactly as the client sent it
        version: Protocol version token
    """

    method: str
    path: str
    version: str

    @property
    def request_line(self) -> str:
        """Re-assembled request line, used in access logs."""
        return f"{self.method} {self.path} {self.version}"


class RequestParser:
    """
    Parses request lines into Request objects.

    ==========================================================================
    PARSER FLOW
    ==========================================================================

        "GET /a.html HTTP/1.1"
              │
              ▼
        ┌───────────────────────────────────────────────────────────────┐
        │  1. Split on whitespace                                       │
        │     │  No tokens?            → BadRequestError               │
        │     ▼                                                         │
        │  2. Method supported?        → UnsupportedMethodError        │
        │     ▼                                                         │
        │  3. Exactly 3 tokens?        → BadRequestError               │
        │     ▼                                                         │
        │  4. Version supported?       → BadRequestError               │
        │     ▼                                                         │
        │  5. Request(method, path, version)                            │
        └───────────────────────────────────────────────────────────────┘

    ==========================================================================
    """

    def __init__(
        self,
        methods: frozenset = SUPPORTED_METHODS,
        versions: tuple = SUPPORTED_VERSIONS,
    ):
        self.methods = methods
        self.versions = versions

    def parse(self, line: str) -> Request:
        """
        Parse one request line.

        Args:
            line: The request line, with or without its line ending.

        Returns:
            The validated Request.

        Raises:
            UnsupportedMethodError: If the method is not served.
            BadRequestError: If the line is empty, does not have exactly
                three tokens, or names an unsupported version.
        """
        tokens = line.split()

        if not tokens:
            raise BadRequestError("Empty request line")

        method = tokens[0]
        if method not in self.methods:
            raise UnsupportedMethodError(f"Unsupported method: {method}")

        if len(tokens) != 3:
            raise BadRequestError(
                f"Malformed request line: expected 3 tokens, got {len(tokens)}"
            )

        version = tokens[2]
        if version not in self.versions:
            raise BadRequestError(f"Unsupported protocol version: {version}")

        return Request(method=method, path=tokens[1], version=version)


_default_parser = RequestParser()


def parse_request_line(line: str) -> Request:
    """
    Convenience function to parse a request line with default settings.

    Example:
        >>> parse_request_line("GET /index.html HTTP/1.1").path
        '/index.html'
    """
    return _default_parser.parse(line)

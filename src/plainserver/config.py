"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized, immutable configuration for the file server.

=============================================================================
WHY A FROZEN DATACLASS?
=============================================================================

Configuration should be:
1. Centralized - One place to see all options
2. Typed - IDE autocomplete and error detection
3. Validated - Catch errors early
4. Immutable - Handed to the listener, the handler and the resolver,
               none of which may change it under the others' feet

Components receive the config explicitly; nothing reads module globals,
so tests can inject a temporary root directory and a free port.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m plainserver --port 3000 --root ./public         │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── PLAINSERVER_PORT=3000 python -m plainserver               │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from .http.mime_types import MIME_TYPES


# Pages shipped with the package: index.html plus the error pages
DEFAULT_ROOT_DIR = str(Path(__file__).parent / "static")

# Ports up to 1024 are reserved
MIN_PORT = 1025
MAX_PORT = 65535

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration for the file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    PROTOCOL LIMITS
    - max_request_line

    FILES
    - root_dir, default_page, mime_types

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only (development)
    - "0.0.0.0" - All network interfaces
    """

    port: int = 8080
    """
    The port number to listen on. Must be in 1025-65535.
    """

    backlog: int = 50
    """
    Maximum number of queued connections before new ones are refused.
    """

    buffer_size: int = 8192
    """
    Bytes per recv() call, and per chunk when streaming a file.
    """

    timeout: Optional[float] = None
    """
    Per-connection socket timeout in seconds.
    None = blocking: a client that never sends its request line keeps its
    worker thread forever.
    """

    # ─────────────────────────────────────────────────────────────────────
    # PROTOCOL LIMITS
    # ─────────────────────────────────────────────────────────────────────

    max_request_line: int = 8192
    """
    Longest request line accepted, in bytes. Longer lines get 400.
    """

    # ─────────────────────────────────────────────────────────────────────
    # FILES
    # ─────────────────────────────────────────────────────────────────────

    root_dir: str = DEFAULT_ROOT_DIR
    """
    Directory requested paths are appended to. Must hold index.html and
    the error pages 400.html, 403.html, 500.html and 501.html.
    """

    default_page: str = "index.html"
    """
    File served when the requested path is a directory.
    """

    mime_types: Mapping[str, str] = field(
        default_factory=lambda: MIME_TYPES, hash=False, repr=False
    )
    """
    Extension → MIME type table.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        PLAINSERVER_HOST       Bind address (default: 127.0.0.1)
        PLAINSERVER_PORT       Listen port (default: 8080)
        PLAINSERVER_ROOT       Root directory (default: bundled pages)
        PLAINSERVER_INDEX      Default page (default: index.html)
        PLAINSERVER_TIMEOUT    Socket timeout in seconds (default: none)
        PLAINSERVER_LOG_LEVEL  Logging level (default: INFO)

        =====================================================================
        """
        timeout = os.getenv("PLAINSERVER_TIMEOUT")
        return cls(
            host=os.getenv("PLAINSERVER_HOST", "127.0.0.1"),
            port=int(os.getenv("PLAINSERVER_PORT", "8080")),
            root_dir=os.getenv("PLAINSERVER_ROOT", DEFAULT_ROOT_DIR),
            default_page=os.getenv("PLAINSERVER_INDEX", "index.html"),
            timeout=float(timeout) if timeout else None,
            log_level=os.getenv("PLAINSERVER_LOG_LEVEL", "INFO"),
        )

    @property
    def log_level_value(self) -> int:
        """Numeric logging level for logging.basicConfig()."""
        return getattr(logging, self.log_level.upper(), logging.INFO)

    def validate(self) -> None:
        """
        Validate configuration values.

        Called when the server is constructed, so a bad port or root is
        reported at startup rather than on the first request.

        Raises:
            ValueError: Describing the first invalid value found.
        """
        if not MIN_PORT <= self.port <= MAX_PORT:
            raise ValueError(
                f"Invalid port: {self.port}. Must be {MIN_PORT}-{MAX_PORT}."
            )

        if not self.default_page or "/" in self.default_page:
            raise ValueError(
                f"default_page must be a plain file name, got {self.default_page!r}"
            )

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.max_request_line < 64:
            raise ValueError("max_request_line must be >= 64")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")

"""
=============================================================================
PLAINSERVER - A Minimal Static File Server Over Raw Sockets
=============================================================================

Serves files from one root directory over HTTP/1.x, GET only, one request
per connection.

=============================================================================
WHAT IT DOES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   client ──► "GET /docs HTTP/1.1" ──► <root>/docs/index.html        │
    │                                                                      │
    │   1. Accept a TCP connection (one thread per connection)            │
    │   2. Read the request line; ignore everything after it             │
    │   3. Map the path onto the root directory                          │
    │   4. Stream the file back with Content-Type / Content-Length       │
    │   5. Close the connection                                           │
    │                                                                      │
    │   Errors: 400, 403, 404, 500, 501 - each with its own page          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    plainserver/
    ├── __init__.py              # This file - package exports
    ├── __main__.py              # CLI entry point (python -m plainserver)
    ├── server.py                # FileServer: listener + handler threads
    ├── config.py                # ServerConfig dataclass
    ├── core/
    │   ├── socket_server.py     # Listening socket, accept loop, signals
    │   └── connection.py        # Client socket wrapper
    ├── http/
    │   ├── request.py           # Request line parsing
    │   ├── response.py          # Response building and streaming
    │   ├── errors.py            # Exceptions carrying their outcome
    │   ├── status_codes.py      # Outcome enum
    │   └── mime_types.py        # Extension → Content-Type
    ├── handlers/
    │   ├── static.py            # Requested path → file on disk
    │   └── connection_handler.py # One connection → one response
    └── static/                  # Default root: index + error pages

=============================================================================
QUICK START
=============================================================================

    from plainserver import FileServer, ServerConfig

    server = FileServer(ServerConfig(port=8080, root_dir="./public"))
    server.run()   # Ctrl+C to stop

Or from the shell:

    python -m plainserver --port 8080 --root ./public

=============================================================================
"""

__version__ = "1.0.0"

from .server import FileServer, create_server
from .config import ServerConfig

__all__ = ["FileServer", "create_server", "ServerConfig", "__version__"]

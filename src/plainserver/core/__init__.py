"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing, knowing nothing about files or HTTP status codes:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  • Creates, binds and listens on the TCP socket                     │
    │  • Runs the accept() loop                                            │
    │  • Stops on SIGINT/SIGTERM or shutdown()                            │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ Wraps each client socket
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  • Buffered reading of the request line                             │
    │  • sendall() based writing, byte counting                           │
    │  • Graceful close, usable as a context manager                      │
    └─────────────────────────────────────────────────────────────────────┘
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",     # Listening socket - accepts connections
    "Connection",       # Wrapper for client socket - handles I/O
    "ConnectionState",  # Enum for connection lifecycle states
]

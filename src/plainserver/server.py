"""
=============================================================================
FILE SERVER
=============================================================================

Ties the listener and the connection handler together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │   FileServer    │                          │
    │                        └────────┬────────┘                          │
    │                                 │                                    │
    │                ┌────────────────┴────────────────┐                  │
    │                ▼                                 ▼                  │
    │        ┌──────────────┐                 ┌──────────────────┐        │
    │        │ SocketServer │ ── Connection ─►│ ConnectionHandler│        │
    │        │  (accepting) │   new thread    │  (one request)   │        │
    │        └──────────────┘                 └──────────────────┘        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
CONCURRENCY
=============================================================================

Every accepted connection gets its own daemon thread, which runs the
handler and exits when the connection is closed. Handlers share nothing
mutable (the config is frozen, the handler keeps no per-request state),
so there are no locks.

There is no upper bound on the number of threads, and without a
configured timeout a client that never sends its request line keeps its
thread forever.

=============================================================================
"""

import logging
import threading
from dataclasses import replace
from typing import Optional

from .config import ServerConfig
from .core import SocketServer, Connection
from .handlers import ConnectionHandler


logger = logging.getLogger(__name__)


class FileServer:
    """
    Static file server: listen on a port, serve files from a root directory.

    Usage:
        server = FileServer(ServerConfig(port=8080, root_dir="/srv/www"))
        server.run()   # Blocks until Ctrl+C / SIGTERM / shutdown()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Uses the defaults if not provided.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()  # Fail-fast on invalid config

        self._socket_server = SocketServer(self.config)
        self._handler = ConnectionHandler(self.config)

    @property
    def address(self):
        """The (host, port) the server listens on."""
        return self._socket_server.address

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Start the server (blocking).

        Args:
            host: Override config host.
            port: Override config port.

        Raises:
            OSError: If the listening socket cannot be bound.
            ValueError: If an override makes the configuration invalid.
        """
        if host or port:
            self.config = replace(
                self.config,
                host=host or self.config.host,
                port=port or self.config.port,
            )
            self.config.validate()
            self._socket_server = SocketServer(self.config)
            self._handler = ConnectionHandler(self.config)

        self._setup_logging()
        logger.info(
            f"Serving {self.config.root_dir} on {self.config.host}:{self.config.port}"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            logger.info("Server stopped")

    def shutdown(self):
        """Stop accepting connections. In-flight connections finish on their own."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server is listening (used by tests)."""
        return self._socket_server.wait_until_ready(timeout)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = self.config.log_level_value

        # No-op if the application already configured the root logger
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("plainserver").setLevel(level)

    def _handle_connection(self, conn: Connection):
        """
        Hand a connection to its own thread.

        Called by SocketServer on the accepting thread for each client.
        """
        worker = threading.Thread(
            target=self._handler.handle,
            args=(conn,),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        worker.start()


def create_server(config: Optional[ServerConfig] = None) -> FileServer:
    """
    Create a file server.

    Example:
        server = create_server(ServerConfig(port=3000, root_dir="./public"))
        server.run()
    """
    return FileServer(config)


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# FileServer wires three pieces together:
#
# 1. ServerConfig: validated once, then shared read-only
# 2. SocketServer: accept loop, signals, bind errors
# 3. ConnectionHandler: one thread per connection, one response each
#
# Logging is configured here, on run(), never at import time.
# =============================================================================

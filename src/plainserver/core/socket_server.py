"""
=============================================================================
LISTENING SOCKET
=============================================================================

Owns the one listening TCP socket and hands every accepted client socket,
wrapped in a Connection, to a callback.

    ┌───────────────────────┐
    │   Listening Socket    │ ◄── Created once at startup
    │   (bound host:port)   │     Never sends/receives data
    └───────────┬───────────┘
                │ accept()
    ┌───────────┼───────────────────────┐
    ▼           ▼                       ▼
  Connection  Connection   ...        Connection
  (thread 1)  (thread 2)              (thread N)

Creating and binding the socket is the only step that can abort startup:
a port already in use is logged and re-raised to the caller. After that
the accept loop runs until shutdown() is called or a signal arrives.

=============================================================================
SHUTDOWN
=============================================================================

accept() is given a 1 second timeout so the loop can notice that
shutdown() was called:

    while running:
        try:
            accept()        # Blocks for 1 second max
        except timeout:
            continue        # Check running flag, loop again

SIGINT (Ctrl+C) and SIGTERM call shutdown(). Python only lets the main
thread install signal handlers, so a server started from any other thread
(tests do this) runs without them and is stopped by calling shutdown().

Connections already handed off are NOT waited for.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SocketServer Internals                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    start(callback)                                                   │
    │        ├──► _create_socket()   socket() + SO_REUSEADDR               │
    │        ├──► bind()             fails → log + raise                   │
    │        ├──► listen(backlog)                                          │
    │        ├──► _setup_signals()   main thread only                      │
    │        └──► _accept_loop()     blocks here                           │
    │                 └──► accept() → Connection → callback(conn)          │
    │                                                                      │
    │    shutdown()                  running = False                       │
    │    _cleanup()                  restore signals, close socket         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Server configuration (host, port, backlog, limits).

        The socket is created lazily in start().
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False

        # Set once the socket listens, cleared again by _cleanup()
        self._ready_event = threading.Event()

        # Restored on cleanup, in case we are embedded in a larger app
        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (IP, port), or the configured one before start()."""
        if self._socket is not None:
            try:
                return self._socket.getsockname()[:2]
            except OSError:
                pass  # Closed between the check and the call
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """Create the listening socket with its options set."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # SO_REUSEADDR: restart without waiting for TIME_WAIT to expire
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Lets the accept loop check the running flag once a second
        sock.settimeout(1.0)

        return sock

    def _setup_signals(self):
        """
        Install SIGTERM/SIGINT handlers that trigger a graceful shutdown.

        Only possible from the main thread; elsewhere this is a no-op.
        """
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, signal handlers not installed")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        """Restore original signal handlers."""
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and accept connections until shutdown().

        Args:
            connection_handler: Called with every accepted Connection, on
                the accepting thread. It must not block for long.

        Raises:
            OSError: If the socket cannot be bound (port in use, no
                permission, bad address).
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)

        self._running = True
        self._setup_signals()

        logger.info(f"Server listening on {self.config.host}:{self.config.port}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Accept clients until the running flag drops.

        Each accepted socket is wrapped with the configured buffer size,
        timeout and request line limit, then handed to the callback.
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue  # Check running flag, loop again
            except OSError as e:
                # Socket error - usually means we're shutting down
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                max_request_line=self.config.max_request_line,
            )

            connection_handler(conn)

    def shutdown(self):
        """
        Stop accepting connections.

        Safe to call from a signal handler, another thread, or more than
        once. The accept loop exits within about a second.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError as e:
                logger.warning(f"Closing the listening socket failed: {e}")
            self._socket = None

        self._ready_event.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the socket is listening.

        Returns:
            True once listening, False on timeout.
        """
        return self._ready_event.wait(timeout)

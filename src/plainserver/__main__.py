"""
=============================================================================
FILE SERVER CLI ENTRY POINT
=============================================================================

    # Serve the bundled pages on localhost:8080
    python -m plainserver

    # Serve a directory on another port
    python -m plainserver --port 3000 --root ./public

    # Listen on all interfaces, give up on silent clients after 10 s
    python -m plainserver --host 0.0.0.0 --timeout 10

Settings come from three places, highest priority first:

    1. Command-line flags
    2. PLAINSERVER_* environment variables (see ServerConfig.from_env)
    3. ServerConfig defaults

An invalid setting or a port that cannot be bound prints "Error: ..." to
stderr and exits with status 1.

=============================================================================
"""

import argparse
import sys
from dataclasses import replace
from typing import List, Optional

from . import __version__
from .server import FileServer
from .config import ServerConfig, LOG_LEVELS


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    """Build the argument parser, using `defaults` for every flag."""
    parser = argparse.ArgumentParser(
        prog="plainserver",
        description="Serve files from a directory over HTTP (GET only)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m plainserver                          # Bundled pages on :8080
  python -m plainserver --port 3000 --root ./www # Custom port and root
  python -m plainserver --host 0.0.0.0           # Listen on all interfaces
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on, 1025-65535 (default: {defaults.port})"
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=defaults.timeout,
        help="Per-connection socket timeout in seconds (default: none)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # FILE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--root", "-r",
        default=defaults.root_dir,
        help="Directory to serve (default: the bundled pages)"
    )

    parser.add_argument(
        "--index", "-i",
        default=defaults.default_page,
        help=f"Page served for directories (default: {defaults.default_page})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level})"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"plainserver {__version__}"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit status: 0 after a clean shutdown, 1 on a startup error.
    """
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid environment setting: {e}", file=sys.stderr)
        return 1

    args = build_parser(defaults).parse_args(argv)

    config = replace(
        defaults,
        host=args.host,
        port=args.port,
        timeout=args.timeout,
        root_dir=args.root,
        default_page=args.index,
        log_level=args.log_level,
    )

    try:
        server = FileServer(config)
        server.run()
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

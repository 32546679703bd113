"""
Request handling.

    PathResolver        maps a requested path onto the root directory
    ConnectionHandler   serves one connection: parse, resolve, respond
"""

from .static import PathResolver, ResolvedFile, resolve
from .connection_handler import ConnectionHandler, AccessLogEntry

__all__ = [
    "PathResolver",
    "ResolvedFile",
    "resolve",
    "ConnectionHandler",
    "AccessLogEntry",
]

"""
=============================================================================
PATH RESOLVER
=============================================================================

Maps a requested path to a concrete file under the root directory.

=============================================================================
RESOLUTION STEPS
=============================================================================

    Request: GET /docs HTTP/1.1        root = /srv/www

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │  1. CONCATENATE   root + path        → /srv/www/docs                │
    │                   (verbatim, no decoding)                            │
    │                                                                      │
    │  2. DIRECTORY?    yes → append default page                          │
    │                                      → /srv/www/docs/index.html     │
    │                                                                      │
    │  3. CONTAINED?    canonical path must stay under canonical root      │
    │                   no  → ForbiddenError (403)                         │
    │                                                                      │
    │  4. EXISTS?       no  → NotFoundError  (404)                         │
    │                                                                      │
    │  5. READABLE?     no  → ForbiddenError (403)                         │
    │                                                                      │
    │  6. ResolvedFile(path, size, name)                                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Only stat() and access() are called here. The file is opened later, when
the response is streamed.

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

Because the requested path is appended verbatim, a request such as

    GET /../../etc/passwd HTTP/1.1

produces /srv/www/../../etc/passwd. Step 3 resolves ".." segments and
symlinks and refuses anything that lands outside the root:

    full_path = Path(root + requested).resolve()
    full_path.relative_to(root.resolve())    # Raises if outside root!

The comparison is per path component, so /srv/wwwx/secret does not count
as being inside /srv/www. A symlink inside the root that points outside
of it is refused as well.

=============================================================================
"""

import os
import stat
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from ..http.errors import ForbiddenError, NotFoundError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedFile:
    """
    A file that existed and was readable when it was resolved.

    Owned by a single connection. Nothing stops another process from
    deleting or truncating the file afterwards; the streaming code copes
    with that.

    Attributes:
        path: Canonical path of the file
        size: Size in bytes at resolution time
        name: Display name (last component of the requested path)
    """

    path: Path
    size: int
    name: str


class PathResolver:
    """
    Resolves requested paths against one root directory.

    The root is NOT required to exist. A missing root simply makes every
    lookup fail with NotFoundError, which the handler answers with the
    self-contained 404 page.

    Usage:
        resolver = PathResolver("/srv/www", default_page="index.html")
        resolved = resolver.resolve("/")   # → /srv/www/index.html
    """

    def __init__(self, root_dir: Union[str, Path], default_page: str = "index.html"):
        """
        Args:
            root_dir: Directory that requested paths are appended to.
            default_page: File served when a directory is requested.
        """
        self.root_dir = str(root_dir)
        self.default_page = default_page

    def resolve(self, requested_path: str) -> ResolvedFile:
        """
        Resolve a requested path to a readable regular file.

        Args:
            requested_path: Path token from the request line, verbatim.

        Returns:
            The resolved file.

        Raises:
            NotFoundError: Nothing (or no regular file) at the path.
            ForbiddenError: Path escapes the root, or is not readable.
        """
        if "\x00" in requested_path:
            raise NotFoundError(f"Invalid path: {requested_path!r}")

        # ─────────────────────────────────────────────────────────────────
        # CONCATENATE, THEN SUBSTITUTE THE DEFAULT PAGE FOR DIRECTORIES
        # ─────────────────────────────────────────────────────────────────
        candidate = Path(self.root_dir + requested_path)
        try:
            if candidate.is_dir():
                candidate = candidate / self.default_page

            # ─────────────────────────────────────────────────────────────
            # SECURITY: CONTAINMENT CHECK
            # ─────────────────────────────────────────────────────────────
            full_path = candidate.resolve()
        except PermissionError:
            raise ForbiddenError(f"No access to the file: {requested_path}")
        except (OSError, RuntimeError) as e:
            # Name too long, symlink loop, ...
            raise NotFoundError(f"The given file cannot be found: {requested_path} ({e})")

        try:
            full_path.relative_to(Path(self.root_dir).resolve())
        except ValueError:
            logger.warning(f"Path traversal attempt: {requested_path}")
            raise ForbiddenError(f"Path escapes the root directory: {requested_path}")

        # ─────────────────────────────────────────────────────────────────
        # EXISTENCE AND PERMISSION PROBES
        # ─────────────────────────────────────────────────────────────────
        try:
            st = full_path.stat()
        except PermissionError:
            # A parent directory denies traversal
            raise ForbiddenError(f"No access to the file: {requested_path}")
        except OSError:
            raise NotFoundError(f"The given file cannot be found: {requested_path}")

        if not stat.S_ISREG(st.st_mode):
            raise NotFoundError(f"Not a regular file: {requested_path}")

        if not os.access(full_path, os.R_OK):
            raise ForbiddenError(f"No access to the file: {requested_path}")

        return ResolvedFile(path=full_path, size=st.st_size, name=candidate.name)


def resolve(
    requested_path: str,
    root: Union[str, Path],
    default_page: str = "index.html",
) -> ResolvedFile:
    """
    Resolve a requested path under `root`.

    Convenience wrapper around PathResolver for one-off lookups.

    Example:
        resolved = resolve("/", "/srv/www")
        resolved.path   # PosixPath('/srv/www/index.html')
    """
    return PathResolver(root, default_page).resolve(requested_path)

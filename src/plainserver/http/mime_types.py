"""
=============================================================================
MIME TYPE DETECTION
=============================================================================

Maps file names to the Content-Type value sent with a file.

=============================================================================
HOW THE LOOKUP WORKS
=============================================================================

The extension is everything after the LAST dot of the file name,
lower-cased, and it is looked up in a static table:

    ┌────────────────────────────────────────────────────────────────────┐
    │                    EXTENSION LOOKUP                                │
    ├────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │  index.html        → "html"   → text/html                          │
    │  LOGO.PNG          → "png"    → image/png                          │
    │  archive.tar.zip   → "zip"    → application/zip                    │
    │  README            → (none)   → x-application/x-unknown            │
    │  data.parquet      → "parquet"→ x-application/x-unknown            │
    │                                                                     │
    └────────────────────────────────────────────────────────────────────┘

=============================================================================
THE FALLBACK TYPE
=============================================================================

"x-application/x-unknown" is not a registered type. Browsers do not know
how to display it, so they offer to save the file instead. That is the
behaviour we want for anything we cannot name.

=============================================================================
"""

from pathlib import Path
from typing import Mapping, Union


# =============================================================================
# MIME TYPE DATABASE
# =============================================================================
#
# Keys are lowercase extensions WITHOUT the dot.
#
# =============================================================================

MIME_TYPES = {
    # -------------------------------------------------------------------------
    # TEXT TYPES
    # -------------------------------------------------------------------------
    "txt": "text/plain",
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",
    "js": "text/javascript",
    "java": "text/x-java",

    # -------------------------------------------------------------------------
    # IMAGE TYPES
    # -------------------------------------------------------------------------
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "ico": "image/x-icon",

    # -------------------------------------------------------------------------
    # JVM ARTIFACTS
    # -------------------------------------------------------------------------
    "class": "application/java-vm",
    "jar": "application/java-archive",

    # -------------------------------------------------------------------------
    # ARCHIVES AND MARKUP
    # -------------------------------------------------------------------------
    "zip": "application/zip",
    "xml": "application/xml",
    "xhtml": "application/xhtml+xml",
}

# Made-up type: clients treat it as "download me"
DEFAULT_MIME_TYPE = "x-application/x-unknown"


def get_extension(file_name: Union[str, Path]) -> str:
    """
    Return the lowercase text after the last dot, or "" if there is none.

    Only the final path component is inspected, so a dot in a directory
    name never leaks into the result.

        >>> get_extension("style.CSS")
        'css'
        >>> get_extension("docs.v2/README")
        ''
    """
    name = Path(file_name).name
    pos = name.rfind(".")
    if pos < 0:
        return ""
    return name[pos + 1:].lower()


def get_mime_type(
    file_name: Union[str, Path],
    table: Mapping[str, str] = MIME_TYPES,
) -> str:
    """
    Get the MIME type for a file based on its extension.

    Total over all inputs: never raises, unknown or missing extensions
    map to DEFAULT_MIME_TYPE.

    Args:
        file_name: File name or path
        table: Extension table to consult (injectable for tests/config)

    Returns:
        The MIME type string

    Examples:
        >>> get_mime_type("a.html")
        'text/html'

        >>> get_mime_type("a.png")
        'image/png'

        >>> get_mime_type("a.unknownext")
        'x-application/x-unknown'

        >>> get_mime_type("noext")
        'x-application/x-unknown'
    """
    return table.get(get_extension(file_name), DEFAULT_MIME_TYPE)

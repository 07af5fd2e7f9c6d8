"""
=============================================================================
CONTENT-TYPE GUESSING
=============================================================================

Maps a file name to the Content-Type sent with it.

    index.html  → text/html
    index.txt   → text/plain
    blob.xyz    → application/octet-stream   (unknown: treat as binary)

Only the extension is consulted; file contents are never sniffed.

=============================================================================
"""

from pathlib import Path
from typing import Dict, Optional, Tuple, Union


DEFAULT_MIME_TYPE = "application/octet-stream"

# (content type, extensions) grouped the way a docroot usually holds them
_KNOWN_TYPES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    # pages
    ("text/html", (".html", ".htm")),
    ("text/plain", (".txt", ".text", ".log")),
    ("text/markdown", (".md",)),
    ("text/css", (".css",)),
    ("text/javascript", (".js", ".mjs")),
    ("application/json", (".json",)),
    ("application/xml", (".xml",)),
    # media
    ("image/png", (".png",)),
    ("image/jpeg", (".jpg", ".jpeg")),
    ("image/gif", (".gif",)),
    ("image/svg+xml", (".svg",)),
    ("image/webp", (".webp",)),
    ("image/x-icon", (".ico",)),
    # downloads
    ("application/pdf", (".pdf",)),
    ("application/zip", (".zip",)),
    ("application/gzip", (".gz",)),
)

MIME_TYPES: Dict[str, str] = {
    extension: content_type
    for content_type, extensions in _KNOWN_TYPES
    for extension in extensions
}


def get_mime_type(path: Union[str, Path], default: Optional[str] = None) -> str:
    """
    Guess the Content-Type of a served file from its name.

    Examples:
        >>> get_mime_type("public/index.html")
        'text/html'

        >>> get_mime_type("INDEX.TXT")
        'text/plain'

        >>> get_mime_type("unknown.xyz")
        'application/octet-stream'
    """
    suffix = Path(path).suffix.lower()
    if suffix in MIME_TYPES:
        return MIME_TYPES[suffix]
    return default or DEFAULT_MIME_TYPE

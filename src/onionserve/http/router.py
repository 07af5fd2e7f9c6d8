"""
=============================================================================
ROUTE WHITELIST
=============================================================================

Maps a request path to a file under the document root. This is a closed
whitelist, NOT a general static-file server:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         ROUTE TABLE                                 │
    ├──────────────────┬──────────────────────────────────────────────────┤
    │  Path            │ Resolves to                                      │
    ├──────────────────┼──────────────────────────────────────────────────┤
    │  /               │ root/index.html if it is a file, else            │
    │                  │ root/index.txt  if it is a file, else no match   │
    │  /index.html     │ root/index.html   (no existence check)           │
    │  /index.txt      │ root/index.txt    (no existence check)           │
    │  anything else   │ no match → 404                                   │
    └──────────────────┴──────────────────────────────────────────────────┘

No part of the request path is ever joined onto the root. Only the
literal strings above are recognised, so "/../etc/passwd" and friends
simply fall through to 404.

The literal routes are not checked for existence here. A missing file
surfaces later as a read error in the handler, not as a 404.

=============================================================================
"""

from pathlib import Path
from typing import Dict, Optional, Sequence, Union


# Tried in order for "/"; first regular file wins
INDEX_CANDIDATES: Sequence[str] = ("index.html", "index.txt")

# Literal paths mapped straight to a file name under root
LITERAL_ROUTES: Dict[str, str] = {
    "/index.html": "index.html",
    "/index.txt": "index.txt",
}


class RouteResolver:
    """
    Resolve request paths against a fixed document root.

    The root is set once at construction and never changes, so resolving
    the same path against an unchanged directory always picks the same
    file (html before txt).

    Usage:
        routes = RouteResolver("public")
        routes.resolve("/")            # Path("public/index.html")
        routes.resolve("/robots.txt")  # None
    """

    def __init__(self, root: Union[str, Path]):
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, path: str) -> Optional[Path]:
        """
        Find the file for `path`.

        Returns:
            The file path, or None when the path is not routed.
        """
        if path == "/":
            for name in INDEX_CANDIDATES:
                candidate = self._root / name
                if candidate.is_file():
                    return candidate
            return None

        name = LITERAL_ROUTES.get(path)
        if name is None:
            return None
        return self._root / name


def resolve(path: str, root: Union[str, Path]) -> Optional[Path]:
    """Functional form of RouteResolver(root).resolve(path)."""
    return RouteResolver(root).resolve(path)

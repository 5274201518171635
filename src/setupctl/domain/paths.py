"""Path string normalization for user-supplied folder and file paths.

Paths arrive from a browser form or a terminal, typed by hand, so they carry
stray whitespace, Windows separators, trailing slashes and ``..`` segments.
Everything here is lexical: no function in this module touches the
filesystem.

INVARIANT: ``normalize(normalize(x)) == normalize(x)`` for every accepted *x*.
INVARIANT: An accepted path never contains a space.
"""

from __future__ import annotations

import posixpath

SPACE_ERROR = "The path cannot contain spaces."
EMPTY_ERROR = "The path cannot be empty."


class InvalidPathError(ValueError):
    """Raised when a path string is rejected during normalization."""


def normalize(raw: str) -> str:
    """Canonicalize *raw* into a forward-slash path.

    Trims whitespace, converts backslashes, and collapses ``.``/``..`` and
    duplicate separators.  Raises :class:`InvalidPathError` for empty input
    or when the result contains a space.
    """
    text = raw.strip().replace("\\", "/")
    if not text:
        raise InvalidPathError(EMPTY_ERROR)
    result = posixpath.normpath(text)
    if " " in result:
        raise InvalidPathError(SPACE_ERROR)
    return result


def normalize_folder(raw: str) -> str:
    """Normalize *raw* and render it with exactly one trailing slash.

    >>> normalize_folder("C:\\\\srv\\\\gta\\\\")
    'C:/srv/gta/'
    >>> normalize_folder("/")
    '/'
    """
    result = normalize(raw)
    if result.endswith("/"):
        return result
    return f"{result}/"


def join(base: str, *parts: str) -> str:
    """Join path segments and normalize the result (lexically)."""
    return normalize(posixpath.join(base, *parts))


def parent_folder(folder: str) -> str:
    """Return the lexical parent of *folder* in folder form."""
    return normalize_folder(posixpath.join(folder, ".."))


"""Path based file classification."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Dict

from .models import FileKind

_EXTENSION_KINDS: Dict[str, FileKind] = {
    ".html": FileKind.MARKUP,
    ".htm": FileKind.MARKUP,
    ".xhtml": FileKind.MARKUP,
    ".css": FileKind.STYLE,
    ".js": FileKind.SCRIPT,
    ".jsx": FileKind.SCRIPT,
    ".mjs": FileKind.SCRIPT,
    ".cjs": FileKind.SCRIPT,
    ".json": FileKind.DATA,
    ".md": FileKind.TEXT,
    ".markdown": FileKind.TEXT,
    ".txt": FileKind.TEXT,
}

MARKUP_EXTENSIONS = tuple(ext for ext, kind in _EXTENSION_KINDS.items() if kind is FileKind.MARKUP)


def classify(path: str) -> FileKind:
    """Return the file kind implied by ``path``'s extension."""
    name = PurePosixPath(path.replace("\\", "/").strip()).name
    suffix = PurePosixPath(name).suffix.lower()
    return _EXTENSION_KINDS.get(suffix, FileKind.OTHER)


def is_markup_path(path: str) -> bool:
    return classify(path) is FileKind.MARKUP


__all__ = ["MARKUP_EXTENSIONS", "classify", "is_markup_path"]

"""Helpers for local asset references inside generated markup."""

from __future__ import annotations

import posixpath
import re
from typing import List, Optional, Tuple

from .models import FileKind

_REMOTE_PREFIXES = (
    "http://",
    "https://",
    "//",
    "data:",
    "blob:",
    "mailto:",
    "tel:",
    "javascript:",
)

# Values may be unquoted, or JSON-escaped (src=\"app.js\") when scanning raw model text.
_ATTR_VALUE = r"(?:\\?[\"']([^\"'\\>]+)\\?[\"']|([^\s\"'\\>]+?)(?=\s|/?>|$))"
_SCRIPT_SRC = re.compile(r"<script\b[^>]*?\bsrc\s*=\s*" + _ATTR_VALUE, re.IGNORECASE)
_LINK_TAG = re.compile(r"<link\b[^>]*>", re.IGNORECASE)
_HREF = re.compile(r"\bhref\s*=\s*" + _ATTR_VALUE, re.IGNORECASE)
_STYLESHEET_REL = re.compile(r"\brel\s*=\s*\\?[\"']?stylesheet", re.IGNORECASE)

_SCRIPT_ELEMENT = re.compile(
    r"<script\b([^>]*?)\bsrc\s*=\s*(?:[\"']([^\"']+)[\"']|([^\s\"'>]+?)(?=\s|/?>))([^>]*)>\s*</script\s*>\s*\n?",
    re.IGNORECASE,
)


def _attr_value(match: re.Match[str], group: int = 1) -> str:
    return match.group(group) or match.group(group + 1)


def is_remote(url: str) -> bool:
    lowered = url.strip().lower()
    return lowered.startswith(_REMOTE_PREFIXES)


def normalize_reference(url: str, base: Optional[str] = None) -> str:
    """Return the project path ``url`` points at, resolved against ``base``'s folder."""
    cleaned = url.strip().split("#", 1)[0].split("?", 1)[0].replace("\\", "/")
    if not cleaned:
        return ""
    if cleaned.startswith("/"):
        joined = cleaned.lstrip("/")
    else:
        folder = posixpath.dirname(base.replace("\\", "/")) if base else ""
        joined = posixpath.join(folder, cleaned) if folder else cleaned
    normalized = posixpath.normpath(joined)
    if normalized == ".":
        return ""
    return normalized.lstrip("/")


def find_asset_references(text: str, base: Optional[str] = None) -> List[Tuple[str, FileKind]]:
    """Return local script and stylesheet paths referenced in ``text``, in order."""
    found: List[Tuple[int, str, FileKind]] = []
    for match in _SCRIPT_SRC.finditer(text):
        url = _attr_value(match)
        if not is_remote(url):
            found.append((match.start(), url, FileKind.SCRIPT))
    for match in _LINK_TAG.finditer(text):
        tag = match.group(0)
        href = _HREF.search(tag)
        if href is None:
            continue
        url = _attr_value(href)
        if is_remote(url):
            continue
        if _STYLESHEET_REL.search(tag) or url.lower().split("?", 1)[0].endswith(".css"):
            found.append((match.start(), url, FileKind.STYLE))

    references: List[Tuple[str, FileKind]] = []
    seen: set[str] = set()
    for _, url, kind in sorted(found, key=lambda item: item[0]):
        path = normalize_reference(url, base)
        if path and path not in seen:
            seen.add(path)
            references.append((path, kind))
    return references


def strip_local_stylesheets(markup: str) -> str:
    """Remove ``<link rel="stylesheet">`` tags that point at project paths."""

    def _replace(match: re.Match[str]) -> str:
        tag = match.group(0)
        href = _HREF.search(tag)
        if href is None or is_remote(_attr_value(href)):
            return tag
        if _STYLESHEET_REL.search(tag) or _attr_value(href).lower().split("?", 1)[0].endswith(".css"):
            return ""
        return tag

    return _LINK_TAG.sub(_replace, markup)


def strip_local_scripts(markup: str) -> str:
    """Remove ``<script src>`` elements that point at project paths."""

    def _replace(match: re.Match[str]) -> str:
        return match.group(0) if is_remote(_attr_value(match, 2)) else ""

    return _SCRIPT_ELEMENT.sub(_replace, markup)


def is_resolved(path: str, known_paths: List[str]) -> bool:
    """Return True when ``path`` names a known file, allowing folder-prefix drift."""
    for known in known_paths:
        if known == path or known.endswith("/" + path) or path.endswith("/" + known):
            return True
    return False


__all__ = [
    "find_asset_references",
    "is_remote",
    "is_resolved",
    "normalize_reference",
    "strip_local_scripts",
    "strip_local_stylesheets",
]

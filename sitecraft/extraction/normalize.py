"""Text normalisation steps applied before each parse attempt.

Every helper is string-aware: braces, brackets and commas inside JSON string
literals are never treated as structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import re
from typing import Any, List

_FENCE_OPEN = re.compile(r"^[ \t]*```[ \t]*([A-Za-z0-9_+.-]*)[^\n]*\n?", re.MULTILINE)
_LINE_BRACE = re.compile(r"^[ \t]*\{", re.MULTILINE)
_FENCE_CLOSE = re.compile(r"\n[ \t]*```[ \t]*(?:\n|$)")
_ARRAY_OF_OBJECTS = re.compile(r"\[\s*\{")
_TREE_LINE = re.compile(r"^\s*(?:├|│|└|┌|─)")
_PARTIAL_UNICODE = re.compile(r"\\u[0-9a-fA-F]{0,3}$")
_LONE_HIGH_SURROGATE = re.compile(r"\\u[dD][89abAB][0-9a-fA-F]{2}$")

_CLOSERS = {"{": "}", "[": "]"}


@dataclass
class StructureScan:
    """Result of walking a JSON-ish text character by character."""

    stack: List[str] = field(default_factory=list)
    in_string: bool = False
    dangling_escape: bool = False
    top_level_end: int = -1
    last_object_end: int = -1

    @property
    def balanced(self) -> bool:
        return not self.stack and not self.in_string


def scan_structure(text: str) -> StructureScan:
    """Track nesting depth per character and remember where objects close."""
    scan = StructureScan()
    escaped = False
    for index, char in enumerate(text):
        if scan.in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                scan.in_string = False
            continue
        if char == '"':
            scan.in_string = True
        elif char in _CLOSERS:
            scan.stack.append(char)
        elif char in "}]":
            if scan.stack and _CLOSERS[scan.stack[-1]] == char:
                scan.stack.pop()
                if char == "}":
                    scan.last_object_end = index + 1
                if not scan.stack:
                    scan.top_level_end = index + 1
    scan.dangling_escape = scan.in_string and escaped
    return scan


def strip_fences(text: str) -> str:
    """Return the body of a leading fenced code block, if the text has one.

    The fence must open on its own line before any line that starts with
    ``{``, so markdown fences that live inside JSON string content are left
    alone while prose such as ``Here {is} your site:`` may precede it. A
    missing closing fence is tolerated since truncated responses often lose it.
    """
    opening = _FENCE_OPEN.search(text)
    if opening is None:
        return text
    payload = _LINE_BRACE.search(text)
    if payload is not None and opening.start() > payload.start():
        return text
    body_start = opening.end()
    closing = _FENCE_CLOSE.search(text, body_start)
    if closing is None:
        body = text[body_start:]
        if body.rstrip().endswith("```"):
            body = body.rstrip()[:-3]
        return body.strip()
    return text[body_start:closing.start()].strip()


def drop_tree_artifacts(text: str) -> str:
    """Remove directory-tree drawing lines some models print around the payload."""
    lines = text.split("\n")
    kept = [line for line in lines if not _TREE_LINE.match(line)]
    return "\n".join(kept)


def slice_structure(text: str) -> str:
    """Drop leading prose before the first object (or array of objects)."""
    candidates = []
    brace = text.find("{")
    if brace != -1:
        candidates.append(brace)
    array = _ARRAY_OF_OBJECTS.search(text)
    if array is not None:
        candidates.append(array.start())
    if not candidates:
        return text
    return text[min(candidates):]


def escape_control_chars(text: str) -> str:
    """Escape raw newlines, carriage returns and tabs found inside strings."""
    out: List[str] = []
    in_string = False
    escaped = False
    for char in text:
        if not in_string:
            if char == '"':
                in_string = True
            out.append(char)
            continue
        if escaped:
            out.append(char)
            escaped = False
            continue
        if char == "\\":
            out.append(char)
            escaped = True
            continue
        if char == '"':
            in_string = False
            out.append(char)
            continue
        if char == "\n":
            out.append("\\n")
        elif char == "\r":
            out.append("\\r")
        elif char == "\t":
            out.append("\\t")
        else:
            out.append(char)
    return "".join(out)


def remove_trailing_commas(text: str) -> str:
    """Drop commas that directly precede a closing ``}`` or ``]``."""
    out: List[str] = []
    in_string = False
    escaped = False
    length = len(text)
    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            out.append(char)
            continue
        if char == '"':
            in_string = True
        elif char == ",":
            lookahead = index + 1
            while lookahead < length and text[lookahead] in " \t\r\n":
                lookahead += 1
            if lookahead < length and text[lookahead] in "}]":
                continue
        out.append(char)
    return "".join(out)


def clean(text: str) -> str:
    """Apply fence stripping and the structural clean-up steps in order."""
    cleaned = strip_fences(text.strip().lstrip("\ufeff"))
    cleaned = drop_tree_artifacts(cleaned)
    cleaned = slice_structure(cleaned)
    cleaned = escape_control_chars(cleaned)
    return remove_trailing_commas(cleaned).strip()


def complete_delimiters(text: str) -> str:
    """Append the closers a truncated payload is missing.

    An unterminated string is closed first (a dangling escape, a partial
    ``\\u`` sequence or a surrogate pair cut after its high half is
    dropped), then a trailing ``,`` is removed or a trailing ``:`` given a
    ``null`` value, then the open ``{``/``[`` stack is closed innermost first.
    """
    scan = scan_structure(text)
    completed = text
    if scan.in_string:
        if scan.dangling_escape:
            completed = completed[:-1]
        completed = _PARTIAL_UNICODE.sub("", completed)
        completed = _LONE_HIGH_SURROGATE.sub("", completed)
        completed += '"'
    stripped = completed.rstrip()
    if stripped.endswith(","):
        completed = stripped[:-1]
    elif stripped.endswith(":"):
        completed = stripped + " null"
    closers = "".join(_CLOSERS[opener] for opener in reversed(scan.stack))
    return completed + closers


def last_balanced_prefix(text: str) -> str:
    """Return the longest prefix that ends where an object closed.

    The prefix ends at the last point the top-level value closed; when the
    top level never closes, it ends after the last complete nested object
    (typically the last complete file entry) and is re-balanced.
    """
    scan = scan_structure(text)
    if scan.top_level_end != -1:
        return text[:scan.top_level_end]
    if scan.last_object_end != -1:
        return complete_delimiters(text[:scan.last_object_end])
    return ""


def parse_strict(text: str) -> Any:
    return json.loads(text)


def parse_lenient(text: str) -> Any:
    """Parse the first JSON value in ``text``, ignoring trailing content."""
    stripped = text.lstrip()
    if not stripped:
        raise ValueError("empty candidate")
    value, _ = json.JSONDecoder().raw_decode(stripped)
    return value


__all__ = [
    "StructureScan",
    "clean",
    "complete_delimiters",
    "drop_tree_artifacts",
    "escape_control_chars",
    "last_balanced_prefix",
    "parse_lenient",
    "parse_strict",
    "remove_trailing_commas",
    "scan_structure",
    "slice_structure",
    "strip_fences",
]

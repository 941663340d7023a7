"""Tolerant salvage of ``path``/``content`` pairs from unparseable responses.

Two patterns are tried in a fixed order:

1. :class:`PairTokenizer` walks quoted ``"path"`` / ``"content"`` keys
   directly in the raw text and pairs them with a small state machine. A
   response whose payload was JSON-encoded twice (``\\"path\\"``) is unescaped
   once and tokenized again.
2. :func:`salvage_fenced_blocks` collects markdown code fences labelled with
   a file name.

The second pattern only runs when the first yields nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import re
from typing import Iterator, List, Optional, Tuple

from ..logging import get_logger

_PATH_KEYS = {"path", "filename", "file_path"}
_KEY_PATTERN = re.compile(r'"(path|filename|file_path|content)"\s*:\s*"')
_DOUBLE_ENCODED = re.compile(r'\\"(?:path|content)\\"\s*:')
_MAX_PATH_LENGTH = 260

_FENCED_BLOCK = re.compile(r"```([^\n`]*)\n(.*?)(?:\n[ \t]*```|\Z)", re.DOTALL)
_FILENAME = re.compile(r"[\w.-]+(?:/[\w.-]+)*\.[A-Za-z0-9]{1,10}")
_LANGUAGE_DEFAULTS = {
    "html": "index.html",
    "css": "styles.css",
    "js": "script.js",
    "javascript": "script.js",
}

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
}

logger = get_logger("extraction.salvage")


class SalvageState(str, Enum):
    """Named states of the pair tokenizer."""

    EXPECT_PATH = "expect_path"
    EXPECT_CONTENT = "expect_content"
    RECOVERING = "recovering"


@dataclass(frozen=True)
class Token:
    """A quoted key/value pair read from the raw text."""

    key: str
    value: str
    terminated: bool = True

    @property
    def is_path(self) -> bool:
        return self.key in _PATH_KEYS


@dataclass
class SalvagedFile:
    path: str
    content: str
    truncated: bool = False


@dataclass
class PairTokenizer:
    """Pairs path and content tokens in either key order.

    ``EXPECT_PATH``: nothing pending; a content token is held as an orphan
    (for objects that list ``content`` before ``path``).
    ``EXPECT_CONTENT``: a path is pending; the next content completes it.
    ``RECOVERING``: an invalid path was read; content is ignored until the
    next valid path resynchronises the stream.
    """

    state: SalvageState = SalvageState.EXPECT_PATH
    pending_path: Optional[str] = None
    orphan_content: Optional[Tuple[str, bool]] = None
    files: List[SalvagedFile] = field(default_factory=list)

    def feed(self, token: Token) -> Optional[SalvagedFile]:
        """Advance the state machine by one token; return a file when one completes."""
        if token.is_path:
            return self._on_path(token)
        return self._on_content(token)

    def _on_path(self, token: Token) -> Optional[SalvagedFile]:
        path = token.value.strip()
        if not _valid_path(path) or not token.terminated:
            logger.debug("Salvage tokenizer recovering after invalid path %r", path[:40])
            self.state = SalvageState.RECOVERING
            self.pending_path = None
            self.orphan_content = None
            return None
        if self.state is SalvageState.EXPECT_CONTENT:
            logger.debug("Path %s had no content; replaced by %s", self.pending_path, path)
        if self.state is SalvageState.EXPECT_PATH and self.orphan_content is not None:
            content, truncated = self.orphan_content
            self.orphan_content = None
            return self._emit(path, content, truncated)
        self.pending_path = path
        self.state = SalvageState.EXPECT_CONTENT
        return None

    def _on_content(self, token: Token) -> Optional[SalvagedFile]:
        if self.state is SalvageState.RECOVERING:
            return None
        if self.state is SalvageState.EXPECT_CONTENT and self.pending_path is not None:
            path = self.pending_path
            self.pending_path = None
            return self._emit(path, token.value, not token.terminated)
        self.orphan_content = (token.value, not token.terminated)
        return None

    def _emit(self, path: str, content: str, truncated: bool) -> SalvagedFile:
        salvaged = SalvagedFile(path=path, content=content, truncated=truncated)
        self.files.append(salvaged)
        self.state = SalvageState.EXPECT_PATH
        return salvaged


def iter_tokens(text: str) -> Iterator[Token]:
    """Yield every quoted path/content key with its unescaped value."""
    position = 0
    while True:
        match = _KEY_PATTERN.search(text, position)
        if match is None:
            return
        raw_value, end, terminated = read_string(text, match.end())
        yield Token(key=match.group(1), value=unescape(raw_value), terminated=terminated)
        position = end


def read_string(text: str, start: int) -> Tuple[str, int, bool]:
    """Read a JSON string body starting after its opening quote.

    Escaped quotes do not terminate the value. Returns the raw body, the
    offset after the closing quote and whether a closing quote was found.
    """
    index = start
    length = len(text)
    while index < length:
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char == '"':
            return text[start:index], index + 1, True
        index += 1
    return text[start:length], length, False


def unescape(value: str) -> str:
    """Decode JSON escape sequences by hand, keeping unknown escapes verbatim."""
    out: List[str] = []
    index = 0
    length = len(value)
    while index < length:
        char = value[index]
        if char != "\\" or index + 1 >= length:
            if char != "\\":
                out.append(char)
            index += 1
            continue
        marker = value[index + 1]
        if marker in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[marker])
            index += 2
            continue
        if marker == "u":
            code = _read_unicode(value, index)
            if code is not None:
                decoded, consumed = code
                out.append(decoded)
                index += consumed
                continue
        out.append(char)
        out.append(marker)
        index += 2
    return "".join(out)


def _read_unicode(value: str, index: int) -> Optional[Tuple[str, int]]:
    """Decode the ``\\uXXXX`` escape at ``index``; unpaired surrogates decode to nothing."""
    digits = value[index + 2:index + 6]
    if len(digits) != 4 or not all(ch in "0123456789abcdefABCDEF" for ch in digits):
        return None
    high = int(digits, 16)
    if 0xD800 <= high <= 0xDBFF and value[index + 6:index + 8] == "\\u":
        low_digits = value[index + 8:index + 12]
        if len(low_digits) == 4 and all(ch in "0123456789abcdefABCDEF" for ch in low_digits):
            low = int(low_digits, 16)
            if 0xDC00 <= low <= 0xDFFF:
                return chr(0x10000 + ((high - 0xD800) << 10) + (low - 0xDC00)), 12
    if 0xD800 <= high <= 0xDFFF:
        return "", 6
    return chr(high), 6


def salvage_pairs(text: str) -> List[SalvagedFile]:
    """Run the pair tokenizer over ``text`` (and once more if double-encoded)."""
    tokenizer = PairTokenizer()
    for token in iter_tokens(text):
        tokenizer.feed(token)
    if tokenizer.files:
        return tokenizer.files
    if _DOUBLE_ENCODED.search(text):
        logger.debug("Payload looks double-encoded; unescaping once before salvage")
        return salvage_pairs(unescape(text))
    return []


def salvage_fenced_blocks(text: str) -> List[SalvagedFile]:
    """Collect fenced code blocks labelled with a file name.

    The name comes from the fence info string (```` ```html index.html ````),
    the line right above the fence (``### about.html``, ``**style.css**``) or
    a comment on the first line of the block. Unlabelled html/css/js blocks
    fall back to ``index.html``, ``styles.css`` and ``script.js``.
    """
    files: List[SalvagedFile] = []
    seen: set[str] = set()
    for match in _FENCED_BLOCK.finditer(text):
        info = match.group(1).strip()
        body = match.group(2)
        language = info.split()[0].lower() if info else ""
        name = _name_from_info(info) or _name_from_preceding_line(text, match.start())
        if name is None:
            name, body = _name_from_first_line(body)
        if name is None:
            name = _LANGUAGE_DEFAULTS.get(language)
        if name is None or name in seen:
            continue
        seen.add(name)
        truncated = match.end() == len(text) and not text.rstrip().endswith("```")
        files.append(SalvagedFile(path=name, content=body.rstrip("\n") + "\n", truncated=truncated))
    return files


def _name_from_info(info: str) -> Optional[str]:
    for part in info.split()[1:]:
        found = _FILENAME.search(part)
        if found:
            return found.group(0)
    found = _FILENAME.fullmatch(info)
    return found.group(0) if found else None


def _name_from_preceding_line(text: str, fence_start: int) -> Optional[str]:
    before = text[:fence_start].rstrip("\n")
    line = before.rsplit("\n", 1)[-1].strip().strip("#*`:- ")
    if not line or len(line) > _MAX_PATH_LENGTH:
        return None
    found = _FILENAME.search(line)
    if found and line.endswith(found.group(0)):
        return found.group(0)
    return None


def _name_from_first_line(body: str) -> Tuple[Optional[str], str]:
    first, _, rest = body.partition("\n")
    stripped = first.strip()
    for prefix, suffix in (("<!--", "-->"), ("/*", "*/"), ("//", "")):
        if stripped.startswith(prefix) and stripped.endswith(suffix):
            inner = stripped[len(prefix):len(stripped) - len(suffix)].strip()
            found = _FILENAME.fullmatch(inner)
            if found:
                return found.group(0), rest
    return None, body


def _valid_path(path: str) -> bool:
    return bool(path) and len(path) <= _MAX_PATH_LENGTH and "\n" not in path and "<" not in path


__all__ = [
    "PairTokenizer",
    "SalvageState",
    "SalvagedFile",
    "Token",
    "iter_tokens",
    "read_string",
    "salvage_fenced_blocks",
    "salvage_pairs",
    "unescape",
]

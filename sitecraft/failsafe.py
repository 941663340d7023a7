"""Fail-safe placeholder files for responses that yield nothing usable."""

from __future__ import annotations

import html
import json
from typing import Callable, Dict

from .classifier import classify
from .models import ExtractedFile, FileKind

PLACEHOLDER_PAGE = "index.html"
DEFAULT_TITLE = "Generated Website"


def build_placeholder_page(title: str | None = None, *, reason: str | None = None) -> str:
    """Return a minimal, valid page used when no file could be recovered."""
    safe_title = html.escape(title or DEFAULT_TITLE)
    cleaned_reason = _format_reason(reason)
    note = ""
    if cleaned_reason:
        note = f'\n        <p class="note">Generation note: {html.escape(cleaned_reason)}</p>'
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{safe_title}</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 40px; background: #f5f5f5; }}
        .container {{ max-width: 800px; margin: 0 auto; background: #fff; padding: 40px; border-radius: 8px; }}
        h1 {{ color: #333; }}
        .note {{ color: #666; font-size: 0.9em; }}
    </style>
</head>
<body>
    <div class="container">
        <h1>{safe_title}</h1>
        <p>The model response could not be turned into project files, so this placeholder page was created instead.</p>
        <p>Try generating again or refine the prompt.</p>{note}
    </div>
</body>
</html>
"""


def placeholder_page_file(title: str | None = None, *, reason: str | None = None) -> ExtractedFile:
    content = build_placeholder_page(title, reason=reason)
    return ExtractedFile(path=PLACEHOLDER_PAGE, content=content, kind=FileKind.MARKUP)


def placeholder_asset_file(path: str, *, reason: str | None = None) -> ExtractedFile:
    """Return a minimal valid file for an asset the markup references but nobody produced."""
    kind = classify(path)
    builder = _STUB_BUILDERS.get(kind, _text_stub)
    return ExtractedFile(path=path, content=builder(path, _format_reason(reason)), kind=kind)


def _markup_stub(path: str, reason: str | None) -> str:
    return build_placeholder_page(path, reason=reason)


def _style_stub(path: str, reason: str | None) -> str:
    return f"/* Placeholder for missing stylesheet {path}{_suffix(reason)} */\n"


def _script_stub(path: str, reason: str | None) -> str:
    return f"// Placeholder for missing script {path}{_suffix(reason)}\n"


def _data_stub(path: str, reason: str | None) -> str:
    return json.dumps({}) + "\n"


def _text_stub(path: str, reason: str | None) -> str:
    return ""


def _suffix(reason: str | None) -> str:
    return f" ({reason})" if reason else ""


_STUB_BUILDERS: Dict[FileKind, Callable[[str, str | None], str]] = {
    FileKind.MARKUP: _markup_stub,
    FileKind.STYLE: _style_stub,
    FileKind.SCRIPT: _script_stub,
    FileKind.DATA: _data_stub,
    FileKind.TEXT: _text_stub,
}


def _format_reason(reason: str | None) -> str | None:
    if not reason:
        return None
    cleaned = " ".join(reason.strip().split())
    if not cleaned:
        return None
    # Comment terminators would break the style/script stubs.
    cleaned = cleaned.replace("*/", "* /")
    return cleaned[:200] + ("…" if len(cleaned) > 200 else "")


__all__ = [
    "DEFAULT_TITLE",
    "PLACEHOLDER_PAGE",
    "build_placeholder_page",
    "placeholder_asset_file",
    "placeholder_page_file",
]

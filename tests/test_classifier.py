"""Tests for path based file classification."""

from __future__ import annotations

from sitecraft.classifier import classify, is_markup_path
from sitecraft.models import FileKind


def test_classify_uses_extension_case_insensitively() -> None:
    assert classify("index.HTML") is FileKind.MARKUP
    assert classify("pages/about.htm") is FileKind.MARKUP
    assert classify("css/site.css") is FileKind.STYLE
    assert classify("app.mjs") is FileKind.SCRIPT
    assert classify("data/menu.json") is FileKind.DATA
    assert classify("README.md") is FileKind.TEXT


def test_classify_unknown_and_extensionless_paths_are_other() -> None:
    assert classify("images/logo.png") is FileKind.OTHER
    assert classify("Makefile") is FileKind.OTHER
    assert classify("") is FileKind.OTHER


def test_classify_accepts_windows_separators() -> None:
    assert classify("assets\\main.js") is FileKind.SCRIPT
    assert is_markup_path("docs\\index.html")
    assert not is_markup_path("docs\\index.css")

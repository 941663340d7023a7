"""Tests for placeholder file generation."""

from __future__ import annotations

from sitecraft.failsafe import (
    DEFAULT_TITLE,
    build_placeholder_page,
    placeholder_asset_file,
    placeholder_page_file,
)
from sitecraft.models import FileKind


def test_placeholder_page_is_valid_and_escapes_title() -> None:
    page = build_placeholder_page("Cafe <Luna>")

    assert page.startswith("<!DOCTYPE html>")
    assert "<title>Cafe &lt;Luna&gt;</title>" in page
    assert "Generation note" not in page


def test_placeholder_page_includes_cleaned_reason() -> None:
    page = build_placeholder_page(reason="  model   returned\nprose  ")

    assert f"<title>{DEFAULT_TITLE}</title>" in page
    assert "Generation note: model returned prose" in page


def test_placeholder_page_file_is_entry_markup() -> None:
    item = placeholder_page_file()

    assert item.path == "index.html"
    assert item.kind is FileKind.MARKUP
    assert item.size == len(item.content)


def test_asset_placeholders_match_kind() -> None:
    style = placeholder_asset_file("css/theme.css")
    script = placeholder_asset_file("js/app.js", reason="closing */ marker")
    data = placeholder_asset_file("data/menu.json")
    other = placeholder_asset_file("fonts/brand.woff2")

    assert style.kind is FileKind.STYLE
    assert style.content == "/* Placeholder for missing stylesheet css/theme.css */\n"
    assert script.content == "// Placeholder for missing script js/app.js (closing * / marker)\n"
    assert data.content == "{}\n"
    assert other.kind is FileKind.OTHER
    assert other.content == ""

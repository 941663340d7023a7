"""Tests for the navigation shim running inside a real preview frame."""

from __future__ import annotations

import html
from typing import Any, Dict, Iterator, List

import pytest

from sitecraft.models import ExtractedFile, FileKind, ProjectFileSet
from sitecraft.preview import DocumentComposer

sync_api = pytest.importorskip("playwright.sync_api")

INDEX = """<html><head><title>Home</title></head><body>
<nav><a id="to-menu" href="#menu">Menu</a> <a id="to-about" href="about.html">About</a>
<a id="to-team" href="about.html#team">Team</a></nav>
<section id="menu">Dishes</section>
</body></html>"""

ABOUT = "<html><head><title>About</title></head><body><h1 id='team'>Team</h1></body></html>"

PARENT = """<html><body>
<script>
window.__messages = [];
window.addEventListener('message', function (event) { window.__messages.push(event.data); });
</script>
<iframe id="preview" sandbox="allow-scripts" srcdoc="__SRCDOC__"></iframe>
</body></html>"""


@pytest.fixture(scope="module")
def browser() -> Iterator[Any]:
    with sync_api.sync_playwright() as playwright:
        try:
            instance = playwright.chromium.launch(headless=True)
        except sync_api.Error as exc:
            pytest.skip(f"Chromium is not available: {exc}")
        yield instance
        instance.close()


def _mount(browser: Any) -> Any:
    files = ProjectFileSet(
        [
            ExtractedFile("index.html", INDEX, FileKind.MARKUP),
            ExtractedFile("about.html", ABOUT, FileKind.MARKUP),
        ]
    )
    document = DocumentComposer().compose(files).document
    page = browser.new_page()
    page.set_content(PARENT.replace("__SRCDOC__", html.escape(document, quote=True)))
    return page


def _page_messages(page: Any) -> List[Dict[str, Any]]:
    messages = page.evaluate("window.__messages")
    return [message for message in messages if message.get("type") == "NAVIGATE_TO_PAGE"]


def test_page_link_posts_exactly_one_page_message(browser: Any) -> None:
    page = _mount(browser)
    try:
        frame = page.frame_locator("#preview")
        frame.locator("#to-menu").click()
        frame.locator("#to-about").click()
        page.wait_for_function(
            "window.__messages.some(function (m) { return m.type === 'NAVIGATE_TO_PAGE'; })"
        )

        assert _page_messages(page) == [{"type": "NAVIGATE_TO_PAGE", "targetFile": "about.html"}]
    finally:
        page.close()


def test_hash_link_posts_no_page_message(browser: Any) -> None:
    page = _mount(browser)
    try:
        page.frame_locator("#preview").locator("#to-menu").click()
        page.wait_for_timeout(200)

        assert _page_messages(page) == []
    finally:
        page.close()


def test_page_link_with_fragment_carries_hash(browser: Any) -> None:
    page = _mount(browser)
    try:
        page.frame_locator("#preview").locator("#to-team").click()
        page.wait_for_function("window.__messages.length > 0")

        assert _page_messages(page) == [
            {"type": "NAVIGATE_TO_PAGE", "targetFile": "about.html", "hash": "#team"}
        ]
    finally:
        page.close()

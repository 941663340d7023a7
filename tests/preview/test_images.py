"""Tests for missing image replacement."""

from __future__ import annotations

from sitecraft.preview import ImageReferenceFixer
from sitecraft.preview.images import FALLBACK_IMAGE, STOCK_IMAGES


def test_replacement_uses_trimmed_file_stem() -> None:
    fixer = ImageReferenceFixer()

    assert fixer.replacement_for("images/hero_2.png") == STOCK_IMAGES["hero"]
    assert fixer.replacement_for("Team-Photo.JPG") == FALLBACK_IMAGE
    assert fixer.replacement_for("avatar-03.webp") == STOCK_IMAGES["avatar"]


def test_fix_only_rewrites_unresolved_local_images() -> None:
    markup = (
        '<img src="img/logo.png">'
        '<img src="https://cdn.example.com/a.jpg">'
        '<img src="photo.jpg?v=2">'
    )

    fixed = ImageReferenceFixer().fix(markup, ["img/logo.png"])

    assert '<img src="img/logo.png">' in fixed
    assert '<img src="https://cdn.example.com/a.jpg">' in fixed
    assert f'<img src="{STOCK_IMAGES["photo"]}">' in fixed


def test_fix_handles_css_urls_and_page_folders() -> None:
    fixer = ImageReferenceFixer()

    assert fixer.fix(".hero { background: url('bg/banner.jpg'); }") == (
        f".hero {{ background: url('{STOCK_IMAGES['banner']}'); }}"
    )
    nested = '<img src="../img/team.jpg">'
    assert fixer.fix(nested, ["img/team.jpg"], base="pages/about.html") == nested


def test_custom_replacements_and_fallback() -> None:
    fixer = ImageReferenceFixer({"logo": "https://example.com/logo.svg"}, fallback="https://example.com/x.png")

    assert fixer.fix('<img src="logo.svg">') == '<img src="https://example.com/logo.svg">'
    assert fixer.fix('<img data-src="other.gif">') == '<img data-src="https://example.com/x.png">'

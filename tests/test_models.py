"""Tests for the shared data models."""

from __future__ import annotations

from sitecraft.models import (
    ExtractedFile,
    FileKind,
    Placement,
    PreviewResult,
    ProjectFileSet,
    ResourceTag,
    TagKind,
    content_to_text,
)


def test_file_set_replaces_repeated_path_in_place() -> None:
    files = ProjectFileSet(
        [
            ExtractedFile("index.html", "first", FileKind.MARKUP),
            ExtractedFile("styles.css", "body {}", FileKind.STYLE),
            ExtractedFile("index.html", "second", FileKind.MARKUP),
        ]
    )

    assert files.paths() == ["index.html", "styles.css"]
    assert files.get("index.html").content == "second"
    assert len(files) == 2
    assert "styles.css" in files
    assert "missing.js" not in files


def test_from_dict_rederives_kind_and_size() -> None:
    item = ExtractedFile.from_dict({"path": "theme.css", "content": "a{}", "kind": "script"})

    assert item.kind is FileKind.STYLE
    assert item.size == 3

    broken = ExtractedFile.from_dict({"path": "x.js", "content": None})
    assert broken.content == ""
    assert broken.kind is FileKind.SCRIPT


def test_file_set_list_conversion_keeps_order(sample_files: ProjectFileSet) -> None:
    restored = ProjectFileSet.from_list(sample_files.to_list())

    assert restored == sample_files
    assert [item.path for item in restored.markup()] == ["about.html", "index.html"]
    assert restored.has_markup()


def test_resource_tag_renders_link_and_script_variants() -> None:
    preconnect = ResourceTag(
        url="https://fonts.gstatic.com",
        placement=Placement.HEAD,
        tag=TagKind.LINK,
        rel="preconnect",
        attrs=(("crossorigin", None),),
    )
    script = ResourceTag(url="https://cdn.example.com/lib.js", placement=Placement.BODY_END, tag=TagKind.SCRIPT)
    inline = ResourceTag(url="", placement=Placement.BODY_END, tag=TagKind.SCRIPT, inline="init();")

    assert preconnect.render() == '<link rel="preconnect" href="https://fonts.gstatic.com" crossorigin>'
    assert script.render() == '<script src="https://cdn.example.com/lib.js"></script>'
    assert inline.render() == "<script>init();</script>"
    assert inline.key == ("script", "", "init();")


def test_preview_result_serialises_rendered_resources() -> None:
    link = ResourceTag(url="https://cdn.example.com/a.css", placement=Placement.HEAD, tag=TagKind.LINK)
    result = PreviewResult(document="<html></html>", target="index.html", available_pages=["index.html"], resources=[link])

    payload = result.to_dict()
    assert payload["resources"] == ['<link rel="stylesheet" href="https://cdn.example.com/a.css">']
    assert payload["previewable"] is True


def test_content_to_text_coerces_structured_values() -> None:
    assert content_to_text(None) == ""
    assert content_to_text(42) == "42"
    assert content_to_text({"name": "demo"}) == '{\n  "name": "demo"\n}'

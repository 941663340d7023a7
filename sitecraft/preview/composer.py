"""Compose a project file set into one self-contained preview document."""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from ..arranger import arrange_set
from ..logging import get_logger
from ..models import (
    ExtractedFile,
    Issue,
    IssueKind,
    Placement,
    PreviewResult,
    ProjectFileSet,
    ResourceTag,
)
from ..references import normalize_reference, strip_local_scripts, strip_local_stylesheets
from .dependencies import DependencyDetector, SignatureDependencyDetector
from .images import ImageReferenceFixer
from .navigation import render_shim

STYLE_MARKER = '<style data-sitecraft="styles">'

_HTML_OPEN = re.compile(r"<html\b[^>]*>", re.IGNORECASE)
_BODY_OPEN = re.compile(r"<body\b", re.IGNORECASE)
_CLOSING_SCRIPT = re.compile(r"</(script)", re.IGNORECASE)
_CLOSING_STYLE = re.compile(r"</(style)", re.IGNORECASE)


class DocumentComposer:
    """Merges markup, styles, scripts and detected resources into one document."""

    def __init__(
        self,
        detector: DependencyDetector | None = None,
        *,
        image_fixer: ImageReferenceFixer | None = None,
        fix_images: bool = True,
        include_shim: bool = True,
    ) -> None:
        self.detector = detector or SignatureDependencyDetector()
        self.image_fixer = image_fixer or ImageReferenceFixer()
        self.fix_images = fix_images
        self.include_shim = include_shim
        self.logger = get_logger("preview.composer")

    def compose(
        self,
        files: ProjectFileSet,
        target: str | None = None,
        *,
        hash: str | None = None,
    ) -> PreviewResult:
        """Return the preview for ``target`` (or the entry page) of ``files``."""
        arranged = arrange_set(files)
        pages = [item.path for item in arranged.markup()]
        page = self._resolve_target(arranged, pages, target)
        if page is None:
            self.logger.info("No markup file to preview among %d file(s)", len(arranged))
            return PreviewResult(
                document="",
                target=None,
                available_pages=[],
                previewable=False,
                issues=[Issue(IssueKind.NO_PREVIEWABLE_TARGET, "Project contains no markup file")],
            )

        known = arranged.paths()
        document = page.content
        if self.fix_images:
            document = self.image_fixer.fix(document, known, base=page.path)

        document = strip_local_stylesheets(document)
        document = _ensure_head(document)
        styles = self._collect_styles(arranged, known)
        if styles:
            block = f"{STYLE_MARKER}\n{styles}\n</style>\n"
            document = _insert_before(document, "</head>", block)

        resources = [
            resource
            for resource in self.detector.detect(document)
            if not _already_present(resource, document)
        ]
        head_resources, body_resources = _split_resources(resources)
        if head_resources:
            head_html = "".join(resource.render() + "\n" for resource in head_resources)
            if STYLE_MARKER in document:
                document = document.replace(STYLE_MARKER, head_html + STYLE_MARKER, 1)
            else:
                document = _insert_before(document, "</head>", head_html)

        document = strip_local_scripts(document)
        tail: List[str] = [resource.render() + "\n" for resource in body_resources]
        scripts = "\n".join(
            _CLOSING_SCRIPT.sub(r"<\\/\1", item.content) for item in arranged.scripts()
        )
        if scripts.strip():
            tail.append(f"<script>\n{scripts}\n</script>\n")
        if self.include_shim:
            tail.append(render_shim(page.path, pages, hash) + "\n")
        document = _append_to_body("".join(tail), document)

        self.logger.debug(
            "Composed %s with %d resource(s) and %d page(s)", page.path, len(resources), len(pages)
        )
        return PreviewResult(
            document=document,
            target=page.path,
            available_pages=pages,
            previewable=True,
            resources=resources,
        )

    def _collect_styles(self, files: ProjectFileSet, known: List[str]) -> str:
        chunks: List[str] = []
        for item in files.styles():
            content = item.content
            if self.fix_images:
                content = self.image_fixer.fix(content, known, base=item.path)
            chunks.append(_CLOSING_STYLE.sub(r"<\\/\1", content))
        return "\n".join(chunks).strip("\n")

    def _resolve_target(
        self,
        files: ProjectFileSet,
        pages: List[str],
        target: Optional[str],
    ) -> Optional[ExtractedFile]:
        if not pages:
            return None
        if target:
            candidate = files.get(target)
            if candidate is not None and candidate.path in pages:
                return candidate
            normalized = normalize_reference(target)
            for option in (normalized, f"{normalized}.html", f"{normalized}/index.html"):
                if option in pages:
                    return files.get(option)
            self.logger.info("Page %s not found; showing %s", target, pages[0])
        return files.get(pages[0])


def _already_present(resource: ResourceTag, document: str) -> bool:
    if resource.inline is not None:
        return resource.inline in document
    return bool(resource.url) and f'"{resource.url}"' in document


def _split_resources(resources: List[ResourceTag]) -> Tuple[List[ResourceTag], List[ResourceTag]]:
    head = [item for item in resources if item.placement is Placement.HEAD]
    body = [item for item in resources if item.placement is Placement.BODY_END]
    return head, body


def _find_last(document: str, closing: str) -> int:
    return document.lower().rfind(closing)


def _insert_before(document: str, closing: str, snippet: str) -> str:
    index = _find_last(document, closing)
    if index < 0:
        return document + snippet
    return document[:index] + snippet + document[index:]


def _ensure_head(document: str) -> str:
    if _find_last(document, "</head>") >= 0:
        return document
    opening = _HTML_OPEN.search(document)
    if opening is not None:
        return document[: opening.end()] + "\n<head>\n</head>" + document[opening.end():]
    body = _BODY_OPEN.search(document)
    if body is not None:
        return document[: body.start()] + "<head>\n</head>\n" + document[body.start():]
    return "<head>\n</head>\n" + document


def _append_to_body(snippet: str, document: str) -> str:
    if not snippet:
        return document
    for closing in ("</body>", "</html>"):
        index = _find_last(document, closing)
        if index >= 0:
            return document[:index] + snippet + document[index:]
    separator = "" if document.endswith("\n") else "\n"
    return document + separator + snippet


__all__ = ["DocumentComposer", "STYLE_MARKER"]

"""Bundle a generated project for download or write it to disk."""

from __future__ import annotations

import io
import json
import posixpath
import re
import zipfile
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional

from .arranger import arrange_set
from .classifier import classify
from .logging import get_logger
from .models import ExtractedFile, ProjectFileSet

DEFAULT_DESCRIPTION = "Generated with sitecraft"

logger = get_logger("export")


def safe_relative_path(path: str) -> str:
    """Return ``path`` as a clean relative POSIX path or raise ``ValueError``."""
    cleaned = posixpath.normpath(path.replace("\\", "/").strip())
    if cleaned in {"", "."} or cleaned.startswith("/") or cleaned == ".." or cleaned.startswith("../"):
        raise ValueError(f"Refusing to write outside the project: {path!r}")
    return cleaned


def slugify(title: str) -> str:
    return re.sub(r"\s+", "-", title.strip().lower()) or "site"


def archive_name(title: str) -> str:
    return re.sub(r"[^a-z0-9]", "_", title.strip().lower()) + ".zip"


def project_readme(
    files: ProjectFileSet,
    *,
    title: str,
    description: str | None = None,
    prompt: str | None = None,
    created_at: date | None = None,
) -> str:
    created = created_at or date.today()
    lines: List[str] = [f"# {title}", "", description or DEFAULT_DESCRIPTION, ""]
    if prompt:
        lines.extend(["## Original Prompt", prompt.strip(), ""])
    lines.append("## Generated Files")
    lines.extend(f"- {path}" for path in files.paths())
    lines.extend(
        [
            "",
            "## Instructions",
            "1. Extract all files to a folder",
            "2. Open index.html in your browser",
            "3. Customize as needed",
            "",
            f"Generated on {created.isoformat()}",
            "",
        ]
    )
    return "\n".join(lines)


def package_manifest(title: str, description: str | None = None) -> Dict[str, object]:
    return {
        "name": slugify(title),
        "version": "1.0.0",
        "description": description or "Generated static website",
        "main": "index.html",
        "scripts": {
            "start": "npx serve .",
            "build": 'echo "No build process needed for static site"',
        },
        "keywords": ["website", "generated", "static"],
        "license": "MIT",
    }


def build_archive(
    files: ProjectFileSet,
    *,
    title: str,
    description: str | None = None,
    prompt: str | None = None,
    created_at: date | None = None,
) -> bytes:
    """Return a zip archive holding the project plus README.md and package.json.

    Files the project already provides under those names are kept as generated.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for item in files:
            archive.writestr(safe_relative_path(item.path), item.content)
        if "README.md" not in files:
            readme = project_readme(
                files,
                title=title,
                description=description,
                prompt=prompt,
                created_at=created_at,
            )
            archive.writestr("README.md", readme)
        if "package.json" not in files:
            archive.writestr("package.json", json.dumps(package_manifest(title, description), indent=2))
    logger.info("Bundled %d file(s) for %s", len(files), title)
    return buffer.getvalue()


def export_zip(
    files: ProjectFileSet,
    destination: Path,
    *,
    title: str,
    description: str | None = None,
    prompt: str | None = None,
) -> Path:
    """Write the archive to ``destination`` (a directory gets an archive named after ``title``)."""
    target = destination / archive_name(title) if destination.is_dir() else destination
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(build_archive(files, title=title, description=description, prompt=prompt))
    return target


def write_files(files: ProjectFileSet, root: Path) -> List[Path]:
    """Write every file below ``root`` and return the written paths."""
    written: List[Path] = []
    for item in files:
        target = root / safe_relative_path(item.path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(item.content, encoding="utf-8")
        written.append(target)
    logger.debug("Wrote %d file(s) under %s", len(written), root)
    return written


def read_files(root: Path, *, limit: Optional[int] = None) -> ProjectFileSet:
    """Load a project previously written with :func:`write_files`."""
    files = ProjectFileSet()
    for path in sorted(root.rglob("*")):
        if not path.is_file() or any(part.startswith(".") for part in path.relative_to(root).parts):
            continue
        relative = path.relative_to(root).as_posix()
        try:
            content = path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            logger.debug("Skipping binary file %s", relative)
            continue
        files.add(ExtractedFile(path=relative, content=content, kind=classify(relative)))
        if limit is not None and len(files) >= limit:
            break
    return arrange_set(files)


__all__ = [
    "archive_name",
    "build_archive",
    "export_zip",
    "package_manifest",
    "project_readme",
    "read_files",
    "safe_relative_path",
    "write_files",
]

"""Core data models shared across sitecraft components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import html
import json
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple


class FileKind(str, Enum):
    """Semantic kind of a generated project file."""

    MARKUP = "markup"
    STYLE = "style"
    SCRIPT = "script"
    DATA = "data"
    TEXT = "text"
    OTHER = "other"


class Placement(str, Enum):
    """Where a third-party resource tag is inserted in the composed document."""

    HEAD = "head"
    BODY_END = "body_end"


class TagKind(str, Enum):
    """HTML element used to load a third-party resource."""

    LINK = "link"
    SCRIPT = "script"


class IssueKind(str, Enum):
    """Degraded-output conditions reported by extraction and composition."""

    MALFORMED_RESPONSE = "malformed_response"
    TRUNCATED_RESPONSE = "truncated_response"
    NO_RECOVERABLE_CONTENT = "no_recoverable_content"
    UNRESOLVED_ASSET_REFERENCE = "unresolved_asset_reference"
    NO_PREVIEWABLE_TARGET = "no_previewable_target"


@dataclass(frozen=True)
class Issue:
    """A recoverable problem noticed while extracting or composing."""

    kind: IssueKind
    detail: str
    path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "detail": self.detail, "path": self.path}


@dataclass
class ExtractedFile:
    """A single file recovered from a model response."""

    path: str
    content: str
    kind: FileKind = FileKind.OTHER
    size: Optional[int] = None

    def __post_init__(self) -> None:
        if self.size is None:
            self.size = len(self.content)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "content": self.content,
            "kind": self.kind.value,
            "size": self.size,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExtractedFile":
        # Kind is always re-derived from the path; stored values are advisory only.
        from .classifier import classify

        path = str(data.get("path", ""))
        content = data.get("content")
        size = data.get("size")
        return cls(
            path=path,
            content=content if isinstance(content, str) else "",
            kind=classify(path),
            size=size if isinstance(size, int) else None,
        )


class ProjectFileSet:
    """Ordered collection of project files with unique paths."""

    def __init__(self, files: Iterable[ExtractedFile] = ()) -> None:
        self._files: List[ExtractedFile] = []
        self._index: Dict[str, int] = {}
        for item in files:
            self.add(item)

    def add(self, item: ExtractedFile) -> None:
        """Add a file; a repeated path replaces the content but keeps its position."""
        position = self._index.get(item.path)
        if position is None:
            self._index[item.path] = len(self._files)
            self._files.append(item)
        else:
            self._files[position] = item

    def get(self, path: str) -> Optional[ExtractedFile]:
        position = self._index.get(path)
        return self._files[position] if position is not None else None

    def paths(self) -> List[str]:
        return [item.path for item in self._files]

    def of_kind(self, kind: FileKind) -> List[ExtractedFile]:
        return [item for item in self._files if item.kind is kind]

    def markup(self) -> List[ExtractedFile]:
        return self.of_kind(FileKind.MARKUP)

    def styles(self) -> List[ExtractedFile]:
        return self.of_kind(FileKind.STYLE)

    def scripts(self) -> List[ExtractedFile]:
        return self.of_kind(FileKind.SCRIPT)

    def has_markup(self) -> bool:
        return any(item.kind is FileKind.MARKUP for item in self._files)

    def to_list(self) -> List[Dict[str, Any]]:
        return [item.to_dict() for item in self._files]

    @classmethod
    def from_list(cls, items: Iterable[Mapping[str, Any]]) -> "ProjectFileSet":
        return cls(ExtractedFile.from_dict(item) for item in items)

    def __iter__(self) -> Iterator[ExtractedFile]:
        return iter(list(self._files))

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: object) -> bool:
        return path in self._index

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProjectFileSet):
            return NotImplemented
        return self._files == other._files

    def __repr__(self) -> str:
        return f"ProjectFileSet({self.paths()!r})"


@dataclass(frozen=True)
class ResourceTag:
    """A third-party resource injected into a composed document."""

    url: str
    placement: Placement
    tag: TagKind
    rel: str = "stylesheet"
    attrs: Tuple[Tuple[str, Optional[str]], ...] = ()
    inline: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.tag.value, self.url, self.inline or "")

    def render(self) -> str:
        extra = "".join(
            f" {name}" if value is None else f' {name}="{html.escape(value, quote=True)}"'
            for name, value in self.attrs
        )
        if self.tag is TagKind.LINK:
            return f'<link rel="{self.rel}" href="{html.escape(self.url, quote=True)}"{extra}>'
        if self.inline is not None:
            return f"<script{extra}>{self.inline}</script>"
        return f'<script src="{html.escape(self.url, quote=True)}"{extra}></script>'


@dataclass(frozen=True)
class DependencyRule:
    """Signature to resource mapping for one third-party library."""

    name: str
    signatures: Tuple[str, ...]
    resources: Tuple[ResourceTag, ...]

    def matches(self, markup: str) -> bool:
        return any(signature in markup for signature in self.signatures)


@dataclass
class ExtractionResult:
    """Outcome of running the extraction cascade over one model response."""

    files: ProjectFileSet
    strategy: str
    issues: List[Issue] = field(default_factory=list)
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": self.files.to_list(),
            "strategy": self.strategy,
            "issues": [issue.to_dict() for issue in self.issues],
            "description": self.description,
        }


@dataclass
class PreviewResult:
    """A composed preview document and the navigation metadata around it."""

    document: str
    target: Optional[str]
    available_pages: List[str]
    previewable: bool = True
    resources: List[ResourceTag] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document": self.document,
            "target": self.target,
            "available_pages": list(self.available_pages),
            "previewable": self.previewable,
            "resources": [resource.render() for resource in self.resources],
            "issues": [issue.to_dict() for issue in self.issues],
        }


def content_to_text(value: Any) -> str:
    """Coerce a model-supplied ``content`` value into file text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2)
    return str(value)

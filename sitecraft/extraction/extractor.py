"""Recover a project file set from a raw model response."""

from __future__ import annotations

from typing import Any, Callable, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..arranger import arrange_set
from ..classifier import classify
from ..export import safe_relative_path
from ..failsafe import placeholder_asset_file, placeholder_page_file
from ..logging import get_logger
from ..models import (
    ExtractedFile,
    ExtractionResult,
    FileKind,
    Issue,
    IssueKind,
    ProjectFileSet,
    content_to_text,
)
from ..references import find_asset_references, is_resolved
from .normalize import (
    clean,
    complete_delimiters,
    last_balanced_prefix,
    parse_lenient,
    parse_strict,
)
from .salvage import SalvagedFile, salvage_fenced_blocks, salvage_pairs

STRATEGIES = (
    "direct",
    "fence_stripped",
    "brace_completion",
    "partial_object",
    "salvage",
    "fallback",
)

_TRUNCATION_STRATEGIES = {"brace_completion", "partial_object"}
_PATH_KEYS = ("path", "filename", "file_path")
_DESCRIPTION_KEYS = ("description", "summary", "content")

FilePairs = List[Tuple[str, str]]


class ResponseExtractor:
    """Runs the extraction cascade; never raises and never returns an empty set."""

    def __init__(
        self,
        *,
        placeholder_title: str | None = None,
        cross_check: bool = True,
    ) -> None:
        self.placeholder_title = placeholder_title
        self.cross_check = cross_check
        self.logger = get_logger("extraction")

    def extract(self, raw: str | None) -> ExtractionResult:
        """Convert ``raw`` model output into an arranged :class:`ProjectFileSet`."""
        text = raw if isinstance(raw, str) else ""
        issues: List[Issue] = []
        description: Optional[str] = None

        strategy, pairs, description = self._run_structured(text)
        if pairs:
            if strategy in _TRUNCATION_STRATEGIES:
                issues.append(
                    Issue(IssueKind.TRUNCATED_RESPONSE, f"Recovered a truncated payload via {strategy}")
                )
            files = self._build_files(pairs)
        else:
            salvaged = self._salvage(text)
            if salvaged:
                strategy = "salvage"
                issues.append(
                    Issue(
                        IssueKind.MALFORMED_RESPONSE,
                        f"No structured parse succeeded; salvaged {len(salvaged)} file(s) from text",
                    )
                )
                for item in salvaged:
                    if item.truncated:
                        issues.append(
                            Issue(IssueKind.TRUNCATED_RESPONSE, "File content was cut off", path=item.path)
                        )
                files = self._build_files([(item.path, item.content) for item in salvaged])
            else:
                strategy = "fallback"
                files = self._fallback(text, issues)

        if self.cross_check:
            self._cross_check(text, files, issues)

        arranged = arrange_set(files)
        self.logger.info(
            "Extracted %d file(s) using %s strategy (%d issue(s))",
            len(arranged),
            strategy,
            len(issues),
        )
        return ExtractionResult(
            files=arranged,
            strategy=strategy,
            issues=issues,
            description=description,
        )

    def _run_structured(self, text: str) -> Tuple[str, FilePairs, Optional[str]]:
        for name, attempt in self._attempts(text):
            try:
                payload = attempt()
            except (ValueError, RecursionError) as exc:
                self.logger.debug("Strategy %s failed: %s", name, exc)
                continue
            pairs, description = coerce_payload(payload)
            if pairs:
                return name, pairs, description
            self.logger.debug("Strategy %s parsed but found no files", name)
        return "", [], None

    def _attempts(self, text: str) -> Iterator[Tuple[str, Callable[[], Any]]]:
        yield "direct", lambda: parse_strict(text)
        cleaned = clean(text)
        yield "fence_stripped", lambda: parse_lenient(cleaned)
        completed = complete_delimiters(cleaned)
        yield "brace_completion", lambda: parse_lenient(completed)
        yield "partial_object", lambda: parse_lenient(last_balanced_prefix(cleaned))

    def _salvage(self, text: str) -> List[SalvagedFile]:
        salvaged = salvage_pairs(text)
        if salvaged:
            return salvaged
        return salvage_fenced_blocks(text)

    def _fallback(self, text: str, issues: List[Issue]) -> ProjectFileSet:
        if text.strip():
            issues.append(Issue(IssueKind.MALFORMED_RESPONSE, "Response contained no file-shaped data"))
        issues.append(
            Issue(IssueKind.NO_RECOVERABLE_CONTENT, "Created a placeholder page", path="index.html")
        )
        self.logger.warning("No files recovered from model response; using placeholder page")
        return ProjectFileSet([placeholder_page_file(self.placeholder_title)])

    def _build_files(self, pairs: Sequence[Tuple[str, str]]) -> ProjectFileSet:
        files = ProjectFileSet()
        for path, content in pairs:
            files.add(ExtractedFile(path=path, content=content, kind=classify(path)))
        return files

    def _cross_check(self, text: str, files: ProjectFileSet, issues: List[Issue]) -> None:
        # Markup references resolve against their page; the raw scan only fills gaps.
        references: List[Tuple[str, FileKind]] = []
        for item in files.markup():
            references.extend(find_asset_references(item.content, base=item.path))
        references.extend(find_asset_references(text))

        known = files.paths()
        for path, kind in references:
            try:
                path = safe_relative_path(path)
            except ValueError:
                self.logger.debug("Ignoring reference outside the project: %s", path)
                continue
            if is_resolved(path, known):
                continue
            if classify(path) is not kind:
                # e.g. a stylesheet served from an extension-less route; nothing sensible to stub.
                continue
            files.add(placeholder_asset_file(path))
            known.append(path)
            issues.append(
                Issue(
                    IssueKind.UNRESOLVED_ASSET_REFERENCE,
                    f"Synthesised placeholder {kind.value} file",
                    path=path,
                )
            )
            self.logger.info("Synthesised placeholder for unresolved reference %s", path)


def coerce_payload(payload: Any) -> Tuple[FilePairs, Optional[str]]:
    """Return ``(path, content)`` pairs and a description from a parsed payload."""
    description: Optional[str] = None
    entries: Any = payload
    if isinstance(payload, Mapping):
        for key in _DESCRIPTION_KEYS:
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                description = value.strip()
                break
        entries = payload.get("files")
    if isinstance(entries, Mapping):
        pairs = [
            (str(path).strip(), content_to_text(content))
            for path, content in entries.items()
            if isinstance(path, str) and path.strip()
        ]
        return pairs, description
    if not isinstance(entries, list):
        return [], description
    pairs = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            continue
        path = _entry_path(entry)
        if path is None:
            continue
        pairs.append((path, content_to_text(entry.get("content"))))
    return pairs, description


def _entry_path(entry: Mapping[str, Any]) -> Optional[str]:
    for key in _PATH_KEYS:
        value = entry.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def extract_files(raw: str | None) -> ProjectFileSet:
    """Convenience wrapper returning only the recovered file set."""
    return ResponseExtractor().extract(raw).files


__all__ = ["ResponseExtractor", "STRATEGIES", "coerce_payload", "extract_files"]

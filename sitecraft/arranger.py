"""Deterministic ordering of project files (entry files first)."""

from __future__ import annotations

from typing import Iterable, List, Tuple, TypeVar

from .models import ExtractedFile, ProjectFileSet

_T = TypeVar("_T")

_ENTRY_PREFIX = "index."


def sort_key(path: str) -> Tuple[Tuple[int, str, str], ...]:
    """Return the priority key for ``path``.

    Each path segment compares by name; the last segment (the file name) is
    promoted ahead of its siblings when it starts with ``index.``. Folders get
    no precedence over files, so ``about/`` sorts between ``a.css`` and
    ``b.html``.
    """
    segments = [segment for segment in path.replace("\\", "/").split("/") if segment]
    if not segments:
        return ((1, "", path),)
    key: List[Tuple[int, str, str]] = []
    last = len(segments) - 1
    for position, segment in enumerate(segments):
        lowered = segment.lower()
        rank = 0 if position == last and lowered.startswith(_ENTRY_PREFIX) else 1
        key.append((rank, lowered, segment))
    return tuple(key)


def arrange(files: Iterable[ExtractedFile]) -> List[ExtractedFile]:
    """Return ``files`` in priority order."""
    return sorted(files, key=lambda item: sort_key(item.path))


def arrange_paths(paths: Iterable[str]) -> List[str]:
    return sorted(paths, key=sort_key)


def arrange_set(files: ProjectFileSet) -> ProjectFileSet:
    """Return a new file set whose iteration order is the priority order."""
    return ProjectFileSet(arrange(files))


__all__ = ["arrange", "arrange_paths", "arrange_set", "sort_key"]

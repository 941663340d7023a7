"""Detection of third-party libraries referenced only by convention."""

from __future__ import annotations

from abc import ABC, abstractmethod
from importlib import metadata
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

import yaml

from ..logging import get_logger
from ..models import DependencyRule, Placement, ResourceTag, TagKind

_ENTRY_POINT_GROUP = "sitecraft.detectors"
BUILTIN_RULES = Path(__file__).with_name("rules.yml")

logger = get_logger("preview.dependencies")


class RuleError(RuntimeError):
    """Raised when a dependency rules file cannot be parsed."""


class DependencyDetector(ABC):
    """Contract for detectors that map markup to resource tags."""

    @abstractmethod
    def detect(self, markup: str) -> List[ResourceTag]:
        """Return the resources ``markup`` needs, each at most once."""


class SignatureDependencyDetector(DependencyDetector):
    """Substring signature matching over an ordered rule table."""

    def __init__(self, rules: Sequence[DependencyRule] | None = None) -> None:
        self.rules: Tuple[DependencyRule, ...] = tuple(rules) if rules is not None else tuple(load_rules())

    def detect(self, markup: str) -> List[ResourceTag]:
        resources: List[ResourceTag] = []
        seen: Set[Tuple[str, str, str]] = set()
        for rule in self.rules:
            if not rule.matches(markup):
                continue
            logger.debug("Dependency rule %s matched", rule.name)
            for resource in rule.resources:
                if resource.key in seen:
                    continue
                seen.add(resource.key)
                resources.append(resource)
        return resources


def load_rules(
    path: Path | None = None,
    *,
    extra: Iterable[Path] | None = None,
    disabled: Iterable[str] = (),
) -> List[DependencyRule]:
    """Load the rule table, appending project rule files and dropping disabled names.

    A project rule reusing a builtin name replaces the builtin in place.
    """
    disabled_set = {name.lower() for name in disabled}
    ordered: Dict[str, DependencyRule] = {}
    for source in [path or BUILTIN_RULES, *(extra or ())]:
        for rule in _read_rules(Path(source)):
            ordered[rule.name] = rule
    rules = [rule for name, rule in ordered.items() if name.lower() not in disabled_set]
    logger.debug("Loaded %d dependency rule(s)", len(rules))
    return rules


def _read_rules(path: Path) -> List[DependencyRule]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuleError(f"Unable to read rules file {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise RuleError(f"Failed to parse {path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise RuleError(f"{path.name} must contain a mapping at the root")
    entries = data.get("rules") or []
    if not isinstance(entries, list):
        raise RuleError(f"{path.name}: 'rules' must be a list")
    return [_parse_rule(entry, path.name) for entry in entries]


def _parse_rule(entry: Any, source: str) -> DependencyRule:
    if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
        raise RuleError(f"{source}: every rule needs a name")
    name = entry["name"]
    signatures = entry.get("signatures") or []
    if isinstance(signatures, str):
        signatures = [signatures]
    if not isinstance(signatures, list) or not all(isinstance(item, str) and item for item in signatures):
        raise RuleError(f"{source}: rule '{name}' signatures must be non-empty strings")
    resources = entry.get("resources") or []
    if not isinstance(resources, list):
        raise RuleError(f"{source}: rule '{name}' resources must be a list")
    return DependencyRule(
        name=name,
        signatures=tuple(signatures),
        resources=tuple(_parse_resource(item, name, source) for item in resources),
    )


def _parse_resource(item: Any, rule: str, source: str) -> ResourceTag:
    if not isinstance(item, dict):
        raise RuleError(f"{source}: rule '{rule}' has a malformed resource")
    try:
        tag = TagKind(str(item.get("tag", "")).lower())
        placement = Placement(str(item.get("placement", "")).lower())
    except ValueError as exc:
        raise RuleError(f"{source}: rule '{rule}': {exc}") from exc
    url = item.get("url") or ""
    inline = item.get("inline")
    if not isinstance(url, str) or (not url and not isinstance(inline, str)):
        raise RuleError(f"{source}: rule '{rule}' resource needs a url or inline code")
    if tag is TagKind.LINK and not url:
        raise RuleError(f"{source}: rule '{rule}' link resources need a url")
    attrs = item.get("attrs") or {}
    if not isinstance(attrs, Mapping):
        raise RuleError(f"{source}: rule '{rule}' attrs must be a mapping")
    return ResourceTag(
        url=url,
        placement=placement,
        tag=tag,
        rel=str(item.get("rel") or "stylesheet"),
        attrs=tuple((str(key), None if value is None else str(value)) for key, value in attrs.items()),
        inline=inline if isinstance(inline, str) else None,
    )


_BUILTIN_FACTORIES: Dict[str, Callable[[], DependencyDetector]] = {
    "signatures": SignatureDependencyDetector,
}


def build_detector(name: str = "signatures") -> DependencyDetector:
    """Return the detector registered under ``name``.

    Builtins win over entry points in the ``sitecraft.detectors`` group.
    """
    key = name.lower()
    factory: Optional[Callable[[], DependencyDetector]] = _BUILTIN_FACTORIES.get(key)
    if factory is not None:
        return factory()
    for entry in _iter_entry_points():
        if entry.name.lower() != key:
            continue
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - plugin import failure
            raise RuntimeError(f"Failed to load detector entry point '{name}': {exc}") from exc
        return _coerce_detector(loaded)
    raise ValueError(f"Unknown dependency detector: {name}")


def _coerce_detector(obj: object) -> DependencyDetector:
    if isinstance(obj, DependencyDetector):
        return obj
    if isinstance(obj, type) and issubclass(obj, DependencyDetector):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, DependencyDetector):
            return instance
    raise TypeError("Detector entry point must be a DependencyDetector subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "BUILTIN_RULES",
    "DependencyDetector",
    "RuleError",
    "SignatureDependencyDetector",
    "build_detector",
    "load_rules",
]

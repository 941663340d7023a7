"""Configuration loading for sitecraft (.sitecraft.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".sitecraft.yml"
DEFAULT_SANDBOX = "allow-scripts allow-forms allow-modals allow-popups"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class LLMConfig:
    """Provider settings from .sitecraft.yml."""

    provider: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    request_timeout: Optional[float] = None
    stream: bool = False


@dataclass
class PreviewConfig:
    """Composer and detector settings."""

    detector: str = "signatures"
    rules_files: List[Path] = field(default_factory=list)
    disabled_rules: List[str] = field(default_factory=list)
    fix_images: bool = True
    sandbox: str = DEFAULT_SANDBOX


@dataclass
class ExtractionConfig:
    """Extraction cascade settings."""

    cross_check: bool = True
    placeholder_title: Optional[str] = None


@dataclass
class SiteCraftConfig:
    """Represents the settings defined in .sitecraft.yml."""

    root: Path
    title: Optional[str] = None
    llm: LLMConfig = field(default_factory=LLMConfig)
    preview: PreviewConfig = field(default_factory=PreviewConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)


def load_config(config_path: Path) -> SiteCraftConfig:
    """Load configuration from disk; a missing file yields the defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return SiteCraftConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    llm_data = _as_dict(data.get("llm"))
    llm = LLMConfig(
        provider=_as_str(llm_data.get("provider")),
        model=_as_str(llm_data.get("model")),
        temperature=_as_float(llm_data.get("temperature")),
        max_tokens=_as_int(llm_data.get("max_tokens")),
        base_url=_as_str(llm_data.get("base_url")),
        api_key=_as_str(llm_data.get("api_key")),
        request_timeout=_as_float(llm_data.get("request_timeout")),
        stream=_as_bool(llm_data.get("stream")) or False,
    )

    preview_data = _as_dict(data.get("preview"))
    preview = PreviewConfig()
    if preview_data:
        preview.detector = _as_str(preview_data.get("detector")) or preview.detector
        preview.rules_files = [root / item for item in _as_str_list(preview_data.get("rules_files"))]
        preview.disabled_rules = _as_str_list(preview_data.get("disabled_rules"))
        fix_images = _as_bool(preview_data.get("fix_images"))
        if fix_images is not None:
            preview.fix_images = fix_images
        preview.sandbox = _as_str(preview_data.get("sandbox")) or preview.sandbox

    extraction_data = _as_dict(data.get("extraction"))
    extraction = ExtractionConfig()
    if extraction_data:
        cross_check = _as_bool(extraction_data.get("cross_check"))
        if cross_check is not None:
            extraction.cross_check = cross_check
        extraction.placeholder_title = _as_str(extraction_data.get("placeholder_title"))

    return SiteCraftConfig(
        root=root,
        title=_as_str(data.get("title")),
        llm=llm,
        preview=preview,
        extraction=extraction,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1", "on"}:
            return True
        if lowered in {"false", "no", "0", "off"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DEFAULT_SANDBOX",
    "ExtractionConfig",
    "LLMConfig",
    "PreviewConfig",
    "SiteCraftConfig",
    "load_config",
]

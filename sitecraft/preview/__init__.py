"""Preview composition, dependency detection and navigation."""

from .composer import DocumentComposer
from .dependencies import (
    DependencyDetector,
    RuleError,
    SignatureDependencyDetector,
    build_detector,
    load_rules,
)
from .images import ImageReferenceFixer
from .navigation import NavigationHost, NavigationOutcome, parse_message, render_host_page, render_shim

__all__ = [
    "DependencyDetector",
    "DocumentComposer",
    "ImageReferenceFixer",
    "NavigationHost",
    "NavigationOutcome",
    "RuleError",
    "SignatureDependencyDetector",
    "build_detector",
    "load_rules",
    "parse_message",
    "render_host_page",
    "render_shim",
]

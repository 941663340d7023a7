"""Replace local image references nobody generated with stock image URLs."""

from __future__ import annotations

import posixpath
import re
from typing import Dict, Iterable, Mapping, Optional

from ..logging import get_logger
from ..references import is_remote, is_resolved, normalize_reference

FALLBACK_IMAGE = "https://picsum.photos/800/600?random=99"

STOCK_IMAGES: Dict[str, str] = {
    "chef": "https://images.unsplash.com/photo-1556909114-f6e7ad7d3136?w=800&h=600&fit=crop",
    "dish": "https://images.unsplash.com/photo-1565299624946-b28f40a0ca4b?w=800&h=600&fit=crop",
    "food": "https://images.unsplash.com/photo-1567620905732-2d1ec7ab7445?w=800&h=600&fit=crop",
    "restaurant": "https://images.unsplash.com/photo-1583394838336-acd977736f90?w=800&h=600&fit=crop",
    "business": "https://images.unsplash.com/photo-1560472354-b33ff0c44a43?w=800&h=600&fit=crop",
    "office": "https://images.unsplash.com/photo-1559136555-9303baea8ebd?w=800&h=600&fit=crop",
    "team": "https://images.unsplash.com/photo-1522071820081-009f0129c71c?w=800&h=600&fit=crop",
    "tech": "https://images.unsplash.com/photo-1518709268805-4e9042af2176?w=800&h=600&fit=crop",
    "computer": "https://images.unsplash.com/photo-1516321318423-f06f85e504b3?w=800&h=600&fit=crop",
    "laptop": "https://images.unsplash.com/photo-1496181133206-80ce9b88a853?w=800&h=600&fit=crop",
    "portfolio": "https://images.unsplash.com/photo-1460925895917-afdab827c52f?w=800&h=600&fit=crop",
    "design": "https://images.unsplash.com/photo-1551288049-bebda4e38f71?w=800&h=600&fit=crop",
    "creative": "https://images.unsplash.com/photo-1558618047-3c8c76ca7d13?w=800&h=600&fit=crop",
    "placeholder": "https://picsum.photos/800/600?random=1",
    "image": "https://picsum.photos/800/600?random=2",
    "photo": "https://picsum.photos/800/600?random=3",
    "hero": "https://picsum.photos/1200/600?random=4",
    "banner": "https://picsum.photos/1200/400?random=5",
    "profile": "https://images.unsplash.com/photo-1472099645785-5658abf4ff4e?w=400&h=400&fit=crop&crop=face",
    "avatar": "https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=400&h=400&fit=crop&crop=face",
}

_IMAGE_REFERENCE = re.compile(
    r"(?P<prefix>\b(?:src|poster|data-src)\s*=\s*[\"']|url\(\s*[\"']?)"
    r"(?P<url>[^\"'()\s>]+?\.(?:jpe?g|png|gif|webp|svg))"
    r"(?P<tail>[?#][^\"'()\s>]*)?(?=[\"')\s>])",
    re.IGNORECASE,
)
_KEYWORD_TRIM = re.compile(r"[\d_\-]+$")

logger = get_logger("preview.images")


class ImageReferenceFixer:
    """Rewrites unresolvable local image paths in markup or stylesheets."""

    def __init__(
        self,
        replacements: Mapping[str, str] | None = None,
        *,
        fallback: str = FALLBACK_IMAGE,
    ) -> None:
        self.replacements = dict(STOCK_IMAGES if replacements is None else replacements)
        self.fallback = fallback

    def replacement_for(self, path: str) -> str:
        """Return the stock URL used for ``path`` (keyed by its file stem)."""
        stem = posixpath.splitext(posixpath.basename(path))[0].lower()
        keyword = _KEYWORD_TRIM.sub("", stem)
        return self.replacements.get(keyword, self.fallback)

    def fix(self, text: str, known_paths: Iterable[str] = (), *, base: Optional[str] = None) -> str:
        """Return ``text`` with references to images absent from ``known_paths`` replaced."""
        known = list(known_paths)

        def _replace(match: re.Match[str]) -> str:
            url = match.group("url")
            if is_remote(url):
                return match.group(0)
            path = normalize_reference(url, base)
            if not path or is_resolved(path, known):
                return match.group(0)
            replacement = self.replacement_for(path)
            logger.debug("Replacing missing image %s with %s", path, replacement)
            return match.group("prefix") + replacement

        return _IMAGE_REFERENCE.sub(_replace, text)


__all__ = ["FALLBACK_IMAGE", "ImageReferenceFixer", "STOCK_IMAGES"]

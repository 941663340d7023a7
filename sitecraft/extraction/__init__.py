"""Extraction of project files from raw model responses."""

from .extractor import STRATEGIES, ResponseExtractor, coerce_payload, extract_files
from .salvage import PairTokenizer, SalvageState

__all__ = [
    "PairTokenizer",
    "ResponseExtractor",
    "STRATEGIES",
    "SalvageState",
    "coerce_payload",
    "extract_files",
]

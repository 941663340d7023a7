"""Hosted model provider adapters."""

from .runner import PROVIDERS, LLMRequest, LLMRunner, ProviderError
from .stream import ResponseBuffer

__all__ = ["LLMRequest", "LLMRunner", "PROVIDERS", "ProviderError", "ResponseBuffer"]

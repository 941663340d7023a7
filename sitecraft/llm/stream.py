"""Accumulate streamed model output and extract it once complete."""

from __future__ import annotations

from typing import Iterable, List, Optional

from ..extraction import ResponseExtractor
from ..logging import get_logger
from ..models import ExtractionResult

logger = get_logger("llm.stream")


class ResponseBuffer:
    """Collects response chunks; extraction runs once, when the stream closes."""

    def __init__(self, extractor: ResponseExtractor | None = None) -> None:
        self.extractor = extractor or ResponseExtractor()
        self._chunks: List[str] = []
        self._size = 0
        self._result: Optional[ExtractionResult] = None

    @property
    def closed(self) -> bool:
        return self._result is not None

    @property
    def text(self) -> str:
        return "".join(self._chunks)

    @property
    def size(self) -> int:
        return self._size

    @property
    def result(self) -> Optional[ExtractionResult]:
        return self._result

    def feed(self, chunk: str) -> int:
        """Append ``chunk`` and return the number of characters buffered so far."""
        if self.closed:
            raise RuntimeError("Cannot feed a closed response buffer")
        if chunk:
            self._chunks.append(chunk)
            self._size += len(chunk)
        return self._size

    def close(self) -> ExtractionResult:
        """Finish the stream and extract files from the full text (idempotent)."""
        if self._result is None:
            logger.debug("Stream closed after %d chunk(s), %d character(s)", len(self._chunks), self._size)
            self._result = self.extractor.extract(self.text)
        return self._result

    @classmethod
    def consume(
        cls,
        chunks: Iterable[str],
        extractor: ResponseExtractor | None = None,
    ) -> ExtractionResult:
        buffer = cls(extractor)
        for chunk in chunks:
            buffer.feed(chunk)
        return buffer.close()


__all__ = ["ResponseBuffer"]

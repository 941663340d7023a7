"""Generation and modification flows: provider, buffer, extractor, arranger."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .arranger import arrange_set
from .config import SiteCraftConfig
from .extraction import ResponseExtractor
from .llm import LLMRunner, ResponseBuffer
from .logging import get_logger
from .models import ExtractionResult, Issue, IssueKind, ProjectFileSet
from .preview import (
    DocumentComposer,
    ImageReferenceFixer,
    SignatureDependencyDetector,
    build_detector,
    load_rules,
)
from .prompting.builder import PromptBuilder, PromptRequest
from .references import is_resolved

ChunkCallback = Callable[[str, int], None]


@dataclass
class GenerationOutcome:
    """Files produced by one model call plus what it took to get them."""

    files: ProjectFileSet
    extraction: ExtractionResult
    raw: str
    provider: str
    model: str
    changed: List[str] = field(default_factory=list)

    @property
    def issues(self) -> List[Issue]:
        return self.extraction.issues

    @property
    def description(self) -> Optional[str]:
        return self.extraction.description


class SiteGenerator:
    """Coordinates prompt building, the provider call and extraction."""

    def __init__(
        self,
        runner: LLMRunner | None = None,
        *,
        prompt_builder: PromptBuilder | None = None,
        extractor: ResponseExtractor | None = None,
        stream: bool = False,
    ) -> None:
        self.runner = runner or LLMRunner()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.extractor = extractor or ResponseExtractor()
        self.stream = stream
        self.logger = get_logger("pipeline")

    @classmethod
    def from_config(cls, config: SiteCraftConfig, **overrides: object) -> "SiteGenerator":
        options: dict[str, object] = {"extractor": build_extractor(config), "stream": config.llm.stream}
        options.update(overrides)
        runner = options.pop("runner", None) or build_runner(config)
        return cls(runner, **options)  # type: ignore[arg-type]

    def generate(
        self,
        prompt: str,
        *,
        image_count: int = 0,
        on_chunk: ChunkCallback | None = None,
    ) -> GenerationOutcome:
        """Create a new project from a natural-language description."""
        request = self.prompt_builder.build_generation(prompt, image_count=image_count)
        raw, extraction = self._complete(request, on_chunk)
        files = extraction.files
        self.logger.info("Generated %d file(s) via %s", len(files), extraction.strategy)
        return GenerationOutcome(
            files=files,
            extraction=extraction,
            raw=raw,
            provider=self.runner.provider,
            model=self.runner.model,
            changed=files.paths(),
        )

    def modify(
        self,
        prompt: str,
        current: ProjectFileSet,
        *,
        on_chunk: ChunkCallback | None = None,
    ) -> GenerationOutcome:
        """Apply a change request; returned files replace their namesakes in ``current``.

        When nothing was recovered from the response the current files are kept
        unchanged rather than replaced by a placeholder page.
        """
        request = self.prompt_builder.build_modification(prompt, current)
        raw, extraction = self._complete(request, on_chunk)
        if extraction.strategy == "fallback":
            self.logger.warning("Modification response held no files; keeping current project")
            return GenerationOutcome(
                files=arrange_set(current),
                extraction=extraction,
                raw=raw,
                provider=self.runner.provider,
                model=self.runner.model,
            )

        merged = ProjectFileSet(current)
        known = current.paths()
        synthesised = {
            issue.path for issue in extraction.issues if issue.kind is IssueKind.UNRESOLVED_ASSET_REFERENCE
        }
        changed: List[str] = []
        for item in extraction.files:
            if item.path in synthesised and is_resolved(item.path, known):
                continue
            existing = merged.get(item.path)
            if existing is None or existing.content != item.content:
                changed.append(item.path)
            merged.add(item)
        self.logger.info("Modification touched %d file(s)", len(changed))
        return GenerationOutcome(
            files=arrange_set(merged),
            extraction=extraction,
            raw=raw,
            provider=self.runner.provider,
            model=self.runner.model,
            changed=changed,
        )

    def _complete(
        self,
        request: PromptRequest,
        on_chunk: ChunkCallback | None,
    ) -> tuple[str, ExtractionResult]:
        if not self.stream and on_chunk is None:
            raw = self.runner.run(request.prompt, system=request.system)
            return raw, self.extractor.extract(raw)

        buffer = ResponseBuffer(self.extractor)
        for chunk in self.runner.stream(request.prompt, system=request.system):
            size = buffer.feed(chunk)
            if on_chunk is not None:
                on_chunk(chunk, size)
        return buffer.text, buffer.close()


def build_runner(config: SiteCraftConfig) -> LLMRunner:
    llm = config.llm
    kwargs: dict[str, object] = {}
    if llm.temperature is not None:
        kwargs["temperature"] = llm.temperature
    if llm.max_tokens is not None:
        kwargs["max_tokens"] = llm.max_tokens
    if llm.request_timeout is not None:
        kwargs["request_timeout"] = llm.request_timeout
    if llm.api_key:
        kwargs["api_key"] = llm.api_key
    return LLMRunner(llm.provider, llm.model, base_url=llm.base_url, **kwargs)  # type: ignore[arg-type]


def build_extractor(config: SiteCraftConfig) -> ResponseExtractor:
    return ResponseExtractor(
        placeholder_title=config.extraction.placeholder_title or config.title,
        cross_check=config.extraction.cross_check,
    )


def build_composer(config: SiteCraftConfig) -> DocumentComposer:
    preview = config.preview
    if preview.detector.lower() == "signatures":
        detector = SignatureDependencyDetector(
            load_rules(extra=preview.rules_files, disabled=preview.disabled_rules)
        )
    else:
        detector = build_detector(preview.detector)
    return DocumentComposer(
        detector,
        image_fixer=ImageReferenceFixer(),
        fix_images=preview.fix_images,
    )


__all__ = [
    "GenerationOutcome",
    "SiteGenerator",
    "build_composer",
    "build_extractor",
    "build_runner",
]

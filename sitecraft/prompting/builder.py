"""Builds generation and modification prompts for the site model."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from jinja2 import Environment, FileSystemLoader

from ..models import ExtractedFile, FileKind

_KIND_LABELS: Dict[FileKind, str] = {
    FileKind.MARKUP: "HTML",
    FileKind.STYLE: "CSS",
    FileKind.SCRIPT: "JAVASCRIPT",
    FileKind.DATA: "JSON",
    FileKind.TEXT: "TEXT",
    FileKind.OTHER: "OTHER",
}


@dataclass(frozen=True)
class PromptMessage:
    """Represents a single chat message for LLM prompting."""

    role: str
    content: str


@dataclass
class PromptRequest:
    """A rendered prompt ready to hand to :class:`~sitecraft.llm.LLMRunner`."""

    mode: str
    system: str
    prompt: str
    metadata: Dict[str, object] = field(default_factory=dict)

    @property
    def messages(self) -> List[PromptMessage]:
        return [
            PromptMessage(role="system", content=self.system),
            PromptMessage(role="user", content=self.prompt),
        ]


class PromptBuilder:
    """Renders prompts from Jinja templates."""

    def __init__(
        self,
        templates_dir: Path | None = None,
        *,
        min_files: int = 5,
        max_files: int = 15,
        extra_instructions: str | None = None,
    ) -> None:
        self.templates_dir = templates_dir
        self.min_files = min_files
        self.max_files = max_files
        self.extra_instructions = extra_instructions
        self._env = self._create_env(templates_dir)

    def build_generation(self, prompt: str, *, image_count: int = 0) -> PromptRequest:
        """Prompt for a brand-new project described by ``prompt``."""
        system = self._render(
            "generation.j2",
            min_files=self.min_files,
            max_files=self.max_files,
            image_count=image_count,
            extra_instructions=self.extra_instructions,
        )
        return PromptRequest(
            mode="generation",
            system=system,
            prompt=prompt.strip(),
            metadata={"image_count": image_count},
        )

    def build_modification(self, prompt: str, current_files: Iterable[ExtractedFile]) -> PromptRequest:
        """Prompt for changing an existing project; the current files travel as context."""
        files = [
            {"path": item.path, "label": _KIND_LABELS[item.kind], "content": item.content}
            for item in current_files
        ]
        system = self._render("modification.j2", files=files, prompt=prompt.strip())
        return PromptRequest(
            mode="modification",
            system=system,
            prompt=prompt.strip(),
            metadata={"file_count": len(files)},
        )

    def _render(self, name: str, **context: object) -> str:
        return self._env.get_template(name).render(**context).strip() + "\n"

    @staticmethod
    def _create_env(templates_dir: Optional[Path]) -> Environment:
        directories: List[str] = []
        if templates_dir:
            directories.append(str(templates_dir))
        default_dir = str(Path(__file__).with_name("templates"))
        if default_dir not in directories:
            directories.append(default_dir)
        return Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )


__all__ = ["PromptBuilder", "PromptMessage", "PromptRequest"]

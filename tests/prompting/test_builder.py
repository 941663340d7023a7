"""Tests for the prompt builder."""

from __future__ import annotations

from pathlib import Path

from sitecraft.models import ProjectFileSet
from sitecraft.prompting.builder import PromptBuilder


def test_generation_prompt_states_format_and_file_range() -> None:
    request = PromptBuilder(min_files=3, max_files=6).build_generation("  A yoga studio  ")

    assert request.mode == "generation"
    assert request.prompt == "A yoga studio"
    assert '"files": [' in request.system
    assert "3-6 files" in request.system
    assert "reference image" not in request.system
    assert request.system.endswith("\n")
    assert [message.role for message in request.messages] == ["system", "user"]


def test_generation_prompt_mentions_images_and_extra_instructions() -> None:
    builder = PromptBuilder(extra_instructions="Use a dark colour palette.")

    request = builder.build_generation("A portfolio", image_count=2)

    assert "2 reference image(s)" in request.system
    assert request.system.rstrip().endswith("Use a dark colour palette.")
    assert request.metadata == {"image_count": 2}


def test_modification_prompt_lists_current_files(sample_files: ProjectFileSet) -> None:
    request = PromptBuilder().build_modification("Make the header sticky", sample_files)

    assert request.mode == "modification"
    assert "File: styles.css\nType: CSS\nContent:\nbody { color: #222; }" in request.system
    assert "File: script.js\nType: JAVASCRIPT" in request.system
    assert "MODIFICATION REQUEST: Make the header sticky" in request.system
    assert request.metadata == {"file_count": 4}


def test_custom_templates_override_defaults(tmp_path: Path) -> None:
    (tmp_path / "generation.j2").write_text("Custom {{ min_files }}..{{ max_files }}\n", encoding="utf-8")
    builder = PromptBuilder(tmp_path, min_files=1, max_files=2)

    assert builder.build_generation("x").system == "Custom 1..2\n"
    assert "MODIFICATION REQUEST: y" in builder.build_modification("y", []).system

"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from sitecraft.config import DEFAULT_SANDBOX, ConfigError, load_config


def test_missing_config_yields_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config.root == tmp_path.resolve()
    assert config.title is None
    assert config.llm.provider is None
    assert config.llm.stream is False
    assert config.preview.detector == "signatures"
    assert config.preview.sandbox == DEFAULT_SANDBOX
    assert config.extraction.cross_check is True


def test_config_reads_all_sections(tmp_path: Path) -> None:
    (tmp_path / ".sitecraft.yml").write_text(
        "\n".join(
            [
                "title: Bistro Luna",
                "llm:",
                "  provider: anthropic",
                "  model: claude-test",
                "  temperature: '0.4'",
                "  max_tokens: 4000",
                "  stream: on",
                "preview:",
                "  rules_files: [rules/extra.yml]",
                "  disabled_rules: [tailwind, 7]",
                "  fix_images: off",
                "extraction:",
                "  cross_check: no",
                "  placeholder_title: Coming soon",
            ]
        ),
        encoding="utf-8",
    )

    config = load_config(tmp_path / ".sitecraft.yml")

    assert config.title == "Bistro Luna"
    assert config.llm.provider == "anthropic"
    assert config.llm.model == "claude-test"
    assert config.llm.temperature == pytest.approx(0.4)
    assert config.llm.max_tokens == 4000
    assert config.llm.stream is True
    assert config.preview.rules_files == [tmp_path.resolve() / "rules/extra.yml"]
    assert config.preview.disabled_rules == ["tailwind", "7"]
    assert config.preview.fix_images is False
    assert config.extraction.cross_check is False
    assert config.extraction.placeholder_title == "Coming soon"


def test_config_ignores_wrongly_typed_values(tmp_path: Path) -> None:
    (tmp_path / ".sitecraft.yml").write_text(
        "llm:\n  max_tokens: true\n  temperature: hot\npreview: [not, a, mapping]\n",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.llm.max_tokens is None
    assert config.llm.temperature is None
    assert config.preview.detector == "signatures"


def test_config_rejects_non_mapping_root(tmp_path: Path) -> None:
    (tmp_path / ".sitecraft.yml").write_text("- one\n- two\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_config_reports_yaml_errors(tmp_path: Path) -> None:
    (tmp_path / ".sitecraft.yml").write_text("llm: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(tmp_path)

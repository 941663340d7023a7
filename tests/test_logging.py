"""Tests for logging configuration."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from sitecraft.logging import configure_logging, get_logger, log_issues, resolve_level
from sitecraft.models import Issue, IssueKind


def test_resolve_level_prefers_flags_then_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SITECRAFT_LOG_LEVEL", "debug")
    assert resolve_level() == logging.DEBUG
    assert resolve_level(quiet=True) == logging.WARNING

    monkeypatch.setenv("SITECRAFT_LOG_LEVEL", "bogus")
    assert resolve_level() == logging.INFO

    monkeypatch.delenv("SITECRAFT_LOG_LEVEL")
    assert resolve_level(verbose=True, quiet=True) == logging.DEBUG


def test_configure_logging_writes_to_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "run.log"
    logger = configure_logging(verbose=True, log_file=log_file)
    try:
        get_logger("tests").debug("hello from the test")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        assert "hello from the test" in log_file.read_text(encoding="utf-8")
    finally:
        configure_logging()

    assert len(logging.getLogger("sitecraft").handlers) == 1


def test_log_issues_counts_and_formats(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("tests.issues")
    issues = [
        Issue(IssueKind.TRUNCATED_RESPONSE, "cut off"),
        Issue(IssueKind.UNRESOLVED_ASSET_REFERENCE, "stubbed", path="css/theme.css"),
    ]

    with caplog.at_level(logging.WARNING, logger="tests.issues"):
        count = log_issues(logger, issues, context="extract")

    assert count == 2
    assert "extract: truncated_response: cut off" in caplog.messages
    assert "extract: unresolved_asset_reference [css/theme.css]: stubbed" in caplog.messages

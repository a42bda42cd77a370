"""Tests for the tagged console logger and configuration checks."""

from __future__ import annotations

import pytest

from officesim.config import Config
from officesim.logging_utils import (
    LOG_TAG_DETERMINISTIC,
    LOG_TAG_ERROR,
    LOG_TAG_LLM,
    Color,
    SimulationLogger,
    colored,
)


def test_each_operation_gets_its_tag(capsys, monkeypatch):
    monkeypatch.setenv("OFFICESIM_NO_COLOR", "1")
    monkeypatch.setattr(Config, "LOG_LEVEL", "INFO")
    logger = SimulationLogger()

    logger.deterministic("needs decayed")
    logger.llm("requesting proposal")
    logger.error("bad proposal")

    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        f"  {LOG_TAG_DETERMINISTIC} needs decayed",
        f"  {LOG_TAG_LLM} requesting proposal",
        f"  {LOG_TAG_ERROR} bad proposal",
    ]


def test_quiet_logger_still_reports_errors(capsys, monkeypatch):
    monkeypatch.setenv("OFFICESIM_NO_COLOR", "1")
    logger = SimulationLogger(quiet=True)

    logger.info("tick 1")
    logger.success("applied")
    logger.error("oracle failed")

    assert capsys.readouterr().out == f"  {LOG_TAG_ERROR} oracle failed\n"


@pytest.mark.parametrize(
    ("level", "quiet"),
    [("DEBUG", False), ("info", False), ("WARNING", True), ("error", True)],
)
def test_default_quietness_follows_log_level(monkeypatch, level, quiet):
    monkeypatch.setattr(Config, "LOG_LEVEL", level)

    assert SimulationLogger().quiet is quiet
    assert SimulationLogger(quiet=False).quiet is False


def test_colored_wraps_in_ansi_codes(monkeypatch):
    monkeypatch.delenv("OFFICESIM_NO_COLOR", raising=False)

    text = colored("hi", Color.RED, bold=True)

    assert text == f"{Color.BOLD.value}{Color.RED.value}hi{Color.RESET.value}"


def test_config_requires_key_for_selected_provider(monkeypatch):
    monkeypatch.setattr(Config, "LLM_PROVIDER", "anthropic")
    monkeypatch.setattr(Config, "ANTHROPIC_API_KEY", None)

    with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
        Config.validate()

    monkeypatch.setattr(Config, "ANTHROPIC_API_KEY", "test-key")
    Config.validate()


def test_config_display_lists_simulation_settings(monkeypatch):
    monkeypatch.setattr(Config, "PROMPT_COOLDOWN_SECONDS", 12.0)

    assert "Prompt Cooldown: 12.0s" in Config.display()

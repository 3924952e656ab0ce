"""Tests for chapterflow.cli module."""

import argparse
from unittest.mock import patch

import pytest

from chapterflow.cli import create_parser
from chapterflow.cli.commands import (
    cmd_run,
    cmd_status,
    prompt_continue,
    prompt_empty_context,
    prompt_start_chapter,
)
from chapterflow.models import ResumePoint

CHAPTERS = ["001", "002", "003", "004"]


def _answers(*values):
    """input() replacement returning the given answers in order."""
    remaining = list(values)
    return lambda prompt: remaining.pop(0)


class TestCreateParser:
    """Tests for create_parser."""

    def test_run_defaults(self):
        args = create_parser().parse_args(["run"])
        assert args.command == "run"
        assert args.config is None
        assert args.start is None
        assert args.yes is False
        assert args.func is cmd_run

    def test_run_options(self):
        args = create_parser().parse_args(["run", "-c", "novel.yaml", "--start", "3", "-y"])
        assert args.config == "novel.yaml"
        assert args.start == 3
        assert args.yes is True

    def test_status(self):
        args = create_parser().parse_args(["-v", "status"])
        assert args.verbose is True
        assert args.func is cmd_status

    def test_start_must_be_integer(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["run", "--start", "three"])


class TestPromptStartChapter:
    """Tests for prompt_start_chapter."""

    def test_enter_accepts_suggestion(self):
        suggestion = ResumePoint(index=2, chapter_id="003", total=4)
        assert prompt_start_chapter(CHAPTERS, suggestion, _answers("")) == 2

    def test_number_overrides(self, capsys):
        """Earlier chapter: warn that later files will be overwritten."""
        suggestion = ResumePoint(index=2, chapter_id="003", total=4)

        assert prompt_start_chapter(CHAPTERS, suggestion, _answers("1")) == 0
        assert "processed again" in capsys.readouterr().out

    def test_out_of_range_falls_back(self):
        suggestion = ResumePoint(index=1, chapter_id="002", total=4)
        assert prompt_start_chapter(CHAPTERS, suggestion, _answers("9")) == 1

    def test_garbage_falls_back(self):
        suggestion = ResumePoint(index=1, chapter_id="002", total=4)
        assert prompt_start_chapter(CHAPTERS, suggestion, _answers("abc")) == 1

    def test_all_done_enter_does_nothing(self, capsys):
        suggestion = ResumePoint(index=4, chapter_id=None, total=4)

        assert prompt_start_chapter(CHAPTERS, suggestion, _answers("")) is None
        assert "All chapters are done" in capsys.readouterr().out

    def test_all_done_can_still_rerun(self):
        suggestion = ResumePoint(index=4, chapter_id=None, total=4)
        assert prompt_start_chapter(CHAPTERS, suggestion, _answers("4")) == 3


class TestOperatorPrompts:
    """Tests for the yes/no prompts."""

    def test_empty_context_defaults_to_no(self):
        assert prompt_empty_context("002", _answers("")) is False

    def test_empty_context_yes(self):
        assert prompt_empty_context("002", _answers("Y")) is True

    def test_continue_on_enter(self):
        assert prompt_continue("002", _answers("")) is True

    def test_quit(self):
        assert prompt_continue("002", _answers("q")) is False


class TestCmdRun:
    """Tests for cmd_run setup paths."""

    def _args(self, config, **overrides):
        values = {"config": str(config), "start": None, "yes": True}
        values.update(overrides)
        return argparse.Namespace(**values)

    def test_missing_config_exits(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            cmd_run(self._args(tmp_path / "nope.yaml"))
        assert exc_info.value.code == 1

    def test_missing_input_folder_is_created(self, tmp_path, capsys):
        config = tmp_path / "config.yaml"
        config.write_text(
            "translation:\n"
            "  target_language: zh-TW\n"
            "  input_folder: chapters\n"
            "prompts:\n"
            "  analysis_prompt: a\n"
            "  translation_prompt: t\n",
            encoding="utf-8",
        )

        with patch("chapterflow.cli.commands.RunController") as mock_controller:
            cmd_run(self._args(config))

        assert (tmp_path / "chapters").is_dir()
        assert "created" in capsys.readouterr().out
        mock_controller.from_config.assert_not_called()

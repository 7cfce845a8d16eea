"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import json

import pytest
from typer.testing import CliRunner

from src.cli.main import app

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

runner = CliRunner()


@pytest.fixture
def exercise_file(tmp_path, raw_session, raw_drag_and_drop):
    path = tmp_path / "lesson.json"
    path.write_text(json.dumps({"exercises": [*raw_session, raw_drag_and_drop]}), encoding="utf-8")
    return path


@pytest.fixture
def broken_file(tmp_path, raw_single_answer):
    path = tmp_path / "broken.json"
    path.write_text(json.dumps([raw_single_answer, {"kind": "crossword", "question": "?"}]), encoding="utf-8")
    return path


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "check" in result.stdout
        assert "normalize" in result.stdout

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "exengine" in result.stdout


class TestInfoCommands:
    def test_kinds(self):
        result = runner.invoke(app, ["kinds"])

        assert result.exit_code == 0
        assert "sequencing" in result.stdout
        assert "highlight" in result.stdout

    def test_info(self):
        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0
        assert "Total points" in result.stdout


class TestCheck:
    def test_valid_file(self, exercise_file):
        result = runner.invoke(app, ["check", str(exercise_file)])

        assert result.exit_code == 0
        assert "All 4 exercises are valid" in result.stdout

    def test_invalid_file(self, broken_file):
        result = runner.invoke(app, ["check", str(broken_file)])

        assert result.exit_code == 1
        assert "crossword" in result.stdout

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["check", str(tmp_path / "nope.json")])
        assert result.exit_code == 1


class TestNormalize:
    def test_writes_reloadable_output(self, exercise_file, tmp_path):
        output = tmp_path / "canonical.json"

        result = runner.invoke(app, ["normalize", str(exercise_file), "--output", str(output)])
        assert result.exit_code == 0

        canonical = json.loads(output.read_text(encoding="utf-8"))["exercises"]
        assert [e["kind"] for e in canonical] == [
            "single-choice",
            "multi-choice",
            "ordered-sequence",
            "position-mapping",
        ]

        # canonical output is itself a valid exercise file
        result = runner.invoke(app, ["check", str(output)])
        assert result.exit_code == 0


class TestPlay:
    def test_plays_to_completion(self, tmp_path, raw_single_answer, raw_sequencing):
        path = tmp_path / "short.json"
        path.write_text(json.dumps([raw_single_answer, raw_sequencing]), encoding="utf-8")

        result = runner.invoke(app, ["play", str(path)], input="opt_0\nb,a,c\n")

        assert result.exit_code == 0
        assert "Results" in result.stdout
        assert "A+" in result.stdout

    def test_quit(self, tmp_path, raw_single_answer):
        path = tmp_path / "one.json"
        path.write_text(json.dumps([raw_single_answer]), encoding="utf-8")

        result = runner.invoke(app, ["play", str(path)], input="q\n")

        assert result.exit_code == 0
        assert "aborted" in result.stdout

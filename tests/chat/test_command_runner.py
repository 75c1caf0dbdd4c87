"""Tests for chat/command_runner.py -- extraction, confirmation, execution."""

import json
import sys

import pytest

from chat.command_runner import (
    CommandSuggestion,
    confirm_execution,
    execute_command,
    extract_command,
    is_confirmation,
)


class TestExtractCommand:
    def test_bare_json_object(self):
        text = '{"explanation": "Lists running containers", "command": "docker ps"}'
        assert extract_command(text) == CommandSuggestion("Lists running containers", "docker ps")

    @pytest.mark.parametrize(
        "command",
        ["ls -la", "find . -name '*.py' | xargs wc -l", 'echo "quoted" && true', "awk '{print $1}' f"],
    )
    def test_command_returned_unchanged_inside_prose(self, command):
        obj = json.dumps({"explanation": "Does the thing", "command": command}, indent=2)
        text = f"Sure! Here's what you need:\n\n```json\n{obj}\n```\n\nLet me know if that helps."
        suggestion = extract_command(text)
        assert suggestion is not None
        assert suggestion.command == command

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "Just a normal answer with no JSON.",
            "{not valid json}",
            '{"explanation": "only explanation"}',
            '{"command": "ls"}',
            '{"explanation": "", "command": "ls"}',
            '{"explanation": "x", "command": ""}',
            '{"explanation": "x", "command": 42}',
            "[1, 2, 3]",
        ],
    )
    def test_no_suggestion(self, text):
        assert extract_command(text) is None

    def test_greedy_match_spans_prose_braces(self):
        # First "{" to last "}" includes the prose braces, so parsing fails
        text = 'Use {braces} like this: {"explanation": "e", "command": "ls"}'
        assert extract_command(text) is None

    def test_multiline_object(self):
        text = '{\n  "explanation": "Disk usage",\n  "command": "df -h"\n}'
        assert extract_command(text).command == "df -h"


class TestConfirmation:
    @pytest.mark.parametrize("answer", ["", "y", "Y", "yes", "  ", "sure", "whatever"])
    def test_defaults_to_yes(self, answer):
        assert is_confirmation(answer) is True

    @pytest.mark.parametrize("answer", ["n", "N", "no", " No "])
    def test_explicit_negative_declines(self, answer):
        assert is_confirmation(answer) is False

    def test_confirm_uses_prompt(self):
        prompts = []

        def ask(question):
            prompts.append(question)
            return ""

        assert confirm_execution(ask) is True
        assert prompts == ["Execute this command? [Y/n] "]

    @pytest.mark.parametrize("exc", [KeyboardInterrupt, EOFError])
    def test_interrupted_prompt_declines(self, exc):
        def ask(question):
            raise exc()

        assert confirm_execution(ask) is False


class TestExecuteCommand:
    def test_success_captures_output(self):
        result = execute_command("echo hello")
        assert result.ok
        assert result.returncode == 0
        assert result.output.strip() == "hello"
        assert result.error is None

    def test_stderr_is_combined(self):
        result = execute_command("echo out; echo err 1>&2")
        assert "out" in result.output
        assert "err" in result.output

    def test_nonzero_exit_reported_not_raised(self):
        result = execute_command("echo partial; exit 3")
        assert not result.ok
        assert result.returncode == 3
        assert "exit code 3" in result.error
        assert "partial" in result.output

    def test_timeout_reported(self):
        result = execute_command(f'"{sys.executable}" -c "import time; time.sleep(5)"', timeout=0.2)
        assert not result.ok
        assert result.returncode is None
        assert "timed out" in result.error

    def test_spawn_failure_reported(self, tmp_path):
        result = execute_command("echo hi", cwd=str(tmp_path / "does-not-exist"))
        assert not result.ok
        assert result.returncode is None
        assert result.error

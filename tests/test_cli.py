"""Tests for validus.cli — click commands via CliRunner."""

import json

import pytest
from click.testing import CliRunner

from validus.cli import cli


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def _builtin_table(monkeypatch):
    monkeypatch.delenv("VALIDUS_RESPONSES_FILE", raising=False)


@pytest.fixture
def responses_file(tmp_path):
    path = tmp_path / "responses.json"
    path.write_text(json.dumps({"open the door": "Opening it now."}))
    return path


# ---------------------------------------------------------------------------
# match
# ---------------------------------------------------------------------------


class TestMatch:
    def test_noisy_input_matches(self, runner: CliRunner):
        result = runner.invoke(cli, ["match", "HELLO!!"])
        assert result.exit_code == 0
        assert "Query:   'hello'" in result.output
        assert "Hi there! How can I assist you?" in result.output

    def test_typo_matches(self, runner: CliRunner):
        result = runner.invoke(cli, ["match", "how r you"])
        assert result.exit_code == 0
        assert "Trigger: 'how are you'" in result.output

    def test_no_match_exits_nonzero(self, runner: CliRunner):
        result = runner.invoke(cli, ["match", "goodbye"])
        assert result.exit_code == 1
        assert "No match (no_confident_match)" in result.output

    def test_empty_query(self, runner: CliRunner):
        result = runner.invoke(cli, ["match", "?!"])
        assert result.exit_code == 1
        assert "No match (empty_query)" in result.output

    def test_custom_table(self, runner: CliRunner, responses_file):
        result = runner.invoke(cli, ["match", "open the door", "--responses", str(responses_file)])
        assert result.exit_code == 0
        assert "Opening it now." in result.output

    def test_strict_threshold(self, runner: CliRunner):
        result = runner.invoke(cli, ["match", "helo", "--threshold", "0.1"])
        assert result.exit_code == 1

    def test_out_of_range_threshold(self, runner: CliRunner):
        result = runner.invoke(cli, ["match", "hello", "--threshold", "2"])
        assert result.exit_code == 2

    def test_invalid_table(self, runner: CliRunner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("[1, 2, 3]")
        result = runner.invoke(cli, ["match", "hello", "--responses", str(path)])
        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# responses
# ---------------------------------------------------------------------------


class TestResponses:
    def test_lists_builtin_table(self, runner: CliRunner):
        result = runner.invoke(cli, ["responses"])
        assert result.exit_code == 0
        for trigger in ("hello", "how are you", "what is your name", "tell me a joke"):
            assert trigger in result.output

    def test_lists_custom_table(self, runner: CliRunner, responses_file):
        result = runner.invoke(cli, ["responses", "--responses", str(responses_file)])
        assert result.exit_code == 0
        assert "open the door: Opening it now." in result.output

    def test_empty_table(self, runner: CliRunner, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text("{}")
        result = runner.invoke(cli, ["responses", "--responses", str(path)])
        assert result.exit_code == 0
        assert "Response table is empty." in result.output


# ---------------------------------------------------------------------------
# chat
# ---------------------------------------------------------------------------


class TestChat:
    def test_one_turn_then_eof(self, runner: CliRunner):
        result = runner.invoke(cli, ["chat"], input="hello\n")
        assert result.exit_code == 0
        assert "Validus Echo is listening." in result.output
        assert "Validus: Hi there! How can I assist you?" in result.output
        assert "Goodbye." in result.output

    def test_unknown_phrase(self, runner: CliRunner):
        result = runner.invoke(cli, ["chat"], input="open the pod bay doors\n")
        assert result.exit_code == 0
        assert "Validus: Sorry, I didn't catch that." in result.output

    def test_blank_line(self, runner: CliRunner):
        result = runner.invoke(cli, ["chat"], input="\n")
        assert result.exit_code == 0
        assert "Validus: I didn't hear anything. Can you repeat that?" in result.output

    def test_several_turns(self, runner: CliRunner):
        result = runner.invoke(cli, ["chat"], input="hello\nwhat is your name\n")
        assert result.exit_code == 0
        assert result.output.index("Hi there!") < result.output.index("I'm Validus Echo")

    def test_immediate_eof(self, runner: CliRunner):
        result = runner.invoke(cli, ["chat"], input="")
        assert result.exit_code == 0
        assert "Validus:" not in result.output
        assert "Goodbye." in result.output

"""
Tests for the chatledger click CLI.

Covers:
  - show / context / export over a saved JSONL ledger
  - error reporting for malformed ledgers (cli_entry exit code 2)
  - demo launcher command construction
"""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from chatledger.cli import _find_demo_project, _launch_demo, cli, cli_entry
from chatledger.config import CONFIG_ENV_VAR
from chatledger.exceptions import MalformedRecord
from chatledger.transcript import export_jsonl


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def ledger_file(tmp_path, sample_history):
    return export_jsonl(sample_history.get_all(), tmp_path / "chat.jsonl")


# ========================================================================
# show / context
# ========================================================================


class TestShow:
    def test_lists_every_message(self, runner, ledger_file):
        result = runner.invoke(cli, ["show", str(ledger_file)])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0] == "=== Chat History (5 messages) ==="
        assert lines[1] == "[2025-11-13 09:30:00] You (user): Hello"
        assert "[2025-11-13 09:30:02] System (system): Note" in lines

    def test_missing_file_is_usage_error(self, runner, tmp_path):
        result = runner.invoke(cli, ["show", str(tmp_path / "nope.jsonl")])
        assert result.exit_code == 2


class TestContext:
    def test_default_limit_is_five(self, runner, ledger_file):
        result = runner.invoke(cli, ["context", str(ledger_file)])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0] == "=== Context Messages (last 5 user/assistant) ==="
        assert len(lines) == 5
        assert "System" not in result.output

    def test_limit_two(self, runner, ledger_file):
        result = runner.invoke(cli, ["context", str(ledger_file), "-n", "2"])
        assert result.output.splitlines()[1:] == [
            "[user] You: How are you",
            "[assistant] Assistant: Fine",
        ]

    def test_json_output(self, runner, ledger_file):
        result = runner.invoke(cli, ["context", str(ledger_file), "--limit", "1", "--json"])
        assert json.loads(result.output) == [{"role": "assistant", "content": "Fine"}]

    def test_zero_limit_is_unbounded(self, runner, ledger_file):
        result = runner.invoke(cli, ["context", str(ledger_file), "-n", "0", "--json"])
        assert len(json.loads(result.output)) == 4


# ========================================================================
# export
# ========================================================================


class TestExport:
    def test_explicit_output_text(self, runner, ledger_file, tmp_path):
        target = tmp_path / "out" / "chat.txt"
        result = runner.invoke(cli, ["export", str(ledger_file), "-o", str(target)])
        assert result.exit_code == 0, result.output
        content = target.read_text(encoding="utf-8")
        assert "Total Messages: 5" in content
        assert "[2025-11-13 09:30:04] Assistant:\nFine\n\n" in content

    def test_markdown_format(self, runner, ledger_file, tmp_path):
        target = tmp_path / "chat.md"
        result = runner.invoke(cli, ["export", str(ledger_file), "-f", "md", "-o", str(target)])
        assert result.exit_code == 0, result.output
        assert target.read_text(encoding="utf-8").startswith("# Chat History")

    def test_default_output_uses_configured_directory(
        self, runner, ledger_file, tmp_path, monkeypatch
    ):
        exports = tmp_path / "exports"
        config = tmp_path / "chat.toml"
        config.write_text(f'[chatledger]\nexport_directory = "{exports.as_posix()}"\n')
        monkeypatch.setenv(CONFIG_ENV_VAR, str(config))

        result = runner.invoke(cli, ["export", str(ledger_file), "-f", "jsonl"])

        assert result.exit_code == 0, result.output
        (written,) = exports.glob("chat_export_*.jsonl")
        assert "exported successfully" in result.output
        assert written.read_text(encoding="utf-8").count('"type": "message"') == 5

    def test_empty_ledger(self, runner, tmp_path):
        empty = export_jsonl([], tmp_path / "empty.jsonl")
        result = runner.invoke(cli, ["export", str(empty), "-o", str(tmp_path / "x.txt")])
        assert result.exit_code == 1
        assert not (tmp_path / "x.txt").exists()


# ========================================================================
# Errors
# ========================================================================


class TestErrors:
    def test_malformed_ledger_propagates_from_group(self, runner, tmp_path):
        broken = tmp_path / "broken.jsonl"
        broken.write_text("not json\n", encoding="utf-8")
        result = runner.invoke(cli, ["show", str(broken)])
        assert isinstance(result.exception, MalformedRecord)

    def test_cli_entry_exits_with_code_two(self, tmp_path, monkeypatch, capsys):
        broken = tmp_path / "broken.jsonl"
        broken.write_text("not json\n", encoding="utf-8")
        monkeypatch.setattr("sys.argv", ["chatledger", "show", str(broken)])

        with pytest.raises(SystemExit) as excinfo:
            cli_entry()

        assert excinfo.value.code == 2
        assert "Malformed chat record on line 1" in capsys.readouterr().err


# ========================================================================
# demo
# ========================================================================


class TestDemo:
    def _fake_repo(self, tmp_path):
        project = tmp_path / "examples" / "toga_chat_demo"
        project.mkdir(parents=True)
        (project / "pyproject.toml").write_text("[project]\nname = 'demo'\n")
        return project

    def test_briefcase_mode(self, runner, tmp_path):
        project = self._fake_repo(tmp_path)
        with (
            patch("chatledger.cli._find_demo_project", return_value=project),
            patch("chatledger.cli._launch_demo", return_value=0) as launch,
        ):
            result = runner.invoke(cli, ["demo"])
        assert result.exit_code == 0
        command, launched_project = launch.call_args.args
        assert command[:2] == ["uv", "run"]
        assert str(project) in command
        assert command[-2:] == ["briefcase", "dev"]
        assert launched_project == project

    def test_python_mode_forwards_args(self, runner, tmp_path):
        project = self._fake_repo(tmp_path)
        with (
            patch("chatledger.cli._find_demo_project", return_value=project),
            patch("chatledger.cli._launch_demo", return_value=3) as launch,
        ):
            result = runner.invoke(cli, ["demo", "--python", "--", "--flag"])
        assert result.exit_code == 3
        assert launch.call_args.args[0][-4:] == ["python", "-m", "chatledger_demo", "--flag"]

    def test_missing_project(self, runner):
        with patch("chatledger.cli._find_demo_project", return_value=None):
            result = runner.invoke(cli, ["demo"])
        assert result.exit_code == 1
        assert "examples/toga_chat_demo not found" in result.output

    def test_finds_project_from_nested_directory(self, tmp_path):
        project = self._fake_repo(tmp_path)
        nested = tmp_path / "docs" / "notes"
        nested.mkdir(parents=True)
        assert _find_demo_project(nested) == project.resolve()

    def test_directory_without_project_is_not_a_match(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text("[project]\nname = 'other'\n")
        assert _find_demo_project(tmp_path) is None

    def test_launch_runs_from_checkout_root(self, tmp_path):
        project = self._fake_repo(tmp_path)
        with patch("chatledger.cli.subprocess.run") as run:
            run.return_value.returncode = 0
            assert _launch_demo(["uv", "run"], project) == 0
        assert run.call_args.kwargs["cwd"] == tmp_path

    def test_launch_without_uv(self, tmp_path, capsys):
        project = self._fake_repo(tmp_path)
        with patch("chatledger.cli.subprocess.run", side_effect=FileNotFoundError):
            assert _launch_demo(["uv", "run"], project) == 127
        assert "uv is not installed" in capsys.readouterr().err

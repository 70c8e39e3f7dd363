import asyncio
import json
from pathlib import Path

import pytest
from click.testing import CliRunner

import llmgrep.cli as cli
from llmgrep.errors import SetupError
from llmgrep.logging import configure_logging
from tests.conftest import StubClient


def _quiet(level: str, json_logs: bool = False) -> None:
    configure_logging("CRITICAL")


@pytest.fixture
def stub(monkeypatch) -> list[StubClient]:
    created: list[StubClient] = []

    def factory(config, system=None):
        client = StubClient(lambda prompt: "Score: 88\nReason: says hello")
        created.append(client)
        return client

    monkeypatch.setattr(cli, "create_client", factory)
    monkeypatch.setattr(cli, "configure_logging", _quiet)
    return created


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    (tmp_path / "a.txt").write_text("hello world")
    (tmp_path / "b.bin").write_bytes(b"\0\0\0")
    return tmp_path


class TestCli:
    def test_completed_run_exits_zero(self, stub, tree: Path):
        result = CliRunner().invoke(cli.main, [str(tree), "find hello"])
        assert result.exit_code == 0, result.output
        assert "a.txt" in result.output
        assert "says hello" in result.output
        assert "1 result(s) · 1 skipped · 0 unscored" in result.output
        assert stub[0].closed

    def test_zero_matches_still_exits_zero(self, stub, tmp_path: Path):
        result = CliRunner().invoke(cli.main, [str(tmp_path), "anything"])
        assert result.exit_code == 0
        assert "No relevant files found." in result.output

    def test_json_output(self, stub, tree: Path):
        result = CliRunner().invoke(cli.main, [str(tree), "find hello", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["results"][0]["path"] == "a.txt"
        assert data["results"][0]["score"] == 88

    def test_missing_directory_exits_nonzero(self, stub, tmp_path: Path):
        result = CliRunner().invoke(cli.main, [str(tmp_path / "missing"), "q"])
        assert result.exit_code == 1
        assert stub[0].prompts == []

    def test_unreachable_service_exits_nonzero(self, monkeypatch, tree: Path):
        class Offline(StubClient):
            async def ping(self) -> None:
                raise SetupError("Ollama is not reachable")

        monkeypatch.setattr(cli, "create_client", lambda config, system=None: Offline(lambda p: "Score: 1"))
        monkeypatch.setattr(cli, "configure_logging", _quiet)
        result = CliRunner().invoke(cli.main, [str(tree), "q"])
        assert result.exit_code == 1

    def test_invalid_option_exits_nonzero(self, stub, tree: Path):
        result = CliRunner().invoke(cli.main, [str(tree), "q", "--concurrency", "0"])
        assert result.exit_code == 1
        assert stub == []

    def test_options_reach_config(self, monkeypatch, tree: Path):
        seen = {}

        def factory(config, system=None):
            seen["config"] = config
            return StubClient(lambda p: "Score: 1")

        monkeypatch.setattr(cli, "create_client", factory)
        monkeypatch.setattr(cli, "configure_logging", _quiet)
        result = CliRunner().invoke(
            cli.main,
            [str(tree), "q", "--top-n", "3", "--aggregation", "mean", "--ignore", "a.txt,build", "--model", "llama3"],
        )
        assert result.exit_code == 0, result.output
        config = seen["config"]
        assert config.top_n == 3
        assert config.aggregation == "mean"
        assert config.ignore_paths == ("a.txt", "build")
        assert config.model == "llama3"

    def test_json_mode_logs_as_json(self, monkeypatch, stub, tree: Path):
        seen = {}

        def record(level: str, json_logs: bool = False) -> None:
            seen.update(level=level, json_logs=json_logs)
            _quiet(level)

        monkeypatch.setattr(cli, "configure_logging", record)
        result = CliRunner().invoke(cli.main, [str(tree), "q", "--json"])
        assert result.exit_code == 0
        assert seen == {"level": "WARNING", "json_logs": True}


class TestInterrupt:
    @pytest.fixture
    def interrupt_after_search(self, monkeypatch):
        real_run = asyncio.run

        def run_then_interrupt(coro):
            real_run(coro)
            raise KeyboardInterrupt

        monkeypatch.setattr(cli.asyncio, "run", run_then_interrupt)

    def test_partial_report_and_exit_130(self, stub, tree: Path, interrupt_after_search):
        result = CliRunner().invoke(cli.main, [str(tree), "find hello"])

        assert result.exit_code == 130
        assert "interrupted" in result.output
        assert "a.txt" in result.output
        assert "says hello" in result.output
        assert stub[0].closed

    def test_partial_json_report(self, stub, tree: Path, interrupt_after_search):
        result = CliRunner().invoke(cli.main, [str(tree), "find hello", "--json"])

        assert result.exit_code == 130
        # stderr notice precedes the document when the streams are mixed
        data = json.loads(result.output[result.output.index("{") :])
        assert data["interrupted"] is True
        assert [r["path"] for r in data["results"]] == ["a.txt"]

    def test_interrupt_before_any_result(self, monkeypatch, stub, tree: Path):
        def interrupt(coro):
            coro.close()
            raise KeyboardInterrupt

        monkeypatch.setattr(cli.asyncio, "run", interrupt)
        result = CliRunner().invoke(cli.main, [str(tree), "find hello"])

        assert result.exit_code == 130
        assert "No relevant files found." in result.output
        assert "interrupted" in result.output

"""Tests for the chatsum command-line interface."""

import json

import pytest
import yaml
from click.testing import CliRunner

from chatsum.cli import main
from chatsum.errors import FailureKind, ProviderFailure
from chatsum.llm.base import CompletionBackend, LLMResponse
from chatsum.llm.factory import LLMFactory

VALID_KEY = "AIzaSyTestKey_0123456789abcdef"


class EchoBackend(CompletionBackend):
    """Answers with a fixed summary.

    Keys starting with ``bad`` are rejected; keys starting with ``down`` hit a
    server error on every model.
    """

    async def complete(self, prompt, model):
        if self.config.api_key.startswith("bad"):
            raise ProviderFailure(
                FailureKind.AUTH, "API_KEY_INVALID", model=model
            )
        if self.config.api_key.startswith("down"):
            raise ProviderFailure(
                FailureKind.SERVER, "503 UNAVAILABLE", model=model
            )
        return LLMResponse(content="**Topics**: testing", model=model)

    async def list_models(self):
        return ["models/echo-1", "models/echo-pro"]


@pytest.fixture(autouse=True)
def echo_provider():
    LLMFactory.register_provider("echo", EchoBackend)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "chatsum.yaml"
    path.write_text(
        yaml.dump(
            {
                "gateway": {
                    "provider": "echo",
                    "api_keys_env": None,
                    "models": ["echo-1"],
                    "backoff_base_seconds": 0,
                    "backoff_jitter_seconds": 0,
                },
                "filters": {"exclude_commands": True},
            }
        )
    )
    return str(path)


@pytest.fixture
def transcript(tmp_path):
    path = tmp_path / "chat.json"
    path.write_text(
        json.dumps(
            [
                {"content": "hello", "username": "alice"},
                {"content": "/summary", "firstName": "Bob"},
                {"content": "bye", "firstName": "Bob"},
            ]
        )
    )
    return str(path)


class TestSummarize:
    def test_prints_summary(self, config_file, transcript):
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["summarize", transcript, "-c", config_file, "-k", VALID_KEY, "--raw"],
        )
        assert result.exit_code == 0, result.output
        assert "**Topics**: testing" in result.output
        assert "Filtered out 1 of 3 messages" in result.output

    def test_invalid_key_exits_nonzero(self, config_file, transcript):
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["summarize", transcript, "-c", config_file, "-k", "bad-key"],
        )
        assert result.exit_code == 1
        assert "Invalid API key" in result.output

    def test_spent_retry_budget_exits_nonzero(self, config_file, transcript):
        """A ProviderError outside the user-facing taxonomy is reported, not raised."""
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["summarize", transcript, "-c", config_file, "-k", "down-key"],
        )
        assert result.exit_code == 1
        assert result.exception is None or isinstance(result.exception, SystemExit)
        assert "attempts failed" in result.output


class TestModels:
    def test_lists_models(self, config_file):
        runner = CliRunner()
        result = runner.invoke(main, ["models", "-c", config_file, "-k", VALID_KEY])
        assert result.exit_code == 0, result.output
        assert "echo-pro" in result.output
        assert "Total models found: 2" in result.output


class TestCheckKeys:
    def test_all_valid(self, config_file):
        runner = CliRunner()
        result = runner.invoke(
            main, ["check-keys", "-c", config_file, "-k", VALID_KEY]
        )
        assert result.exit_code == 0, result.output

    def test_malformed_key_fails(self, config_file):
        runner = CliRunner()
        result = runner.invoke(
            main, ["check-keys", "-c", config_file, "-k", VALID_KEY, "-k", "short"]
        )
        assert result.exit_code == 1
        assert "malformed key" in result.output

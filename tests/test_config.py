"""Tests for configuration loading and validation."""

import logging

import pytest
import yaml
from pydantic import ValidationError

from chatsum.config import (
    DEFAULT_GEMINI_MODELS,
    AppConfig,
    GatewayConfig,
    SummarizerConfig,
    load_config,
    load_yaml_file,
)


class TestGatewayConfig:
    def test_explicit_keys(self):
        cfg = GatewayConfig(api_keys=["k1", "k2"])
        assert cfg.api_keys == ["k1", "k2"]

    def test_keys_from_env_json_array(self, monkeypatch):
        monkeypatch.setenv("TEST_KEYS", '["k1", "k2", "k3"]')
        cfg = GatewayConfig(api_keys_env="TEST_KEYS")
        assert cfg.api_keys == ["k1", "k2", "k3"]

    def test_single_key_from_env(self, monkeypatch):
        monkeypatch.setenv("TEST_KEYS", "only-key")
        cfg = GatewayConfig(api_keys_env="TEST_KEYS")
        assert cfg.api_keys == ["only-key"]

    def test_env_missing_warns(self, monkeypatch, caplog):
        monkeypatch.delenv("NONEXISTENT_KEY", raising=False)
        with caplog.at_level(logging.WARNING):
            cfg = GatewayConfig(api_keys_env="NONEXISTENT_KEY")
        assert cfg.api_keys == []
        assert "NONEXISTENT_KEY" in caplog.text

    def test_explicit_keys_override_env(self, monkeypatch):
        monkeypatch.setenv("TEST_KEYS", "from-env")
        cfg = GatewayConfig(api_keys=["explicit"], api_keys_env="TEST_KEYS")
        assert cfg.api_keys == ["explicit"]

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        cfg = GatewayConfig()
        assert cfg.provider == "gemini"
        assert cfg.models == DEFAULT_GEMINI_MODELS
        assert cfg.max_global_retries == 3
        assert cfg.cooldown_seconds == 60.0
        assert cfg.backoff_base_seconds == 1.0
        assert cfg.backoff_jitter_seconds == 1.0

    def test_empty_model_chain_rejected(self):
        with pytest.raises(ValidationError):
            GatewayConfig(api_keys=["k"], models=[])

    def test_zero_retries_rejected(self):
        with pytest.raises(ValidationError):
            GatewayConfig(api_keys=["k"], max_global_retries=0)


class TestSummarizerConfig:
    def test_defaults(self):
        cfg = SummarizerConfig()
        assert cfg.chunk_size == 900
        assert cfg.chunk_threshold == 1000
        assert cfg.default_style == "default"

    def test_threshold_below_chunk_size_rejected(self):
        with pytest.raises(ValidationError):
            SummarizerConfig(chunk_size=500, chunk_threshold=100)


class TestLoadConfig:
    def test_load_valid_config(self, tmp_path):
        config_data = {
            "gateway": {
                "provider": "openai",
                "api_keys": ["sk-a", "sk-b"],
                "models": ["gpt-4o-mini", "gpt-4o"],
            },
            "summarizer": {"default_style": "brief"},
            "filters": {"exclude_commands": True, "excluded_user_ids": [5]},
        }
        config_path = tmp_path / "chatsum.yaml"
        with open(config_path, "w") as f:
            yaml.dump(config_data, f)

        cfg = load_config(config_path)
        assert cfg.gateway.provider == "openai"
        assert cfg.gateway.api_keys == ["sk-a", "sk-b"]
        assert cfg.summarizer.default_style == "brief"
        assert cfg.filters.excluded_user_ids == [5]

    def test_load_empty_config_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        config_path = tmp_path / "chatsum.yaml"
        config_path.write_text("")
        cfg = load_config(config_path)
        assert isinstance(cfg, AppConfig)
        assert cfg.summarizer.chunk_size == 900

    def test_load_missing_config(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Config not found"):
            load_config(tmp_path / "chatsum.yaml")


class TestLoadYamlFile:
    def test_load_valid(self, tmp_path):
        path = tmp_path / "test.yaml"
        path.write_text("key: value\n")
        assert load_yaml_file(path) == {"key": "value"}

    def test_load_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_yaml_file(tmp_path / "nonexistent.yaml")

    def test_load_empty(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_file(path) == {}

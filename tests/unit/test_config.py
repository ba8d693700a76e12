"""Tests for aicomment.core.config."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from aicomment.core.config import (
    DEFAULTS,
    ConfigError,
    _deep_merge,
    config_path,
    is_truthy,
    load_config,
    load_env,
)


@pytest.fixture(autouse=True)
def _no_keyring():
    with patch("aicomment.core.config._get_api_key", return_value=None):
        yield


class TestDeepMerge:
    def test_simple_override(self):
        base = {"a": 1, "b": 2}
        override = {"b": 3}
        assert _deep_merge(base, override) == {"a": 1, "b": 3}

    def test_nested_merge(self):
        base = {"llm": {"model": "qwen-plus", "max_tokens": 2000}}
        override = {"llm": {"model": "qwen-max"}}
        result = _deep_merge(base, override)
        assert result["llm"]["model"] == "qwen-max"
        assert result["llm"]["max_tokens"] == 2000

    def test_does_not_mutate_base(self):
        base = {"a": {"b": 1}}
        _deep_merge(base, {"a": {"b": 2}})
        assert base["a"]["b"] == 1


class TestLoadConfig:
    def test_returns_defaults_when_no_file(self, tmp_path: Path):
        config = load_config(tmp_path / "nonexistent.yaml", env={})
        assert config["llm"]["model"] == "qwen-plus"
        assert config["llm"]["temperature"] == 0.3
        assert config["llm"]["max_tokens"] == 2000
        assert config["llm"]["api_key"] is None
        assert config["llm"]["debug"] is False
        assert config["backup"]["suffix"] == ".backup"
        assert config["batch"]["workers"] == 1

    def test_loads_and_merges(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("llm:\n  model: qwen-max\n  max_retries: 2\n")

        config = load_config(config_file, env={})
        assert config["llm"]["model"] == "qwen-max"
        assert config["llm"]["max_retries"] == 2
        # Defaults preserved for unset keys
        assert config["llm"]["max_tokens"] == 2000

    def test_api_key_from_env(self, tmp_path: Path):
        config = load_config(tmp_path / "none.yaml", env={"DASHSCOPE_API_KEY": "sk-env"})
        assert config["llm"]["api_key"] == "sk-env"

    def test_env_key_beats_file_key(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("llm:\n  api_key: sk-file\n")

        config = load_config(config_file, env={"DASHSCOPE_API_KEY": "sk-env"})
        assert config["llm"]["api_key"] == "sk-env"

    def test_file_key_used_without_env(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("llm:\n  api_key: sk-file\n")

        config = load_config(config_file, env={})
        assert config["llm"]["api_key"] == "sk-file"

    def test_keyring_fallback(self, tmp_path: Path):
        with patch("aicomment.core.config._get_api_key", return_value="sk-ring"):
            config = load_config(tmp_path / "none.yaml", env={})
        assert config["llm"]["api_key"] == "sk-ring"

    @pytest.mark.parametrize("value", ["1", "true", "TRUE", " True "])
    def test_debug_env(self, tmp_path: Path, value):
        config = load_config(tmp_path / "none.yaml", env={"DEBUG": value})
        assert config["llm"]["debug"] is True

    @pytest.mark.parametrize("value", ["0", "false", "yes", ""])
    def test_debug_env_off(self, tmp_path: Path, value):
        config = load_config(tmp_path / "none.yaml", env={"DEBUG": value})
        assert config["llm"]["debug"] is False

    def test_does_not_mutate_defaults(self, tmp_path: Path):
        load_config(tmp_path / "none.yaml", env={"DASHSCOPE_API_KEY": "sk", "DEBUG": "1"})
        assert DEFAULTS["llm"]["api_key"] is None
        assert DEFAULTS["llm"]["debug"] is False

    def test_handles_empty_file(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        config = load_config(config_file, env={})
        assert config["llm"]["model"] == "qwen-plus"

    def test_handles_corrupt_yaml(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(": : : invalid yaml [[[")

        config = load_config(config_file, env={})
        assert "llm" in config

    def test_handles_non_mapping_yaml(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- just\n- a list\n")

        config = load_config(config_file, env={})
        assert config["llm"]["model"] == "qwen-plus"

    def test_reads_os_environ_by_default(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("DASHSCOPE_API_KEY", "sk-process")
        config = load_config(tmp_path / "none.yaml")
        assert config["llm"]["api_key"] == "sk-process"

    def test_numeric_strings_are_coerced(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("llm:\n  max_retries: '2'\n  timeout: '30'\nbatch:\n  workers: '4'\n")

        config = load_config(config_file, env={})
        assert config["llm"]["max_retries"] == 2
        assert config["llm"]["timeout"] == 30.0
        assert config["batch"]["workers"] == 4

    def test_invalid_number_raises(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("llm:\n  max_retries: three\n")

        with pytest.raises(ConfigError, match=r"llm\.max_retries: 'three'"):
            load_config(config_file, env={})

    def test_null_number_uses_default(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("llm:\n  max_tokens:\n")

        config = load_config(config_file, env={})
        assert config["llm"]["max_tokens"] == 2000

    def test_non_mapping_section_raises(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("batch: 4\n")

        with pytest.raises(ConfigError, match="'batch' must be a mapping"):
            load_config(config_file, env={})


class TestConfigPath:
    def test_env_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("AICOMMENT_CONFIG", str(tmp_path / "c.yaml"))
        assert config_path() == tmp_path / "c.yaml"

    def test_default(self, monkeypatch):
        monkeypatch.delenv("AICOMMENT_CONFIG", raising=False)
        assert config_path() == Path("~/.aicomment/config.yaml").expanduser()


class TestLoadEnv:
    def test_loads_dotenv_without_override(self, tmp_path: Path, monkeypatch):
        (tmp_path / ".env").write_text(
            "AICOMMENT_TEST_NEW=from-file\nAICOMMENT_TEST_SET=from-file\n"
        )
        monkeypatch.delenv("AICOMMENT_TEST_NEW", raising=False)
        monkeypatch.setenv("AICOMMENT_TEST_SET", "from-shell")

        loaded = load_env(tmp_path)

        assert loaded == (tmp_path / ".env").resolve()
        assert os.environ["AICOMMENT_TEST_NEW"] == "from-file"
        assert os.environ["AICOMMENT_TEST_SET"] == "from-shell"

    def test_searches_parents(self, tmp_path: Path, monkeypatch):
        (tmp_path / ".env").write_text("AICOMMENT_TEST_PARENT=1\n")
        child = tmp_path / "a" / "b"
        child.mkdir(parents=True)
        monkeypatch.delenv("AICOMMENT_TEST_PARENT", raising=False)

        assert load_env(child) == (tmp_path / ".env").resolve()


class TestIsTruthy:
    def test_values(self):
        assert is_truthy("1")
        assert is_truthy("true")
        assert not is_truthy(None)
        assert not is_truthy("on")

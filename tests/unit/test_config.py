"""Unit tests for config.py module"""

import pytest

from feedcheck.config import DEFAULT_CONCURRENCY, Config, load_config


class TestLoadConfig:
    """Test load_config function"""

    def test_defaults(self):
        config = load_config({})

        assert config == Config()
        assert config.concurrency == DEFAULT_CONCURRENCY == 60
        assert config.max_attempts == 3
        assert config.timeout == 30
        assert config.ignore_invalid is False
        assert config.fail_on_transient is False

    def test_overrides(self):
        config = load_config({
            "FEEDCHECK_CONCURRENCY": "8",
            "FEEDCHECK_MAX_ATTEMPTS": "5",
            "FEEDCHECK_TIMEOUT": "2.5",
            "FEEDCHECK_LOG_LEVEL": "debug",
        })

        assert config.concurrency == 8
        assert config.max_attempts == 5
        assert config.timeout == 2.5
        assert config.log_level == "DEBUG"

    @pytest.mark.parametrize("value,expected", [("true", True), ("TRUE", True), (" True ", True),
                                                ("false", False), ("1", False), ("", False)])
    def test_flags(self, value, expected):
        config = load_config({"IGNORE_INVALID_FEEDS": value, "FAIL_ON_TRANSIENT": value})

        assert config.ignore_invalid is expected
        assert config.fail_on_transient is expected

    def test_blank_numbers_use_defaults(self):
        assert load_config({"FEEDCHECK_CONCURRENCY": "  "}).concurrency == 60

    def test_non_numeric(self):
        with pytest.raises(ValueError, match="FEEDCHECK_CONCURRENCY"):
            load_config({"FEEDCHECK_CONCURRENCY": "lots"})

    @pytest.mark.parametrize("env", [
        {"FEEDCHECK_CONCURRENCY": "0"},
        {"FEEDCHECK_CONCURRENCY": "-4"},
        {"FEEDCHECK_MAX_ATTEMPTS": "0"},
        {"FEEDCHECK_TIMEOUT": "0"},
    ])
    def test_out_of_range(self, env):
        with pytest.raises(ValueError):
            load_config(env)

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("FEEDCHECK_CONCURRENCY", "12")

        assert load_config().concurrency == 12

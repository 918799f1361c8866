"""Unit tests for configuration loading"""
import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from ccmon.api.queries.timeranges import TimeRangePreset
from ccmon.core.config import MonitorConfig, load_config, load_config_from
from ccmon.insights.pricing import PricingProvider

ENV_KEYS = ("CCMON_CONFIG", "CCMON_PROMETHEUS_URL", "CCMON_REFRESH_INTERVAL", "CCMON_LOG_LEVEL")


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    """No CCMON_* variables, no .env and no ./config.yaml in the working directory."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestMonitorConfig:
    def test_defaults(self):
        config = MonitorConfig()
        assert config.prometheus_url == "http://localhost:9090"
        assert config.refresh_interval == 15
        assert config.default_time_range is TimeRangePreset.LAST_15_MINUTES
        assert config.pricing_provider is PricingProvider.ANTHROPIC
        assert config.label_filters() == {}

    def test_label_filters_skip_empty_values(self):
        config = MonitorConfig(terminal_type_filter="vscode", app_version_filter="2.0.1")
        assert config.label_filters() == {"terminal_type": "vscode", "app_version": "2.0.1"}

    def test_custom_default_range_rejected(self):
        with pytest.raises(ValidationError):
            MonitorConfig(default_time_range="custom")

    def test_invalid_values_rejected(self):
        with pytest.raises(ValidationError):
            MonitorConfig(refresh_interval=0)
        with pytest.raises(ValidationError):
            MonitorConfig(log_level="LOUD")

    def test_log_level_is_uppercased(self):
        assert MonitorConfig(log_level="debug").log_level == "DEBUG"

    def test_paths_expand_user(self):
        config = MonitorConfig(stats_cache_path="~/stats.json")
        assert config.stats_cache_file == config.stats_cache_file.expanduser()
        assert MonitorConfig().history_file is None


class TestLoadConfig:
    def test_load_from_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("prometheus_url: http://prom:9090\ndefault_time_range: 1w\npricing_provider: google_vertex\n")

        config = load_config_from(str(path))

        assert config.prometheus_url == "http://prom:9090"
        assert config.default_time_range is TimeRangePreset.LAST_1_WEEK
        assert config.pricing_provider is PricingProvider.GOOGLE_VERTEX

    def test_empty_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config_from(str(path)) == MonitorConfig()

    def test_defaults_without_file(self, clean_env):
        assert load_config() == MonitorConfig()

    def test_default_file_in_working_directory(self, clean_env):
        (clean_env / "config.yaml").write_text("port: 9000\n")
        assert load_config().port == 9000

    def test_env_config_path(self, clean_env, monkeypatch):
        path = clean_env / "other.yaml"
        path.write_text("port: 9100\n")
        monkeypatch.setenv("CCMON_CONFIG", str(path))
        assert load_config().port == 9100

    def test_env_overrides_file(self, clean_env):
        path = clean_env / "config.yaml"
        path.write_text("prometheus_url: http://file:9090\nrefresh_interval: 30\n")

        with patch.dict(os.environ, {"CCMON_PROMETHEUS_URL": "http://env:9090", "CCMON_REFRESH_INTERVAL": "60"}):
            config = load_config(str(path))

        assert config.prometheus_url == "http://env:9090"
        assert config.refresh_interval == 60

    def test_missing_explicit_file(self, clean_env):
        with pytest.raises(FileNotFoundError):
            load_config(str(clean_env / "absent.yaml"))

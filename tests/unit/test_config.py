"""
Unit tests for settings loading.
"""

import pytest

from catalog_sync.config import DEFAULT_SNAPSHOT_MAX_BYTES, Settings, load_settings
from catalog_sync.core.errors import ConfigurationError

ENV_VARS = (
    "LEGACY_API_URL",
    "LEGACY_API_KEY",
    "CRON_SECRET",
    "EDGE_CACHE_BACKEND",
    "SNAPSHOT_MAX_BYTES",
    "PROBE_BATCH_SIZE",
    "PROBE_TIMEOUT_MS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate each test from the developer's environment and .env file"""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestLoadSettings:
    """Tests for load_settings()"""

    def test_defaults(self):
        settings = load_settings()

        assert settings.edge_cache_backend == "memory"
        assert settings.snapshot_max_bytes == DEFAULT_SNAPSHOT_MAX_BYTES
        assert settings.probe_batch_size == 10
        assert settings.probe_timeout_ms == 10_000
        assert settings.cron_secret is None

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("CRON_SECRET", "abc")
        monkeypatch.setenv("PROBE_BATCH_SIZE", "25")
        monkeypatch.setenv("EDGE_CACHE_BACKEND", " HTTP ")

        settings = load_settings()

        assert settings.cron_secret == "abc"
        assert settings.probe_batch_size == 25
        assert settings.edge_cache_backend == "http"

    def test_env_file(self, monkeypatch, tmp_path):
        """Test a .env file is read without overriding the real environment"""
        env_file = tmp_path / "custom.env"
        env_file.write_text("CRON_SECRET=from-file\nPROBE_TIMEOUT_MS=2000\n")
        monkeypatch.setenv("CRON_SECRET", "from-env")

        settings = load_settings(env_file=env_file)

        assert settings.cron_secret == "from-env"
        assert settings.probe_timeout_ms == 2000

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("CRON_SECRET", "from-env")
        assert load_settings(cron_secret="explicit").cron_secret == "explicit"

    @pytest.mark.parametrize("name,value", [
        ("PROBE_BATCH_SIZE", "0"),
        ("PROBE_BATCH_SIZE", "lots"),
        ("EDGE_CACHE_BACKEND", "redis"),
        ("SNAPSHOT_MAX_BYTES", "-1"),
    ])
    def test_invalid_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(ConfigurationError):
            load_settings()


class TestRequire:
    """Tests for required-setting accessors"""

    def test_require_source(self):
        settings = Settings(legacy_api_url="https://legacy.example.test", legacy_api_key="k")
        assert settings.require_source() == ("https://legacy.example.test", "k")

    def test_require_source_missing(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(legacy_api_url="https://legacy.example.test").require_source()

        assert "LEGACY_API_KEY" in str(exc_info.value)

    def test_require_edge_config_missing(self):
        with pytest.raises(ConfigurationError):
            Settings().require_edge_config()

"""Tests for configuration loading and saving."""

import pytest

from schedule_widget.config import Config, ConfigModel, load_config, save_config
from schedule_widget.sync import GitHubContentsStore


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for suffix in ("TOKEN", "REPO", "PATH"):
        monkeypatch.delenv(f"SCHEDULE_WIDGET_{suffix}", raising=False)
    Config._instance = None
    yield
    Config._instance = None


class TestConfigModel:
    """Test the settings model."""

    def test_defaults(self):
        config = ConfigModel()

        assert config.path == "schedule-data.json"
        assert config.api_url == "https://api.github.com"
        assert config.commit_message == "Update schedule"
        assert not config.is_configured()

    def test_yaml_round_trip(self):
        config = ConfigModel(token="ghp_x", repo="alice/notes", branch="data", data_dir="/tmp/sw")

        restored = ConfigModel.from_yaml(config.to_yaml())

        assert restored == config
        assert restored.is_configured()

    def test_unknown_keys_are_ignored(self):
        config = ConfigModel.from_yaml("repo: alice/notes\ntheme: dark\n")

        assert config.repo == "alice/notes"

    def test_empty_yaml(self):
        assert ConfigModel.from_yaml("") == ConfigModel()

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("SCHEDULE_WIDGET_TOKEN", "from-env")
        monkeypatch.setenv("SCHEDULE_WIDGET_PATH", "data/schedule.json")
        monkeypatch.setenv("SCHEDULE_WIDGET_REPO", "  ")

        config = ConfigModel(token="from-file", repo="alice/notes").apply_env_overrides()

        assert config.token == "from-env"
        assert config.repo == "alice/notes"
        assert config.path == "data/schedule.json"

    def test_create_store(self):
        config = ConfigModel(token="t", repo="alice/notes", branch="data", api_url="https://ghe.example.com/api/v3/")

        store = config.create_store()

        assert isinstance(store, GitHubContentsStore)
        assert store.repo == "alice/notes"
        assert store.branch == "data"
        assert store.api_url == "https://ghe.example.com/api/v3"


class TestConfig:
    """Test the file-backed configuration manager."""

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path / "absent.yaml") == ConfigModel()

    def test_save_and_load(self, tmp_path):
        config_path = tmp_path / "nested" / "config.yaml"

        saved_to = save_config(ConfigModel(token="t", repo="alice/notes"), config_path)
        loaded = Config.reload(config_path)

        assert saved_to == config_path
        assert loaded.repo == "alice/notes"
        assert loaded.token == "t"

    def test_load_is_cached_until_reload(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        save_config(ConfigModel(repo="first/repo"), config_path)
        assert load_config(config_path).repo == "first/repo"

        save_config(ConfigModel(repo="second/repo"), config_path)

        assert load_config(config_path).repo == "first/repo"
        assert Config.reload(config_path).repo == "second/repo"

    def test_read_file_skips_env(self, tmp_path, monkeypatch):
        config_path = tmp_path / "config.yaml"
        save_config(ConfigModel(token="on-disk", repo="alice/notes"), config_path)
        monkeypatch.setenv("SCHEDULE_WIDGET_TOKEN", "from-env")

        assert Config.read_file(config_path).token == "on-disk"
        assert Config.reload(config_path).token == "from-env"

    def test_unreadable_file_falls_back_to_defaults(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("token: [unclosed\n", encoding="utf-8")

        assert Config.read_file(config_path) == ConfigModel()

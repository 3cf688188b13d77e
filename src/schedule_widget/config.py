"""Configuration management for the Schedule Widget."""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from .sync.coordinator import DEFAULT_COMMIT_MESSAGE, DEFAULT_DOCUMENT_PATH
from .sync.remote_store import GitHubContentsStore


logger = logging.getLogger(__name__)

ENV_PREFIX = "SCHEDULE_WIDGET"
DEFAULT_DATA_DIR = "~/.schedule_widget"


def _env(suffix: str) -> Optional[str]:
    value = os.getenv(f"{ENV_PREFIX}_{suffix}")
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass
class ConfigModel:
    """Settings for reaching the remote schedule document."""

    # Remote document
    token: str = ""
    repo: str = ""  # owner/name
    path: str = DEFAULT_DOCUMENT_PATH
    branch: Optional[str] = None
    api_url: str = GitHubContentsStore.DEFAULT_API_URL
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    timeout: float = 30.0

    # Local
    data_dir: str = DEFAULT_DATA_DIR
    log_level: str = "WARNING"

    def __post_init__(self):
        self.data_dir = os.path.expanduser(self.data_dir)

    def is_configured(self) -> bool:
        return bool(self.token and self.repo)

    def apply_env_overrides(self) -> "ConfigModel":
        """Let environment variables supply the credential and document location."""
        self.token = _env("TOKEN") or self.token
        self.repo = _env("REPO") or self.repo
        self.path = _env("PATH") or self.path
        return self

    def to_yaml(self) -> str:
        """Serialize config to YAML."""
        data = {
            "token": self.token,
            "repo": self.repo,
            "path": self.path,
            "branch": self.branch,
            "api_url": self.api_url,
            "commit_message": self.commit_message,
            "timeout": self.timeout,
            "data_dir": self.data_dir,
            "log_level": self.log_level,
        }
        return yaml.dump(data, default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ConfigModel":
        """Deserialize config from YAML, ignoring unknown keys."""
        data = yaml.safe_load(yaml_str) or {}
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    def get_config_path(self) -> Path:
        """Get the config file path."""
        return Path(self.data_dir) / "config.yaml"

    def create_store(self) -> GitHubContentsStore:
        return GitHubContentsStore(
            token=self.token,
            repo=self.repo,
            api_url=self.api_url,
            branch=self.branch,
            timeout=self.timeout,
        )


class Config:
    """Configuration manager for the Schedule Widget."""

    _instance: Optional[ConfigModel] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Load configuration from file, falling back to defaults."""
        if cls._instance is not None:
            return cls._instance

        cls._instance = cls.read_file(config_path).apply_env_overrides()
        return cls._instance

    @classmethod
    def read_file(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Read only what is stored on disk, without environment overrides."""
        config = ConfigModel()

        if config_path is None:
            config_path = config.get_config_path()

        if config_path.exists():
            try:
                config = ConfigModel.from_yaml(config_path.read_text(encoding="utf-8"))
                logger.debug(f"Loaded configuration from {config_path}")
            except (OSError, yaml.YAMLError, TypeError) as e:
                logger.warning(f"Failed to load config from {config_path}: {e}; using defaults")

        return config

    @classmethod
    def save(cls, config: ConfigModel, config_path: Optional[Path] = None) -> Path:
        """Save configuration to file."""
        if config_path is None:
            config_path = config.get_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(config.to_yaml(), encoding="utf-8")
        logger.info(f"Configuration saved to {config_path}")
        return config_path

    @classmethod
    def get(cls) -> ConfigModel:
        """Get the current configuration instance."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reload(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Reload configuration from file."""
        cls._instance = None
        return cls.load(config_path)


def get_config() -> ConfigModel:
    """Get the current configuration."""
    return Config.get()


def load_config(config_path: Optional[Path] = None) -> ConfigModel:
    """Load configuration from file."""
    return Config.load(config_path)


def save_config(config: ConfigModel, config_path: Optional[Path] = None) -> Path:
    """Save configuration to file."""
    return Config.save(config, config_path)

"""
Configuration management with YAML loading and environment variable support.
"""

import os
import platform
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .constants import (
    ARCHITECTURE_ALIASES,
    DEFAULT_DOWNLOAD_TIMEOUT_SECONDS,
    DEFAULT_INSTANCE_ID,
    DEFAULT_PRIMARY_NAME,
    DEFAULT_WORKFLOWS_TTL_SECONDS,
    DEFAULT_WORKFLOWS_URL,
)


def _get_default_cache_dir() -> Path:
    """Get default cache directory based on XDG spec."""
    if xdg_cache := os.environ.get("XDG_CACHE_HOME"):
        return Path(xdg_cache) / "vmfleet"
    return Path.home() / ".cache" / "vmfleet"


def _env_path(env_var: str, default: Path) -> Path:
    """Get path from environment variable or return default."""
    if value := os.environ.get(env_var):
        return Path(value)
    return default


def normalize_architecture(tag: str) -> str:
    """Canonical spelling of an architecture tag (aarch64 -> arm64)."""
    tag = tag.strip().lower()
    return ARCHITECTURE_ALIASES.get(tag, tag)


def host_architecture() -> str:
    """Get normalized architecture tag of this host."""
    return normalize_architecture(platform.machine())


@dataclass
class WorkflowsConfig:
    """Where workflows come from and how long a downloaded bundle stays valid."""

    url: str = field(default_factory=lambda: os.environ.get("VMF_WORKFLOWS_URL", DEFAULT_WORKFLOWS_URL))
    cache_dir: Path = field(default_factory=lambda: _env_path("VMF_CACHE_DIR", _get_default_cache_dir()))
    ttl_seconds: float = DEFAULT_WORKFLOWS_TTL_SECONDS
    download_timeout: float = DEFAULT_DOWNLOAD_TIMEOUT_SECONDS
    # None = architecture of this host
    compatibility_tag: str | None = None


@dataclass
class ClientConfig:
    # Empty string disables the primary instance
    primary_name: str = field(default_factory=lambda: os.environ.get("VMF_PRIMARY_NAME", DEFAULT_PRIMARY_NAME))
    default_instance_id: int = DEFAULT_INSTANCE_ID


@dataclass
class LoggingConfig:
    level: str = "WARNING"
    console_logging: bool = True


SECTIONS = ["workflows", "client", "logging"]


@dataclass
class AppConfig:
    workflows: WorkflowsConfig = field(default_factory=WorkflowsConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> "AppConfig":
        """Load configuration from YAML file."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "AppConfig":
        """Create config from dictionary. Unknown sections and keys are ignored."""
        config = cls()

        for section_name in SECTIONS:
            section_data = data.get(section_name)
            if not isinstance(section_data, dict):
                continue
            section = getattr(config, section_name)
            for key, value in section_data.items():
                key = key.replace("-", "_")
                if hasattr(section, key):
                    setattr(section, key, value)

        if isinstance(config.workflows.cache_dir, str):
            config.workflows.cache_dir = Path(config.workflows.cache_dir).expanduser()

        return config


def _get_default_config_dir() -> Path:
    """Get default config directory."""
    # Check environment variable first
    if config_dir := os.environ.get("VMF_CONFIG_DIR"):
        return Path(config_dir)

    # Check XDG config home
    if xdg_config := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_config) / "vmfleet"

    # Fall back to ~/.config
    return Path.home() / ".config" / "vmfleet"


def load_config(config_path: Path | None = None, config_dir: Path | None = None) -> AppConfig:
    """
    Load configuration.

    Args:
        config_path: Path to config file (default: searches standard locations)
        config_dir: Config directory to search

    Returns:
        AppConfig, with defaults for anything not configured
    """
    if config_dir is None:
        config_dir = _get_default_config_dir()

    if config_path is None:
        search_paths = [
            config_dir / "config.yaml",
            Path.cwd() / "vmfleet.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = path
                break

    return AppConfig.from_yaml(config_path) if config_path else AppConfig()

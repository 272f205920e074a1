"""keydojo configuration management."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from keydojo.exceptions import ConfigurationError

_TRUE_VALUES = ("1", "true", "yes", "on")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class KeyDojoConfig:
    """Configuration for keydojo."""

    # Paths
    package_root: Path = field(default_factory=lambda: Path(__file__).parent)
    challenges_dir: Optional[Path] = None
    save_path: Optional[Path] = None  # None means resolve at load time
    runtime_script: Optional[Path] = None

    # Editor
    editor: str = "nvim"
    keep_workspace: bool = False

    # Unlock policy
    unlock_all: bool = False
    unlock_fraction: float = 1.0
    count_outdated: bool = True

    # History
    history_limit: int = 10

    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        """Initialize derived paths and validate."""
        if self.challenges_dir is None:
            self.challenges_dir = self.package_root / "challenges"
        if self.runtime_script is None:
            self.runtime_script = self.package_root / "session" / "runtime.lua"
        self.validate()

    def validate(self) -> None:
        if not 0.0 < self.unlock_fraction <= 1.0:
            raise ConfigurationError(
                f"unlock_fraction must be in (0, 1], got {self.unlock_fraction}",
                config_key="unlock_fraction",
            )
        if self.history_limit < 1:
            raise ConfigurationError(
                f"history_limit must be at least 1, got {self.history_limit}",
                config_key="history_limit",
            )
        if not self.editor.strip():
            raise ConfigurationError("editor must not be empty", config_key="editor")
        if self.log_level not in _LOG_LEVELS:
            raise ConfigurationError(
                f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {self.log_level}",
                config_key="log_level",
            )

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> KeyDojoConfig:
        """Load configuration from environment variables (and a .env file if present)."""
        load_dotenv(env_file)

        try:
            unlock_fraction = float(os.getenv("KEYDOJO_UNLOCK_FRACTION", "1.0"))
        except ValueError:
            raise ConfigurationError(
                "KEYDOJO_UNLOCK_FRACTION must be a number", config_key="unlock_fraction"
            )
        try:
            history_limit = int(os.getenv("KEYDOJO_HISTORY_LIMIT", "10"))
        except ValueError:
            raise ConfigurationError(
                "KEYDOJO_HISTORY_LIMIT must be an integer", config_key="history_limit"
            )

        config = cls(
            editor=os.getenv("KEYDOJO_EDITOR", "nvim"),
            keep_workspace=_env_flag("KEYDOJO_KEEP_WORKSPACE", False),
            unlock_all=_env_flag("KEYDOJO_UNLOCK_ALL", False),
            unlock_fraction=unlock_fraction,
            count_outdated=_env_flag("KEYDOJO_COUNT_OUTDATED", True),
            history_limit=history_limit,
            log_level=os.getenv("KEYDOJO_LOG_LEVEL", "WARNING").upper(),
        )

        # Override paths if specified in environment
        if env_challenges := os.getenv("KEYDOJO_CHALLENGES_DIR"):
            config.challenges_dir = Path(env_challenges)

        if env_save := os.getenv("KEYDOJO_SAVE_PATH"):
            config.save_path = Path(env_save)

        if env_runtime := os.getenv("KEYDOJO_RUNTIME_SCRIPT"):
            config.runtime_script = Path(env_runtime)

        return config

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return {
            "paths": {
                "challenges_dir": str(self.challenges_dir) if self.challenges_dir else None,
                "save_path": str(self.save_path) if self.save_path else None,
                "runtime_script": str(self.runtime_script) if self.runtime_script else None,
            },
            "editor": {
                "command": self.editor,
                "keep_workspace": self.keep_workspace,
            },
            "unlock": {
                "unlock_all": self.unlock_all,
                "unlock_fraction": self.unlock_fraction,
                "count_outdated": self.count_outdated,
            },
            "history_limit": self.history_limit,
            "log_level": self.log_level,
        }


# Global default configuration
_default_config: Optional[KeyDojoConfig] = None


def get_config() -> KeyDojoConfig:
    """Get the global configuration, creating from environment if needed."""
    global _default_config
    if _default_config is None:
        _default_config = KeyDojoConfig.from_env()
    return _default_config


def set_config(config: Optional[KeyDojoConfig]) -> None:
    """Set (or with None, reset) the global configuration."""
    global _default_config
    _default_config = config

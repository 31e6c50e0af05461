"""Configuration resolver with 4-level priority.

Priority (highest to lowest):
1. CLI arguments
2. Environment variables (NODEMANIFEST_*)
3. Config files (user > system)
4. Defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from nodemanifest.core.errors import ConfigError

ALLOWED_LOGGING_LEVELS = frozenset({"quiet", "normal", "verbose", "debug"})
DEFAULT_LOGGING_LEVEL = "normal"
DEFAULT_CACHE_DIR = ".cache"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class ConfigSource:
    """Represents where a config value came from."""

    value: Any
    source: str  # 'cli' | 'env' | 'user_config' | 'system_config' | 'default'


@dataclass(frozen=True)
class LoggingPolicy:
    """Resolved, immutable logging policy."""

    level_name: str  # quiet | normal | verbose | debug
    emit_error: bool
    emit_warning: bool
    emit_info: bool
    emit_debug: bool
    sources: dict[str, ConfigSource]


class ConfigResolver:
    """Resolve configuration with strict 4-level priority.

    Example:
        resolver = ConfigResolver(
            cli_args={'program': {'directory': '/srv/site'}},
            user_config_path=Path('~/.config/nodemanifest/config.yaml')
        )

        directory, source = resolver.resolve('program.directory')
        # directory = '/srv/site', source = 'cli'
    """

    def __init__(
        self,
        cli_args: dict[str, Any] | None = None,
        user_config_path: Path | None = None,
        system_config_path: Path | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        """Initialize config resolver.

        Args:
            cli_args: Arguments from CLI (highest priority)
            user_config_path: Path to user config file
            system_config_path: Path to system config file
            defaults: Default values (lowest priority)
        """
        self.cli_args = cli_args or {}
        self.user_config_path = (
            user_config_path or Path.home() / ".config/nodemanifest/config.yaml"
        )
        self.system_config_path = system_config_path or Path("/etc/nodemanifest/config.yaml")
        self.defaults = defaults or self._default_config()

        self._user_config: dict[str, Any] | None = None
        self._system_config: dict[str, Any] | None = None

    def resolve(self, key: str) -> tuple[Any, str]:
        """Resolve config value with priority.

        Args:
            key: Config key (supports dot notation: 'logging.level')

        Returns:
            (value, source) tuple

        Raises:
            ConfigError: If key not found in any source
        """
        value = self._from_cli(key)
        if value is not None:
            return value, "cli"

        value = self._from_env(key)
        if value is not None:
            return value, "env"

        value = self._from_user_config(key)
        if value is not None:
            return value, "user_config"

        value = self._from_system_config(key)
        if value is not None:
            return value, "system_config"

        value = self._from_defaults(key)
        if value is not None:
            return value, "default"

        raise ConfigError(f"Config key '{key}' not found in any source")

    def resolve_program_directory(self) -> Path:
        """Resolve the site directory the cache lives under.

        Falls back to the current working directory.
        """
        found = self._try_resolve_value("program.directory")
        if found is None:
            return Path.cwd()
        value, _src = found
        if not isinstance(value, str) or value.strip() == "":
            raise ConfigError("Config key 'program.directory' must be a non-empty path string")
        return Path(value).expanduser()

    def resolve_cache_root(self) -> Path:
        """Resolve the cache root (node-manifests/ and diagnostics/ live here).

        Relative cache_dir values are taken relative to the program directory.
        """
        found = self._try_resolve_value("node_manifests.cache_dir")
        value = DEFAULT_CACHE_DIR if found is None else found[0]
        if not isinstance(value, str) or value.strip() == "":
            raise ConfigError(
                "Config key 'node_manifests.cache_dir' must be a non-empty path string"
            )
        cache_dir = Path(value).expanduser()
        if cache_dir.is_absolute():
            return cache_dir
        return self.resolve_program_directory() / cache_dir

    def resolve_bool(self, key: str, default: bool = False) -> bool:
        """Resolve a boolean key, accepting string forms from ENV."""
        found = self._try_resolve_value(key)
        if found is None:
            return default
        value, _src = found
        if isinstance(value, bool):
            return value
        if isinstance(value, int):
            return bool(value)
        s = str(value).strip().lower()
        if s in _TRUE_VALUES:
            return True
        if s in _FALSE_VALUES:
            return False
        raise ConfigError(f"Config key '{key}' must be a bool, got {value!r}")

    def resolve_logging_level(self) -> str:
        """Resolve and validate logging.level.

        Allowed values (after normalization):
            quiet | normal | verbose | debug

        Raises:
            ConfigError: If the resolved value is invalid.
        """
        level, _src = self._resolve_logging_level_and_source()
        return level

    def resolve_logging_policy(self) -> LoggingPolicy:
        """Resolve the logging policy. Side-effect free."""
        level_name, src = self._resolve_logging_level_and_source()

        return LoggingPolicy(
            level_name=level_name,
            emit_error=True,
            emit_warning=True,
            emit_info=level_name != "quiet",
            emit_debug=level_name == "debug",
            sources={"level_name": src},
        )

    def _resolve_logging_level_and_source(self) -> tuple[str, ConfigSource]:
        key = "logging.level"
        found = self._try_resolve_value(key)

        if found is None:
            return DEFAULT_LOGGING_LEVEL, ConfigSource(
                value=DEFAULT_LOGGING_LEVEL,
                source="default",
            )

        value, source = found
        norm = self._normalize_logging_level(key, value)
        return norm, ConfigSource(value=norm, source=source)

    def _try_resolve_value(self, key: str) -> tuple[Any, str] | None:
        try:
            return self.resolve(key)
        except ConfigError as e:
            if "not found in any source" in str(e):
                return None
            raise

    def _normalize_logging_level(self, key: str, value: Any) -> str:
        if not isinstance(value, str):
            raise ConfigError(f"Config key '{key}' must be a string, got {type(value).__name__}")

        norm = value.strip().lower()
        if norm == "":
            raise ConfigError(f"Config key '{key}' must not be empty")

        if norm not in ALLOWED_LOGGING_LEVELS:
            allowed = ", ".join(sorted(ALLOWED_LOGGING_LEVELS))
            raise ConfigError(f"Invalid '{key}': {value!r}. Allowed values: {allowed}")

        return norm

    def _from_cli(self, key: str) -> Any | None:
        return self._get_nested(self.cli_args, key)

    def _from_env(self, key: str) -> Any | None:
        """Get value from environment variables.

        Environment variable format: NODEMANIFEST_KEY_NAME
        Example: NODEMANIFEST_PROGRAM_DIRECTORY, NODEMANIFEST_LOGGING_LEVEL
        """
        env_key = f"NODEMANIFEST_{key.upper().replace('.', '_')}"
        return os.environ.get(env_key)

    def _from_user_config(self, key: str) -> Any | None:
        return self._get_nested(self._get_user_config(), key)

    def _from_system_config(self, key: str) -> Any | None:
        return self._get_nested(self._get_system_config(), key)

    def _from_defaults(self, key: str) -> Any | None:
        return self._get_nested(self.defaults, key)

    def _get_user_config(self) -> dict[str, Any]:
        if self._user_config is None:
            self._user_config = self._load_yaml(self.user_config_path)
        return self._user_config

    def _get_system_config(self) -> dict[str, Any]:
        if self._system_config is None:
            self._system_config = self._load_yaml(self.system_config_path)
        return self._system_config

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
                return data if isinstance(data, dict) else {}
        except Exception as e:
            raise ConfigError(f"Failed to load config from {path}: {e}") from e

    def _get_nested(self, data: dict[str, Any], key: str) -> Any | None:
        """Get nested value using dot notation.

        Example:
            data = {'logging': {'level': 'debug'}}
            _get_nested(data, 'logging.level') -> 'debug'
        """
        current: Any = data

        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None

        return current

    @staticmethod
    def _default_config() -> dict[str, Any]:
        return {
            "node_manifests": {
                "cache_dir": DEFAULT_CACHE_DIR,
            },
            "logging": {
                "level": DEFAULT_LOGGING_LEVEL,
                "color": True,
            },
            "diagnostics": {
                "enabled": False,
            },
        }

"""Configuration management for the library."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import InspoConfig
from .resolver import flatten_for_env, overrides_from_env, parse_scalar, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.inspo/config.yaml")
_CONFIG_HEADER = textwrap.dedent(
    """\
    # Visual Inspiration configuration file
    # Generated automatically; manage via `inspo config set KEY --value VALUE`.
    """
)


class ConfigManager:
    """Load and persist configuration data, applying precedence rules."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
    ) -> InspoConfig:
        """Load configuration from disk, layering environment and CLI overrides."""
        if ensure_file:
            self.ensure_exists()

        return resolve_with_precedence(
            defaults=InspoConfig(),
            file_overrides=self._read_file(),
            env_overrides=overrides_from_env(self._env) if include_env else None,
            cli_overrides=cli_overrides,
        )

    def save(self, config: InspoConfig | Mapping[str, Any]) -> None:
        """Persist configuration data to disk."""
        if isinstance(config, InspoConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)
        self._write_file(data)

    def set_value(self, key: str, raw_value: str) -> InspoConfig:
        """Assign a dotted ``key`` in the file overrides and persist the result.

        Args:
            key: Dotted setting path such as ``undo.window_seconds``.
            raw_value: YAML scalar text to parse into the stored value.

        Returns:
            InspoConfig: Validated configuration after the change.

        Raises:
            ConfigError: If the key or value is rejected by validation.
        """
        overrides = self._read_file()
        updated = resolve_with_precedence(
            defaults=InspoConfig(),
            file_overrides=overrides,
            cli_overrides={key: parse_scalar(raw_value)},
        )
        self.save(updated)
        return updated

    def ensure_exists(self) -> Path:
        """Create a configuration file with defaults if one does not exist."""
        if not self._config_path.exists():
            self._write_file(InspoConfig().model_dump(mode="python"))
        return self._config_path

    def read_text(self) -> str:
        """Return the current configuration file contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    # Internal helpers -------------------------------------------------

    def _read_file(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return raw

    def _write_file(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        serialized = yaml.safe_dump(dict(data), sort_keys=False)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{serialized}", encoding="utf-8"
        )


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "InspoConfig",
    "resolve_with_precedence",
    "flatten_for_env",
    "ConfigError",
]

"""Configuration resolution helpers."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import InspoConfig

ENV_PREFIX = "INSPO__"


def parse_scalar(raw_value: str) -> Any:
    """Interpret override text as YAML, keeping the raw text when it does not parse."""
    try:
        return yaml.safe_load(raw_value)
    except yaml.YAMLError:
        return raw_value


def overrides_from_env(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``INSPO__SECTION__KEY`` variables as dotted override keys.

    ``INSPO__UNDO__WINDOW_SECONDS=120`` becomes ``{"undo.window_seconds": 120}``.
    """
    overrides: dict[str, Any] = {}
    for key, raw_value in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        segments = [part.lower() for part in key[len(ENV_PREFIX) :].split("__") if part]
        if segments:
            overrides[".".join(segments)] = parse_scalar(raw_value)
    return overrides


def resolve_with_precedence(
    *,
    defaults: InspoConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> InspoConfig:
    """Layer file, environment, and CLI overrides on ``defaults`` and validate.

    Override mappings may be nested or use dotted keys (``"undo.window_seconds"``).

    Raises:
        ConfigError: If an override is malformed or a value fails validation.
    """
    merged = defaults.model_dump(mode="python")
    layers = {"file": file_overrides, "environment": env_overrides, "cli": cli_overrides}
    for name, layer in layers.items():
        if layer is not None:
            _merge_into(merged, _expand(layer, name))

    try:
        return InspoConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: InspoConfig) -> Dict[str, str]:
    """Render every setting as the ``INSPO__SECTION__KEY`` variable that would set it."""
    flat: Dict[str, str] = {}
    for section, values in config.model_dump(mode="python").items():
        for key, value in values.items():
            env_key = f"{ENV_PREFIX}{section.upper()}__{key.upper()}"
            flat[env_key] = "null" if value is None else str(value)
    return flat


def _expand(layer: Mapping[str, Any], name: str) -> dict[str, Any]:
    """Turn dotted keys into nested dictionaries."""
    if not isinstance(layer, MappingABC):
        raise ConfigError(f"{name.capitalize()} overrides must be a mapping.")

    expanded: dict[str, Any] = {}
    for key, value in layer.items():
        if not isinstance(key, str):
            raise ConfigError(f"{name.capitalize()} override keys must be strings.")
        *parents, leaf = key.split(".")
        node = expanded
        for segment in parents:
            child = node.setdefault(segment, {})
            if not isinstance(child, dict):
                raise ConfigError(
                    f"{name.capitalize()} override for {key} conflicts with {segment}."
                )
            node = child
        if isinstance(value, MappingABC):
            value = _expand(value, name)
            if isinstance(node.get(leaf), dict):
                _merge_into(node[leaf], value)
                continue
        node[leaf] = value
    return expanded


def _merge_into(target: dict[str, Any], overrides: Mapping[str, Any]) -> None:
    for key, value in overrides.items():
        current = target.get(key)
        if isinstance(value, MappingABC) and isinstance(current, dict):
            _merge_into(current, value)
        else:
            target[key] = deepcopy(value)


__all__ = [
    "resolve_with_precedence",
    "flatten_for_env",
    "overrides_from_env",
    "parse_scalar",
    "ENV_PREFIX",
]

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from skyhash_client.config.schema import ClientConfig

ENV_PREFIX = "SKYHASH_"
ENV_FIELDS = ("host", "port", "username", "password", "timeout", "read_size")


class ConfigLoadError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def load_client_config(path: str | Path | None = None, *, environ: Mapping[str, str] | None = None) -> ClientConfig:
    """
    Build the client settings from defaults, an optional file and the environment.

    Later layers win: a `SKYHASH_PORT` variable overrides `port:` from the
    file, which overrides the built-in default. Environment values are plain
    strings and go through the same pydantic coercion as file values.
    """
    data: dict[str, Any] = read_config_file(path) if path is not None else {}
    sources = [str(path)] if path is not None else []

    env = env_overrides(os.environ if environ is None else environ)
    if env:
        data.update(env)
        sources.append("environment (" + ", ".join(ENV_PREFIX + name.upper() for name in env) + ")")

    return validate_config(data, source=" + ".join(sources) or "<defaults>")


def env_overrides(environ: Mapping[str, str]) -> dict[str, str]:
    """Pick `SKYHASH_<FIELD>` variables; empty values count as unset."""
    found: dict[str, str] = {}
    for name in ENV_FIELDS:
        value = environ.get(ENV_PREFIX + name.upper())
        if value:
            found[name] = value
    return found


def validate_config(data: Any, *, source: str = "<memory>") -> ClientConfig:
    try:
        return ClientConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigLoadError(format_validation_error(exc, source=source)) from exc


def read_config_file(path: str | Path) -> dict[str, Any]:
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigLoadError(f"Config file not found: {config_path}")

    raw_text = config_path.read_text(encoding="utf-8")
    suffix = config_path.suffix.lower()

    if suffix in {".yml", ".yaml"}:
        try:
            parsed = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ConfigLoadError(f"YAML parse error in {config_path}: {exc}") from exc
    elif suffix == ".json":
        try:
            parsed = json.loads(raw_text)
        except json.JSONDecodeError as exc:
            raise ConfigLoadError(f"JSON parse error in {config_path}: {exc}") from exc
    else:
        raise ConfigLoadError(f"Unsupported config format '{config_path.suffix}'. Use .yml/.yaml or .json.")

    # an empty file means "all defaults"
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ConfigLoadError(f"Client config in {config_path} must be a mapping, got {type(parsed).__name__}")
    return parsed


def format_validation_error(error: ValidationError, *, source: str) -> str:
    lines = [f"Invalid client config from {source}:"]
    for item in error.errors():
        field = ".".join(str(part) for part in item.get("loc", ())) or "<root>"
        lines.append(f" - {field}: {item.get('msg', 'invalid value')}")
    return "\n".join(lines)

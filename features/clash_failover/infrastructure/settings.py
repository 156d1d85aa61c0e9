from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Final, Mapping, Optional

import yaml
from pydantic import ValidationError

from features.clash_failover.domain.config import ControllerConfig
from features.clash_failover.domain.errors import ConfigurationError


ENV_FILE: Final[Path] = Path(".env")
ENV_PREFIX: Final[str] = "AUTOCLASH_"
DEFAULT_CONFIG_PATH: Final[Path] = Path("config.yml")


def load_env_file(path: Path = ENV_FILE) -> None:
    """Populate os.environ from .env if present without overriding existing values."""

    if not path.exists():
        return

    try:
        with path.open("r", encoding="utf-8") as handle:
            for raw_line in handle:
                line = raw_line.strip()
                if not line or line.startswith("#"):
                    continue

                if "=" not in line:
                    continue

                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip()

                if not key:
                    continue

                if "#" in value:
                    value = value.split("#", 1)[0].strip()

                if key not in os.environ:
                    os.environ[key] = value
    except OSError:
        # If the file cannot be read we simply rely on existing environment configuration.
        return


def env_name(field_name: str) -> str:
    return f"{ENV_PREFIX}{field_name.upper()}"


def env_overrides(environ: Mapping[str, str]) -> Dict[str, str]:
    overrides: Dict[str, str] = {}
    for field_name in ControllerConfig.model_fields:
        value = environ.get(env_name(field_name))
        if value:
            overrides[field_name] = value
    return overrides


def read_config_file(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"cannot read config file {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"cannot parse config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"config file {path} must contain a mapping")
    return data


def load_config(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    env_file: Optional[Path] = ENV_FILE,
) -> ControllerConfig:
    if env_file is not None:
        load_env_file(env_file)
    source = os.environ if environ is None else environ
    data = read_config_file(path or DEFAULT_CONFIG_PATH)
    data.update(env_overrides(source))
    try:
        return ControllerConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid configuration: {exc}") from exc

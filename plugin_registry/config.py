"""Builder configuration.

Settings resolve in this order, later sources winning:
defaults, an optional YAML file, environment variables, and finally the
command-line flags (applied by the CLI with ``dataclasses.replace``).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Mapping

import yaml

from plugin_registry.errors import ConfigError


DEFAULT_TOPIC = "audion-plugins"
DEFAULT_OUTPUT_PATH = "registry/main/registry.json"

# Environment variable → config field
ENV_OVERRIDES = {
    "GITHUB_TOKEN": "github_token",
    "PLUGIN_REGISTRY_TOPIC": "topic",
    "PLUGIN_REGISTRY_OUTPUT": "output_path",
}

# Annotation (a string, see __future__ import) → accepted value types
_FIELD_TYPES = {
    "str": (str,),
    "int": (int,),
    "float": (int, float),
}


@dataclass(frozen=True)
class BuilderConfig:
    """Everything the pipeline needs to know to run one build."""

    topic: str = DEFAULT_TOPIC
    output_path: str = DEFAULT_OUTPUT_PATH

    # Endpoints
    api_base: str = "https://api.github.com"
    raw_base: str = "https://raw.githubusercontent.com"
    manifest_path: str = "plugin.json"
    user_agent: str = "Audion-Registry-Builder"
    github_token: str = ""

    # Discovery paging
    per_page: int = 100
    max_pages: int = 10

    # Transport
    timeout: float = 30.0  # seconds, per request
    max_attempts: int = 3
    base_delay: float = 1.0  # seconds before the first retry
    max_delay: float = 30.0

    workers: int = 1

    def __post_init__(self):
        for f in fields(self):
            expected = _FIELD_TYPES.get(f.type)
            value = getattr(self, f.name)
            if expected and (isinstance(value, bool) or not isinstance(value, expected)):
                raise ConfigError(f"{f.name} must be {f.type}, got {type(value).__name__}: {value!r}")

        if self.per_page < 1 or self.per_page > 100:
            raise ConfigError(f"per_page must be between 1 and 100, got {self.per_page}")
        if self.max_pages < 1:
            raise ConfigError(f"max_pages must be at least 1, got {self.max_pages}")
        if self.max_attempts < 1:
            raise ConfigError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.workers < 1:
            raise ConfigError(f"workers must be at least 1, got {self.workers}")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")

    @property
    def authenticated(self) -> bool:
        return bool(self.github_token)


def load_config(
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> BuilderConfig:
    """Load the builder configuration.

    Args:
        path: Optional YAML file with any subset of ``BuilderConfig`` fields.
        env: Environment mapping, defaults to ``os.environ``.

    Raises:
        ConfigError: The file is unreadable, not a mapping, or names an
            unknown setting.
    """
    values: dict = {}

    if path is not None:
        values.update(_read_config_file(Path(path)))

    env = os.environ if env is None else env
    for var, field_name in ENV_OVERRIDES.items():
        if env.get(var):
            values[field_name] = env[var]

    return BuilderConfig(**values)


def _read_config_file(path: Path) -> dict:
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    known = {f.name for f in fields(BuilderConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown setting(s) in {path}: {', '.join(unknown)}")

    return data

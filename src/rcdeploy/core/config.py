"""Default config generation and loading."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TypedDict

# Optional per-project override file, read from the target directory.
CONFIG_FILE_NAME = ".rcdeploy.json"


class ConfigError(Exception):
    """Raised when a project config file cannot be used."""

    code = "CONFIG_ERROR"


class DeployConfig(TypedDict):
    dest_file_name: str
    backup_dir: str
    marker: str | None
    docs_dir: str
    vscode_settings: dict[str, object]


def default_config() -> DeployConfig:
    """Return the default rcdeploy configuration.

    The returned dict, when serialized with
    ``json.dumps(data, sort_keys=True, indent=2) + "\\n"``,
    produces the canonical ``.rcdeploy.json``.
    """
    return {
        "dest_file_name": ".clauderc",
        "backup_dir": ".deploy-backups",
        "marker": None,
        "docs_dir": ".clauderc-docs",
        "vscode_settings": {
            "files.associations": {
                ".clauderc": "markdown",
            },
            "files.exclude": {
                "**/.deploy-backups": True,
            },
            "search.exclude": {
                "**/.deploy-backups": True,
                "**/.clauderc-docs": True,
            },
        },
    }


def serialize_config(config: DeployConfig | dict[str, object]) -> str:
    """Serialize a config dict to the canonical JSON format."""
    return json.dumps(config, sort_keys=True, indent=2) + "\n"


def load_config(target_dir: Path) -> DeployConfig:
    """Return the defaults overlaid with ``<target_dir>/.rcdeploy.json``.

    Unknown keys in the file are ignored.  A missing file yields the
    defaults unchanged.
    """
    config = default_config()
    path = target_dir / CONFIG_FILE_NAME
    if not path.is_file():
        return config

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigError(f"Malformed config file {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object.")

    for key in config:
        if key in data:
            config[key] = data[key]  # type: ignore[literal-required]

    for key in ("dest_file_name", "backup_dir", "docs_dir"):
        value = config[key]  # type: ignore[literal-required]
        if not isinstance(value, str) or not value or "/" in value or "\\" in value:
            raise ConfigError(f"Config key '{key}' in {path} must be a plain file name.")
    if config["marker"] is not None and not isinstance(config["marker"], str):
        raise ConfigError(f"Config key 'marker' in {path} must be a string or null.")
    if not isinstance(config["vscode_settings"], dict):
        raise ConfigError(f"Config key 'vscode_settings' in {path} must be an object.")

    return config

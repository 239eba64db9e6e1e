"""Non-destructive merging of structured editor settings."""

from __future__ import annotations

import copy
import json
from pathlib import Path

from rcdeploy.storage.fs import atomic_write

VSCODE_DIR = ".vscode"
VSCODE_SETTINGS_FILE = "settings.json"


class SettingsError(Exception):
    """Raised when an existing settings file is not a JSON object."""

    code = "SETTINGS_ERROR"


def merge_settings(existing: dict, updates: dict) -> dict:
    """Return a new dict with *updates* merged over *existing*.

    Keys missing from *updates* are preserved.  Where both sides hold a
    dict the merge recurses, otherwise the update wins.  Neither input is
    mutated.
    """
    merged = copy.deepcopy(existing)
    for key, value in updates.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_settings(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def parse_settings(text: str, source: str = "settings") -> dict:
    """Parse settings JSON text.  Empty or whitespace-only text is ``{}``."""
    if not text.strip():
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SettingsError(f"Malformed JSON in {source}: {e}") from e
    if not isinstance(data, dict):
        raise SettingsError(f"Expected a JSON object in {source}, got {type(data).__name__}.")
    return data


def serialize_settings(settings: dict) -> str:
    """VSCode style: 4-space indent, key order preserved, trailing newline."""
    return json.dumps(settings, indent=4, ensure_ascii=False) + "\n"


def apply_vscode_settings(target_dir: Path, updates: dict) -> dict:
    """Merge *updates* into ``<target_dir>/.vscode/settings.json``.

    Creates the file (and ``.vscode/``) when absent.  Returns the merged
    settings that were written.
    """
    vscode_dir = target_dir / VSCODE_DIR
    settings_path = vscode_dir / VSCODE_SETTINGS_FILE

    existing: dict = {}
    if settings_path.exists():
        try:
            text = settings_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise SettingsError(f"Settings file {settings_path} is not valid UTF-8: {e}") from e
        existing = parse_settings(text, str(settings_path))

    merged = merge_settings(existing, updates)
    vscode_dir.mkdir(exist_ok=True)
    atomic_write(settings_path, serialize_settings(merged))
    return merged

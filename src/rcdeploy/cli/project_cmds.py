"""Project commands: detect, vscode, docs."""

from __future__ import annotations

from pathlib import Path

import click

from rcdeploy.cli.helpers import (
    json_envelope,
    json_option,
    load_target_config,
    output_error,
    target_argument,
)
from rcdeploy.cli.main import cli, write_docs, write_vscode_settings
from rcdeploy.core.project_type import detect_project_type_in


def _require_dir(target: Path, is_json: bool) -> Path:
    root = target.resolve()
    if not root.is_dir():
        output_error(f"Target directory not found: {root}", "TARGET_NOT_FOUND", is_json)
    return root


@cli.command("detect")
@target_argument
@json_option
def detect_cmd(target: Path, output_json: bool) -> None:
    """Print the project type of TARGET."""
    root = _require_dir(target, output_json)
    project_type = detect_project_type_in(root)
    if output_json:
        click.echo(json_envelope(True, data={"path": str(root), "project_type": project_type}))
    else:
        click.echo(project_type)


@cli.command("vscode")
@target_argument
@json_option
def vscode_cmd(target: Path, output_json: bool) -> None:
    """Merge rcdeploy's VSCode settings into TARGET/.vscode/settings.json.

    Existing settings not managed by rcdeploy are kept.
    """
    root = _require_dir(target, output_json)
    config = load_target_config(root, output_json)
    settings_path = write_vscode_settings(root, config, output_json)
    if output_json:
        click.echo(json_envelope(True, data={"path": str(settings_path)}))
    else:
        click.echo(f"Merged VSCode settings into {settings_path}.")


@cli.command("docs")
@target_argument
@json_option
def docs_cmd(target: Path, output_json: bool) -> None:
    """Write reference documentation into TARGET."""
    root = _require_dir(target, output_json)
    config = load_target_config(root, output_json)
    written = write_docs(root, config, output_json)
    if output_json:
        click.echo(json_envelope(True, data=[str(p) for p in written]))
    else:
        for path in written:
            click.echo(f"Wrote {path}")

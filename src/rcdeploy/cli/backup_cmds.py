"""Backup commands: backups."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import click

from rcdeploy.cli.helpers import json_envelope, json_option, load_target_config, target_argument
from rcdeploy.cli.main import cli
from rcdeploy.storage.deploy import list_backups


@cli.command("backups")
@target_argument
@json_option
def backups_cmd(target: Path, output_json: bool) -> None:
    """List backups of the deployed file in TARGET, oldest first."""
    root = target.resolve()
    config = load_target_config(root, output_json)
    backups = list_backups(root, config["dest_file_name"], config["backup_dir"])

    if output_json:
        data = []
        for path in backups:
            st = path.stat()
            data.append(
                {
                    "path": str(path),
                    "byte_size": st.st_size,
                    "modified": datetime.fromtimestamp(st.st_mtime, timezone.utc).isoformat(),
                }
            )
        click.echo(json_envelope(True, data=data))
        return

    if not backups:
        click.echo(f"No backups of {config['dest_file_name']} in {root / config['backup_dir']}.")
        return
    for path in backups:
        click.echo(f"{path.name}  {path.stat().st_size} bytes")

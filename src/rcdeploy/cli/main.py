"""CLI entry point and the deploy command."""

from __future__ import annotations

from pathlib import Path

import click

from rcdeploy.cli.helpers import (
    common_options,
    load_target_config,
    output_error,
    output_result,
    target_argument,
    warn,
)
from rcdeploy.core.config import DeployConfig
from rcdeploy.core.ids import format_iso, utc_now
from rcdeploy.core.project_type import detect_project_type_in
from rcdeploy.core.settings import (
    VSCODE_DIR,
    VSCODE_SETTINGS_FILE,
    SettingsError,
    apply_vscode_settings,
)
from rcdeploy.storage.deploy import (
    STATUS_DECLINED,
    STATUS_DEPLOYED,
    STATUS_SAME_FILE,
    STATUS_UNCHANGED,
    DeployError,
    DeploymentRequest,
    DeploymentResult,
    deploy,
)
from rcdeploy.storage.fs import atomic_write
from rcdeploy.templates.docs import render_docs

SOURCE_ENV_VAR = "RCDEPLOY_SOURCE"
DEFAULT_SOURCE_NAME = ".clauderc"


@click.group()
def cli() -> None:
    """rcdeploy: deploy an instruction file into project directories."""


def default_source() -> Path:
    """``~/.clauderc``, used when neither --source nor RCDEPLOY_SOURCE is given."""
    return Path.home() / DEFAULT_SOURCE_NAME


# ---------------------------------------------------------------------------
# Shared steps (also used by project_cmds)
# ---------------------------------------------------------------------------


def write_docs(
    root: Path, config: DeployConfig, is_json: bool, completed: object = None
) -> list[Path]:
    """Render the reference documents into ``<root>/<docs_dir>/``.

    *completed* is reported alongside the error if writing fails.
    """
    project_type = detect_project_type_in(root)
    docs = render_docs(
        project_type,
        format_iso(utc_now()),
        dest_file_name=config["dest_file_name"],
        backup_dir=config["backup_dir"],
    )
    docs_dir = root / config["docs_dir"]
    written: list[Path] = []
    try:
        docs_dir.mkdir(exist_ok=True)
        for name, text in docs.items():
            path = docs_dir / name
            atomic_write(path, text)
            written.append(path)
    except OSError as e:
        output_error(
            f"Failed to write documentation into {docs_dir}: {e}", "WRITE_FAILED", is_json, completed
        )
    return written


def write_vscode_settings(
    root: Path, config: DeployConfig, is_json: bool, completed: object = None
) -> Path:
    """Merge the configured VSCode settings into ``<root>/.vscode/settings.json``.

    *completed* is reported alongside the error if the merge fails.
    """
    settings_path = root / VSCODE_DIR / VSCODE_SETTINGS_FILE
    try:
        apply_vscode_settings(root, config["vscode_settings"])
    except SettingsError as e:
        output_error(str(e), e.code, is_json, completed)
    except OSError as e:
        output_error(f"Failed to write {settings_path}: {e}", "WRITE_FAILED", is_json, completed)
    return settings_path


def _describe(result: DeploymentResult, source: Path) -> str:
    dest = result.dest_path
    if result.status == STATUS_SAME_FILE:
        return f"Source and destination are the same file ({dest}); nothing to do."
    if result.status == STATUS_UNCHANGED:
        return f"{dest} is already up to date."
    if result.status == STATUS_DECLINED:
        return (
            f"{dest} exists and differs from {source}. "
            "Use --force to replace it (the current file is backed up first)."
        )
    lines = [f"Deployed {dest.name} to {dest} ({result.byte_size} bytes)."]
    if result.backup is not None:
        lines.append(f"Previous version backed up to {result.backup.backup_path}.")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# rcdeploy deploy
# ---------------------------------------------------------------------------


@cli.command("deploy")
@target_argument
@click.option(
    "--source",
    "source_path",
    type=click.Path(path_type=Path),
    envvar=SOURCE_ENV_VAR,
    default=None,
    help=f"File to deploy (defaults to ${SOURCE_ENV_VAR}, then ~/{DEFAULT_SOURCE_NAME}).",
)
@click.option("--force", is_flag=True, help="Replace a differing destination (after backing it up).")
@click.option("--marker", default=None, help="Text expected in the deployed file; warn if missing.")
@click.option("--with-docs", is_flag=True, help="Also write reference documentation.")
@click.option("--with-vscode", is_flag=True, help="Also merge VSCode settings.")
@common_options
def deploy_cmd(
    target: Path,
    source_path: Path | None,
    force: bool,
    marker: str | None,
    with_docs: bool,
    with_vscode: bool,
    output_json: bool,
    quiet: bool,
) -> None:
    """Deploy the instruction file into TARGET (defaults to current directory)."""
    is_json = output_json
    root = target.resolve()
    config = load_target_config(root, is_json)
    source = source_path if source_path is not None else default_source()

    request = DeploymentRequest(
        source_path=source,
        target_dir=root,
        dest_file_name=config["dest_file_name"],
        force=force,
        marker=marker if marker is not None else config["marker"],
        backup_dir_name=config["backup_dir"],
    )

    try:
        result = deploy(request)
    except DeployError as e:
        output_error(str(e), e.code, is_json)

    if result.status in (STATUS_DEPLOYED, STATUS_UNCHANGED) and not result.verified:
        warn(
            f"{result.dest_path} is {result.byte_size} bytes but the source is not; "
            "the source may have changed during deployment.",
            is_json,
        )
    if result.content_warning:
        warn(f"Expected marker {request.marker!r} not found in {result.dest_path}.", is_json)

    data = result.to_dict()
    human = not is_json and not quiet

    # The deployment is final at this point; report it before the optional
    # steps so a failure there cannot hide what was written or backed up.
    if human and (with_vscode or with_docs):
        click.echo(_describe(result, source))

    messages: list[str] = []
    if with_vscode:
        settings_path = write_vscode_settings(root, config, is_json, completed=data)
        data["vscode_settings"] = str(settings_path)
        messages.append(f"Merged VSCode settings into {settings_path}.")
    if with_docs:
        written = write_docs(root, config, is_json, completed=data)
        data["docs"] = [str(p) for p in written]
        messages.append(f"Wrote {len(written)} documentation file(s) to {root / config['docs_dir']}.")
    if not messages:
        messages.append(_describe(result, source))

    output_result(
        data=data,
        human_message="\n".join(messages),
        quiet_value=str(result.dest_path),
        is_json=is_json,
        is_quiet=quiet,
    )


# ---------------------------------------------------------------------------
# Register command modules (must be after cli group is defined)
# ---------------------------------------------------------------------------
from rcdeploy.cli import backup_cmds as _backup_cmds  # noqa: E402, F401
from rcdeploy.cli import project_cmds as _project_cmds  # noqa: E402, F401

if __name__ == "__main__":
    cli()

"""Shared CLI helpers: output envelopes, error exits, target resolution."""

from __future__ import annotations

import json
from pathlib import Path
from typing import NoReturn

import click

from rcdeploy.core.config import ConfigError, DeployConfig, load_config


def json_envelope(ok: bool, data: object = None, error: object = None) -> str:
    """Return the ``{"ok": ..., "data"|"error": ...}`` JSON string."""
    payload: dict[str, object] = {"ok": ok}
    if ok or data is not None:
        payload["data"] = data
    if not ok:
        payload["error"] = error
    return json.dumps(payload, sort_keys=True, indent=2)


def json_error_obj(code: str, message: str) -> dict[str, str]:
    return {"code": code, "message": message}


def output_error(message: str, code: str, is_json: bool, data: object = None) -> NoReturn:
    """Print an error (JSON envelope or ``Error: ...`` on stderr) and exit 1.

    *data* carries whatever was completed before the failure; it is only
    included in the JSON envelope.
    """
    if is_json:
        click.echo(json_envelope(False, data=data, error=json_error_obj(code, message)))
    else:
        click.echo(f"Error: {message}", err=True)
    raise SystemExit(1)


def output_result(
    data: object,
    human_message: str,
    quiet_value: str,
    is_json: bool,
    is_quiet: bool,
) -> None:
    """Print a command result in the selected output mode."""
    if is_json:
        click.echo(json_envelope(True, data=data))
    elif is_quiet:
        click.echo(quiet_value)
    else:
        click.echo(human_message)


def warn(message: str, is_json: bool) -> None:
    """Print a non-fatal warning to stderr (suppressed in JSON mode)."""
    if not is_json:
        click.echo(f"Warning: {message}", err=True)


def load_target_config(target: Path, is_json: bool) -> DeployConfig:
    """Load the project config for *target*, exiting on a bad config file."""
    try:
        return load_config(target)
    except ConfigError as e:
        output_error(str(e), e.code, is_json)


def target_argument(func):
    """Optional TARGET argument, defaulting to the current directory."""
    return click.argument(
        "target",
        type=click.Path(path_type=Path),
        default=".",
        required=False,
    )(func)


def json_option(func):
    return click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")(func)


def common_options(func):
    """``--json`` and ``--quiet``, shared by commands that produce a single result."""
    func = click.option("--quiet", is_flag=True, help="Print only the affected path.")(func)
    return json_option(func)

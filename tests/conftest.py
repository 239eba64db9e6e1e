"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner


@pytest.fixture()
def target_dir(tmp_path: Path) -> Path:
    """Return an empty project directory to deploy into."""
    target = tmp_path / "project"
    target.mkdir()
    return target


@pytest.fixture()
def source_file(tmp_path: Path) -> Path:
    """Return a source instruction file outside the target directory."""
    source = tmp_path / "payload" / ".clauderc"
    source.parent.mkdir()
    source.write_text("# Instructions\nPROTOCOL: v1\n")
    return source


@pytest.fixture()
def invoke(monkeypatch: pytest.MonkeyPatch):
    """Invoke the CLI with RCDEPLOY_SOURCE cleared; returns the click Result."""
    from rcdeploy.cli.main import cli

    monkeypatch.delenv("RCDEPLOY_SOURCE", raising=False)
    runner = CliRunner()

    def _invoke(*args: str, **kwargs):
        return runner.invoke(cli, list(args), catch_exceptions=False, **kwargs)

    return _invoke

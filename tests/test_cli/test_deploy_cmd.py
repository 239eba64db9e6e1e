"""Tests for `rcdeploy deploy`."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

from rcdeploy.core.config import CONFIG_FILE_NAME


def _backup_files(target: Path) -> list[Path]:
    backup_dir = target / ".deploy-backups"
    if not backup_dir.is_dir():
        return []
    return sorted(p for p in backup_dir.iterdir() if ".backup." in p.name)


class TestDeployValid:
    def test_fresh_deploy(self, invoke, source_file: Path, target_dir: Path) -> None:
        result = invoke("deploy", str(target_dir), "--source", str(source_file))

        assert result.exit_code == 0, result.output
        assert "Deployed .clauderc" in result.output
        assert (target_dir / ".clauderc").read_bytes() == source_file.read_bytes()

    def test_json_output(self, invoke, source_file: Path, target_dir: Path) -> None:
        result = invoke("deploy", str(target_dir), "--source", str(source_file), "--json")

        assert result.exit_code == 0, result.output
        parsed = json.loads(result.output)
        assert parsed["ok"] is True
        data = parsed["data"]
        assert data["status"] == "deployed"
        assert data["deployed"] is True
        assert data["verified"] is True
        assert data["backup"] is None
        assert data["dest_path"] == str(target_dir.resolve() / ".clauderc")
        assert data["deployment_id"].startswith("dep_")

    def test_quiet_prints_dest_path(self, invoke, source_file: Path, target_dir: Path) -> None:
        result = invoke("deploy", str(target_dir), "--source", str(source_file), "--quiet")

        assert result.exit_code == 0
        assert result.output.strip() == str(target_dir.resolve() / ".clauderc")

    def test_defaults_to_current_directory(
        self, invoke, source_file: Path, target_dir: Path, monkeypatch
    ) -> None:
        monkeypatch.chdir(target_dir)
        result = invoke("deploy", "--source", str(source_file))

        assert result.exit_code == 0, result.output
        assert (target_dir / ".clauderc").exists()

    def test_source_from_env_var(
        self, invoke, source_file: Path, target_dir: Path, monkeypatch
    ) -> None:
        monkeypatch.setenv("RCDEPLOY_SOURCE", str(source_file))
        result = invoke("deploy", str(target_dir))

        assert result.exit_code == 0, result.output
        assert (target_dir / ".clauderc").read_bytes() == source_file.read_bytes()

    def test_source_defaults_to_home(self, invoke, tmp_path: Path, target_dir: Path) -> None:
        fake_home = tmp_path / "home"
        fake_home.mkdir()
        (fake_home / ".clauderc").write_text("from home\n")

        with patch.object(Path, "home", return_value=fake_home):
            result = invoke("deploy", str(target_dir))

        assert result.exit_code == 0, result.output
        assert (target_dir / ".clauderc").read_text() == "from home\n"


class TestDeployOverwrite:
    def test_refuses_overwrite_without_force(
        self, invoke, source_file: Path, target_dir: Path
    ) -> None:
        (target_dir / ".clauderc").write_text("existing")

        result = invoke("deploy", str(target_dir), "--source", str(source_file))

        assert result.exit_code == 0
        assert "Use --force" in result.output
        assert (target_dir / ".clauderc").read_text() == "existing"
        assert _backup_files(target_dir) == []

    def test_force_overwrites_and_backs_up(
        self, invoke, source_file: Path, target_dir: Path
    ) -> None:
        (target_dir / ".clauderc").write_text("old content")

        result = invoke("deploy", str(target_dir), "--source", str(source_file), "--force")

        assert result.exit_code == 0, result.output
        assert "backed up to" in result.output
        assert (target_dir / ".clauderc").read_bytes() == source_file.read_bytes()
        backups = _backup_files(target_dir)
        assert len(backups) == 1
        assert backups[0].read_text() == "old content"

    def test_up_to_date_reported(self, invoke, source_file: Path, target_dir: Path) -> None:
        invoke("deploy", str(target_dir), "--source", str(source_file))
        result = invoke("deploy", str(target_dir), "--source", str(source_file), "--force")

        assert result.exit_code == 0
        assert "already up to date" in result.output
        assert _backup_files(target_dir) == []


class TestDeployErrors:
    def test_missing_source_exits_1(self, invoke, tmp_path: Path, target_dir: Path) -> None:
        missing = tmp_path / "missing.rc"
        result = invoke("deploy", str(target_dir), "--source", str(missing))

        assert result.exit_code == 1
        assert "Source file not found" in result.output
        assert str(missing) in result.output
        assert list(target_dir.iterdir()) == []

    def test_missing_source_json(self, invoke, tmp_path: Path, target_dir: Path) -> None:
        result = invoke(
            "deploy", str(target_dir), "--source", str(tmp_path / "missing.rc"), "--json"
        )

        assert result.exit_code == 1
        parsed = json.loads(result.output)
        assert parsed["ok"] is False
        assert parsed["error"]["code"] == "SOURCE_NOT_FOUND"

    def test_missing_target_exits_1(self, invoke, source_file: Path, tmp_path: Path) -> None:
        result = invoke("deploy", str(tmp_path / "nope"), "--source", str(source_file), "--json")

        assert result.exit_code == 1
        assert json.loads(result.output)["error"]["code"] == "TARGET_NOT_FOUND"

    def test_bad_config_exits_1(self, invoke, source_file: Path, target_dir: Path) -> None:
        (target_dir / CONFIG_FILE_NAME).write_text("{oops")

        result = invoke("deploy", str(target_dir), "--source", str(source_file), "--json")

        assert result.exit_code == 1
        assert json.loads(result.output)["error"]["code"] == "CONFIG_ERROR"


class TestDeployVerification:
    def test_missing_marker_warns_but_succeeds(
        self, invoke, source_file: Path, target_dir: Path
    ) -> None:
        result = invoke(
            "deploy", str(target_dir), "--source", str(source_file), "--marker", "ABSENT"
        )

        assert result.exit_code == 0
        assert "Expected marker 'ABSENT' not found" in result.output

    def test_marker_from_config(self, invoke, source_file: Path, target_dir: Path) -> None:
        (target_dir / CONFIG_FILE_NAME).write_text(json.dumps({"marker": "ABSENT"}))

        result = invoke("deploy", str(target_dir), "--source", str(source_file), "--json")

        assert result.exit_code == 0
        assert json.loads(result.output)["data"]["content_warning"] is True

    def test_present_marker_no_warning(self, invoke, source_file: Path, target_dir: Path) -> None:
        result = invoke(
            "deploy", str(target_dir), "--source", str(source_file), "--marker", "PROTOCOL"
        )

        assert result.exit_code == 0
        assert "Warning" not in result.output


class TestDeployExtras:
    def test_config_dest_file_name(self, invoke, source_file: Path, target_dir: Path) -> None:
        (target_dir / CONFIG_FILE_NAME).write_text(json.dumps({"dest_file_name": "AGENTS.md"}))

        result = invoke("deploy", str(target_dir), "--source", str(source_file))

        assert result.exit_code == 0, result.output
        assert (target_dir / "AGENTS.md").read_bytes() == source_file.read_bytes()
        assert not (target_dir / ".clauderc").exists()

    def test_with_docs_and_vscode(self, invoke, source_file: Path, target_dir: Path) -> None:
        (target_dir / "pyproject.toml").write_text("[project]\nname = 'x'\n")

        result = invoke(
            "deploy",
            str(target_dir),
            "--source",
            str(source_file),
            "--with-docs",
            "--with-vscode",
            "--json",
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)["data"]
        assert len(data["docs"]) == 2
        notes = (target_dir / ".clauderc-docs" / "PROJECT_NOTES.md").read_text()
        assert "**Python**" in notes
        settings = json.loads((target_dir / ".vscode" / "settings.json").read_text())
        assert settings["files.associations"][".clauderc"] == "markdown"


class TestDeployPathValidation:
    """Bad TARGET/--source paths exit 1 with a JSON envelope, like any other deploy error."""

    def test_target_is_a_file(self, invoke, source_file: Path, tmp_path: Path) -> None:
        not_a_dir = tmp_path / "afile"
        not_a_dir.write_text("x")

        result = invoke("deploy", str(not_a_dir), "--source", str(source_file), "--json")

        assert result.exit_code == 1
        parsed = json.loads(result.output)
        assert parsed["ok"] is False
        assert parsed["error"]["code"] == "TARGET_NOT_FOUND"
        assert not_a_dir.read_text() == "x"

    def test_source_is_a_directory(self, invoke, tmp_path: Path, target_dir: Path) -> None:
        source_dir = tmp_path / "srcdir"
        source_dir.mkdir()

        result = invoke("deploy", str(target_dir), "--source", str(source_dir), "--json")

        assert result.exit_code == 1
        assert json.loads(result.output)["error"]["code"] == "SOURCE_NOT_FOUND"
        assert list(target_dir.iterdir()) == []

    def test_source_is_a_directory_human(self, invoke, tmp_path: Path, target_dir: Path) -> None:
        source_dir = tmp_path / "srcdir"
        source_dir.mkdir()

        result = invoke("deploy", str(target_dir), "--source", str(source_dir))

        assert result.exit_code == 1
        assert "Source file not found" in result.output

    def test_non_utf8_config_exits_1(self, invoke, source_file: Path, target_dir: Path) -> None:
        (target_dir / CONFIG_FILE_NAME).write_bytes(b'{"marker": "\xff"}')

        result = invoke("deploy", str(target_dir), "--source", str(source_file), "--json")

        assert result.exit_code == 1
        assert json.loads(result.output)["error"]["code"] == "CONFIG_ERROR"
        assert not (target_dir / ".clauderc").exists()


class TestDeployExtrasFailure:
    """A failing --with-vscode/--with-docs step still reports the deployment that happened."""

    def _malformed_settings(self, target: Path) -> None:
        vscode = target / ".vscode"
        vscode.mkdir()
        (vscode / "settings.json").write_text("[]")

    def test_json_envelope_keeps_deployment_result(
        self, invoke, source_file: Path, target_dir: Path
    ) -> None:
        (target_dir / ".clauderc").write_text("old content")
        self._malformed_settings(target_dir)

        result = invoke(
            "deploy",
            str(target_dir),
            "--source",
            str(source_file),
            "--force",
            "--with-vscode",
            "--json",
        )

        assert result.exit_code == 1
        parsed = json.loads(result.output)
        assert parsed["ok"] is False
        assert parsed["error"]["code"] == "SETTINGS_ERROR"
        data = parsed["data"]
        assert data["status"] == "deployed"
        assert Path(data["backup"]["backup_path"]).read_text() == "old content"
        assert (target_dir / ".clauderc").read_bytes() == source_file.read_bytes()
        assert (target_dir / ".vscode" / "settings.json").read_text() == "[]"

    def test_human_output_reports_deployment_before_error(
        self, invoke, source_file: Path, target_dir: Path
    ) -> None:
        self._malformed_settings(target_dir)

        result = invoke(
            "deploy", str(target_dir), "--source", str(source_file), "--with-vscode"
        )

        assert result.exit_code == 1
        assert "Deployed .clauderc" in result.output
        assert "Error:" in result.output
        assert result.output.index("Deployed .clauderc") < result.output.index("Error:")

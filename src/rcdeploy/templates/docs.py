"""Reference documents written next to a deployed instruction file.

Edit this file to change what `rcdeploy docs` and `rcdeploy deploy --with-docs` emit.
Rendering is deterministic: the same project type and timestamp always
produce the same text.
"""

from __future__ import annotations

README_NAME = "README.md"
PROJECT_NOTES_NAME = "PROJECT_NOTES.md"

_README_TEMPLATE = """\
# Instruction File

This project carries a `{dest_file_name}` file at its root. It holds the
standing instructions an assistant reads before working here. Treat it as
part of the source tree: review changes to it like code.

## Updating

```
rcdeploy deploy . --force
```

A differing `{dest_file_name}` is never overwritten silently. The previous
copy is saved to `{backup_dir}/{dest_file_name}.backup.<timestamp>` first,
and the new file is put in place with a single rename.

## Restoring a backup

```
rcdeploy backups .
cp {backup_dir}/<backup-file> {dest_file_name}
```

Backups are never deleted by rcdeploy. Prune `{backup_dir}/` yourself.

_Generated {timestamp}._
"""

_PROJECT_NOTES_TEMPLATE = """\
# Project Notes ({project_type})

Detected project type: **{project_type}**.

## Common Commands

{commands}

## Conventions

<!-- Record project-specific conventions here so that anyone reading
     {dest_file_name} has the context it assumes. -->

_Generated {timestamp}._
"""

# Build/test commands listed in PROJECT_NOTES.md, per project type.
_COMMANDS: dict[str, tuple[str, ...]] = {
    "Node.js": ("npm install", "npm test", "npm run build"),
    "Python": ("pip install -e .", "pytest"),
    "Rust": ("cargo build", "cargo test"),
    "Go": ("go build ./...", "go test ./..."),
    "Java": ("mvn package", "mvn test"),
    ".NET": ("dotnet build", "dotnet test"),
    "Ruby": ("bundle install", "bundle exec rake test"),
    "PHP": ("composer install", "composer test"),
}


def _format_commands(project_type: str) -> str:
    commands = _COMMANDS.get(project_type)
    if not commands:
        return "<!-- No standard commands known for this project type. -->"
    return "```\n" + "\n".join(commands) + "\n```"


def render_docs(
    project_type: str,
    timestamp: str,
    dest_file_name: str = ".clauderc",
    backup_dir: str = ".deploy-backups",
) -> dict[str, str]:
    """Return ``{file_name: text}`` for the reference documents."""
    return {
        README_NAME: _README_TEMPLATE.format(
            dest_file_name=dest_file_name,
            backup_dir=backup_dir,
            timestamp=timestamp,
        ),
        PROJECT_NOTES_NAME: _PROJECT_NOTES_TEMPLATE.format(
            project_type=project_type,
            commands=_format_commands(project_type),
            dest_file_name=dest_file_name,
            timestamp=timestamp,
        ),
    }

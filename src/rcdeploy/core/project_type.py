"""Project type detection from marker files."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

GENERIC = "Generic"

# Checked in order; the first label with a matching marker wins.
# Entries starting with "*" match by suffix.
_MARKERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Node.js", ("package.json",)),
    ("Python", ("pyproject.toml", "setup.py", "setup.cfg", "requirements.txt", "Pipfile")),
    ("Rust", ("Cargo.toml",)),
    ("Go", ("go.mod",)),
    ("Java", ("pom.xml", "build.gradle", "build.gradle.kts")),
    (".NET", ("*.csproj", "*.sln", "*.fsproj")),
    ("Ruby", ("Gemfile",)),
    ("PHP", ("composer.json",)),
)

PROJECT_TYPES: tuple[str, ...] = tuple(label for label, _ in _MARKERS) + (GENERIC,)


def _matches(marker: str, names: frozenset[str]) -> bool:
    if marker.startswith("*"):
        suffix = marker[1:]
        return any(name.endswith(suffix) for name in names)
    return marker in names


def detect_project_type(names: Iterable[str]) -> str:
    """Return the project type label for a directory listing.

    Always returns one of :data:`PROJECT_TYPES`; unrecognised listings are
    ``"Generic"``.
    """
    present = frozenset(names)
    for label, markers in _MARKERS:
        if any(_matches(m, present) for m in markers):
            return label
    return GENERIC


def detect_project_type_in(path: Path) -> str:
    """List *path* and detect its project type."""
    return detect_project_type(entry.name for entry in path.iterdir())

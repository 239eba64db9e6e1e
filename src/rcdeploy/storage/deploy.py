"""Install-or-update a named file into a target directory.

``deploy()`` is the single entry point.  For one request it:

1. validates the source file and the target directory,
2. backs up a differing pre-existing destination into the backup directory,
3. copies the source over the destination via temp file + rename,
4. verifies the written size and, optionally, a marker substring.

The check-then-act part (steps 2-3) runs under an advisory lock in the
backup directory.  Nothing is cached between calls; the filesystem is
re-read every time.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from rcdeploy.core.ids import backup_timestamp, format_iso, generate_deployment_id, utc_now
from rcdeploy.storage.fs import atomic_copy, exclusive_copy, files_identical, same_file
from rcdeploy.storage.locks import DEFAULT_TIMEOUT, LockError, deploy_lock

DEFAULT_DEST_FILE_NAME = ".clauderc"
BACKUP_DIR = ".deploy-backups"

# Upper bound on "_<n>" suffixes tried for one timestamp.
_MAX_BACKUP_SUFFIX = 1000

STATUS_DEPLOYED = "deployed"
STATUS_UNCHANGED = "unchanged"
STATUS_SAME_FILE = "same_file"
STATUS_DECLINED = "declined"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class DeployError(Exception):
    """Base class for terminal deployment failures."""

    code = "DEPLOY_ERROR"
    summary = "Deployment failed"

    def __init__(self, path: Path, detail: str | None = None) -> None:
        self.path = path
        self.detail = detail
        message = f"{self.summary}: {path}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class SourceNotFound(DeployError):
    code = "SOURCE_NOT_FOUND"
    summary = "Source file not found"


class TargetNotFound(DeployError):
    code = "TARGET_NOT_FOUND"
    summary = "Target directory not found"


class BackupFailed(DeployError):
    code = "BACKUP_FAILED"
    summary = "Backup failed"


class WriteFailed(DeployError):
    code = "WRITE_FAILED"
    summary = "Write failed"


# ---------------------------------------------------------------------------
# Request / result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DeploymentRequest:
    source_path: Path
    target_dir: Path
    dest_file_name: str = DEFAULT_DEST_FILE_NAME
    force: bool = False
    marker: str | None = None
    backup_dir_name: str = BACKUP_DIR


@dataclass(frozen=True)
class BackupRecord:
    original_path: Path
    backup_path: Path
    timestamp_utc: str

    def to_dict(self) -> dict:
        return {
            "original_path": str(self.original_path),
            "backup_path": str(self.backup_path),
            "timestamp_utc": self.timestamp_utc,
        }


@dataclass(frozen=True)
class DeploymentResult:
    deployed: bool
    dest_path: Path
    byte_size: int
    verified: bool
    status: str
    backup: BackupRecord | None = None
    content_warning: bool = False
    deployment_id: str = field(default_factory=generate_deployment_id)

    def to_dict(self) -> dict:
        return {
            "deployment_id": self.deployment_id,
            "status": self.status,
            "deployed": self.deployed,
            "dest_path": str(self.dest_path),
            "byte_size": self.byte_size,
            "verified": self.verified,
            "content_warning": self.content_warning,
            "backup": self.backup.to_dict() if self.backup else None,
        }


# ---------------------------------------------------------------------------
# Deploy
# ---------------------------------------------------------------------------


def deploy(
    request: DeploymentRequest,
    *,
    confirm_overwrite: Callable[[Path], bool] | None = None,
    clock: Callable[[], datetime] = utc_now,
    lock_timeout: float = DEFAULT_TIMEOUT,
) -> DeploymentResult:
    """Deploy ``request.source_path`` to ``request.target_dir / request.dest_file_name``.

    A destination that differs from the source is only overwritten when
    ``request.force`` is set or *confirm_overwrite(dest_path)* returns true,
    and always after a successful backup.  *clock* supplies the time used
    in backup names.

    Raises a :class:`DeployError` subclass on failure.  Validation errors
    leave the target directory untouched.
    """
    source = Path(request.source_path)
    target = Path(request.target_dir)

    if not source.is_file():
        raise SourceNotFound(source)
    try:
        with open(source, "rb"):
            pass
    except OSError as e:
        raise SourceNotFound(source, f"not readable: {e.strerror or e}") from e
    if not target.is_dir():
        raise TargetNotFound(target)

    dest = target / request.dest_file_name

    # Coinciding source and destination: never copy a file onto itself.
    if same_file(source, dest):
        size, _, warning = _verify(source, dest, request.marker)
        return DeploymentResult(
            deployed=False,
            dest_path=dest,
            byte_size=size,
            verified=True,
            status=STATUS_SAME_FILE,
            content_warning=warning,
        )

    backup_dir = target / request.backup_dir_name
    try:
        backup_dir.mkdir(exist_ok=True)
    except OSError as e:
        raise BackupFailed(backup_dir, f"cannot create backup directory: {e.strerror or e}") from e

    try:
        with deploy_lock(backup_dir, lock_timeout):
            return _deploy_locked(request, source, dest, backup_dir, confirm_overwrite, clock)
    except LockError as e:
        raise WriteFailed(dest, str(e)) from e


def _deploy_locked(
    request: DeploymentRequest,
    source: Path,
    dest: Path,
    backup_dir: Path,
    confirm_overwrite: Callable[[Path], bool] | None,
    clock: Callable[[], datetime],
) -> DeploymentResult:
    backup: BackupRecord | None = None

    if dest.exists() or dest.is_symlink():
        if not dest.is_file():
            raise WriteFailed(dest, "destination exists and is not a regular file")
        try:
            identical = files_identical(source, dest)
        except OSError as e:
            raise WriteFailed(dest, f"cannot read existing destination: {e.strerror or e}") from e

        if identical:
            size, verified, warning = _verify(source, dest, request.marker)
            return DeploymentResult(
                deployed=False,
                dest_path=dest,
                byte_size=size,
                verified=verified,
                status=STATUS_UNCHANGED,
                content_warning=warning,
            )

        if not request.force and not (confirm_overwrite and confirm_overwrite(dest)):
            try:
                size = dest.stat().st_size
            except OSError as e:
                raise WriteFailed(dest, f"cannot read existing destination: {e.strerror or e}") from e
            return DeploymentResult(
                deployed=False,
                dest_path=dest,
                byte_size=size,
                verified=False,
                status=STATUS_DECLINED,
            )

        backup = _backup(dest, backup_dir, clock)

    try:
        atomic_copy(source, dest)
    except OSError as e:
        raise WriteFailed(dest, e.strerror or str(e)) from e

    size, verified, warning = _verify(source, dest, request.marker)
    return DeploymentResult(
        deployed=True,
        dest_path=dest,
        byte_size=size,
        verified=verified,
        status=STATUS_DEPLOYED,
        backup=backup,
        content_warning=warning,
    )


def _backup(dest: Path, backup_dir: Path, clock: Callable[[], datetime]) -> BackupRecord:
    """Copy *dest* to a fresh ``<name>.backup.<timestamp>[_<n>]`` file.

    The backup file is created exclusively, so an existing backup is never
    overwritten; a clash within the same second moves on to the next suffix.
    """
    now = clock()
    base = f"{dest.name}.backup.{backup_timestamp(now)}"

    for n in range(_MAX_BACKUP_SUFFIX):
        backup_path = backup_dir / (base if n == 0 else f"{base}_{n}")
        try:
            exclusive_copy(dest, backup_path)
        except FileExistsError:
            continue
        except OSError as e:
            raise BackupFailed(dest, e.strerror or str(e)) from e
        return BackupRecord(
            original_path=dest,
            backup_path=backup_path,
            timestamp_utc=format_iso(now),
        )

    raise BackupFailed(dest, f"too many backups named {base}")


def _verify(source: Path, dest: Path, marker: str | None) -> tuple[int, bool, bool]:
    """Return ``(byte_size, size_matches, marker_missing)`` for *dest*.

    Neither check is fatal: the source may have changed underneath us, and
    the payload is opaque.
    """
    try:
        size = dest.stat().st_size
        verified = size == source.stat().st_size
        warning = False
        if marker:
            warning = marker.encode("utf-8") not in dest.read_bytes()
    except OSError as e:
        raise WriteFailed(dest, f"cannot verify: {e.strerror or e}") from e
    return size, verified, warning


def list_backups(
    target_dir: Path,
    dest_file_name: str = DEFAULT_DEST_FILE_NAME,
    backup_dir_name: str = BACKUP_DIR,
) -> list[Path]:
    """Return backups of *dest_file_name* in *target_dir*, oldest first."""
    backup_dir = Path(target_dir) / backup_dir_name
    if not backup_dir.is_dir():
        return []
    prefix = f"{dest_file_name}.backup."
    found = [p for p in backup_dir.iterdir() if p.is_file() and p.name.startswith(prefix)]
    return sorted(found, key=_backup_sort_key)


def _backup_sort_key(path: Path) -> tuple[str, int]:
    """Order by timestamp token, then numeric collision suffix."""
    token = path.name.rsplit(".backup.", 1)[-1]
    stamp, _, suffix = token.partition("_")
    # token is "YYYYMMDD_HHMMSS[_n]"; the first "_" splits date from time
    time_part, _, counter = suffix.partition("_")
    return f"{stamp}_{time_part}", int(counter) if counter.isdigit() else 0

"""Advisory file locks serializing deployments into one target."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock

LOCK_FILE_NAME = ".lock"
DEFAULT_TIMEOUT = 10.0


class LockError(Exception):
    """Raised when the deployment lock cannot be acquired."""


@contextmanager
def deploy_lock(backup_dir: Path, timeout: float = DEFAULT_TIMEOUT) -> Iterator[None]:
    """Hold ``<backup_dir>/.lock`` for the duration of the block.

    *backup_dir* must exist.  Only acquisition failures (timeout or an
    unwritable lock file) become :class:`LockError`; exceptions raised
    inside the block propagate unchanged.
    """
    lock_path = backup_dir / LOCK_FILE_NAME
    lock = FileLock(str(lock_path), timeout=timeout)
    try:
        lock.acquire()
    except OSError as e:
        raise LockError(f"cannot lock {lock_path}: {e}") from e
    try:
        yield
    finally:
        lock.release()

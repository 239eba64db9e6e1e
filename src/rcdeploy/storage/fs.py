"""Atomic file primitives: temp + fsync + rename writes and exclusive copies."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

_COPY_CHUNK = 1024 * 1024
_DEFAULT_MODE = 0o644


def _write_all(fd: int, data: bytes | memoryview) -> None:
    """Write *data* fully; ``os.write`` may return a short count."""
    view = memoryview(data)
    while view:
        written = os.write(fd, view)
        view = view[written:]


def _copy_into(fd: int, src: Path) -> None:
    """Stream the contents of *src* into the open descriptor *fd*."""
    with open(src, "rb") as f:
        while True:
            chunk = f.read(_COPY_CHUNK)
            if not chunk:
                return
            _write_all(fd, chunk)


def _fsync_dir(directory: Path) -> None:
    """Best-effort fsync of a directory so a rename is durable."""
    try:
        fd = os.open(directory, os.O_RDONLY)
    except OSError:
        return
    try:
        os.fsync(fd)
    except OSError:
        pass
    finally:
        os.close(fd)


def _replace_via_temp(path: Path, fill) -> None:
    """Create a temp file beside *path*, let *fill(fd)* populate it, then rename.

    The new file keeps the mode of the file it replaces (0644 for new files).
    On any failure the temp file is removed and the exception propagates,
    leaving *path* untouched.
    """
    parent = path.parent
    if not parent.is_dir():
        raise FileNotFoundError(f"Parent directory does not exist: {parent}")

    try:
        mode = path.stat().st_mode & 0o777
    except FileNotFoundError:
        mode = _DEFAULT_MODE

    fd, tmp_name = tempfile.mkstemp(dir=parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        try:
            fill(fd)
            os.fsync(fd)
        finally:
            os.close(fd)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    _fsync_dir(parent)


def atomic_write(path: Path, content: str | bytes) -> None:
    """Write *content* to *path* atomically.

    Readers see either the old file or the complete new one, never a
    truncated mix.
    """
    data = content.encode("utf-8") if isinstance(content, str) else content
    _replace_via_temp(path, lambda fd: _write_all(fd, data))


def atomic_copy(src: Path, dest: Path) -> None:
    """Copy *src* to *dest* with the same guarantee as :func:`atomic_write`.

    The source is streamed in chunks rather than read into memory.
    """
    _replace_via_temp(dest, lambda fd: _copy_into(fd, src))


def exclusive_copy(src: Path, dest: Path) -> None:
    """Copy *src* to a *dest* that must not already exist.

    Raises ``FileExistsError`` if *dest* exists.  A partially written
    *dest* is removed before the error propagates.
    """
    fd = os.open(dest, os.O_WRONLY | os.O_CREAT | os.O_EXCL, _DEFAULT_MODE)
    try:
        try:
            _copy_into(fd, src)
            os.fsync(fd)
        finally:
            os.close(fd)
    except BaseException:
        try:
            os.unlink(dest)
        except FileNotFoundError:
            pass
        raise


def same_file(a: Path, b: Path) -> bool:
    """Return ``True`` if *a* and *b* resolve to the same existing file."""
    try:
        return os.path.samefile(a, b)
    except OSError:
        return False


def files_identical(a: Path, b: Path) -> bool:
    """Byte-compare two files."""
    if a.stat().st_size != b.stat().st_size:
        return False
    with open(a, "rb") as fa, open(b, "rb") as fb:
        while True:
            chunk_a = fa.read(_COPY_CHUNK)
            chunk_b = fb.read(_COPY_CHUNK)
            if chunk_a != chunk_b:
                return False
            if not chunk_a:
                return True

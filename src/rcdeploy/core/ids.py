"""Deployment ids and backup timestamp tokens."""

from __future__ import annotations

from datetime import datetime, timezone

from ulid import ULID

# Second resolution; collisions inside one second are resolved by a counter suffix.
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def generate_deployment_id() -> str:
    """Generate a new deployment ID with the dep_ prefix."""
    return f"dep_{ULID()}"


def utc_now() -> datetime:
    """Default clock used for backup names."""
    return datetime.now(timezone.utc)


def backup_timestamp(now: datetime) -> str:
    """Format *now* as a filename-safe UTC token, e.g. ``20260118_093005``.

    Naive datetimes are taken to already be UTC.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc).strftime(BACKUP_TIMESTAMP_FORMAT)


def format_iso(now: datetime) -> str:
    """Return an RFC 3339 UTC timestamp with a ``Z`` suffix."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

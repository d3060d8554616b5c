"""Signed URL expiry resolution."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from common_storage.config import MAX_SIGNED_URL_TTL_DAYS

ExpiresInput = datetime | timedelta | int | float | str


def resolve_expiry(
    expires: ExpiresInput,
    now: datetime | None = None,
    max_ttl: timedelta = timedelta(days=MAX_SIGNED_URL_TTL_DAYS),
) -> datetime:
    """Resolve an expiry value to an absolute UTC datetime.

    Args:
        expires: datetime (naive is UTC), timedelta from now, unix seconds,
            or an ISO-8601 string.
        now: Reference time (defaults to the current UTC time).
        max_ttl: Longest allowed distance from ``now``.

    Returns:
        Timezone-aware expiry datetime.

    Raises:
        ValueError: If the instant is not in the future or exceeds ``max_ttl``.
    """
    now = now or datetime.now(timezone.utc)

    if isinstance(expires, timedelta):
        at = now + expires
    elif isinstance(expires, datetime):
        at = expires
    elif isinstance(expires, (int, float)):
        at = datetime.fromtimestamp(expires, tz=timezone.utc)
    elif isinstance(expires, str):
        at = datetime.fromisoformat(expires)
    else:
        raise ValueError(f"Unsupported expires value: {expires!r}")

    if at.tzinfo is None:
        at = at.replace(tzinfo=timezone.utc)

    if at <= now:
        raise ValueError(f"Signed URL expiry must be in the future: {at.isoformat()}")
    if at - now > max_ttl:
        raise ValueError(
            f"Signed URL expiry exceeds maximum of {max_ttl.days} days: {at.isoformat()}"
        )
    return at

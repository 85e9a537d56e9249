"""Expiration policy for leased credentials."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_expired(
    created: datetime,
    duration_seconds: int,
    buffer_seconds: int,
    now: Optional[datetime] = None,
) -> bool:
    """Return True when a credential should no longer be used.

    The usable window is ``duration_seconds - buffer_seconds`` measured from
    ``created``. A buffer at or above the duration makes every credential
    expire as soon as any time has elapsed.
    """
    if duration_seconds <= 0:
        return True
    current = now or utcnow()
    elapsed = (current - created).total_seconds()
    return elapsed > duration_seconds - buffer_seconds

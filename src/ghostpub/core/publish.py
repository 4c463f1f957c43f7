"""Publish status and timing derived from ghost_published / ghost_published_at"""

import logging
from datetime import datetime, timezone
from typing import Optional

from ghostpub.core.models import GhostMetadata, PostStatus


logger = logging.getLogger(__name__)


def parse_publish_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 date or datetime; naive values are local time. Unparseable -> None."""
    if not value or not value.strip():
        return None
    try:
        when = datetime.fromisoformat(value.strip())
    except ValueError:
        logger.warning("Ignoring unparseable published_at %r; treating it as unset", value)
        return None
    if when.tzinfo is None:
        when = when.astimezone()
    return when


def resolve_status(metadata: GhostMetadata, now: Optional[datetime] = None) -> tuple[PostStatus, Optional[datetime]]:
    """Return (status, published_at).

    published=false            -> draft, no timestamp (any date is ignored)
    published=true, no date    -> published now, no timestamp (Ghost stamps it)
    published=true, future     -> scheduled at that date
    published=true, past/now   -> published, backdated to that date
    """
    if not metadata.published:
        return PostStatus.draft, None

    when = parse_publish_date(metadata.published_at)
    if when is None:
        return PostStatus.published, None

    now = now or datetime.now(timezone.utc)
    if when > now:
        return PostStatus.scheduled, when
    return PostStatus.published, when


def format_timestamp(when: datetime) -> str:
    """UTC ISO 8601 with milliseconds and a Z suffix, as Ghost reports timestamps."""
    return when.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')

from __future__ import annotations

import html
import re
import time
from datetime import datetime, timezone
from typing import Optional, Sequence

from bs4 import BeautifulSoup
from dateutil import parser as dateparser

from ..utils.logging import get_logger

_whitespace_re = re.compile(r"\s+")

_logger = get_logger("hibi.processors.normalize")


def collapse_whitespace(text: str | None) -> str:
    if not text:
        return ""
    return _whitespace_re.sub(" ", text).strip()


def clean_html_to_text(raw_html: str | None) -> str:
    """Clean HTML to normalized plain text.

    - Strip tags
    - Unescape HTML entities
    - Collapse whitespace
    """
    if not raw_html:
        return ""

    soup = BeautifulSoup(raw_html, "html.parser")
    text = soup.get_text(" ")
    text = html.unescape(text)
    return collapse_whitespace(text)


def format_iso(value: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    stamp = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def utc_now_iso() -> str:
    return format_iso(datetime.now(timezone.utc))


def struct_time_to_iso(value: Optional[Sequence[int] | time.struct_time]) -> Optional[str]:
    """Convert feedparser's ``*_parsed`` struct (always UTC) to ISO-8601."""
    if not value:
        return None
    try:
        return format_iso(datetime(*tuple(value)[:6], tzinfo=timezone.utc))
    except (TypeError, ValueError):
        return None


def parse_timestamp(value: str | datetime | None) -> Optional[datetime]:
    """Parse ISO-8601 or RFC 822 timestamps into aware datetimes.

    Naive values are assumed to be UTC. Returns None when unparsable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif not isinstance(value, str):
        _logger.debug("Ignoring non-text timestamp %r", value)
        return None
    else:
        text = value.strip()
        if not text:
            return None
        try:
            parsed = dateparser.parse(text)
        except (ValueError, OverflowError, TypeError) as exc:
            _logger.debug("Unparsable timestamp '%s': %s", text, exc)
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def published_sort_key(published_at: str | None) -> datetime:
    """Sort key for ``publishedAt``; unparsable values sort as oldest."""
    parsed = parse_timestamp(published_at)
    if parsed is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    return parsed

from __future__ import annotations

import base64
import re

_ENCODED_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def encode_id(article_id: str) -> str:
    """URL-safe base64 of an article id, without padding.

    Used for audio filenames, reader URLs and podcast GUIDs.
    """
    return base64.urlsafe_b64encode(article_id.encode("utf-8")).decode("ascii").rstrip("=")


def decode_id(encoded: str) -> str:
    """Inverse of :func:`encode_id`. Raises ``ValueError`` on garbage input."""
    if not _ENCODED_RE.match(encoded or ""):
        raise ValueError(f"Invalid encoded article id: {encoded!r}")
    padded = encoded + "=" * (-len(encoded) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (UnicodeError, ValueError) as exc:
        raise ValueError(f"Invalid encoded article id: {encoded!r}") from exc

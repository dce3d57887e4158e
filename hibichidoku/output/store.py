from __future__ import annotations

import hashlib
import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from ..models import Article
from ..utils.logging import get_logger

logger = get_logger("hibi.output.store")


class StoreConflictError(RuntimeError):
    """The store changed on disk between read and write."""


@dataclass(slots=True)
class StoreSnapshot:
    articles: List[Article] = field(default_factory=list)
    # SHA-256 of the file bytes at read time; None when the file did not exist
    version: Optional[str] = None


def _digest(raw: bytes) -> str:
    return hashlib.sha256(raw).hexdigest()


class ArticleStore:
    """The JSON article collection on disk.

    Writes are atomic (temp file + rename) and guarded by a compare-and-swap
    on the content hash, so a concurrent writer is detected rather than
    silently overwritten.
    """

    def __init__(self, path: Path | str = "data/posts.json") -> None:
        self.path = Path(path)

    def _read_bytes(self) -> Optional[bytes]:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None

    def current_version(self) -> Optional[str]:
        raw = self._read_bytes()
        return _digest(raw) if raw is not None else None

    def load(self) -> StoreSnapshot:
        """Read every article. Unreadable or malformed data counts as empty."""
        try:
            raw = self._read_bytes()
        except OSError as exc:
            logger.error("Failed to read store %s: %s", self.path, exc)
            return StoreSnapshot()
        if raw is None:
            logger.info("Store %s does not exist yet", self.path)
            return StoreSnapshot()

        version = _digest(raw)
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.error("Store %s is not valid JSON (%s); treating as empty", self.path, exc)
            return StoreSnapshot(version=version)
        if not isinstance(data, list):
            logger.error("Store %s is not a JSON array; treating as empty", self.path)
            return StoreSnapshot(version=version)

        articles: List[Article] = []
        for row in data:
            if not isinstance(row, dict) or not row.get("id"):
                logger.warning("Skipping malformed store record: %r", row)
                continue
            try:
                articles.append(Article.from_dict(row))
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping unreadable store record %r: %s", row.get("id"), exc)
        return StoreSnapshot(articles=articles, version=version)

    def save(self, articles: List[Article], *, expected_version: Optional[str]) -> str:
        """Write ``articles`` if the file still matches ``expected_version``.

        Returns the new version. Raises StoreConflictError otherwise.
        """
        current = self.current_version()
        if current != expected_version:
            raise StoreConflictError(
                f"Store {self.path} changed on disk (expected {expected_version}, found {current})"
            )

        payload = json.dumps([a.to_dict() for a in articles], ensure_ascii=False, indent=2)
        raw = payload.encode("utf-8")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(raw)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info("Wrote %d articles to %s", len(articles), self.path)
        return _digest(raw)

    def update(
        self,
        mutate: Callable[[List[Article]], List[Article]],
        *,
        retries: int = 3,
    ) -> List[Article]:
        """Read-modify-write with optimistic concurrency.

        ``mutate`` receives the current articles and returns the new list; on a
        conflict it is re-applied to a fresh read, up to ``retries`` times.
        """
        attempt = 0
        while True:
            snapshot = self.load()
            updated = mutate(snapshot.articles)
            try:
                self.save(updated, expected_version=snapshot.version)
            except StoreConflictError as exc:
                attempt += 1
                if attempt > retries:
                    raise
                logger.warning("Store conflict (attempt %d/%d): %s; retrying", attempt, retries + 1, exc)
                continue
            return updated

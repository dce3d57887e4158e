from __future__ import annotations

import time
from typing import Callable, Optional

import requests

from ..utils.logging import get_logger

logger = get_logger("hibi.output.twitter")

TWEETS_URL = "https://api.twitter.com/2/tweets"


class SocialPostError(RuntimeError):
    """Posting failed after retries or was rejected outright."""


class TwitterClient:
    def __init__(
        self,
        *,
        bearer_token: Optional[str] = None,
        dry_run: bool = False,
        timeout: int = 30,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not bearer_token and not dry_run:
            raise RuntimeError("TWITTER_BEARER_TOKEN not set and dry_run=False")
        self.bearer_token = bearer_token
        self.dry_run = dry_run
        self.timeout = timeout
        self._sleep = sleep

    def post(self, text: str) -> Optional[str]:
        """Publish ``text`` and return the new post id (None in dry-run)."""
        if self.dry_run:
            logger.info("[DRY-RUN] Would post: %s", text.replace("\n", " "))
            return None

        headers = {
            "Authorization": f"Bearer {self.bearer_token}",
            "Content-Type": "application/json",
        }
        backoff = 1.5
        for attempt in range(4):
            try:
                resp = requests.post(TWEETS_URL, json={"text": text}, headers=headers, timeout=self.timeout)
            except requests.RequestException as exc:
                logger.warning("Network error posting to X: %s; retrying", exc)
                self._sleep(backoff ** attempt)
                continue

            if resp.status_code in (429, 503):
                delay = backoff ** attempt
                logger.warning("X API throttled (%s). Retrying in %.1fs", resp.status_code, delay)
                self._sleep(delay)
                continue
            if resp.status_code >= 400:
                logger.error("X API error %s: %s", resp.status_code, resp.text[:200])
                raise SocialPostError(f"X API returned {resp.status_code}")

            post_id = (resp.json().get("data") or {}).get("id")
            logger.info("Posted to X: %s", post_id)
            return post_id
        raise SocialPostError("Failed to post after retries")


def create_social_client(bearer_token: Optional[str], *, dry_run: bool = False) -> Optional[TwitterClient]:
    if dry_run:
        return TwitterClient(dry_run=True)
    if not bearer_token:
        logger.warning("TWITTER_BEARER_TOKEN is not set; social posts disabled")
        return None
    return TwitterClient(bearer_token=bearer_token)

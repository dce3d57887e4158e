from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List
from urllib.parse import urlparse

import yaml

from ..models import CATEGORIES, Source


class ConfigError(Exception):
    """Raised when a configuration file is invalid or missing required fields."""


REQUIRED_FIELDS = {"name", "type"}


@dataclass(slots=True)
class PodcastChannel:
    """Channel-level metadata for the podcast feed."""

    title: str
    description: str
    author: str
    email: str = ""
    language: str = "ja"
    category: str = "Science"
    subcategory: str = ""
    explicit: bool = False
    image: str = "/images/podcast-cover.jpg"


def _validate_source_dict(entry: dict) -> None:
    """Validate a single source mapping from YAML.

    Required fields: name (str), type ('arxiv' | 'rss').
    arxiv sources need ``query`` (an arXiv category such as ``cs.AI``).
    rss sources need ``url`` (http/https) and ``category`` from CATEGORIES.
    Optional: max_results (positive int).
    """
    missing = REQUIRED_FIELDS - set(entry)
    if missing:
        raise ConfigError(f"Missing required fields: {sorted(missing)} in {entry}")

    source_type = entry["type"]
    if source_type not in {"arxiv", "rss"}:
        raise ConfigError(f"Invalid type '{source_type}'. Must be 'arxiv' or 'rss'.")

    if source_type == "arxiv":
        query = entry.get("query")
        if not isinstance(query, str) or not query.strip():
            raise ConfigError(f"arxiv source '{entry['name']}' needs a 'query' category")

    if source_type == "rss":
        url_str = str(entry.get("url") or "").strip()
        parsed = urlparse(url_str)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(f"Invalid URL '{url_str}'. Must be absolute http(s) URL.")
        category = entry.get("category")
        if category not in CATEGORIES:
            raise ConfigError(
                f"Invalid category '{category}' for '{entry['name']}'. Allowed: {list(CATEGORIES)}"
            )

    if "max_results" in entry and entry["max_results"] is not None:
        value = entry["max_results"]
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ConfigError("'max_results' must be a positive integer if provided")


def _coerce_source(entry: dict) -> Source:
    return Source(
        name=str(entry["name"]).strip(),
        type=str(entry["type"]).strip(),  # type: ignore[arg-type]
        query=str(entry["query"]).strip() if entry.get("query") else None,
        url=str(entry["url"]).strip() if entry.get("url") else None,
        category=entry.get("category"),
        max_results=int(entry.get("max_results") or 5),
    )


def _read_yaml(path: Path | str) -> dict:
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")
    with config_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {config_path} must be a mapping")
    return data


def load_sources_config(path: Path | str) -> List[Source]:
    """Load ``sources.yaml`` into typed ``Source`` instances.

    YAML structure::

        sources:
          - name: arxiv-cs-ai
            type: arxiv
            query: cs.AI
            max_results: 3
          - name: sciencedaily-mind-brain
            type: rss
            url: https://www.sciencedaily.com/rss/mind_brain.xml
            category: Science

    Unknown top-level keys are ignored for forward compatibility.
    """
    data = _read_yaml(path)
    sources_raw: Iterable[dict] = data.get("sources") or []
    if not isinstance(sources_raw, list):
        raise ConfigError("'sources' must be a list in the YAML configuration")

    sources: List[Source] = []
    for item in sources_raw:
        if not isinstance(item, dict):
            raise ConfigError(f"Each source must be a mapping, got: {type(item)}")
        _validate_source_dict(item)
        sources.append(_coerce_source(item))
    return sources


def load_podcast_config(path: Path | str) -> PodcastChannel:
    """Load ``podcast.yaml`` (a ``podcast`` mapping) into a PodcastChannel."""
    data = _read_yaml(path)
    raw = data.get("podcast")
    if not isinstance(raw, dict):
        raise ConfigError("'podcast' must be a mapping in the podcast configuration")
    for key in ("title", "description", "author"):
        if not raw.get(key):
            raise ConfigError(f"Podcast configuration is missing '{key}'")
    return PodcastChannel(
        title=str(raw["title"]),
        description=str(raw["description"]),
        author=str(raw["author"]),
        email=str(raw.get("email") or ""),
        language=str(raw.get("language") or "ja"),
        category=str(raw.get("category") or "Science"),
        subcategory=str(raw.get("subcategory") or ""),
        explicit=bool(raw.get("explicit", False)),
        image=str(raw.get("image") or "/images/podcast-cover.jpg"),
    )

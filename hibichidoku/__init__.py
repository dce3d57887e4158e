"""Top-level package for the hibichidoku content pipeline.

This package fetches papers and news, enriches them with Japanese
translations and commentary, narrates podcast episodes, and publishes the
results to a JSON store, a podcast feed and a small reader API.
"""

__all__ = []

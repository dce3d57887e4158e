"""Read-only HTTP surface over the article store."""

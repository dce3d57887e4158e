from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class RunReport:
    fetched: int = 0
    duplicates_skipped: int = 0
    processed: int = 0
    enrich_failures: int = 0
    narrated: int = 0
    stored: int = 0
    posted: int = 0
    errors: int = 0

    def to_markdown(self) -> str:
        return (
            "### Pipeline Summary\n\n"
            f"- Articles fetched: {self.fetched}\n"
            f"- Duplicates skipped: {self.duplicates_skipped}\n"
            f"- Articles processed: {self.processed}\n"
            f"- Enrichment failures: {self.enrich_failures}\n"
            f"- Episodes narrated: {self.narrated}\n"
            f"- Articles in store: {self.stored}\n"
            f"- Posts published: {self.posted}\n"
            f"- Errors: {self.errors}\n"
        )

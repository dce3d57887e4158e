"""Application entrypoint for the hibichidoku content pipeline.

This script orchestrates the high-level flow:
1) load configuration
2) fetch, enrich, illustrate and narrate new articles
3) persist them to the JSON store and announce them (or dry-run)

It can also narrate stored articles lacking audio, write the podcast feed,
or serve the reader API.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .orchestrator import Orchestrator, build_clients
from .output.feed import build_podcast_feed, write_podcast_feed
from .output.store import ArticleStore
from .utils.config_loader import ConfigError, load_podcast_config, load_sources_config
from .utils.logging import configure_logging, get_logger
from .utils.pipeline_config import PipelineConfig


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="ひびちどく – fetch, enrich, narrate and publish articles"
    )
    parser.add_argument(
        "--config",
        default="config/sources.yaml",
        help="Path to sources configuration file (YAML)",
    )
    parser.add_argument(
        "--podcast-config",
        default="config/podcast.yaml",
        help="Path to podcast channel configuration file (YAML)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Process articles but do not write the store or post announcements",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity (defaults to LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--max-items-per-source",
        type=int,
        default=None,
        help="Limit number of items taken from each source",
    )
    parser.add_argument(
        "--max-total-items",
        type=int,
        default=None,
        help="Stop after processing this many new items",
    )
    parser.add_argument(
        "--skip-narration",
        action="store_true",
        help="Do not generate podcast audio in this run",
    )
    parser.add_argument(
        "--narrate-backlog",
        type=int,
        metavar="N",
        default=None,
        help="Narrate up to N stored articles that have no audio yet, then exit",
    )
    parser.add_argument(
        "--write-feed",
        metavar="PATH",
        default=None,
        help="Write the podcast RSS feed to PATH, then exit",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Serve the reader API and podcast feed",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Bind address for --serve")
    parser.add_argument("--port", type=int, default=8000, help="Port for --serve")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv(override=False)
    args = parse_args(argv)
    configure_logging(level=args.log_level)
    logger = get_logger("hibi.agent")

    try:
        config = PipelineConfig.from_env()
    except ValueError as exc:
        logger.error("Invalid environment configuration: %s", exc)
        return 1

    if args.serve or args.write_feed:
        try:
            channel = load_podcast_config(args.podcast_config)
        except ConfigError as exc:
            logger.error("Failed to load podcast configuration: %s", exc)
            return 1

        if args.write_feed:
            xml = build_podcast_feed(
                ArticleStore(config.store_path).load().articles,
                channel,
                base_url=config.site_url,
                audio_root=config.audio_dir,
            )
            write_podcast_feed(Path(args.write_feed), xml)
            return 0

        import uvicorn

        from .web.app import create_app

        uvicorn.run(create_app(config, channel), host=args.host, port=args.port)
        return 0

    # an explicit backlog request narrates even when ENABLE_NARRATION is off
    narration = True if args.narrate_backlog is not None else None
    clients = build_clients(config, dry_run=args.dry_run, narration=narration)

    if args.narrate_backlog is not None:
        orch = Orchestrator(config, clients=clients, dry_run=args.dry_run, narrate=True)
        count = orch.narrate_backlog(args.narrate_backlog)
        logger.info("Narrated %d backlog episode(s)", count)
        return 0

    config_path = Path(args.config)
    logger.info("Loading sources configuration from %s", config_path)
    try:
        sources = load_sources_config(config_path)
    except ConfigError as exc:
        logger.error("Failed to load configuration: %s", exc)
        return 1
    logger.info("Loaded %d source(s)", len(sources))

    orch = Orchestrator(
        config,
        clients=clients,
        dry_run=args.dry_run,
        narrate=False if args.skip_narration else None,
        max_items_per_source=args.max_items_per_source,
        max_total_items=args.max_total_items,
    )
    report = orch.run(sources)
    logger.info("Run summary:\n%s", report.to_markdown())
    return 0


if __name__ == "__main__":  # pragma: no cover - script entrypoint
    raise SystemExit(main())

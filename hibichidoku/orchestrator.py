from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional

from .fetchers import fetch_source
from .models import Article, FetcherResult, Source
from .narration import (
    CloudTTSClient,
    GeminiTTSClient,
    MultiSpeakerSynthesizer,
    NarrationSettings,
    Narrator,
    PerTurnSynthesizer,
    ScriptWriter,
    SpeechSynthesizer,
)
from .output.publisher import Publisher
from .output.run_report import RunReport
from .output.store import ArticleStore
from .output.twitter_client import TwitterClient, create_social_client
from .processors import Enricher, Illustrator, published_sort_key, select_new_articles_with_stats
from .processors.ai import LLMClient, create_llm_client
from .processors.images import PexelsClient, create_image_client
from .utils.logging import get_logger
from .utils.pipeline_config import PipelineConfig
from .utils.rate_limit import RateLimiter

logger = get_logger("hibi.orchestrator")


@dataclass(slots=True)
class PipelineClients:
    """Provider handles for one run. ``None`` disables the dependent stage."""

    llm: Optional[LLMClient] = None
    images: Optional[PexelsClient] = None
    synthesizer: Optional[SpeechSynthesizer] = None
    social: Optional[TwitterClient] = None


def build_synthesizer(config: PipelineConfig) -> Optional[SpeechSynthesizer]:
    if config.tts_mode == "per_turn":
        if not config.cloud_tts_api_key:
            logger.warning("GOOGLE_CLOUD_TTS_API_KEY not set; narration disabled")
            return None
        return PerTurnSynthesizer(
            CloudTTSClient(api_key=config.cloud_tts_api_key),
            limiter=RateLimiter(config.tts_turn_delay, name="cloud-tts"),
        )
    if not config.gemini_api_key:
        logger.warning("GEMINI_API_KEY not set; narration disabled")
        return None
    return MultiSpeakerSynthesizer(GeminiTTSClient(api_key=config.gemini_api_key, model=config.tts_model))


def build_clients(
    config: PipelineConfig,
    *,
    dry_run: bool = False,
    narration: Optional[bool] = None,
) -> PipelineClients:
    """Construct every provider client up front so missing keys surface at start.

    ``narration`` overrides ``config.enable_narration`` for the synthesizer.
    """
    if narration is None:
        narration = config.enable_narration
    social = None
    if config.enable_social_posts:
        social = create_social_client(config.twitter_bearer_token, dry_run=dry_run)
    return PipelineClients(
        llm=create_llm_client(config.gemini_api_key),
        images=create_image_client(config.pexels_api_key),
        synthesizer=build_synthesizer(config) if narration else None,
        social=social,
    )


class Orchestrator:
    def __init__(
        self,
        config: PipelineConfig,
        *,
        clients: PipelineClients,
        store: Optional[ArticleStore] = None,
        dry_run: bool = False,
        narrate: Optional[bool] = None,
        max_items_per_source: int | None = None,
        max_total_items: int | None = None,
        fetcher: Callable[[Source], FetcherResult] = fetch_source,
    ) -> None:
        self.config = config
        self.clients = clients
        self.store = store or ArticleStore(config.store_path)
        self.dry_run = dry_run
        self.max_items_per_source = max_items_per_source
        self.max_total_items = max_total_items
        self._fetch = fetcher

        self.enricher = Enricher(clients.llm, candidate_models=config.candidate_models) if clients.llm else None
        self.illustrator = Illustrator(clients.images, limiter=RateLimiter(config.image_delay, name="pexels"))
        self.narrator = self._build_narrator(enabled=config.enable_narration if narrate is None else narrate)
        self.publisher = Publisher(
            self.store,
            cap=config.retention_cap,
            social=clients.social,
            site_url=config.site_url,
            limiter=RateLimiter(config.post_delay, name="social"),
        )
        self._enrich_limiter = RateLimiter(config.enrich_delay, name="llm")

    def _build_narrator(self, *, enabled: bool) -> Optional[Narrator]:
        if not enabled:
            logger.info("Narration disabled for this run")
            return None
        if self.clients.llm is None or self.clients.synthesizer is None:
            logger.warning("Narration requested but LLM or TTS client is unavailable; skipping narration")
            return None
        settings = NarrationSettings(
            audio_dir=self.config.audio_dir,
            url_prefix=self.config.audio_url_prefix,
            speed=self.config.audio_speed,
            volume=self.config.audio_volume,
            bgm_path=self.config.bgm_path,
            bgm_volume=self.config.bgm_volume,
        )
        writer = ScriptWriter(self.clients.llm, model=self.config.script_model)
        return Narrator(writer, self.clients.synthesizer, settings=settings)

    def _fetch_source(self, source: Source) -> FetcherResult:
        result = self._fetch(source)
        if not result.success:
            logger.warning("Failed to fetch from %s: %s", source.name, result.error)
        return result

    def fetch_all(self, sources: Iterable[Source], report: Optional[RunReport] = None) -> List[Article]:
        """Fetch every source sequentially.

        Applies ``max_items_per_source`` to each source's result. Fetch
        failures are counted in ``report`` and otherwise ignored.
        """
        src_list = list(sources)
        results: List[Article] = []
        for source in src_list:
            result = self._fetch_source(source)
            if not result.success and report is not None:
                report.errors += 1
            items = result.articles
            if self.max_items_per_source is not None and self.max_items_per_source >= 0:
                items = items[: self.max_items_per_source]
            logger.info("Fetched %d articles from %s", len(items), source.name)
            results.extend(items)
        logger.info("Fetch complete: total=%d from sources=%d", len(results), len(src_list))
        return results

    def _enrich(self, article: Article, report: RunReport) -> Article:
        if self.enricher is None:
            return article
        self._enrich_limiter.wait()
        enriched = self.enricher.enrich(article)
        if enriched is article:
            report.enrich_failures += 1
        return enriched

    def _narrate(self, article: Article, report: RunReport) -> Article:
        if self.narrator is None:
            return article
        if self.dry_run:
            logger.info("[DRY-RUN] Would narrate %s", article.id)
            return article
        try:
            narrated = self.narrator.narrate(article)
        except Exception as exc:  # noqa: BLE001 - an episode failure never drops the article
            logger.exception("Narration failed for %s: %s", article.id, exc)
            report.errors += 1
            return article
        if narrated.audio_url and not article.audio_url:
            report.narrated += 1
        return narrated

    def process(self, article: Article, report: RunReport) -> Article:
        """Enrich, illustrate and narrate one article. Each stage may fail alone."""
        logger.info("Processing: %s", article.title)
        article = self._enrich(article, report)
        article = self.illustrator.illustrate(article)
        return self._narrate(article, report)

    def run(self, sources: Iterable[Source]) -> RunReport:
        report = RunReport()
        if self.enricher is None:
            logger.warning("No LLM client; articles will be stored without enrichment")

        fetched = self.fetch_all(sources, report)
        report.fetched = len(fetched)

        existing = self.store.load().articles
        new_articles, stats = select_new_articles_with_stats(fetched, existing)
        report.duplicates_skipped = stats.duplicates
        logger.info("Found %d new articles (%d duplicates skipped)", stats.kept, stats.duplicates)

        if self.max_total_items is not None and self.max_total_items >= 0:
            new_articles = new_articles[: self.max_total_items]

        processed = [self.process(a, report) for a in new_articles]
        report.processed = len(processed)

        if not processed:
            report.stored = len(existing)
            logger.info("No new articles found")
            return report

        if self.dry_run:
            logger.info("[DRY-RUN] Would store %d new articles", len(processed))
            report.stored = len(existing)
            return report

        result = self.publisher.publish(processed)
        report.stored = result.stored
        report.posted = result.posted
        report.errors += result.post_failures

        logger.info(
            "Pipeline finished: fetched=%s, duplicates=%s, processed=%s, narrated=%s, stored=%s, posted=%s",
            report.fetched,
            report.duplicates_skipped,
            report.processed,
            report.narrated,
            report.stored,
            report.posted,
        )
        return report

    def narrate_backlog(self, limit: int) -> int:
        """Narrate up to ``limit`` of the newest stored articles lacking audio.

        Each finished episode is written back right away, and only to a record
        that still has no audio. A dry run only lists the candidates. Returns the
        number of episodes produced.
        """
        if self.narrator is None:
            logger.warning("Narration unavailable; backlog skipped")
            return 0
        articles = sorted(
            self.store.load().articles,
            key=lambda a: published_sort_key(a.published_at),
            reverse=True,
        )
        pending = [a for a in articles if not a.audio_url][: max(limit, 0)]
        logger.info("Narrating backlog: %d of %d articles lack audio", len(pending), len(articles))

        if self.dry_run:
            for article in pending:
                logger.info("[DRY-RUN] Would narrate %s", article.id)
            return 0

        limiter = RateLimiter(self.config.narration_delay, name="narration")
        produced = 0
        for article in limiter.throttle(pending):
            try:
                audio_url = self.narrator.generate_podcast_audio(article)
            except Exception as exc:  # noqa: BLE001 - one bad episode never ends the backlog
                logger.exception("Backlog narration failed for %s: %s", article.id, exc)
                continue
            if not audio_url:
                continue
            produced += 1
            self.store.update(_with_audio(article.id, audio_url))
        logger.info("Backlog narration finished: %d episodes", produced)
        return produced


def _with_audio(article_id: str, audio_url: str) -> Callable[[List[Article]], List[Article]]:
    def mutate(current: List[Article]) -> List[Article]:
        return [
            replace(a, audio_url=audio_url) if a.id == article_id and not a.audio_url else a
            for a in current
        ]

    return mutate

"""End-to-end pipeline runs with fake fetchers and provider clients."""

from dataclasses import replace

from hibichidoku.models import FetcherResult, Source
from hibichidoku.orchestrator import Orchestrator, PipelineClients, build_clients
from hibichidoku.narration import (
    MultiSpeakerSynthesizer,
    PerTurnSynthesizer,
    SpeechSynthesizer,
    SynthesizedAudio,
)
from hibichidoku.output.store import ArticleStore
from hibichidoku.processors import fallback_image_url

from conftest import FakeImageClient, FakeLLM, FakeSocial, FakeSynthesizer, make_article

SOURCES = [
    Source(name="arxiv-ai", type="arxiv", query="cs.AI"),
    Source(name="feed", type="rss", url="https://example.com/feed", category="Science"),
]

A = make_article("A", published_at="2024-01-01T00:00:00.000Z")
B = make_article("B", published_at="2024-01-02T00:00:00.000Z")


class _SequenceSynthesizer(SpeechSynthesizer):
    def __init__(self, *audio):
        self.audio = list(audio)
        self.calls = 0

    def synthesize(self, turns):
        self.calls += 1
        return self.audio.pop(0)


def _fetcher(results):
    calls = []

    def fetch(source):
        calls.append(source.name)
        return results.get(source.name, FetcherResult(success=True, articles=[]))

    fetch.calls = calls
    return fetch


class TestRun:

    def test_only_new_article_is_processed_and_stored(self, pipeline_config):
        store = ArticleStore(pipeline_config.store_path)
        store.save([A], expected_version=None)
        llm = FakeLLM()
        fetch = _fetcher({"arxiv-ai": FetcherResult(success=True, articles=[A, B])})

        orch = Orchestrator(
            pipeline_config,
            clients=PipelineClients(llm=llm, images=FakeImageClient()),
            store=store,
            fetcher=fetch,
        )
        report = orch.run(SOURCES)

        assert fetch.calls == ["arxiv-ai", "feed"]
        assert (report.fetched, report.duplicates_skipped, report.processed) == (2, 1, 1)
        stored = store.load().articles
        assert [a.id for a in stored] == ["B", "A"]
        assert stored[0].title_ja == "日本語タイトル"
        assert stored[0].image_url == "https://img/m.jpg"
        assert stored[1].title_ja is None
        # one enrichment call for B only
        assert len(llm.calls) == 1

    def test_without_providers_articles_still_stored(self, pipeline_config):
        fetch = _fetcher({"feed": FetcherResult(success=True, articles=[B])})
        orch = Orchestrator(pipeline_config, clients=PipelineClients(), fetcher=fetch)
        orch.run(SOURCES)
        (stored,) = ArticleStore(pipeline_config.store_path).load().articles
        assert stored.title_ja is None
        assert stored.image_url == fallback_image_url("B")

    def test_enrichment_failure_counted(self, pipeline_config):
        llm = FakeLLM(default=RuntimeError("quota"))
        fetch = _fetcher({"feed": FetcherResult(success=True, articles=[B])})
        report = Orchestrator(pipeline_config, clients=PipelineClients(llm=llm), fetcher=fetch).run(SOURCES)
        assert report.enrich_failures == 1
        assert report.processed == 1

    def test_fetch_failure_counted(self, pipeline_config):
        fetch = _fetcher({"arxiv-ai": FetcherResult(success=False, error="503")})
        report = Orchestrator(pipeline_config, clients=PipelineClients(), fetcher=fetch).run(SOURCES)
        assert report.errors == 1
        assert report.processed == 0
        assert not pipeline_config.store_path.exists()

    def test_dry_run_does_not_write(self, pipeline_config):
        social = FakeSocial()
        fetch = _fetcher({"feed": FetcherResult(success=True, articles=[B])})
        report = Orchestrator(
            pipeline_config, clients=PipelineClients(social=social), fetcher=fetch, dry_run=True
        ).run(SOURCES)
        assert report.processed == 1
        assert not pipeline_config.store_path.exists()
        assert social.posts == []

    def test_limits(self, pipeline_config):
        many = [make_article(f"N{i}", published_at=f"2024-02-{i + 1:02d}T00:00:00.000Z") for i in range(5)]
        fetch = _fetcher({"arxiv-ai": FetcherResult(success=True, articles=many)})
        report = Orchestrator(
            pipeline_config,
            clients=PipelineClients(),
            fetcher=fetch,
            max_items_per_source=3,
            max_total_items=2,
        ).run(SOURCES)
        assert report.fetched == 3
        assert report.processed == 2

    def test_narration_and_announcement(self, pipeline_config):
        config = replace(pipeline_config, enable_narration=True)
        social = FakeSocial()
        fetch = _fetcher({"feed": FetcherResult(success=True, articles=[B])})
        orch = Orchestrator(
            config,
            clients=PipelineClients(llm=FakeLLM(), synthesizer=FakeSynthesizer(), social=social),
            fetcher=fetch,
        )
        orch.narrator.settings.post_process = False
        report = orch.run(SOURCES)
        (stored,) = ArticleStore(config.store_path).load().articles
        assert stored.audio_url.startswith("/audio/podcast_")
        assert report.narrated == 1
        assert report.posted == 1
        assert "日本語タイトル" in social.posts[0]

    def test_skip_narration_flag(self, pipeline_config):
        config = replace(pipeline_config, enable_narration=True)
        synthesizer = FakeSynthesizer()
        orch = Orchestrator(
            config,
            clients=PipelineClients(llm=FakeLLM(), synthesizer=synthesizer),
            narrate=False,
            fetcher=_fetcher({"feed": FetcherResult(success=True, articles=[B])}),
        )
        orch.run(SOURCES)
        assert synthesizer.calls == 0

    def test_dry_run_skips_narration(self, pipeline_config):
        config = replace(pipeline_config, enable_narration=True)
        synthesizer = FakeSynthesizer()
        report = Orchestrator(
            config,
            clients=PipelineClients(llm=FakeLLM(), synthesizer=synthesizer),
            fetcher=_fetcher({"feed": FetcherResult(success=True, articles=[B])}),
            dry_run=True,
        ).run(SOURCES)
        assert report.processed == 1
        assert report.narrated == 0
        assert synthesizer.calls == 0
        assert not config.audio_dir.exists()


class TestNarrateBacklog:

    def test_narrates_newest_missing_audio(self, pipeline_config):
        store = ArticleStore(pipeline_config.store_path)
        done = make_article("done", published_at="2024-01-05T00:00:00.000Z", audio_url="/audio/done.mp3")
        store.save([done, B, A], expected_version=None)
        orch = Orchestrator(
            pipeline_config,
            clients=PipelineClients(llm=FakeLLM(), synthesizer=FakeSynthesizer()),
            narrate=True,
        )
        orch.narrator.settings.post_process = False

        assert orch.narrate_backlog(1) == 1
        by_id = {a.id: a for a in store.load().articles}
        assert by_id["done"].audio_url == "/audio/done.mp3"
        assert by_id["B"].audio_url.startswith("/audio/podcast_")
        assert by_id["A"].audio_url is None

    def test_unavailable_narrator(self, pipeline_config):
        orch = Orchestrator(pipeline_config, clients=PipelineClients(), narrate=True)
        assert orch.narrate_backlog(5) == 0

    def test_failed_episode_does_not_end_backlog(self, pipeline_config):
        store = ArticleStore(pipeline_config.store_path)
        store.save([B, A], expected_version=None)
        # three bytes cannot be framed as 16-bit PCM
        synthesizer = _SequenceSynthesizer(
            SynthesizedAudio(data=b"\x00\x00\x00", mime_type="audio/L16;codec=pcm;rate=24000"),
            SynthesizedAudio(data=b"ID3fake-mp3", mime_type="audio/mpeg"),
        )
        orch = Orchestrator(
            pipeline_config,
            clients=PipelineClients(llm=FakeLLM(), synthesizer=synthesizer),
            narrate=True,
        )
        orch.narrator.settings.post_process = False

        assert orch.narrate_backlog(2) == 1
        assert synthesizer.calls == 2
        by_id = {a.id: a for a in store.load().articles}
        assert by_id["B"].audio_url is None
        assert by_id["A"].audio_url.startswith("/audio/podcast_")

    def test_every_episode_failing(self, pipeline_config):
        store = ArticleStore(pipeline_config.store_path)
        store.save([B, A], expected_version=None)
        synthesizer = FakeSynthesizer(
            audio=SynthesizedAudio(data=b"\x00\x00\x00", mime_type="audio/L16;codec=pcm;rate=24000")
        )
        orch = Orchestrator(
            pipeline_config,
            clients=PipelineClients(llm=FakeLLM(), synthesizer=synthesizer),
            narrate=True,
        )
        assert orch.narrate_backlog(2) == 0
        assert synthesizer.calls == 2

    def test_dry_run_synthesizes_nothing(self, pipeline_config):
        store = ArticleStore(pipeline_config.store_path)
        store.save([B, A], expected_version=None)
        version = store.current_version()
        synthesizer = FakeSynthesizer()
        orch = Orchestrator(
            pipeline_config,
            clients=PipelineClients(llm=FakeLLM(), synthesizer=synthesizer),
            narrate=True,
            dry_run=True,
        )
        assert orch.narrate_backlog(2) == 0
        assert synthesizer.calls == 0
        assert not pipeline_config.audio_dir.exists()
        assert store.current_version() == version


class TestBuildClients:

    def test_missing_keys_disable_stages(self, pipeline_config):
        clients = build_clients(replace(pipeline_config, enable_narration=True, enable_social_posts=True))
        assert clients.llm is None
        assert clients.images is None
        assert clients.synthesizer is None
        assert clients.social is None

    def test_synthesizer_per_mode(self, pipeline_config):
        multi = build_clients(replace(pipeline_config, enable_narration=True, gemini_api_key="k"))
        assert isinstance(multi.synthesizer, MultiSpeakerSynthesizer)
        per_turn = build_clients(
            replace(pipeline_config, enable_narration=True, tts_mode="per_turn", cloud_tts_api_key="k")
        )
        assert isinstance(per_turn.synthesizer, PerTurnSynthesizer)

    def test_narration_override(self, pipeline_config):
        config = replace(pipeline_config, enable_narration=False, gemini_api_key="k")
        assert build_clients(config).synthesizer is None
        assert isinstance(build_clients(config, narration=True).synthesizer, MultiSpeakerSynthesizer)

    def test_dry_run_social(self, pipeline_config):
        clients = build_clients(replace(pipeline_config, enable_social_posts=True), dry_run=True)
        assert clients.social is not None and clients.social.dry_run

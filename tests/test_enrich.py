"""Tests for hibichidoku/processors/enrich.py -- candidate-model fallback."""

import requests

from hibichidoku.processors.enrich import Enricher, build_enrichment_prompt, merge_enrichment
from hibichidoku.processors.ai.parsing import EnrichmentPayload

from conftest import FakeLLM, make_article


class TestEnricher:

    def test_first_model_success(self, fake_llm):
        article = make_article()
        enriched = Enricher(fake_llm, candidate_models=["m1", "m2"]).enrich(article)
        assert enriched is not article
        assert enriched.title_ja == "日本語タイトル"
        assert enriched.summary_ja == "日本語の要約"
        assert enriched.recommended_books == ["機械学習 入門"]
        assert enriched.tags == ["AI", "言語モデル"]
        assert enriched.visual_suggestions == ["ニューラルネットワークの構造図"]
        assert [c[0] for c in fake_llm.calls] == ["m1"]
        # input untouched
        assert article.title_ja is None

    def test_falls_through_failures(self):
        llm = FakeLLM(
            responses={
                "m1": requests.HTTPError("404 model not found"),
                "m2": "Sorry, I can't do that.",
                "m3": '{"tags": "oops"}',
            }
        )
        enriched = Enricher(llm, candidate_models=["m1", "m2", "m3", "m4"]).enrich(make_article())
        assert [c[0] for c in llm.calls] == ["m1", "m2", "m3", "m4"]
        assert enriched.title_ja == "日本語タイトル"

    def test_all_models_fail_returns_input(self):
        llm = FakeLLM(responses={"m1": RuntimeError("quota"), "m2": "no json"})
        article = make_article()
        assert Enricher(llm, candidate_models=["m1", "m2"]).enrich(article) is article

    def test_prompt_embeds_title_and_content(self):
        article = make_article(original_content="x" * 20000)
        prompt = build_enrichment_prompt(article)
        assert "A Study of Things" in prompt
        assert "visualSuggestions" in prompt
        assert "x" * 12001 not in prompt


class TestMergeEnrichment:

    def test_defaults_to_original_title_and_summary(self):
        merged = merge_enrichment(make_article(), EnrichmentPayload())
        assert merged.title_ja == "A Study of Things"
        assert merged.summary_ja == "We study things."

    def test_keeps_existing_optional_values(self):
        article = make_article(tags=["old"], insight_ja="既存")
        merged = merge_enrichment(article, EnrichmentPayload(title_ja="新"))
        assert merged.tags == ["old"]
        assert merged.insight_ja == "既存"
        assert merged.title_ja == "新"

    def test_new_suggestions_reset_images(self):
        article = make_article(visual_suggestions=["旧"], visual_images=["https://img/old.jpg"])
        merged = merge_enrichment(article, EnrichmentPayload(visual_suggestions=["新しい図", "グラフ"]))
        assert merged.visual_suggestions == ["新しい図", "グラフ"]
        assert merged.visual_images is None

from __future__ import annotations

from dataclasses import replace
from typing import Optional, Sequence

from ..models import Article
from ..utils.logging import get_logger
from ..utils.pipeline_config import DEFAULT_CANDIDATE_MODELS
from .ai import LLMClient
from .ai.parsing import EnrichmentPayload, parse_enrichment

logger = get_logger("hibi.processors.enrich")

# Long abstracts and RSS bodies are cut to keep prompts within budget
MAX_CONTENT_CHARS = 12000


def build_enrichment_prompt(article: Article) -> str:
    content = (article.original_content or article.summary or "")[:MAX_CONTENT_CHARS]
    return (
        "You are an expert science communicator.\n"
        "Analyze the following article and provide a comprehensive Japanese translation and explanation.\n\n"
        "IMPORTANT: The original content may contain HTML tags, links, or code snippets. "
        "You MUST remove ALL HTML tags, URLs, and code-like formatting from your output. "
        "Provide clean, readable Japanese text only.\n\n"
        f"Title: {article.title}\n"
        f"Content: {content}\n\n"
        "Output valid JSON with the following keys:\n"
        "- titleJa: Japanese translation of the title (clean text, no HTML)\n"
        "- summaryJa: A comprehensive summary covering the research problem, approach, key findings "
        "and implications, written in flowing paragraphs of about 400-600 characters in polite desu/masu style.\n"
        "- explanationJa: A one-sentence explanation for a general audience (desu/masu style, about 50-80 characters)\n"
        "- translationJa: A detailed Japanese translation that lets readers understand the piece without "
        "reading the original; explain technical terms. About 500-800 characters, no HTML.\n"
        "- insightJa: How this topic might affect everyday life or business (desu/masu style, 1-2 sentences, "
        "about 80-120 characters)\n"
        '- recommendedBooks: An array of 2-3 related book search keywords in Japanese (e.g. ["人工知能 入門", "機械学習 ビジネス"])\n'
        "- tags: An array of 3-5 relevant keywords (English or Japanese)\n"
        "- visualSuggestions: An array of 2-3 short Japanese descriptions of figures that would help explain the topic\n\n"
        "Do not include Markdown formatting like ```json. Just the raw JSON string."
    )


def merge_enrichment(article: Article, payload: EnrichmentPayload) -> Article:
    """Return a copy of ``article`` with the payload's fields merged in.

    Keys the model left out keep the article's current values; the Japanese
    title and summary fall back to the original title and summary.
    """
    return replace(
        article,
        title_ja=payload.title_ja or article.title_ja or article.title,
        summary_ja=payload.summary_ja or article.summary_ja or article.summary,
        explanation_ja=payload.explanation_ja or article.explanation_ja,
        translation_ja=payload.translation_ja or article.translation_ja,
        insight_ja=payload.insight_ja or article.insight_ja,
        recommended_books=list(payload.recommended_books)
        if payload.recommended_books is not None
        else article.recommended_books,
        tags=list(payload.tags) if payload.tags is not None else article.tags,
        visual_suggestions=list(payload.visual_suggestions)
        if payload.visual_suggestions is not None
        else article.visual_suggestions,
        visual_images=None if payload.visual_suggestions is not None else article.visual_images,
    )


class Enricher:
    """Best-effort LLM enrichment walking an ordered list of candidate models."""

    def __init__(self, llm: LLMClient, *, candidate_models: Optional[Sequence[str]] = None) -> None:
        self.llm = llm
        self.candidate_models = list(candidate_models or DEFAULT_CANDIDATE_MODELS)
        if not self.candidate_models:
            raise ValueError("candidate_models must not be empty")

    def enrich(self, article: Article) -> Article:
        """Enrich one article; returns the input object unchanged if every model fails."""
        prompt = build_enrichment_prompt(article)
        last_error: Optional[BaseException] = None
        for model in self.candidate_models:
            logger.debug("Trying model %s for %s", model, article.id)
            try:
                raw = self.llm.generate(prompt, model=model)
                payload = parse_enrichment(raw)
            except Exception as exc:  # noqa: BLE001 - any model failure falls through
                logger.warning("Model %s failed for %s: %s", model, article.id, exc)
                last_error = exc
                continue
            logger.info("Enriched '%s' with %s", article.title, model)
            return merge_enrichment(article, payload)

        logger.error("All models failed for article %s. Last error: %s", article.id, last_error)
        return article

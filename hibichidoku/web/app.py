from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles

from ..output.feed import FEED_CACHE_CONTROL, build_podcast_feed
from ..output.store import ArticleStore
from ..utils.config_loader import PodcastChannel
from ..utils.ids import decode_id
from ..utils.logging import get_logger
from ..utils.pipeline_config import PipelineConfig
from .reader import MAX_PER_PAGE, paginate, search_articles

logger = get_logger("hibi.web")


def create_app(
    config: PipelineConfig,
    channel: PodcastChannel,
    *,
    store: Optional[ArticleStore] = None,
) -> FastAPI:
    """Reader API, podcast feed and episode files over one store."""
    store = store or ArticleStore(config.store_path)
    app = FastAPI(title="hibichidoku")

    @app.get("/api/articles")
    def list_articles(
        q: Optional[str] = None,
        page: int = Query(1, ge=1),
        per_page: int = Query(20, ge=1, le=MAX_PER_PAGE),
    ) -> Dict[str, Any]:
        hits = search_articles(store.load().articles, q)
        result = paginate(hits, page=page, per_page=per_page)
        return {
            "items": [a.to_dict() for a in result.items],
            "page": result.page,
            "perPage": result.per_page,
            "total": result.total,
            "pages": result.pages,
        }

    @app.get("/api/articles/{encoded_id}")
    def get_article(encoded_id: str) -> Dict[str, Any]:
        try:
            article_id = decode_id(encoded_id)
        except ValueError:
            raise HTTPException(status_code=404, detail="Article not found")
        for article in store.load().articles:
            if article.id == article_id:
                return article.to_dict()
        raise HTTPException(status_code=404, detail="Article not found")

    @app.get("/podcast/feed.xml")
    def podcast_feed() -> Response:
        xml = build_podcast_feed(
            store.load().articles,
            channel,
            base_url=config.site_url,
            audio_root=config.audio_dir,
        )
        return Response(
            content=xml,
            media_type="application/rss+xml; charset=utf-8",
            headers={"Cache-Control": FEED_CACHE_CONTROL},
        )

    app.mount(
        config.audio_url_prefix or "/audio",
        StaticFiles(directory=str(config.audio_dir), check_dir=False),
        name="audio",
    )
    logger.info("Reader app ready (store=%s, audio=%s)", store.path, config.audio_dir)
    return app

"""REST API for the team data aggregator."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI, Response

from teamfeed import __version__
from teamfeed.api.schemas import AggregateResponse, HealthResponse
from teamfeed.config import FeedConfig, load_config
from teamfeed.pipeline import aggregate


logger = logging.getLogger("uvicorn.error")

FALLBACK_HEADER = "X-Teamfeed-Fallback"


def create_app(config: FeedConfig | None = None, *, client: httpx.AsyncClient | None = None) -> FastAPI:
    """Build the application.

    ``client`` is the outbound HTTP client shared by every request; when it is
    omitted one is opened on startup and closed on shutdown.
    """

    config = config or load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned: httpx.AsyncClient | None = None
        if app.state.http_client is None:
            owned = httpx.AsyncClient(timeout=config.timeout_seconds)
            app.state.http_client = owned
        try:
            yield
        finally:
            if owned is not None:
                await owned.aclose()
                app.state.http_client = None
                logger.info("Outbound HTTP client closed")

    app = FastAPI(title="teamfeed", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.http_client = client

    @app.get("/health", response_model=HealthResponse)
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/aggregate", response_model=AggregateResponse, response_model_exclude_unset=True)
    async def get_aggregate(response: Response) -> AggregateResponse:
        result = await aggregate(app.state.config, client=app.state.http_client)
        response.headers[FALLBACK_HEADER] = ",".join(result.fallback_categories)
        if result.fallback_categories:
            logger.warning("Served fallback data for: %s", ", ".join(result.fallback_categories))
        return AggregateResponse.model_validate(result.to_payload())

    return app

from __future__ import annotations  # FastAPI server exposing the timed interview

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from config import load_config_or_default, settings
from interview import FallbackChain, InterviewOrchestrator
from storage import SqliteSessionStore


logger = logging.getLogger(__name__)


def build_orchestrator(client: httpx.AsyncClient) -> InterviewOrchestrator:  # Wire store, provider chain and timer
    cfg = load_config_or_default(Path(settings.PROVIDER_CONFIG_PATH))
    chain = FallbackChain.from_config(cfg, client=client)
    if not chain.is_configured():
        logger.warning("No provider credential configured; interviews will use default questions and scoring")
    return InterviewOrchestrator(SqliteSessionStore(Path(settings.DB_PATH)), chain)


def create_app(orchestrator: Optional[InterviewOrchestrator] = None) -> FastAPI:  # Build the app, optionally around a prepared orchestrator
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        client: Optional[httpx.AsyncClient] = None
        if orchestrator is None:
            client = httpx.AsyncClient()
            app.state.orchestrator = build_orchestrator(client)
        else:
            app.state.orchestrator = orchestrator
        try:
            yield
        finally:
            await app.state.orchestrator.shutdown()
            if client is not None:
                await client.aclose()

    app = FastAPI(title="Interview Session API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


app = create_app()


__all__ = ["app", "build_orchestrator", "create_app"]

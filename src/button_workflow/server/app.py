"""FastAPI app factory."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from button_workflow import __version__
from button_workflow.server.config import ServerSettings
from button_workflow.server.router import router
from button_workflow.storage import JsonFileStore, KeyValueStore

logger = logging.getLogger(__name__)


def create_app(
    settings: ServerSettings | None = None, store: KeyValueStore | None = None
) -> FastAPI:
    settings = settings or ServerSettings()

    app = FastAPI(
        title="Button Workflow",
        version=__version__,
        description="Edit a button workflow and trigger runs over HTTP.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.state.settings = settings
    app.state.store = store if store is not None else JsonFileStore(settings.storage_path)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api")

    logger.info("App created", extra={"storage_path": str(settings.storage_path)})
    return app

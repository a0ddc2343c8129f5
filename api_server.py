from __future__ import annotations  # FastAPI server exposing the mock interview session

import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from config import GENERATOR_KEY, STORE_KEY, bind_model, is_bound, load_config, settings
from question_gen import LlmQuestionGenerator
from storage.migrate import migrate
from storage.records import SqliteRecordStore


logger = logging.getLogger(__name__)

ROUTE_TARGET = "question_generator"


def _default_generator() -> LlmQuestionGenerator:  # Generator for the configured LLM route
    cfg = load_config(Path(settings.LLM_CONFIG_PATH))
    route = cfg.route_for(ROUTE_TARGET)
    logger.info("Using LLM route=%s model=%s", route.name, route.model)
    return LlmQuestionGenerator(route)


def _default_store() -> SqliteRecordStore:  # Record store on the configured database
    return SqliteRecordStore(settings.DB_PATH)


def create_app() -> FastAPI:  # Build the application and bind default collaborators
    if not is_bound(GENERATOR_KEY):
        bind_model(GENERATOR_KEY, _default_generator)
    if not is_bound(STORE_KEY):
        bind_model(STORE_KEY, _default_store)
    migrate(settings.DB_PATH)

    application = FastAPI(title="Mock Interview API")
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(router)
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)

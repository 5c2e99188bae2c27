"""
Application factory: builds settings, storage, services and routes.

Run with `news-portal-api` or `uvicorn main:create_app --factory` from `api/`.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth.repository import InMemoryCredentialRepository, PostgresCredentialRepository
from auth.router import router as auth_router
from auth.service import AuthService
from core.config import Settings, load_settings
from core.db import Database
from core.errors import register_error_handlers
from core.logging import configure_logging
from core.memory import MemoryState
from core.uploads import ImageStore
from inquiries.repository import InMemoryInquiryRepository, PostgresInquiryRepository
from inquiries.router import router as inquiries_router
from inquiries.service import InquiryService
from news.repository import InMemoryNewsRepository, PostgresNewsRepository
from news.router import router as news_router
from news.service import NewsService
from users.repository import InMemoryUserRepository, PostgresUserRepository
from users.router import router as users_router
from users.service import UserService

logger = logging.getLogger(__name__)


def _wire_services(app: FastAPI, settings: Settings, state: MemoryState | None) -> Database | None:
    images = ImageStore(settings.upload_root, max_bytes=settings.max_upload_bytes)

    if settings.storage_backend == "memory":
        state = state if state is not None else MemoryState()
        app.state.memory = state
        news_repo = InMemoryNewsRepository(state)
        inquiry_repo = InMemoryInquiryRepository(state)
        user_repo = InMemoryUserRepository(state)
        credential_repo = InMemoryCredentialRepository(state)
        db = None
    else:
        db = Database(settings)
        news_repo = PostgresNewsRepository(db)
        inquiry_repo = PostgresInquiryRepository(db)
        user_repo = PostgresUserRepository(db)
        credential_repo = PostgresCredentialRepository(db)

    app.state.news_service = NewsService(news_repo, images)
    app.state.inquiry_service = InquiryService(inquiry_repo)
    app.state.user_service = UserService(user_repo, images)
    app.state.auth_service = AuthService(credential_repo, settings)
    return db


def create_app(settings: Settings | None = None, state: MemoryState | None = None) -> FastAPI:
    settings = settings if settings is not None else load_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Initialize the DB pool once per process.
        db = app.state.db
        if db is not None:
            await db.connect()
        logger.info("app_started storage_backend=%s", settings.storage_backend)
        try:
            yield
        finally:
            if db is not None:
                await db.close()

    app = FastAPI(title="News Portal API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = _wire_services(app, settings, state)

    register_error_handlers(app, settings)

    if settings.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(news_router, tags=["news"])
    app.include_router(inquiries_router, tags=["inquiries"])
    app.include_router(auth_router, tags=["auth"])
    app.include_router(users_router, tags=["users"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


def run() -> None:
    settings = load_settings()
    uvicorn.run("main:create_app", factory=True, host="0.0.0.0", port=8000, log_level=settings.log_level.lower())

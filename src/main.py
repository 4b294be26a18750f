"""Recetas web app: JSON API under /api/v1, page data loaders, and stored images."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api import auth, bookmarks, pages, profiles, recipes, storage, taxonomy
from src.api.session import SessionMiddleware
from src.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

ROUTERS = (
    auth.router,
    profiles.router,
    recipes.router,
    taxonomy.router,
    bookmarks.router,
    storage.router,
    storage.public_router,
    pages.router,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"Starting Recetas ({settings.environment}), storing uploads in {settings.storage_root}"
    )
    yield
    logger.info("Recetas stopped")


def create_app() -> FastAPI:
    application = FastAPI(
        title="Recetas API",
        description="Recipe sharing with categories, tags, likes, bookmarks, and notes",
        version="0.1.0",
        lifespan=lifespan,
    )

    if not settings.is_production:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    application.add_middleware(SessionMiddleware)

    for router in ROUTERS:
        application.include_router(router)

    @application.get("/health")
    async def health_check():
        return {"status": "healthy", "environment": settings.environment}

    return application


app = create_app()

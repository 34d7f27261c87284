"""CAT Prep - FastAPI Application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catprep import __version__
from catprep.api import auth
from catprep.config import settings
from catprep.db import async_session, init_db
from catprep.exceptions import register_exception_handlers
from catprep.routers import (
    admin_router,
    questions_router,
    subjects_router,
    tests_router,
    users_router,
)
from catprep.seed import seed_catalog
from catprep.services.users import UserService

logging.basicConfig(
    level=logging.DEBUG if settings.debug else settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def seed_database():
    """Seed the catalog and the bootstrap administrator if configured."""
    async with async_session() as session:
        if settings.skip_seeding:
            logger.info("SKIP_SEEDING is set. Skipping catalog seed.")
        else:
            await seed_catalog(session, settings.seed_file)

        if settings.admin_email and settings.admin_password:
            await UserService(session).ensure_admin(
                settings.admin_email, settings.admin_password, settings.admin_name
            )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Initializing database...")
    await init_db()
    logger.info("Database initialized.")

    await seed_database()

    logger.info("Startup complete.")
    yield

    logger.info("Shutting down...")


app = FastAPI(
    title=settings.app_name,
    description="Timed multiple-choice practice tests with scoring",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth.router, prefix="/api")
app.include_router(subjects_router)
app.include_router(questions_router)
app.include_router(tests_router)
app.include_router(users_router)
app.include_router(admin_router)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)

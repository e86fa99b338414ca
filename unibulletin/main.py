"""
University announcement board - main FastAPI application.

- Teachers post announcements with AI summaries and images
- Students and staff read a filtered, paginated feed
- Bearer-token login with per-address rate limiting
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from unibulletin.api import api_router
from unibulletin.auth.rate_limit import build_login_limiter, connect_redis
from unibulletin.config import settings
from unibulletin.db import get_db_context
from unibulletin.errors import BoardError
from unibulletin.services.users import seed_default_users

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Connects the shared rate-limit store (if configured)
    - Seeds default accounts on an empty database (not in production)

    Shutdown:
    - Closes the Redis connection
    """
    logger.info("Starting announcement board...")

    redis_client = await connect_redis(settings.redis_url)
    app.state.login_limiter = build_login_limiter(redis_client)

    if not settings.is_production:
        try:
            async with get_db_context() as db:
                await seed_default_users(db, settings.seed_password)
        except SQLAlchemyError as e:
            logger.error(f"Error seeding users: {e}")

    logger.info("Announcement board started successfully!")

    yield

    logger.info("Shutting down announcement board...")
    if redis_client is not None:
        try:
            await redis_client.aclose()
        except Exception as e:
            logger.warning(f"Redis close error: {e}")


app = FastAPI(
    title="UniBulletin",
    description="University announcement board",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.cors_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BoardError)
async def board_error_handler(request: Request, exc: BoardError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(SQLAlchemyError)
async def persistence_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Attachment files
app.mount(
    settings.uploads_url_prefix,
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="uploads",
)

app.include_router(api_router)


@app.get("/", include_in_schema=False)
async def root():
    return {"status": "Server is running"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "unibulletin.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )

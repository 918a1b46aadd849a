"""FastAPI application factory and main app."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import uvicorn
import logging
from contextlib import asynccontextmanager

from dispatch.client import HttpDispatcher
from utils.config import settings
from utils.errors import APIRequesterError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown tasks."""
    logger.info(f"Starting {settings.app_name} v{settings.version}")
    # The dispatcher owns the outbound connection pool for the app's lifetime.
    app.state.dispatcher = HttpDispatcher()
    logger.info("HTTP dispatcher started")

    yield

    logger.info(f"Shutting down {settings.app_name}")
    await app.state.dispatcher.close()
    logger.info("HTTP dispatcher stopped")


def register_exception_handlers(app: FastAPI) -> None:
    """Render domain errors with their status and everything else as a 500."""

    @app.exception_handler(APIRequesterError)
    async def api_error_handler(request: Request, exc: APIRequesterError):
        logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message}
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Global exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error occurred"}
        )


def create_app() -> FastAPI:
    """Create FastAPI application with all middleware and routes."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        description="Compose, send, save and load-test HTTP API requests",
        lifespan=lifespan,
    )

    # Add middleware
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=settings.allowed_methods,
        allow_headers=settings.allowed_headers,
    )

    # Add routers
    from api.routes import health, environments, collections, requests, loadtest

    app.include_router(health.router, prefix=settings.api_prefix, tags=["Health"])
    app.include_router(environments.router, prefix=settings.api_prefix, tags=["Environments"])
    app.include_router(collections.router, prefix=settings.api_prefix, tags=["Collections"])
    app.include_router(requests.router, prefix=settings.api_prefix, tags=["Requests"])
    app.include_router(loadtest.router, prefix=settings.api_prefix, tags=["Load Testing"])

    register_exception_handlers(app)

    return app


if __name__ == "__main__":
    uvicorn.run(
        "api.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="info" if not settings.debug else "debug"
    )

"""FastAPI application entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docrag import __version__
from docrag.api.dependencies import get_cached_config
from docrag.api.middleware import (
    ExceptionHandlerMiddleware,
    RequestLoggingMiddleware,
    app_error_handler,
)
from docrag.api.routes import router as api_router
from docrag.auth.supabase_client import get_supabase_client
from docrag.core.di_container import container as di_container
from docrag.core.exceptions import AppError
from docrag.core.logging import setup_logging

logger = structlog.get_logger()

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_cached_config()
    setup_logging(
        log_level=config.log_level,
        json_format=not config.debug,
        log_to_file=config.log_to_file,
    )
    di_container.wire(modules=["docrag.api.routes"])

    active = di_container.config()
    logger.info(
        "application_starting",
        version=__version__,
        store_backend=active.store.backend,
        embedding=f"{active.embedding.provider}/{active.embedding.model}",
        embedding_dimensions=active.embedding.dimensions,
        llm=f"{active.llm.provider}/{active.llm.model}",
    )

    yield

    if get_supabase_client.cache_info().currsize:
        await get_supabase_client().close()
    di_container.unwire()
    logger.info("application_shutting_down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    config = get_cached_config()

    app = FastAPI(
        title=config.app_name,
        description="Document ingestion, vector search and grounded question answering",
        version=__version__,
        lifespan=lifespan,
    )

    # Last added is outermost
    app.add_middleware(ExceptionHandlerMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(AppError, app_error_handler)
    app.include_router(api_router, prefix=API_PREFIX)

    @app.get("/")
    async def root():
        return {"name": config.app_name, "version": __version__, "health": f"{API_PREFIX}/health"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_cached_config()
    uvicorn.run("docrag.main:app", host=settings.host, port=settings.port, reload=settings.debug)

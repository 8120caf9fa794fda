"""Main application module for the BOSS service."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from typing import Optional

from fastapi import FastAPI
from fastapi import Request
from fastapi import Response
from fastapi.exceptions import RequestValidationError

from boss.api import errors
from boss.api import fcs
from boss.api import groups
from boss.api import objects
from boss.api.middlewares.ray_id import ray_id_middleware
from boss.api.middlewares.tracing import tracing_middleware
from boss.config import Config
from boss.config import get_config
from boss.logging_config import setup_loki_logging
from boss.objectstore.registry import ObjectStoreRegistry
from boss.orm.session import create_schema
from boss.orm.session import create_session_factory
from boss.orm.session import initialize_engine


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """FastAPI application lifespan handler."""
    config: Config = app.state.config
    try:
        app.state.sqlalchemy_engine = initialize_engine(config.database_url)
        app.state.session_factory = create_session_factory(app.state.sqlalchemy_engine)
        logger.info("SQLAlchemy async engine initialized")

        if config.create_schema:
            await create_schema(app.state.sqlalchemy_engine)
            logger.info("Database schema created")

        if not hasattr(app.state, "object_stores"):
            app.state.object_stores = ObjectStoreRegistry.from_config(config)
        logger.info(f"Object stores available: {', '.join(app.state.object_stores.platforms)}")

        yield

    finally:
        try:
            if hasattr(app.state, "object_stores"):
                await app.state.object_stores.aclose()
                logger.info("Object store HTTP client closed")
        except Exception:
            logger.exception("Error closing object store HTTP client")

        try:
            if hasattr(app.state, "sqlalchemy_engine"):
                await app.state.sqlalchemy_engine.dispose()
                logger.info("SQLAlchemy engine disposed")
        except Exception:
            logger.exception("Error disposing SQLAlchemy engine")


def create_app(config: Config, object_stores: Optional[ObjectStoreRegistry] = None) -> FastAPI:
    """Build the application around an already loaded configuration."""
    app = FastAPI(
        title="BOSS",
        description="Object metadata registry and storage access broker",
        docs_url="/docs" if config.enable_api_docs else None,
        redoc_url="/redoc" if config.enable_api_docs else None,
        openapi_url="/openapi.json" if config.enable_api_docs else None,
        lifespan=lifespan,
        debug=config.debug,
        default_response_class=Response,
    )
    app.state.config = config
    if object_stores is not None:
        app.state.object_stores = object_stores

    # middleware("http") executes in REVERSE order; ray id must run first
    app.middleware("http")(tracing_middleware)
    app.middleware("http")(ray_id_middleware)

    app.add_exception_handler(errors.BossError, errors.boss_error_handler)  # type: ignore[arg-type]

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> Response:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        logger.info(f"{request.method} {request.url.path} -> 400 malformed request: {details}")
        return Response(content=f"Malformed request: {details}", status_code=400, media_type="text/plain")

    @app.get("/health", include_in_schema=False)
    async def health() -> Response:
        return Response(content="OK", media_type="text/plain")

    app.include_router(objects.router)
    app.include_router(groups.router)

    if config.enable_fcs_service:
        app.state.fcs_store = fcs.ByteMap()
        app.include_router(fcs.router)
        logger.info("Embedded FCS byte-map service mounted at /fcs")

    return app


def factory() -> FastAPI:
    """Factory function to create and configure the FastAPI application."""
    config = get_config()
    setup_loki_logging(config, "boss-api")
    return create_app(config)


if __name__ == "__main__":
    import uvicorn

    config = get_config()
    uvicorn.run(
        "boss.main:factory",
        factory=True,
        host=config.host,
        port=config.port,
        reload=config.debug,
        access_log=True,
    )

"""FastAPI application entry point.

This module creates and configures the FastAPI application instance with:
- Middleware (RequestID, Timing)
- Exception handlers rendering the JSON error envelope
- API routers (v1, plus root-level /prompt, /health and /ready)
- Startup/shutdown lifecycle (client construction, collection setup, seeding)
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from semantic_rag import __version__
from semantic_rag.api.v1 import health, prompt
from semantic_rag.api.v1.router import router as v1_router
from semantic_rag.config import Settings, get_settings
from semantic_rag.middleware import setup_middleware
from semantic_rag.services import build_pipeline
from semantic_rag.services.ingestion_service import IngestionService
from semantic_rag.services.pipeline import RAGPipeline
from semantic_rag.services.vector_store import VectorStoreService
from semantic_rag.utils.errors import RAGException
from semantic_rag.utils.logging import get_logger, log_error, setup_logging

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    On startup:
    - Build the shared clients and the pipeline (unless injected)
    - Declare both collections when SETUP_COLLECTIONS is set
    - Ingest SEED_CSV_PATH into the knowledge collection when set

    Setup and seeding failures abort startup in production and are logged
    as warnings elsewhere.
    """
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.app_name} ({settings.environment.value})...")

    if getattr(app.state, "pipeline", None) is None:
        store = VectorStoreService(settings)
        app.state.vector_store = store
        app.state.pipeline = build_pipeline(settings, store)
        logger.info(f"Vector store client configured for {settings.qdrant.url}")

    pipeline: RAGPipeline = app.state.pipeline

    if settings.setup_collections:
        try:
            await pipeline.setup()
            logger.info("Collections ready")
        except RAGException as e:
            logger.error(f"Failed to set up collections: {e.message}", exc_info=True)
            if settings.is_production:
                raise
            logger.warning(
                "Collection setup failed in development mode. "
                "Service will continue but prompts will fail until Qdrant is reachable."
            )

    if settings.seed_csv_path:
        try:
            ingestion = IngestionService(pipeline.embedder, pipeline.retriever)
            count = await ingestion.ingest_csv(settings.seed_csv_path)
            logger.info(f"Seeded knowledge collection with {count} document(s)")
        except (OSError, RAGException) as e:
            logger.error(f"Failed to seed knowledge collection: {e}", exc_info=True)
            if settings.is_production:
                raise

    logger.info(f"{settings.app_name} started successfully")
    try:
        yield
    finally:
        logger.info(f"Shutting down {settings.app_name}...")
        store: Optional[VectorStoreService] = getattr(app.state, "vector_store", None)
        if store is not None:
            try:
                store.close()
            except Exception as e:
                logger.error(f"Error closing vector store client: {e}", exc_info=True)
        logger.info(f"{settings.app_name} shut down")


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(RAGException)
    async def rag_exception_handler(request: Request, exc: RAGException):
        """Handle RAGException."""
        log_error(exc, context={"path": request.url.path, "method": request.method})
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        log_error(exc, context={"path": request.url.path, "method": request.method})
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "message": exc.detail,
                    "code": "HTTP_ERROR",
                    "status_code": exc.status_code,
                    "details": {},
                }
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle validation errors."""
        log_error(exc, context={"path": request.url.path, "method": request.method})
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": {
                    "message": "Validation error",
                    "code": "VALIDATION_ERROR",
                    "status_code": 422,
                    "details": {"errors": exc.errors()},
                }
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle all other exceptions."""
        log_error(exc, context={"path": request.url.path, "method": request.method})
        message = "Internal server error" if settings.is_production else str(exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "message": message,
                    "code": "INTERNAL_ERROR",
                    "status_code": 500,
                    "details": {},
                }
            },
        )


def create_app(
    settings: Optional[Settings] = None,
    pipeline: Optional[RAGPipeline] = None,
    vector_store: Optional[VectorStoreService] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Settings to use (defaults to the process-wide instance)
        pipeline: Pre-built pipeline; when omitted the lifespan builds one
        vector_store: Store used by the readiness check alongside `pipeline`
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="Semantic RAG Service",
        description="Retrieval-augmented answers with a semantic answer cache over Qdrant",
        version=__version__,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.pipeline = pipeline
    app.state.vector_store = vector_store

    setup_middleware(app)
    _register_exception_handlers(app, settings)

    app.include_router(v1_router)

    # Root-level aliases; also available under /api/v1
    app.include_router(prompt.router)
    app.include_router(health.router, include_in_schema=False)

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint."""
        return {
            "service": "semantic-rag",
            "version": __version__,
            "status": "running",
            "environment": settings.environment.value,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "semantic_rag.main:app",
        host=_settings.server.host,
        port=_settings.server.port,
        reload=_settings.server.reload and _settings.is_development,
        log_level=_settings.log_level.lower(),
    )

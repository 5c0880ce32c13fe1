"""Health check endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from semantic_rag.dependencies import get_vector_store
from semantic_rag.services.vector_store import VectorStoreService
from semantic_rag.utils.logging import get_logger

logger = get_logger("health")

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    """
    Health check endpoint.

    Does not touch external dependencies; healthy whenever the process runs.
    """
    settings = request.app.state.settings
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "environment": settings.environment.value,
    }


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_check(
    request: Request,
    store: Optional[VectorStoreService] = Depends(get_vector_store),
):
    """
    Readiness check endpoint.

    Checks:
    - Qdrant connectivity
    - OpenAI credentials present

    Returns 503 if any check fails.
    """
    settings = request.app.state.settings
    checks = {
        "qdrant": False,
        "openai": settings.openai.is_configured,
    }

    if store is not None:
        checks["qdrant"] = await store.ping()
    else:
        logger.warning("Readiness check: vector store not initialized")

    ready = all(checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ready" if ready else "not_ready", "checks": checks},
    )

"""FastAPI dependencies."""

from typing import Optional

from fastapi import HTTPException, Request, status

from semantic_rag.services.pipeline import RAGPipeline
from semantic_rag.services.vector_store import VectorStoreService
from semantic_rag.utils.logging import get_logger

logger = get_logger("dependencies")


async def get_pipeline(request: Request) -> RAGPipeline:
    """
    Get the RAGPipeline built at start-up.

    Raises:
        HTTPException: 503 if the lifespan did not initialise the pipeline.
    """
    pipeline: Optional[RAGPipeline] = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        logger.error("Pipeline not available in app state")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Answer pipeline is not available (service not initialized)",
        )
    return pipeline


async def get_vector_store(request: Request) -> Optional[VectorStoreService]:
    """Get the shared vector store client, if initialised."""
    return getattr(request.app.state, "vector_store", None)

"""API v1 router aggregation.

All v1 endpoints are prefixed with `/api/v1`.
"""

from fastapi import APIRouter

from semantic_rag import __version__
from semantic_rag.api.v1 import health, prompt

router = APIRouter(
    prefix="/api/v1",
    tags=["v1"],
    responses={
        404: {"description": "Not found"},
        422: {"description": "Validation error"},
        500: {"description": "Internal server error"},
    },
)

router.include_router(health.router)
router.include_router(prompt.router)


@router.get(
    "/",
    summary="API Information",
    description="Get API version and status information",
)
async def api_info():
    """Get API v1 information."""
    return {
        "version": "v1",
        "service_version": __version__,
        "status": "active",
        "service": "semantic-rag",
        "endpoints": {
            "health": "/api/v1/health",
            "ready": "/api/v1/ready",
            "prompt": "/api/v1/prompt",
        },
    }

"""Prompt endpoint: answer a prompt through the RAG pipeline."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse

from semantic_rag.dependencies import get_pipeline
from semantic_rag.models.prompt import PromptRequest
from semantic_rag.services.pipeline import RAGPipeline
from semantic_rag.utils.logging import get_logger

logger = get_logger("prompt_api")

CACHE_HEADER = "X-Semantic-Cache"

router = APIRouter(tags=["prompt"])


@router.post(
    "/prompt",
    response_class=PlainTextResponse,
    status_code=status.HTTP_200_OK,
    summary="Answer a prompt",
    description=(
        "Answer from the semantic cache when a nearby prompt was seen before, "
        "otherwise retrieve context, generate an answer and cache it."
    ),
    responses={
        500: {"description": "No matching knowledge or collection failure"},
        502: {"description": "Embedding, vector store or completion failure"},
    },
)
async def prompt(
    payload: PromptRequest,
    pipeline: RAGPipeline = Depends(get_pipeline),
) -> PlainTextResponse:
    """
    Return the answer as plain text.

    The `X-Semantic-Cache` header tells whether the answer came from the
    cache (`hit`) or was generated for this request (`miss`).
    """
    result = await pipeline.answer(payload.prompt)
    return PlainTextResponse(
        content=result.answer,
        headers={CACHE_HEADER: "hit" if result.cached else "miss"},
    )

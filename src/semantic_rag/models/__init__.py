"""Data models."""

from semantic_rag.models.prompt import PipelineResult, PromptRequest
from semantic_rag.models.vector import Embedding, SearchHit

__all__ = ["Embedding", "PipelineResult", "PromptRequest", "SearchHit"]

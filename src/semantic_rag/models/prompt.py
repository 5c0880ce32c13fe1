"""Prompt API and pipeline result models."""

from typing import Dict

from pydantic import BaseModel, Field


class PromptRequest(BaseModel):
    """Request body for the prompt endpoint."""

    prompt: str = Field(..., min_length=1, description="Natural-language prompt")


class PipelineResult(BaseModel):
    """Outcome of one pass through the answer pipeline."""

    answer: str = Field(..., description="Answer text returned to the caller")
    cached: bool = Field(False, description="True when the answer came from the semantic cache")
    timings_ms: Dict[str, float] = Field(
        default_factory=dict, description="Per-stage durations in milliseconds"
    )

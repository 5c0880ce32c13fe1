"""Vector store models."""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

# Embeddings are plain float lists; the dimension is fixed per collection.
Embedding = List[float]


class SearchHit(BaseModel):
    """One nearest-neighbour result, best match first in a result list."""

    id: Union[str, int] = Field(..., description="Point identifier")
    score: float = Field(..., description="Similarity or distance, per the collection metric")
    payload: Dict[str, Any] = Field(default_factory=dict, description="Stored payload")

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        """Read a payload field."""
        return self.payload.get(key, default)

"""Custom exception classes for the semantic RAG service."""

from typing import Any, Dict, Optional


class RAGException(Exception):
    """Base exception for all semantic RAG errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "error": {
                "message": self.message,
                "code": self.code,
                "status_code": self.status_code,
                "details": self.details,
            }
        }


class EmbeddingError(RAGException):
    """Exception raised for embedding generation errors."""

    def __init__(
        self,
        message: str = "Embedding generation failed",
        model: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if model:
            error_details["model"] = model
        super().__init__(
            message=message,
            status_code=502,
            code="EMBEDDING_ERROR",
            details=error_details,
        )


class StoreWriteError(RAGException):
    """Exception raised when a point cannot be written to the vector store."""

    def __init__(
        self,
        message: str = "Vector store write failed",
        collection: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if collection:
            error_details["collection"] = collection
        super().__init__(
            message=message,
            status_code=502,
            code="STORE_WRITE_ERROR",
            details=error_details,
        )


class StoreSearchError(RAGException):
    """Exception raised when a vector search fails at the transport level."""

    def __init__(
        self,
        message: str = "Vector store search failed",
        collection: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if collection:
            error_details["collection"] = collection
        super().__init__(
            message=message,
            status_code=502,
            code="STORE_SEARCH_ERROR",
            details=error_details,
        )


class NoMatchError(RAGException):
    """Exception raised when the knowledge collection returns nothing."""

    def __init__(
        self,
        message: str = "There's nothing matching in the knowledge base",
        collection: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if collection:
            error_details["collection"] = collection
        super().__init__(
            message=message,
            status_code=500,
            code="NO_MATCH",
            details=error_details,
        )


class GenerationError(RAGException):
    """Exception raised for completion model errors."""

    def __init__(
        self,
        message: str = "Answer generation failed",
        model: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if model:
            error_details["model"] = model
        super().__init__(
            message=message,
            status_code=502,
            code="GENERATION_ERROR",
            details=error_details,
        )


class CollectionError(RAGException):
    """Exception raised when a collection cannot be declared."""

    def __init__(
        self,
        message: str = "Collection setup failed",
        collection: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if collection:
            error_details["collection"] = collection
        super().__init__(
            message=message,
            status_code=500,
            code="COLLECTION_ERROR",
            details=error_details,
        )

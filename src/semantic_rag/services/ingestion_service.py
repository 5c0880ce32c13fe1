"""Knowledge base ingestion: line-oriented CSV files into the knowledge collection."""

from pathlib import Path
from typing import List, Sequence, Union

from semantic_rag.services.embedding_service import EmbeddingService
from semantic_rag.services.knowledge_retriever import KnowledgeRetriever
from semantic_rag.utils.logging import get_logger

logger = get_logger("ingestion_service")


def read_csv_lines(path: Union[str, Path], skip_header: bool = True) -> List[str]:
    """
    Read a CSV file as one document per line.

    Lines are not split into columns: each row is stored verbatim as the
    document text. Blank lines are dropped.

    Args:
        path: File to read
        skip_header: Drop the first line

    Returns:
        Document texts in file order
    """
    with open(path, "r", encoding="utf-8") as f:
        lines = f.read().splitlines()

    if skip_header and lines:
        lines = lines[1:]

    return [line for line in lines if line.strip()]


class IngestionService:
    """Embed documents in batches and store one knowledge point per document."""

    def __init__(self, embedder: EmbeddingService, retriever: KnowledgeRetriever) -> None:
        self._embedder = embedder
        self._retriever = retriever

    async def ingest_texts(self, texts: Sequence[str]) -> int:
        """Embed and store `texts`; returns the number of points written."""
        if not texts:
            logger.info("Nothing to ingest")
            return 0

        vectors = await self._embedder.embed_batch(texts)
        await self._retriever.add_documents(vectors, texts)

        logger.info(
            f"Ingested {len(texts)} document(s) into {self._retriever.collection_name}"
        )
        return len(texts)

    async def ingest_csv(self, path: Union[str, Path], skip_header: bool = True) -> int:
        """Ingest every line of a CSV file."""
        texts = read_csv_lines(path, skip_header=skip_header)
        logger.info(f"Read {len(texts)} line(s) from {path}")
        return await self.ingest_texts(texts)

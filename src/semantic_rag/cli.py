"""Populate the knowledge collection from a CSV file.

Usage:
    semantic-rag-ingest data/knowledge.csv
    semantic-rag-ingest data/knowledge.csv --no-header
    semantic-rag-ingest data/knowledge.csv --no-setup
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from semantic_rag.config import Settings, get_settings
from semantic_rag.services import build_pipeline
from semantic_rag.services.ingestion_service import IngestionService
from semantic_rag.services.vector_store import VectorStoreService
from semantic_rag.utils.errors import RAGException
from semantic_rag.utils.logging import get_logger, setup_logging

logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="semantic-rag-ingest",
        description="Embed every line of a CSV file and store it in the knowledge collection",
    )
    parser.add_argument("path", help="CSV file to ingest, one document per line")
    parser.add_argument(
        "--no-header",
        action="store_true",
        help="Treat the first line as data instead of skipping it",
    )
    parser.add_argument(
        "--no-setup",
        action="store_true",
        help="Do not declare the collections before ingesting",
    )
    return parser


async def run_ingest(
    settings: Settings, path: str, skip_header: bool = True, setup: bool = True
) -> int:
    """Ingest `path` into the configured knowledge collection."""
    store = VectorStoreService(settings)
    try:
        pipeline = build_pipeline(settings, store)
        if setup:
            await pipeline.setup()

        service = IngestionService(pipeline.embedder, pipeline.retriever)
        return await service.ingest_csv(path, skip_header=skip_header)
    finally:
        store.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    setup_logging(settings)

    try:
        count = asyncio.run(
            run_ingest(
                settings,
                args.path,
                skip_header=not args.no_header,
                setup=not args.no_setup,
            )
        )
    except FileNotFoundError:
        print(f"Error: file not found: {args.path}", file=sys.stderr)
        return 1
    except RAGException as e:
        logger.error(f"Ingestion failed: {e.message}", extra={"extra_fields": e.details})
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    print(f"Ingested {count} document(s) into {settings.qdrant.knowledge_collection}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

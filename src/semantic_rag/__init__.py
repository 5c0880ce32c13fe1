"""semantic-rag: retrieval-augmented answers with a semantic read-through cache."""

__version__ = "0.1.0"

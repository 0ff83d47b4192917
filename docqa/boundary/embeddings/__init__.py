"""Embedding provider adapters."""

from docqa.boundary.embeddings.providers import EmbeddingProvider, build_embedding_provider

__all__ = ["EmbeddingProvider", "build_embedding_provider"]

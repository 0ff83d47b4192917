"""
Hybrid retrieval.

The orchestrator lives in docqa.core.retrieval.orchestrator and is imported
from there; it depends on the embedding cache, which depends on lexical.
"""

from .chunk_store import ChunkHit, ChunkStore, SearchMode
from .lexical import matches_all_terms, normalize_text, text_match_score, tokenize

__all__ = [
    "ChunkHit",
    "ChunkStore",
    "SearchMode",
    "matches_all_terms",
    "normalize_text",
    "text_match_score",
    "tokenize",
]

"""
Lexical matching for the in-process ranker.

PostgreSQL ranks text with its own full-text operators (see
ChunkCRUD.search_ranked). Other dialects rank in Python, and these helpers
follow the same rules as `plainto_tsquery`: a chunk matches only when it
contains every query term, compared on whole words.

Dependencies: re (stdlib)
System role: Lexical half of hybrid search on non-PostgreSQL datastores
"""

import re

_WORD_RE = re.compile(r"[^\W_]+", re.UNICODE)
_WHITESPACE_RE = re.compile(r"\s+")

STOP_WORDS = frozenset(
    """
    a an and are as at be but by for from has have he her his how i if in into is it
    its me my of on or our she so than that the their them then there these they
    this to was we were what when where which who why will with you your
    """.split()
)


def normalize_text(text: str) -> str:
    """Collapse whitespace runs, strip and lowercase."""
    return _WHITESPACE_RE.sub(" ", text).strip().lower()


def words(text: str) -> list[str]:
    """Lowercase whole words in order of appearance."""
    return _WORD_RE.findall(text.lower())


def tokenize(text: str) -> list[str]:
    """
    Split text into lowercase terms, dropping stop words and single characters.

    Args:
        text: Raw text

    Returns:
        list[str]: Terms in order of appearance (duplicates kept)
    """
    return [token for token in words(text) if len(token) > 1 and token not in STOP_WORDS]


def contains_phrase(content_words: list[str], phrase_words: list[str]) -> bool:
    """True when phrase_words occur as a contiguous run of whole words."""
    size = len(phrase_words)
    if size == 0 or size > len(content_words):
        return False
    return any(
        content_words[start:start + size] == phrase_words
        for start in range(len(content_words) - size + 1)
    )


def matches_all_terms(query_text: str, content: str) -> bool:
    """Whether content contains every query term (the `@@ plainto_tsquery` rule)."""
    query_terms = set(tokenize(query_text))
    if not query_terms:
        return False
    return query_terms.issubset(tokenize(content))


def text_match_score(query_text: str, content: str) -> float:
    """
    Lexical relevance of a chunk for a query, in [0, 1].

    A chunk containing the whole query as a run of whole words scores 1.0;
    otherwise the score is the fraction of query terms found in the chunk.

    Args:
        query_text: Raw query text
        content: Chunk content

    Returns:
        float: Lexical match score
    """
    query_terms = set(tokenize(query_text))
    if not query_terms:
        return 0.0

    content_words = words(content)
    if contains_phrase(content_words, words(query_text)):
        return 1.0

    matched = query_terms.intersection(content_words)
    return len(matched) / len(query_terms)

"""Core domain logic: processing pipeline, caches, registry, retrieval."""

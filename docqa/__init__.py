"""DocQA: document ingestion pipeline and hybrid retrieval engine."""

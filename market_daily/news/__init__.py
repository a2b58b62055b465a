"""News ingestion pipeline: sources -> relevance -> enrichment -> store."""

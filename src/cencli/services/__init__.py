"""Application services: progress, streaming and API-backed operations."""

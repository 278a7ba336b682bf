"""Command orchestration; one module per CLI command under ``pipeline.steps``."""

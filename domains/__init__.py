"""Domain modules for Context Fetcher."""

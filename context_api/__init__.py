"""Context API - local HTTP access to the Context Fetcher."""

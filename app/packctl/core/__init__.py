"""Core orchestration, caching, queueing and configuration for packctl."""

"""packctl - single-flight task orchestration for pack lifecycle operations."""

__version__ = "0.1.0"

"""Patient-scoped retrieval over clinical documents."""

__version__ = "0.1.0"

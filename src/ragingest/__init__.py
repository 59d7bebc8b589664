"""Document chunking and concurrent embedding for retrieval pipelines."""

__version__ = "0.1.0"

"""Protocol interfaces for dependency injection."""
from .embedder import EmbeddingModelProtocol
from .search_client import SearchClientProtocol
from .llm import LLMProtocol

__all__ = [
    "EmbeddingModelProtocol",
    "SearchClientProtocol",
    "LLMProtocol",
]

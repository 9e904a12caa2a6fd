"""Core business services."""
from .embedding_service import EmbeddingService
from .query_translator import QueryTranslator
from .search_backend import SearchBackend
from .hybrid_search_service import HybridSearchService
from .health_service import HealthService
from .document_service import DocumentService

__all__ = [
    "EmbeddingService",
    "QueryTranslator",
    "SearchBackend",
    "HybridSearchService",
    "HealthService",
    "DocumentService",
]

"""Domain models."""
from .document import Document
from .search import (
    BackendResult,
    RetrievalStrategy,
    SearchOutcome,
    SearchQuery,
)

__all__ = [
    "Document",
    "BackendResult",
    "RetrievalStrategy",
    "SearchOutcome",
    "SearchQuery",
]

"""Search request/response domain models."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..exceptions import InvalidQueryError
from .document import Document

DEGRADED_LABEL = "degraded"
FALLBACK_LABEL = "fallback"


class RetrievalStrategy(Enum):
    """Retrieval strategy chosen once per request."""
    VECTOR_FIRST = "vector_first"
    TEXT_FIRST = "text_first"
    HYBRID_BALANCED = "hybrid_balanced"
    AI_ENHANCED = "ai_enhanced"


@dataclass(frozen=True)
class SearchQuery:
    """Validated search request."""
    text: str
    page: int = 0
    size: int = 10

    def __post_init__(self):
        if not isinstance(self.text, str) or not self.text.strip():
            raise InvalidQueryError("Query text must not be blank")
        if self.page < 0:
            raise InvalidQueryError(f"Page must be >= 0, got {self.page}")
        if self.size < 1:
            raise InvalidQueryError(f"Size must be >= 1, got {self.size}")

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass(frozen=True)
class BackendResult:
    """Uniform result of a single backend call."""
    documents: list[Document] = field(default_factory=list)
    total_hits: int = 0
    took_ms: int = 0

    def __len__(self) -> int:
        return len(self.documents)


@dataclass(frozen=True)
class SearchOutcome:
    """Final answer for one search request."""
    original_query: str
    executed_query: Optional[dict[str, Any]]
    documents: tuple[Document, ...]
    total_hits: int
    page: int
    size: int
    took_ms: int
    strategy: Optional[RetrievalStrategy] = None
    degraded: bool = False
    query_fallback: bool = False

    @property
    def label(self) -> str:
        """Which strategy actually produced the documents."""
        if self.degraded or self.strategy is None:
            return DEGRADED_LABEL
        if self.query_fallback:
            return FALLBACK_LABEL
        return self.strategy.value

    def to_dict(self) -> dict:
        return {
            "original_query": self.original_query,
            "executed_query": self.executed_query,
            "strategy": self.label,
            "attempted_strategy": self.strategy.value if self.strategy else None,
            "documents": [d.to_dict() for d in self.documents],
            "total_hits": self.total_hits,
            "page": self.page,
            "size": self.size,
            "took_ms": self.took_ms,
        }

"""Search backend client protocol for dependency injection."""
from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class SearchClientProtocol(Protocol):
    """Protocol for the low-level search engine client.

    Implementations raise ``BackendError`` on transport or execution failure.
    """

    def exists(self, index: str) -> bool:
        """Check whether the index exists."""
        ...

    def create(self, index: str, mappings: dict) -> None:
        """Create the index with the given field mappings."""
        ...

    def search(self, index: str, body: dict) -> dict:
        """Execute a raw search request body.

        Returns:
            Raw engine response with ``hits`` and ``took``.
        """
        ...

    def search_structured(
        self, index: str, query: dict, offset: int, limit: int
    ) -> dict:
        """Execute a structured query (``{"query": ...}``) with paging."""
        ...

    def search_scripted(
        self,
        index: str,
        script: str,
        params: dict[str, Any],
        min_score: Optional[float],
        limit: int,
        offset: int = 0,
        filter_query: Optional[dict] = None,
    ) -> dict:
        """Execute a script-scored query over ``filter_query`` (all docs by default)."""
        ...

    def index(self, index: str, document: dict, doc_id: Optional[str] = None) -> str:
        """Store a document and return its id."""
        ...

    def get(
        self, index: str, doc_id: str, source_includes: Optional[list[str]] = None
    ) -> Optional[dict]:
        """Fetch a stored document source, None if missing."""
        ...

    def count(self, index: str) -> int:
        """Count documents in the index."""
        ...

    def refresh(self, index: str) -> None:
        """Make recent writes visible to search."""
        ...

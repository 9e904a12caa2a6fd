"""Search backend facade - uniform execution of structured and vector queries."""

import logging
import time
from typing import Optional

import numpy as np

from ..exceptions import InvalidQueryError
from ..models.document import EMBEDDING_FIELDS, Document
from ..models.search import BackendResult
from ..protocols.search_client import SearchClientProtocol
from ..strategies.queries import (
    VECTOR_SCORE_SCRIPT,
    exclude_document_query,
    hybrid_query,
    match_all_query,
    vector_params,
)
from .query_translator import QueryTranslator

logger = logging.getLogger(__name__)


def build_mappings(dimension: int) -> dict:
    """Field schema of the document index."""
    properties = {
        "title": {
            "type": "text",
            "analyzer": "standard",
            "fields": {"keyword": {"type": "keyword"}},
        },
        "content": {"type": "text", "analyzer": "standard"},
        "category": {"type": "keyword"},
        "tags": {"type": "keyword"},
        "create_time": {
            "type": "date",
            "format": "yyyy-MM-dd HH:mm:ss||yyyy-MM-dd||epoch_millis",
        },
        "author": {"type": "keyword"},
    }
    for name in EMBEDDING_FIELDS:
        properties[name] = {"type": "dense_vector", "dims": dimension}
    return {"properties": properties}


class SearchBackend:
    """Facade over the search engine client for one document index."""

    def __init__(
        self,
        client: SearchClientProtocol,
        index_name: str = "documents",
        dimension: int = 768,
    ):
        """Initialize backend facade.

        Args:
            client: Low-level search engine client.
            index_name: Target index.
            dimension: Length of stored embedding vectors.
        """
        self._client = client
        self._index = index_name
        self._dimension = dimension

    @property
    def index_name(self) -> str:
        return self._index

    def ensure_collection_ready(self) -> None:
        """Create the index with its fixed schema if it does not exist."""
        logger.info(f"Checking index: {self._index}")
        if self._client.exists(self._index):
            logger.info(f"Index exists: {self._index}")
            return

        logger.info(f"Creating index: {self._index}")
        self._client.create(self._index, build_mappings(self._dimension))
        logger.info(f"Created index: {self._index}")

    def _to_result(self, response: dict, started: float) -> BackendResult:
        hits = response.get("hits") or {}
        documents = [Document.from_hit(hit) for hit in hits.get("hits", [])]

        total = hits.get("total", len(documents))
        if isinstance(total, dict):
            total = total.get("value", len(documents))

        took = response.get("took")
        if took is None:
            took = int((time.perf_counter() - started) * 1000)

        return BackendResult(documents=documents, total_hits=int(total), took_ms=int(took))

    def execute_structured(self, query: dict, offset: int, limit: int) -> BackendResult:
        """Run a validated structured query.

        Raises:
            InvalidQueryError: If the query lacks a top-level 'query' clause.
            BackendError: If execution fails.
        """
        if not QueryTranslator.validate(query):
            raise InvalidQueryError("Structured query must contain a top-level 'query'")

        started = time.perf_counter()
        response = self._client.search_structured(self._index, query, offset, limit)
        result = self._to_result(response, started)
        logger.info(
            f"Structured search: {len(result)} docs of {result.total_hits} "
            f"in {result.took_ms}ms"
        )
        return result

    def execute_match_all(self, offset: int, limit: int) -> BackendResult:
        return self.execute_structured(match_all_query(), offset, limit)

    def execute_vector_similarity(
        self,
        vector: np.ndarray,
        limit: int,
        min_score: float = 0.5,
        offset: int = 0,
    ) -> BackendResult:
        """Rank all documents by cosine similarity to the vector.

        An empty vector means there is nothing to search for and returns no
        documents without touching the backend.
        """
        vector = np.asarray(vector, dtype=np.float32)
        if vector.size == 0:
            logger.warning("Empty query vector, skipping vector search")
            return BackendResult()

        started = time.perf_counter()
        response = self._client.search_scripted(
            self._index,
            VECTOR_SCORE_SCRIPT,
            vector_params(vector.tolist()),
            min_score,
            limit,
            offset=offset,
        )
        result = self._to_result(response, started)
        logger.info(f"Vector search: {len(result)} docs of {result.total_hits}")
        return result

    def execute_hybrid(
        self,
        text: str,
        vector: np.ndarray,
        text_boost: float = 1.0,
        vector_boost: float = 3.0,
        limit: int = 10,
        offset: int = 0,
    ) -> BackendResult:
        """Combine vector similarity and text match in one backend query."""
        vector = np.asarray(vector, dtype=np.float32)
        if vector.size == 0:
            vector = np.zeros(self._dimension, dtype=np.float32)

        query = hybrid_query(text, vector.tolist(), text_boost, vector_boost)
        started = time.perf_counter()
        response = self._client.search_structured(self._index, query, offset, limit)
        result = self._to_result(response, started)
        logger.info(f"Hybrid search: {len(result)} docs of {result.total_hits}")
        return result

    def get_embedding(self, document_id: str) -> Optional[np.ndarray]:
        """Stored combined embedding of a document, None if absent."""
        source = self._client.get(
            self._index, document_id, source_includes=["combined_embedding"]
        )
        if not source or not source.get("combined_embedding"):
            return None
        return np.asarray(source["combined_embedding"], dtype=np.float32)

    def find_similar(
        self, document_id: str, limit: int = 10, min_score: float = 1.5
    ) -> BackendResult:
        """Documents closest to a stored document, excluding itself."""
        vector = self.get_embedding(document_id)
        if vector is None:
            logger.warning(f"No stored embedding for document {document_id}")
            return BackendResult()

        started = time.perf_counter()
        response = self._client.search_scripted(
            self._index,
            VECTOR_SCORE_SCRIPT,
            vector_params(vector.tolist()),
            min_score,
            limit,
            filter_query=exclude_document_query(document_id),
        )
        result = self._to_result(response, started)
        logger.info(f"Similar to {document_id}: {len(result)} docs")
        return result

    def index_one(self, document: Document) -> str:
        doc_id = self._client.index(self._index, document.to_source(), doc_id=document.id)
        document.id = doc_id
        logger.info(f"Indexed '{document.title}' as {doc_id}")
        return doc_id

    def index_many(self, documents: list[Document]) -> list[str]:
        logger.info(f"Indexing {len(documents)} documents")
        ids = [self.index_one(doc) for doc in documents]
        self._client.refresh(self._index)
        logger.info("Batch indexing complete")
        return ids

    def count_all(self) -> int:
        return self._client.count(self._index)

    def get_all(self, offset: int, limit: int) -> BackendResult:
        return self.execute_match_all(offset, limit)

    def get_document(self, document_id: str) -> Optional[Document]:
        source = self._client.get(self._index, document_id)
        if source is None:
            return None
        return Document.from_dict(source, doc_id=document_id)

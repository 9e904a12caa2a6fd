"""Document service - embedding and indexing of documents."""

import json
import logging
from pathlib import Path

from ..exceptions import InvalidQueryError
from ..models.document import Document
from ..models.search import BackendResult
from .embedding_service import EmbeddingService
from .search_backend import SearchBackend

logger = logging.getLogger(__name__)


class DocumentService:
    """Attach embeddings to documents and pass them to the backend."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        backend: SearchBackend,
        title_weight: float = 0.4,
        content_weight: float = 0.6,
        batch_size: int = 50,
    ):
        """Initialize document service.

        Args:
            embedding_service: Embedding provider.
            backend: Search backend facade.
            title_weight: Title share of the combined embedding.
            content_weight: Content share of the combined embedding.
            batch_size: Documents embedded per model call.
        """
        self._embeddings = embedding_service
        self._backend = backend
        self._title_weight = title_weight
        self._content_weight = content_weight
        self._batch_size = batch_size

    def _attach_embeddings(self, documents: list[Document]) -> None:
        texts = [d.title for d in documents] + [d.content for d in documents]
        vectors = self._embeddings.embed_batch(texts)
        titles, contents = vectors[: len(documents)], vectors[len(documents):]

        for doc, title_vec, content_vec in zip(documents, titles, contents):
            doc.title_embedding = title_vec
            doc.content_embedding = content_vec

            if title_vec.size and content_vec.size:
                doc.combined_embedding = self._embeddings.combine(
                    title_vec, self._title_weight, content_vec, self._content_weight
                )
            else:
                doc.combined_embedding = title_vec if title_vec.size else content_vec

    def index_document(self, document: Document) -> str:
        """Embed and index a single document, returning its id."""
        self._attach_embeddings([document])
        return self._backend.index_one(document)

    def index_documents(self, documents: list[Document]) -> list[str]:
        """Embed and index documents in batches, returning their ids."""
        ids: list[str] = []
        for i in range(0, len(documents), self._batch_size):
            batch = documents[i : i + self._batch_size]
            self._attach_embeddings(batch)
            ids.extend(self._backend.index_many(batch))
            logger.info(f"Indexed batch: {len(ids)}/{len(documents)}")
        return ids

    def load_file(self, path: str | Path) -> list[Document]:
        """Read documents from a JSON file holding an object or a list."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = [data]
        return [Document.from_dict(item) for item in data]

    def get_documents(self, page: int = 0, size: int = 10) -> BackendResult:
        if page < 0 or size < 1:
            raise InvalidQueryError(f"Invalid paging: page={page}, size={size}")
        return self._backend.get_all(page * size, size)

    def find_similar(self, document_id: str, size: int = 10, min_score: float = 1.5) -> BackendResult:
        return self._backend.find_similar(document_id, limit=size, min_score=min_score)

    def count(self) -> int:
        return self._backend.count_all()

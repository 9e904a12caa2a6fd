"""
Shared fakes and fixtures for the hybrid search test suite.

The fakes stand in for the three external collaborators: the embedding
model, the LLM and the search engine client.
"""

import hashlib
from typing import Any, Optional

import numpy as np
import pytest

from hybrid_search.core.exceptions import BackendError
from hybrid_search.core.models.document import Document
from hybrid_search.core.services.embedding_service import EmbeddingService
from hybrid_search.core.services.query_translator import QueryTranslator
from hybrid_search.core.services.search_backend import SearchBackend

DIM = 8


class FakeEmbeddingModel:
    """Deterministic text -> vector model."""

    def __init__(self, dimension: int = DIM, fail: bool = False, fail_batches: bool = False):
        self._dimension = dimension
        self.fail = fail
        self.fail_batches = fail_batches
        self.calls: list[list[str]] = []
        self.warmups = 0

    @property
    def dimension(self) -> int:
        return self._dimension

    def warmup(self) -> None:
        self.warmups += 1

    def vector_for(self, text: str) -> np.ndarray:
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return np.array([b + 1 for b in digest[: self._dimension]], dtype=np.float32)

    def encode(self, texts: list[str]) -> np.ndarray:
        self.calls.append(list(texts))
        if self.fail:
            raise RuntimeError("embedding model down")
        if self.fail_batches and len(texts) > 1:
            raise RuntimeError("batch endpoint down")
        return np.stack([self.vector_for(t) for t in texts])


class FakeLLM:
    def __init__(self, response: str = "", error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.prompts: list[tuple[str, str]] = []

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.prompts.append((system_prompt, user_prompt))
        if self.error is not None:
            raise self.error
        return self.response


def hits_response(docs: list[Document], total: Optional[int] = None, took: int = 3) -> dict:
    return {
        "took": took,
        "hits": {
            "total": {"value": len(docs) if total is None else total, "relation": "eq"},
            "hits": [
                {"_id": d.id, "_score": 1.0, "_source": d.to_source()} for d in docs
            ],
        },
    }


class FakeSearchClient:
    """In-memory search client with scripted responses.

    Queued responses are returned first; otherwise structured and scripted
    searches page over every stored document in insertion order.
    """

    def __init__(self):
        self.indices: dict[str, dict] = {}
        self.docs: dict[str, dict] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.structured_responses: list[dict] = []
        self.scripted_responses: list[dict] = []
        self.fail = False
        self._next_id = 1

    def _record(self, name: str, **kwargs) -> None:
        self.calls.append((name, kwargs))
        if self.fail:
            raise BackendError(f"{name}: connection refused")

    def calls_to(self, name: str) -> list[dict[str, Any]]:
        return [kwargs for call, kwargs in self.calls if call == name]

    def _page(self, offset: int, limit: int) -> dict:
        docs = [Document.from_dict(src, doc_id=i) for i, src in self.docs.items()]
        return hits_response(docs[offset : offset + limit], total=len(docs))

    def exists(self, index: str) -> bool:
        self._record("exists", index=index)
        return index in self.indices

    def create(self, index: str, mappings: dict) -> None:
        self._record("create", index=index, mappings=mappings)
        self.indices[index] = mappings

    def search(self, index: str, body: dict) -> dict:
        self._record("search", index=index, body=body)
        return self._page(body.get("from", 0), body.get("size", 10))

    def search_structured(self, index: str, query: dict, offset: int, limit: int) -> dict:
        self._record("search_structured", index=index, query=query, offset=offset, limit=limit)
        if self.structured_responses:
            return self.structured_responses.pop(0)
        return self._page(offset, limit)

    def search_scripted(
        self,
        index: str,
        script: str,
        params: dict,
        min_score: Optional[float],
        limit: int,
        offset: int = 0,
        filter_query: Optional[dict] = None,
    ) -> dict:
        self._record(
            "search_scripted",
            index=index,
            script=script,
            params=params,
            min_score=min_score,
            limit=limit,
            offset=offset,
            filter_query=filter_query,
        )
        if self.scripted_responses:
            return self.scripted_responses.pop(0)
        return self._page(offset, limit)

    def index(self, index: str, document: dict, doc_id: Optional[str] = None) -> str:
        self._record("index", index=index, document=document, doc_id=doc_id)
        if doc_id is None:
            doc_id = f"doc-{self._next_id}"
            self._next_id += 1
        self.docs[doc_id] = document
        return doc_id

    def get(self, index: str, doc_id: str, source_includes: Optional[list[str]] = None) -> Optional[dict]:
        self._record("get", index=index, doc_id=doc_id, source_includes=source_includes)
        source = self.docs.get(doc_id)
        if source is None:
            return None
        if source_includes:
            return {k: v for k, v in source.items() if k in source_includes}
        return dict(source)

    def count(self, index: str) -> int:
        self._record("count", index=index)
        return len(self.docs)

    def refresh(self, index: str) -> None:
        self._record("refresh", index=index)


def make_doc(title: str, author: str = "author", doc_id: Optional[str] = None, **kwargs) -> Document:
    return Document(
        id=doc_id or f"id-{title}-{author}",
        title=title,
        content=kwargs.pop("content", f"content of {title}"),
        category=kwargs.pop("category", "tech"),
        tags=kwargs.pop("tags", ["t"]),
        author=author,
        **kwargs,
    )


@pytest.fixture
def embedding_model():
    return FakeEmbeddingModel()


@pytest.fixture
def embedding_service(embedding_model):
    service = EmbeddingService(embedding_model, dimension=DIM)
    yield service
    service.shutdown()


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def translator(llm):
    return QueryTranslator(llm)


@pytest.fixture
def search_client():
    return FakeSearchClient()


@pytest.fixture
def backend(search_client):
    return SearchBackend(search_client, index_name="documents", dimension=DIM)

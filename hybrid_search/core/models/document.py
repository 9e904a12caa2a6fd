"""Document domain models."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

import numpy as np

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

EMBEDDING_FIELDS = ("title_embedding", "content_embedding", "combined_embedding")


def _parse_time(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000)
    for fmt in (DATE_FORMAT, "%Y-%m-%d"):
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return datetime.fromisoformat(value)


def _as_vector(value: Any) -> Optional[np.ndarray]:
    if value is None:
        return None
    return np.asarray(value, dtype=np.float32)


@dataclass
class Document:
    """Searchable document.

    Embedding vectors travel to the backend on indexing but are never part of
    the public representation returned by ``to_dict``.
    """
    title: str
    content: str
    category: str = ""
    tags: list[str] = field(default_factory=list)
    author: str = ""
    create_time: Optional[datetime] = field(default_factory=datetime.now)
    id: Optional[str] = None
    title_embedding: Optional[np.ndarray] = field(default=None, repr=False, compare=False)
    content_embedding: Optional[np.ndarray] = field(default=None, repr=False, compare=False)
    combined_embedding: Optional[np.ndarray] = field(default=None, repr=False, compare=False)

    @property
    def dedup_key(self) -> tuple[str, str]:
        """Identity used when merging result lists."""
        return (self.title, self.author)

    @property
    def has_embedding(self) -> bool:
        return self.combined_embedding is not None and self.combined_embedding.size > 0

    def to_dict(self) -> dict:
        """Public representation, without vectors."""
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "category": self.category,
            "tags": list(self.tags),
            "author": self.author,
            "create_time": self.create_time.strftime(DATE_FORMAT) if self.create_time else None,
        }

    def to_source(self) -> dict:
        """Backend ``_source`` body, vectors included when present."""
        source = self.to_dict()
        source.pop("id")
        for name in EMBEDDING_FIELDS:
            vector = getattr(self, name)
            if vector is not None and vector.size > 0 and np.any(vector):
                source[name] = vector.tolist()
        return source

    @classmethod
    def from_dict(cls, data: dict, doc_id: Optional[str] = None) -> "Document":
        """Build a document from a public dict or a backend ``_source``."""
        return cls(
            id=doc_id if doc_id is not None else data.get("id"),
            title=data.get("title", ""),
            content=data.get("content", ""),
            category=data.get("category", ""),
            tags=list(data.get("tags") or []),
            author=data.get("author", ""),
            create_time=_parse_time(data.get("create_time")),
            title_embedding=_as_vector(data.get("title_embedding")),
            content_embedding=_as_vector(data.get("content_embedding")),
            combined_embedding=_as_vector(data.get("combined_embedding")),
        )

    @classmethod
    def from_hit(cls, hit: dict) -> "Document":
        """Build a document from a backend search hit."""
        return cls.from_dict(hit.get("_source") or {}, doc_id=hit.get("_id"))

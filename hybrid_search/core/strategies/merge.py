
import logging
from typing import Iterable

from ..models.document import Document

logger = logging.getLogger(__name__)


def merge_deduplicate(
    primary: Iterable[Document],
    secondary: Iterable[Document],
    max_size: int,
) -> list[Document]:
    """Merge two ranked lists, primary first, dropping repeated dedup keys.

    Relative order inside each list is kept and the primary occurrence wins
    on collision. Stops once ``max_size`` documents are admitted.
    """
    seen: set[tuple[str, str]] = set()
    merged: list[Document] = []

    for source in (primary, secondary):
        for doc in source:
            if len(merged) >= max_size:
                return merged
            key = doc.dedup_key
            if key in seen:
                continue
            seen.add(key)
            merged.append(doc)

    return merged

"""Hybrid search service - strategy dispatch, merging and degradation."""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from ..models.document import Document
from ..models.search import (
    BackendResult,
    RetrievalStrategy,
    SearchOutcome,
    SearchQuery,
)
from ..strategies.merge import merge_deduplicate
from ..strategies.queries import match_all_query, multi_match_query
from ..strategies.selection import StrategySelector
from .embedding_service import EmbeddingService
from .query_translator import QueryTranslator
from .search_backend import SearchBackend

logger = logging.getLogger(__name__)


@dataclass
class _StrategyRun:
    """Documents a strategy produced and the structured query it ran, if any."""
    documents: list[Document]
    total_hits: int
    executed_query: Optional[dict] = None
    query_fallback: bool = False


class HybridSearchService:
    """Answer a search request with the strategy that fits the query.

    ``search`` never raises: any failure inside a strategy falls back to a
    plain match-all listing labelled as degraded.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        translator: QueryTranslator,
        backend: SearchBackend,
        selector: StrategySelector | None = None,
        text_boost: float = 1.0,
        vector_boost: float = 3.0,
        vector_min_score: float = 0.5,
        candidate_factor: int = 2,
    ):
        """Initialize hybrid search service.

        Args:
            embedding_service: Query embedding provider.
            translator: Natural language to structured query translator.
            backend: Search backend facade.
            selector: Strategy selector.
            text_boost: Text match weight in hybrid queries.
            vector_boost: Vector similarity weight in hybrid queries.
            vector_min_score: Minimum vector score (similarity + 1).
            candidate_factor: Vector candidates fetched per requested result.
        """
        self._embeddings = embedding_service
        self._translator = translator
        self._backend = backend
        self._selector = selector or StrategySelector()
        self._text_boost = text_boost
        self._vector_boost = vector_boost
        self._vector_min_score = vector_min_score
        self._candidate_factor = candidate_factor

        self._handlers: dict[RetrievalStrategy, Callable[[SearchQuery], _StrategyRun]] = {
            RetrievalStrategy.VECTOR_FIRST: self._vector_first,
            RetrievalStrategy.TEXT_FIRST: self._text_first,
            RetrievalStrategy.HYBRID_BALANCED: self._hybrid_balanced,
            RetrievalStrategy.AI_ENHANCED: self._ai_enhanced,
        }
        missing = set(RetrievalStrategy) - set(self._handlers)
        if missing:
            raise TypeError(f"No handler for strategies: {sorted(s.name for s in missing)}")

    def select_strategy(self, text: str) -> RetrievalStrategy:
        return self._selector.select(text)

    def search(
        self, query: SearchQuery, strategy: RetrievalStrategy | None = None
    ) -> SearchOutcome:
        """Search documents.

        Args:
            query: Validated search request.
            strategy: Force a strategy instead of selecting one.

        Returns:
            Search outcome; degraded when the chosen strategy failed.
        """
        started = time.perf_counter()
        strategy = strategy or self._selector.select(query.text)
        logger.info(f"Search '{query.text[:50]}' with {strategy.name}")

        try:
            run = self._handlers[strategy](query)
        except Exception as e:
            logger.error(f"{strategy.name} search failed: {e}", exc_info=True)
            return self._fallback(query, strategy, started)

        documents = run.documents[: query.size]
        outcome = SearchOutcome(
            original_query=query.text,
            executed_query=run.executed_query,
            documents=tuple(documents),
            total_hits=max(run.total_hits, len(documents)),
            page=query.page,
            size=query.size,
            took_ms=self._elapsed_ms(started),
            strategy=strategy,
            query_fallback=run.query_fallback,
        )
        logger.info(
            f"Search done: {len(documents)}/{query.size} docs via {outcome.label} "
            f"in {outcome.took_ms}ms"
        )
        return outcome

    def _vector_first(self, query: SearchQuery) -> _StrategyRun:
        vector = self._embeddings.embed(query.text)
        vector_result = self._backend.execute_vector_similarity(
            vector,
            limit=query.size * self._candidate_factor,
            min_score=self._vector_min_score,
            offset=query.offset,
        )

        if len(vector_result) >= query.size:
            return _StrategyRun(
                vector_result.documents[: query.size], vector_result.total_hits, None
            )

        shortfall = query.size - len(vector_result)
        logger.debug(f"Vector search short by {shortfall}, filling with match-all")
        text_result = self._backend.execute_match_all(query.offset, shortfall)
        merged = merge_deduplicate(vector_result.documents, text_result.documents, query.size)
        return _StrategyRun(merged, vector_result.total_hits, match_all_query())

    def _text_first(self, query: SearchQuery) -> _StrategyRun:
        structured = multi_match_query(query.text)
        result = self._backend.execute_structured(structured, query.offset, query.size)
        return _StrategyRun(result.documents, result.total_hits, structured)

    def _hybrid_balanced(self, query: SearchQuery) -> _StrategyRun:
        vector = self._embeddings.embed(query.text)
        result = self._backend.execute_hybrid(
            query.text,
            vector,
            text_boost=self._text_boost,
            vector_boost=self._vector_boost,
            limit=query.size,
            offset=query.offset,
        )
        return _StrategyRun(result.documents, result.total_hits, None)

    def _ai_enhanced(self, query: SearchQuery) -> _StrategyRun:
        translation = self._translator.translate_with_status(query.text)
        structured = translation.query
        ai_result = self._backend.execute_structured(structured, query.offset, query.size)

        if len(ai_result) >= query.size:
            return _StrategyRun(
                ai_result.documents, ai_result.total_hits, structured, translation.fallback
            )

        shortfall = query.size - len(ai_result)
        logger.debug(f"AI query short by {shortfall}, filling with vector search")
        vector = self._embeddings.embed(query.text)
        vector_result = self._backend.execute_vector_similarity(
            vector, limit=shortfall, min_score=self._vector_min_score
        )
        merged = merge_deduplicate(ai_result.documents, vector_result.documents, query.size)
        return _StrategyRun(merged, ai_result.total_hits, structured, translation.fallback)

    def _fallback(
        self, query: SearchQuery, attempted: RetrievalStrategy, started: float
    ) -> SearchOutcome:
        logger.warning(f"Degrading to match-all after {attempted.name} failure")

        try:
            result = self._backend.execute_match_all(query.offset, query.size)
        except Exception as e:
            logger.error(f"Fallback search failed too: {e}")
            result = BackendResult()

        documents = result.documents[: query.size]
        return SearchOutcome(
            original_query=query.text,
            executed_query=match_all_query(),
            documents=tuple(documents),
            total_hits=result.total_hits,
            page=query.page,
            size=query.size,
            took_ms=self._elapsed_ms(started),
            strategy=attempted,
            degraded=True,
        )

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.perf_counter() - started) * 1000)

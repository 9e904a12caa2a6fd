import logging

from ..models.search import RetrievalStrategy

logger = logging.getLogger(__name__)


class StrategySelector:
    """Classify a query into a retrieval strategy by lexical heuristics.

    Rules run in order, first match wins:
    boolean connectors, analytic keywords or long text -> AI_ENHANCED;
    semantic keywords -> VECTOR_FIRST; anything else -> HYBRID_BALANCED.
    TEXT_FIRST is never chosen here.
    """

    BOOLEAN_CONNECTORS = ("AND", "OR")

    DEFAULT_ANALYTIC_KEYWORDS = (
        "统计",
        "聚合",
        "分析",
        "对比",
        "statistic",
        "aggregat",
        "analy",
        "compar",
    )

    DEFAULT_SEMANTIC_KEYWORDS = (
        "相似",
        "类似",
        "相关",
        "相近",
        "如何",
        "什么",
        "为什么",
        "similar",
        "related",
        "how",
        "what",
        "why",
    )

    def __init__(
        self,
        analytic_keywords: tuple[str, ...] | None = None,
        semantic_keywords: tuple[str, ...] | None = None,
        max_simple_length: int = 50,
    ):
        """Initialize selector.

        Args:
            analytic_keywords: Keywords that call for an AI-built query.
            semantic_keywords: Keywords that call for vector search.
            max_simple_length: Longer queries go to AI_ENHANCED.
        """
        self._analytic = self._fold(analytic_keywords or self.DEFAULT_ANALYTIC_KEYWORDS)
        self._semantic = self._fold(semantic_keywords or self.DEFAULT_SEMANTIC_KEYWORDS)
        self._max_simple_length = max_simple_length

    @staticmethod
    def _fold(keywords: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(k.casefold() for k in keywords)

    @staticmethod
    def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
        """Case-insensitive substring match, so inflected forms count too."""
        folded = text.casefold()
        return any(k in folded for k in keywords)

    def is_complex(self, text: str) -> bool:
        if any(c in text for c in self.BOOLEAN_CONNECTORS):
            return True
        if self._contains_any(text, self._analytic):
            return True
        return len(text) > self._max_simple_length

    def is_semantic(self, text: str) -> bool:
        return self._contains_any(text, self._semantic)

    def select(self, text: str) -> RetrievalStrategy:
        if self.is_complex(text):
            strategy = RetrievalStrategy.AI_ENHANCED
        elif self.is_semantic(text):
            strategy = RetrievalStrategy.VECTOR_FIRST
        else:
            strategy = RetrievalStrategy.HYBRID_BALANCED

        logger.debug(f"Strategy {strategy.name} for '{text[:50]}'")
        return strategy


_default_selector = StrategySelector()


def select_strategy(text: str) -> RetrievalStrategy:
    """Select a strategy with the default keyword sets."""
    return _default_selector.select(text)

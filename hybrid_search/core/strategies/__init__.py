"""Strategy selection, result merging and query building."""
from .merge import merge_deduplicate
from .selection import StrategySelector, select_strategy

__all__ = [
    "merge_deduplicate",
    "StrategySelector",
    "select_strategy",
]

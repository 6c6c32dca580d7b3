"""Repository data collection: history walk, blame aggregation, orchestration."""

from .blame import BlameAggregator, summarize_blame
from .collector import CollectorState, GitDataCollector, compute_active_lines
from .history import HistoryWalker

__all__ = [
    "BlameAggregator",
    "CollectorState",
    "GitDataCollector",
    "HistoryWalker",
    "compute_active_lines",
    "summarize_blame",
]

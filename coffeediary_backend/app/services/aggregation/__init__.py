"""Pure derivations over an in-memory entry list (entries page and dashboard)."""
from .entries_filter import distinct_brew_methods, distinct_origins, filter_entries
from .dashboard_stats import summarize, trends, TRENDS_PLACEHOLDER

__all__ = [
    "filter_entries",
    "distinct_origins",
    "distinct_brew_methods",
    "summarize",
    "trends",
    "TRENDS_PLACEHOLDER",
]

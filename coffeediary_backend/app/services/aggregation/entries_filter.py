# coffeediary_backend/app/services/aggregation/entries_filter.py
from __future__ import annotations

from datetime import timezone
from typing import Callable, Iterable, List, Optional, Sequence

from coffeediary_backend.app.schemas import Entry, EntryFilter, SortMode

Predicate = Callable[[Entry], bool]


def _ts(entry: Entry) -> float:
    dt = entry.created_at
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def _keyword(term: str) -> Optional[Predicate]:
    if not term.strip():
        return None
    needle = term.lower()
    def match(e: Entry) -> bool:
        return needle in (e.bean_name or "").lower() or needle in (e.bean_origin or "").lower()
    return match


def _equals(attr: str, wanted: str) -> Optional[Predicate]:
    if not wanted:
        return None
    return lambda e: getattr(e, attr) == wanted


def _min_rating(threshold: int) -> Optional[Predicate]:
    if threshold <= 0:
        return None
    return lambda e: e.rating >= threshold


def build_predicates(params: EntryFilter) -> List[Predicate]:
    """Active predicates only; an unset filter contributes nothing."""
    candidates = (
        _keyword(params.q),
        _equals("bean_origin", params.origin),
        _equals("roast_level", params.roast),
        _equals("brew_method", params.brew_method),
        _min_rating(params.min_rating),
    )
    return [p for p in candidates if p is not None]


def sort_entries(entries: Iterable[Entry], mode: SortMode) -> List[Entry]:
    # sorted() is stable: ties keep their base (date-descending) order
    if mode is SortMode.RATING:
        return sorted(entries, key=lambda e: e.rating, reverse=True)
    return sorted(entries, key=_ts, reverse=True)


def filter_entries(base: Sequence[Entry], params: EntryFilter) -> List[Entry]:
    """
    Apply keyword, equality and rating filters (logical AND) to the full
    base list, then order by the sort mode. Always starts from `base`.
    """
    preds = build_predicates(params)
    kept = [e for e in base if all(p(e) for p in preds)]
    return sort_entries(kept, params.sort)


def _distinct(values: Iterable[Optional[str]]) -> List[str]:
    seen: dict[str, None] = {}
    for v in values:
        if v and v.strip():
            seen.setdefault(v, None)
    return list(seen)


def distinct_origins(base: Sequence[Entry]) -> List[str]:
    return _distinct(e.bean_origin for e in base)


def distinct_brew_methods(base: Sequence[Entry]) -> List[str]:
    return _distinct(e.brew_method for e in base)

# coffeediary_backend/app/services/aggregation/dashboard_stats.py
"""
Dashboard statistics over a user's full entry list.

Every function is a single pass over the list and is safe on an empty
list: averages fall back to 0 instead of dividing by zero.
"""
from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from coffeediary_backend.app.schemas import (
    DashboardSummary, Entry, Histogram, Trends,
    NONE_LABEL, OTHER_ROAST_LABEL, ROAST_LEVELS, TASTE_ATTRIBUTES, TASTE_LABELS,
)

TRENDS_MIN_ENTRIES = 3
TRENDS_PLACEHOLDER = "より正確な分析のためには、もう少し記録を増やしてください（3件以上推奨）"
MONTH_WINDOW = 6
TOP_METHODS = 5
RATING_LABELS = [f"★{i}" for i in range(1, 6)]


# ---- time helpers ----------------------------------------------------------
def _now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now().astimezone()

def _in_zone(dt: datetime, tz: Optional[tzinfo]) -> datetime:
    # naive timestamps are stored UTC
    if tz is None:
        if dt.tzinfo is None:
            return dt
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz)

def month_label(month: int) -> str:
    return f"{month}月"


# ---- scalar stats ------------------------------------------------------------
def _mean(values: Iterable[float], count: int) -> float:
    return sum(values) / (count or 1)

def average_rating(entries: Sequence[Entry]) -> float:
    return _mean((e.rating for e in entries), len(entries))

def format_average(value: float) -> str:
    # ties round up: 2.25 -> "2.3"
    return str(Decimal(repr(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))

def count_by(entries: Sequence[Entry], attr: str) -> Dict[str, int]:
    """Insertion-ordered counts of non-empty values of `attr`."""
    counts: Dict[str, int] = {}
    for e in entries:
        v = getattr(e, attr)
        if v:
            counts[v] = counts.get(v, 0) + 1
    return counts

def ranked(counts: Dict[str, int]) -> List[Tuple[str, int]]:
    # stable: equal counts keep first-seen order
    return sorted(counts.items(), key=lambda kv: kv[1], reverse=True)

def most_frequent(entries: Sequence[Entry], attr: str) -> Optional[str]:
    top = ranked(count_by(entries, attr))
    return top[0][0] if top else None

def count_this_month(entries: Sequence[Entry], now: Optional[datetime] = None) -> int:
    ref = _now(now)
    n = 0
    for e in entries:
        dt = _in_zone(e.created_at, ref.tzinfo)
        if dt.month == ref.month and dt.year == ref.year:
            n += 1
    return n

def summarize(entries: Sequence[Entry], now: Optional[datetime] = None) -> DashboardSummary:
    return DashboardSummary(
        total=len(entries),
        avg_rating=format_average(average_rating(entries)),
        top_method=most_frequent(entries, "brew_method") or NONE_LABEL,
        top_origin=most_frequent(entries, "bean_origin") or NONE_LABEL,
        this_month=count_this_month(entries, now),
    )


# ---- histograms --------------------------------------------------------------
def roast_histogram(entries: Sequence[Entry]) -> Histogram:
    buckets: Dict[str, int] = {level: 0 for level in ROAST_LEVELS}
    buckets[OTHER_ROAST_LABEL] = 0
    for e in entries:
        key = e.roast_level if e.roast_level in ROAST_LEVELS else OTHER_ROAST_LABEL
        buckets[key] += 1
    return Histogram(labels=list(buckets), data=list(buckets.values()))

def rating_histogram(entries: Sequence[Entry]) -> Histogram:
    counts = [0] * 5
    for e in entries:
        if 1 <= e.rating <= 5:
            counts[e.rating - 1] += 1
    return Histogram(labels=list(RATING_LABELS), data=counts)

def last_months(now: Optional[datetime] = None, window: int = MONTH_WINDOW) -> List[Tuple[int, int]]:
    """(year, month) pairs, oldest first, ending at the current month."""
    ref = _now(now)
    out: List[Tuple[int, int]] = []
    for back in range(window - 1, -1, -1):
        idx = ref.year * 12 + (ref.month - 1) - back
        out.append((idx // 12, idx % 12 + 1))
    return out

def monthly_histogram(entries: Sequence[Entry], now: Optional[datetime] = None) -> Histogram:
    ref = _now(now)
    # keyed by label only; the same month name a year apart shares a bucket
    buckets: Dict[str, int] = {month_label(m): 0 for _, m in last_months(ref)}
    for e in entries:
        label = month_label(_in_zone(e.created_at, ref.tzinfo).month)
        if label in buckets:
            buckets[label] += 1
    return Histogram(labels=list(buckets), data=list(buckets.values()))

def taste_profile(entries: Sequence[Entry]) -> Histogram:
    n = len(entries)
    data = [_mean((getattr(e, attr) or 0 for e in entries), n) for attr in TASTE_ATTRIBUTES]
    return Histogram(labels=[TASTE_LABELS[a] for a in TASTE_ATTRIBUTES], data=data)

def brew_method_histogram(entries: Sequence[Entry], top: int = TOP_METHODS) -> Histogram:
    pairs = ranked(count_by(entries, "brew_method"))[:top]
    return Histogram(labels=[k for k, _ in pairs], data=[v for _, v in pairs])


def trends(entries: Sequence[Entry], now: Optional[datetime] = None) -> Optional[Trends]:
    """Detailed charts, or None below TRENDS_MIN_ENTRIES (nothing computed)."""
    if len(entries) < TRENDS_MIN_ENTRIES:
        return None
    return Trends(
        roast_levels=roast_histogram(entries),
        ratings=rating_histogram(entries),
        monthly=monthly_histogram(entries, now),
        taste_profile=taste_profile(entries),
        brew_methods=brew_method_histogram(entries),
    )

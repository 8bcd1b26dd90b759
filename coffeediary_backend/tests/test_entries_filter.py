# coffeediary_backend/tests/test_entries_filter.py
from __future__ import annotations

from datetime import datetime, timezone
from itertools import permutations

from coffeediary_backend.app.schemas import Entry, EntryFilter, SortMode
from coffeediary_backend.app.services.aggregation import (
    distinct_brew_methods, distinct_origins, filter_entries,
)
from coffeediary_backend.app.services.aggregation.entries_filter import build_predicates


def _base(make_entry):
    # date-descending, as the store returns it
    return [
        make_entry(bean_name="Yirgacheffe", bean_origin="Ethiopia", roast_level="浅煎り",
                   brew_method="V60", rating=4, created_at=datetime(2024, 3, 1, tzinfo=timezone.utc)),
        make_entry(bean_name="Huila", bean_origin="Colombia", roast_level="中煎り",
                   brew_method="French press", rating=3, created_at=datetime(2024, 2, 1, tzinfo=timezone.utc)),
        make_entry(bean_name="Guji", bean_origin="Ethiopia", roast_level="中煎り",
                   brew_method="V60", rating=5, created_at=datetime(2024, 1, 1, tzinfo=timezone.utc)),
    ]


def test_no_filters_returns_base_in_date_order(make_entry):
    base = _base(make_entry)
    out = filter_entries(base, EntryFilter())
    assert [e.id for e in out] == [e.id for e in base]


def test_rating_sort_is_stable():
    jan = Entry(id="jan", user_id="u", rating=5, created_at=datetime(2024, 1, 1))
    feb = Entry(id="feb", user_id="u", rating=3, created_at=datetime(2024, 2, 1))
    mar = Entry(id="mar", user_id="u", rating=5, created_at=datetime(2024, 3, 1))
    out = filter_entries([jan, feb, mar], EntryFilter(sort=SortMode.RATING))
    assert [e.id for e in out] == ["jan", "mar", "feb"]


def test_rating_ties_follow_date_descending_base(make_entry):
    base = _base(make_entry)
    base.append(make_entry(rating=4, created_at=datetime(2023, 12, 1, tzinfo=timezone.utc)))
    out = filter_entries(base, EntryFilter(sort="rating"))
    assert [e.rating for e in out] == [5, 4, 4, 3]
    # the two 4s keep base order
    assert out[1].id == base[0].id and out[2].id == base[3].id


def test_origin_filter_keeps_relative_order(make_entry):
    base = _base(make_entry)
    out = filter_entries(base, EntryFilter(origin="Ethiopia"))
    assert [e.bean_name for e in out] == ["Yirgacheffe", "Guji"]


def test_keyword_matches_name_or_origin_case_insensitive(make_entry):
    base = _base(make_entry)
    assert [e.bean_name for e in filter_entries(base, EntryFilter(q="HUI"))] == ["Huila"]
    assert len(filter_entries(base, EntryFilter(q="ethiop"))) == 2
    assert filter_entries(base, EntryFilter(q="kenya")) == []


def test_blank_keyword_matches_all(make_entry):
    base = _base(make_entry)
    assert len(filter_entries(base, EntryFilter(q="   "))) == 3


def test_min_rating_threshold(make_entry):
    base = _base(make_entry)
    assert [e.rating for e in filter_entries(base, EntryFilter(min_rating=4))] == [4, 5]
    assert len(filter_entries(base, EntryFilter(min_rating=0))) == 3


def test_filters_compose_with_and(make_entry):
    base = _base(make_entry)
    params = EntryFilter(origin="Ethiopia", roast="中煎り", brew_method="V60", min_rating=5)
    out = filter_entries(base, params)
    assert [e.bean_name for e in out] == ["Guji"]
    assert all(e in base for e in out)


def test_predicate_order_does_not_matter(make_entry):
    base = _base(make_entry)
    preds = build_predicates(EntryFilter(q="i", origin="Ethiopia", min_rating=4))
    results = {
        tuple(e.id for e in base if all(p(e) for p in order))
        for order in permutations(preds)
    }
    assert len(results) == 1


def test_filters_do_not_accumulate(make_entry):
    base = _base(make_entry)
    narrowed = filter_entries(base, EntryFilter(origin="Colombia"))
    assert len(narrowed) == 1
    # a new parameter set starts again from the base list
    widened = filter_entries(base, EntryFilter(origin="Ethiopia"))
    assert len(widened) == 2


def test_distinct_options_skip_blanks_and_keep_first_seen_order(make_entry):
    base = _base(make_entry) + [make_entry(bean_origin="", brew_method=None)]
    assert distinct_origins(base) == ["Ethiopia", "Colombia"]
    assert distinct_brew_methods(base) == ["V60", "French press"]

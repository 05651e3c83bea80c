"""Read patterns over an emitted record sequence.

Pure filters: no index, no caching.  Comparisons are accent- and
case-insensitive, so ``"chiriqui"`` matches ``"Chiriquí"``.
"""

from __future__ import annotations

from typing import Iterable, List

from .models import Record
from .profile import fold_text

SEARCH_FIELDS = ("name", "description", "region", "category")


def search(records: Iterable[Record], text: str) -> List[Record]:
    """Records whose name, description, region or category contain *text*.

    An empty query matches every record.
    """
    needle = fold_text(text)
    if not needle:
        return list(records)
    return [
        r
        for r in records
        if any(needle in fold_text(getattr(r, f)) for f in SEARCH_FIELDS)
    ]


def filter_by_region(records: Iterable[Record], region: str) -> List[Record]:
    key = fold_text(region)
    return [r for r in records if fold_text(r.region) == key]


def filter_by_category(records: Iterable[Record], category: str) -> List[Record]:
    key = fold_text(category)
    return [r for r in records if fold_text(r.category) == key]


def list_regions(records: Iterable[Record]) -> List[str]:
    """Distinct non-empty regions in first-seen order."""
    return _distinct(r.region for r in records)


def list_categories(records: Iterable[Record]) -> List[str]:
    """Distinct categories in first-seen order."""
    return _distinct(r.category for r in records)


def _distinct(values: Iterable[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for v in values:
        key = fold_text(v)
        if v and key not in seen:
            seen.add(key)
            out.append(v)
    return out

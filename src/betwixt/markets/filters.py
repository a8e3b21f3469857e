"""Client-side category filters and sort orders over the aggregated market set."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Sequence

from betwixt.models.market import ProcessedMarket, Tag

TRENDING = "trending"
RECENT = "recent"
CLOSING_SOON = "closing-soon"


@dataclass(frozen=True)
class TagCategory:
    """Tag match rule: label keywords, slug substring, or the Gamma tag id."""

    slug: str
    keywords: tuple[str, ...]
    tag_id: int

    def matches(self, tag: Tag) -> bool:
        label = (tag.label or "").lower()
        slug = (tag.slug or "").lower()
        if any(k in label for k in self.keywords) or self.slug in slug:
            return True
        return _tag_id(tag) == self.tag_id


TAG_CATEGORIES: dict[str, TagCategory] = {
    "crypto": TagCategory("crypto", ("crypto", "bitcoin", "ethereum"), 21),
    "politics": TagCategory(
        "politics", ("politics", "election", "president", "trump", "biden"), 2
    ),
    "sports": TagCategory(
        "sports",
        ("sports", "nba", "nfl", "football", "basketball", "baseball", "soccer"),
        100215,
    ),
}

FILTERS = (TRENDING, RECENT, CLOSING_SOON, *TAG_CATEGORIES)


def _tag_id(tag: Tag) -> int | None:
    if isinstance(tag.id, bool):
        return None
    try:
        return int(tag.id) if tag.id is not None else None
    except (TypeError, ValueError):
        return None


def _epoch_seconds(value: str | None) -> float | None:
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def _start_key(m: ProcessedMarket) -> float:
    ts = _epoch_seconds(m.start_date)
    return ts if ts is not None else 0.0


def _end_key(m: ProcessedMarket) -> float:
    ts = _epoch_seconds(m.end_date)
    return ts if ts is not None else math.inf


def apply_filter(
    markets: Sequence[ProcessedMarket], category: str, limit: int
) -> list[ProcessedMarket]:
    """Filter/sort markets for a category and truncate to limit. Unknown categories behave as trending."""
    filtered = list(markets)
    if category == RECENT:
        filtered.sort(key=_start_key, reverse=True)
    elif category == CLOSING_SOON:
        filtered.sort(key=_end_key)
    elif category in TAG_CATEGORIES:
        rule = TAG_CATEGORIES[category]
        filtered = [m for m in filtered if any(rule.matches(t) for t in m.tags or [])]
    # trending: upstream order is already volume-descending
    return filtered[: max(limit, 0)]

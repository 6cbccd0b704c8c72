"""Group articles by calendar day."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .models import Article


@dataclass(frozen=True)
class DatePartition:
    by_date: Dict[str, List[Article]] = field(default_factory=dict)
    dates: List[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.dates)


def group_by_date(articles: Iterable[Article]) -> DatePartition:
    """
    Bucket articles by `date_key`, keeping input order inside each day.

    `dates` is sorted lexicographically, which is chronological for YYYYMMDD keys.
    """
    by_date: Dict[str, List[Article]] = {}
    for article in articles:
        by_date.setdefault(article.date_key, []).append(article)
    return DatePartition(by_date=by_date, dates=sorted(by_date))


def format_date_key(date_key: str) -> str:
    """Render "20240105" as "2024-01-05"; other shapes pass through unchanged."""
    if len(date_key) != 8:
        return date_key
    return f"{date_key[:4]}-{date_key[4:6]}-{date_key[6:]}"

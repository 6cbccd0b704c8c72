"""Featured-article selection for an entity's detail view."""

from __future__ import annotations

import random
from typing import Iterable, Optional

from .models import Article

DEFAULT_TOP_K = 5


def pick_featured_article(
    articles: Iterable[Article],
    exclude_id: Optional[str] = None,
    rng: Optional[random.Random] = None,
    top_k: int = DEFAULT_TOP_K,
) -> Optional[Article]:
    """
    Choose a substantial article, biased toward longer content.

    Candidates are the substantial articles whose `item_id` differs from
    `exclude_id`. One of the `top_k` longest is returned uniformly at random;
    None means there is nothing left to show.
    """
    pool = [
        article
        for article in articles
        if article.is_substantial and not (exclude_id and article.item_id == exclude_id)
    ]
    if not pool:
        return None
    pool.sort(key=lambda article: len(article.content), reverse=True)
    head = pool[: min(top_k, len(pool))]
    return (rng or random).choice(head)

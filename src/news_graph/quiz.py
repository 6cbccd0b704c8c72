"""Question sampling for the single random quiz and the CBT exam.

Both policies walk a pre-shuffled, finite candidate ordering
(entities, then at most `article_cap` articles per entity, then each
article's questions) and stop at the first record that normalizes. Every
list is consumed without replacement, so the search always terminates.
"""

from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional, Sequence, Tuple, TypeVar

from .models import Article, CbtQuestion, NodeMeta, QuizQuestion, RandomQuestion
from .questions import normalize_question

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ARTICLE_CAP = 5
CBT_QUESTION_COUNT = 10


def shuffled(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a uniformly permuted copy of `items`."""
    pool = list(items)
    (rng or random).shuffle(pool)
    return pool


def entities_with_questions(node_meta: Dict[str, NodeMeta]) -> List[NodeMeta]:
    return [meta for meta in node_meta.values() if meta.question_articles()]


def pick_question_for_entity(
    meta: NodeMeta,
    rng: Optional[random.Random] = None,
    article_cap: int = DEFAULT_ARTICLE_CAP,
) -> Optional[Tuple[Article, QuizQuestion]]:
    """
    Draw one normalized question from an entity's richest articles.

    Only the first `article_cap` question-bearing articles (already ordered by
    length) are eligible, which keeps entities with many articles from
    dominating.
    """
    candidates = meta.question_articles()[:article_cap]
    for article in shuffled(candidates, rng):
        for raw in shuffled(article.questions, rng):
            question = normalize_question(raw)
            if question is not None:
                return article, question
    return None


def select_random_question(
    node_meta: Dict[str, NodeMeta],
    rng: Optional[random.Random] = None,
    article_cap: int = DEFAULT_ARTICLE_CAP,
) -> Optional[RandomQuestion]:
    """Pick one question for the day, or None when no entity yields one."""
    for meta in shuffled(entities_with_questions(node_meta), rng):
        picked = pick_question_for_entity(meta, rng, article_cap)
        if picked is not None:
            article, question = picked
            return RandomQuestion(entity_id=meta.id, article=article, question=question)
    return None


def collect_cbt_questions(
    node_meta: Dict[str, NodeMeta],
    rng: Optional[random.Random] = None,
    count: int = CBT_QUESTION_COUNT,
    article_cap: int = DEFAULT_ARTICLE_CAP,
) -> List[CbtQuestion]:
    """
    Gather up to `count` questions, one per entity, in shuffled entity order.

    Choices are reshuffled per question, so the correct answer is no longer
    always first.
    """
    selected: List[CbtQuestion] = []
    for meta in shuffled(entities_with_questions(node_meta), rng):
        if len(selected) >= count:
            break
        picked = pick_question_for_entity(meta, rng, article_cap)
        if picked is None:
            continue
        article, question = picked
        selected.append(
            CbtQuestion(
                id=f"cbt-{meta.id}-{len(selected)}",
                prompt=question.prompt,
                choices=tuple(shuffled(question.choices, rng)),
                correct_text=question.correct_text,
                article=article,
                entity_id=meta.id,
            )
        )

    return selected


def prepare_cbt_questions(
    node_meta: Dict[str, NodeMeta],
    rng: Optional[random.Random] = None,
    count: int = CBT_QUESTION_COUNT,
    article_cap: int = DEFAULT_ARTICLE_CAP,
) -> Optional[List[CbtQuestion]]:
    """Exactly `count` questions, or None; a short batch is never returned."""
    selected = collect_cbt_questions(node_meta, rng, count, article_cap)
    if len(selected) < count:
        logger.info("CBT batch short: %d/%d questions", len(selected), count)
        return None
    return selected

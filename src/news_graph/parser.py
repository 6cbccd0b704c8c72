"""Best-effort parser for line-delimited article records."""

from __future__ import annotations

import json
import logging
import re
from typing import List

from pydantic import ValidationError

from .models import Article
from .schema import record_errors

logger = logging.getLogger(__name__)

_LINE_SPLIT = re.compile(r"\r?\n")


def parse_article_line(line: str) -> Article | None:
    """Decode one JSONL line; return None when it is not a usable record."""
    try:
        record = json.loads(line)
    except json.JSONDecodeError as exc:
        logger.debug("skipping undecodable line: %s", exc)
        return None

    problems = record_errors(record)
    if problems:
        logger.debug("skipping record: %s", "; ".join(problems))
        return None

    try:
        return Article.model_validate(record)
    except ValidationError as exc:
        logger.debug("skipping record that failed model validation: %s", exc)
        return None


def parse_articles(text: str) -> List[Article]:
    """
    Parse JSONL text into articles, preserving input order.

    Blank lines are ignored. Lines that fail to decode or lack `date_id`,
    `named_entities` (array) or `content` (string) are skipped; the parse
    never raises for bad input. An empty return value is the caller's signal
    that the file held nothing usable.
    """
    articles: List[Article] = []
    skipped = 0
    for line in _LINE_SPLIT.split(text):
        if not line.strip():
            continue
        article = parse_article_line(line)
        if article is None:
            skipped += 1
            continue
        articles.append(article)

    if skipped:
        logger.warning(
            "skipped %d malformed line(s); accepted %d article(s)", skipped, len(articles)
        )
    return articles

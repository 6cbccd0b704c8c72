"""Normalization of free-form multiple-choice records."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable, List, Optional

from .models import QuizChoice, QuizQuestion


def normalize_question(raw: Any) -> Optional[QuizQuestion]:
    """
    Convert a raw `{"question": str, "choices": [str, ...]}` record.

    Returns None when the record is missing, the prompt is blank, or no
    non-blank string choice remains. Upstream content always lists the correct
    answer first, so the first surviving choice is marked correct. Choice ids
    combine position and text so repeated texts stay distinct.
    """
    if not isinstance(raw, Mapping):
        return None
    prompt = raw.get("question")
    if not isinstance(prompt, str) or not prompt.strip():
        return None
    raw_choices = raw.get("choices")
    if not isinstance(raw_choices, list) or not raw_choices:
        return None

    cleaned = [c for c in raw_choices if isinstance(c, str) and c.strip()]
    if not cleaned:
        return None

    choices = tuple(
        QuizChoice(id=f"{idx}-{text}", text=text, is_correct=idx == 0)
        for idx, text in enumerate(cleaned)
    )
    return QuizQuestion(prompt=prompt, choices=choices, correct_text=cleaned[0])


def normalize_all(raws: Iterable[Any]) -> List[QuizQuestion]:
    """Normalize every record, dropping the ones that do not qualify."""
    normalized = (normalize_question(raw) for raw in raws)
    return [question for question in normalized if question is not None]

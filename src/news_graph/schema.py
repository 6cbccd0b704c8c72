"""JSON Schema for one raw article record and helpers to check it."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Iterable, List

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

ARTICLE_RECORD_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "ArticleRecord",
    "type": "object",
    "required": ["date_id", "named_entities", "content"],
    "properties": {
        "date_id": {"type": ["string", "integer", "number", "boolean"]},
        "named_entities": {"type": "array"},
        "content": {"type": "string"},
    },
}


@lru_cache(maxsize=1)
def record_validator() -> Draft202012Validator:
    """Return a cached validator for raw article records."""
    return Draft202012Validator(ARTICLE_RECORD_SCHEMA)


def format_errors(errors: Iterable[ValidationError]) -> str:
    """Turn jsonschema errors into a concise human-readable string."""
    parts = []
    for err in errors:
        location = ".".join(str(piece) for piece in err.absolute_path) or "<root>"
        parts.append(f"{location}: {err.message}")
    return "; ".join(parts)


def record_errors(record: Any) -> List[str]:
    """
    List the reasons a decoded line is not an acceptable article record.

    Besides the schema shape, the day identifier must be truthy: `""`, `0` and
    `false` are rejected just like a missing key.
    """
    errors = list(record_validator().iter_errors(record))
    if errors:
        return [format_errors(errors)]
    if not record["date_id"]:
        return ["date_id: must not be empty"]
    return []

"""Data models for the news graph engine."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

SUBSTANTIAL_CONTENT_LENGTH = 50
FALLBACK_TITLE = "Related news"


class Article(BaseModel):
    """One dated news record as delivered by the upstream JSONL export."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date_key: str = Field(..., alias="date_id", min_length=1)
    entities: List[str] = Field(default_factory=list, alias="named_entities")
    content: str = Field(..., description="Full article body.")
    headline: Optional[str] = None
    subject_codes: List[str] = Field(
        default_factory=list,
        description="Subject-matter labels in source order; duplicates are kept.",
    )
    questions: List[Any] = Field(
        default_factory=list,
        description="Raw multiple-choice records; validated only when a quiz is built.",
    )
    item_id: Optional[str] = Field(None, alias="news_item_id")

    @field_validator("date_key", mode="before")
    @classmethod
    def _coerce_date_key(cls, value: Any) -> str:
        return str(value)

    @field_validator("entities", mode="before")
    @classmethod
    def _keep_named_entities(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        return [entity for entity in value if isinstance(entity, str) and entity]

    @field_validator("subject_codes", mode="before")
    @classmethod
    def _flatten_subject_codes(cls, value: Any) -> List[str]:
        # Upstream sends [{"subject_matter": "..."}]; plain strings are accepted too.
        if not isinstance(value, list):
            return []
        labels: List[str] = []
        for item in value:
            label = item.get("subject_matter") if isinstance(item, dict) else item
            if isinstance(label, str) and label:
                labels.append(label)
        return labels

    @field_validator("questions", mode="before")
    @classmethod
    def _questions_as_list(cls, value: Any) -> List[Any]:
        return value if isinstance(value, list) else []

    @field_validator("headline", mode="before")
    @classmethod
    def _headline_text(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @field_validator("item_id", mode="before")
    @classmethod
    def _item_id_text(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, (dict, list)):
            return None
        return str(value)

    @property
    def is_substantial(self) -> bool:
        return len(self.content) > SUBSTANTIAL_CONTENT_LENGTH

    @property
    def has_questions(self) -> bool:
        return len(self.questions) > 0

    def unique_entities(self) -> List[str]:
        """Entities with duplicates removed, first mention wins."""
        return list(dict.fromkeys(self.entities))

    def display_title(self) -> str:
        if self.headline:
            return self.headline
        if self.entities:
            return self.entities[0]
        return FALLBACK_TITLE


# --- Graph payload ---------------------------------------------------------


@dataclass(frozen=True)
class EntityNode:
    id: str
    occurrence_count: int
    visual_weight: float
    dominant_subject: Optional[str]
    color_fill: str
    color_border: str

    @property
    def label(self) -> str:
        return f"<b>{self.id}</b>"

    @property
    def title(self) -> str:
        return f"Occurrences: {self.occurrence_count}"

    def to_render(self) -> Dict[str, Any]:
        """Node shape expected by the force-directed renderer."""
        return {
            "id": self.id,
            "label": self.label,
            "value": self.visual_weight,
            "title": self.title,
            "color": {"background": self.color_fill, "border": self.color_border},
        }


@dataclass(frozen=True)
class CoOccurrenceEdge:
    source: str
    target: str
    weight: int

    @property
    def key(self) -> Tuple[str, str]:
        return (self.source, self.target)

    @property
    def title(self) -> str:
        return f"Co-occurrences: {self.weight}"

    def to_render(self) -> Dict[str, Any]:
        return {
            "from": self.source,
            "to": self.target,
            "value": self.weight,
            "title": self.title,
        }


@dataclass(frozen=True)
class GraphPayload:
    nodes: Dict[str, EntityNode] = field(default_factory=dict)
    edges: Dict[Tuple[str, str], CoOccurrenceEdge] = field(default_factory=dict)

    def edge(self, a: str, b: str) -> Optional[CoOccurrenceEdge]:
        """Look up an edge regardless of endpoint order."""
        return self.edges.get(canonical_pair(a, b))

    def to_render(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "nodes": [node.to_render() for node in self.nodes.values()],
            "edges": [edge.to_render() for edge in self.edges.values()],
        }


@dataclass(frozen=True)
class NodeMeta:
    """Per-entity details for the side panel and quiz sourcing."""

    id: str
    occurrence_count: int
    dominant_subject: Optional[str]
    articles: Tuple[Article, ...] = ()

    def question_articles(self) -> List[Article]:
        return [article for article in self.articles if article.has_questions]


@dataclass(frozen=True)
class DayGraph:
    graph: GraphPayload
    node_meta: Dict[str, NodeMeta]


def canonical_pair(a: str, b: str) -> Tuple[str, str]:
    return (a, b) if a < b else (b, a)


# --- Quiz objects ------------------------------------------------------------


@dataclass(frozen=True)
class QuizChoice:
    id: str
    text: str
    is_correct: bool


@dataclass(frozen=True)
class QuizQuestion:
    prompt: str
    choices: Tuple[QuizChoice, ...]
    correct_text: str


@dataclass(frozen=True)
class CbtQuestion:
    id: str
    prompt: str
    choices: Tuple[QuizChoice, ...]
    correct_text: str
    article: Article
    entity_id: str

    def choice(self, choice_id: str) -> Optional[QuizChoice]:
        for choice in self.choices:
            if choice.id == choice_id:
                return choice
        return None


@dataclass(frozen=True)
class RandomQuestion:
    entity_id: str
    article: Article
    question: QuizQuestion


def to_plain(value: Any) -> Any:
    """
    Convert dataclasses, articles and containers into JSON-serializable primitives.
    Articles keep their upstream field names; tuple keys are joined with "|".
    """
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {
            ("|".join(k) if isinstance(k, tuple) else str(k)): to_plain(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple, set)):
        return [to_plain(item) for item in value]
    return value

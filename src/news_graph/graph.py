"""Builds the per-day entity co-occurrence graph.

One pass over the day's articles accumulates three local tables:
- occurrences per entity (one per article mentioning it),
- a subject-matter histogram per entity,
- the articles mentioning each entity.

The top `cap` entities become nodes. A second pass counts unordered pairs of
top entities appearing in the same article; pairs seen in more than one
article become edges.
"""

from __future__ import annotations

import itertools
import math
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .colors import border_for, color_for_subject
from .config import get_settings
from .models import (
    Article,
    CoOccurrenceEdge,
    DayGraph,
    EntityNode,
    GraphPayload,
    NodeMeta,
    canonical_pair,
)

MIN_EDGE_WEIGHT = 2
WEIGHT_FLOOR = 2.0


def visual_weight(count: int) -> float:
    """Log-scaled node size; counts of 0 or 1 sit on the floor."""
    if count <= 1:
        return WEIGHT_FLOOR
    return math.log(count) * 5 + 2


def dominant_subject(histogram: Optional[Dict[str, int]]) -> Optional[str]:
    """Most frequent label; the first label reaching the maximum wins ties."""
    best: Optional[str] = None
    best_count = 0
    for subject, count in (histogram or {}).items():
        if count > best_count:
            best, best_count = subject, count
    return best


def rank_entities(counts: Dict[str, int], cap: int) -> List[str]:
    """
    Top `cap` entities by count.

    `sorted` is stable, so equal counts keep the order in which the entities
    were first seen while scanning the day.
    """
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [entity for entity, _ in ranked[:cap]]


def count_pairs(articles: Iterable[Article], selected: Sequence[str]) -> Counter:
    """Count canonical entity pairs that share an article, restricted to `selected`."""
    allowed = set(selected)
    pairs: Counter = Counter()
    for article in articles:
        present = [entity for entity in article.unique_entities() if entity in allowed]
        for a, b in itertools.combinations(present, 2):
            pairs[canonical_pair(a, b)] += 1
    return pairs


def build_day_graph(articles: Sequence[Article], cap: Optional[int] = None) -> DayGraph:
    """
    Build the graph payload and node metadata for one day's articles.

    An empty article list yields an empty graph, which simply means there is
    nothing to display.
    """
    if cap is None:
        cap = get_settings().entity_cap
    if cap < 1:
        raise ValueError("cap must be >= 1.")

    counts: Dict[str, int] = {}
    subjects: Dict[str, Dict[str, int]] = {}
    mentions: Dict[str, List[Article]] = {}

    for article in articles:
        for entity in article.unique_entities():
            counts[entity] = counts.get(entity, 0) + 1
            mentions.setdefault(entity, []).append(article)
            histogram = subjects.setdefault(entity, {})
            for subject in article.subject_codes:
                histogram[subject] = histogram.get(subject, 0) + 1

    top_entities = rank_entities(counts, cap)

    nodes: Dict[str, EntityNode] = {}
    node_meta: Dict[str, NodeMeta] = {}
    for entity in top_entities:
        count = counts[entity]
        subject = dominant_subject(subjects.get(entity))
        fill = color_for_subject(subject)
        nodes[entity] = EntityNode(
            id=entity,
            occurrence_count=count,
            visual_weight=visual_weight(count),
            dominant_subject=subject,
            color_fill=fill,
            color_border=border_for(fill),
        )
        related = [a for a in mentions.get(entity, []) if a.is_substantial]
        related.sort(key=lambda a: len(a.content), reverse=True)
        node_meta[entity] = NodeMeta(
            id=entity,
            occurrence_count=count,
            dominant_subject=subject,
            articles=tuple(related),
        )

    edges: Dict[Tuple[str, str], CoOccurrenceEdge] = {}
    for (a, b), weight in count_pairs(articles, top_entities).items():
        if weight < MIN_EDGE_WEIGHT:
            continue
        edges[(a, b)] = CoOccurrenceEdge(source=a, target=b, weight=weight)

    return DayGraph(graph=GraphPayload(nodes=nodes, edges=edges), node_meta=node_meta)
